"""Fixtures for UI tests."""

import pytest

from crmban.ui import CrmbanApp

SETTINGS = {
    "url": "https://org.example.com",
    "token": "t0ken",
    "api_version": "9.2",
    "timeout": 30.0,
    "user_id": "",
}


@pytest.fixture
def app(client, host):
    """The board app wired to the in-memory service and a recording host."""
    return CrmbanApp(SETTINGS, client=client, host=host)

