"""Shared fixtures for CLI tests."""

from argparse import Namespace

import pytest


@pytest.fixture
def make_args(tmp_path):
    """Build handler args pointing at an empty settings file and the fake org."""

    def _make(**overrides):
        values = {
            "settings": str(tmp_path / "settings.yaml"),
            "url": "https://org.example.com",
            "token": "t0ken",
            "json": False,
            "verbose": False,
            "view": None,
            "state": None,
        }
        values.update(overrides)
        return Namespace(**values)

    return _make
