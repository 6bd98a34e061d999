"""Textual UI for crmban."""

from crmban.ui.app import CrmbanApp

__all__ = [
    "CrmbanApp",
]
