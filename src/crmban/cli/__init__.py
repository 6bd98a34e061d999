"""CLI argument parser and dispatch for crmban."""

import argparse
import logging
import sys

from crmban.cli._common import load_settings_or_die
from crmban.cli.board import lanes, views


def tui(args) -> int:
    """Run the board TUI."""
    from crmban.ui import CrmbanApp

    settings = load_settings_or_die(args)
    CrmbanApp(settings).run()
    return 0


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        format="%(asctime)s %(levelname)s %(message)s",
        stream=sys.stderr,
        level=logging.DEBUG if verbose else logging.WARNING,
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the full CLI argument parser."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--settings", help="Settings file (default: ~/.config/crmban/settings.yaml)")
    common.add_argument("--url", help="Organisation URL, e.g. https://org.crm.dynamics.com")
    common.add_argument("--token", help="Bearer token for the Web API")
    common.add_argument("--json", action="store_true", help="Machine-readable JSON output")
    common.add_argument("-v", "--verbose", action="store_true", help="Log requests to stderr")

    parser = argparse.ArgumentParser(
        prog="crmban",
        description="Kanban board over Dataverse records",
        parents=[common],
    )

    nouns = parser.add_subparsers(dest="noun")

    # --- tui ---
    tui_p = nouns.add_parser("tui", help="Open the board (default)", parents=[common])
    tui_p.set_defaults(func=tui)

    # --- lanes ---
    lanes_p = nouns.add_parser("lanes", help="Print the board's lanes", parents=[common])
    lanes_p.add_argument("--view", help="Saved view name or id (default: first view)")
    lanes_p.add_argument(
        "--state", type=int, action="append", help="Only show records in this state (repeatable)"
    )
    lanes_p.set_defaults(func=lanes)

    # --- views ---
    views_p = nouns.add_parser("views", help="List saved views and card forms", parents=[common])
    views_p.set_defaults(func=views)

    parser.set_defaults(func=tui)

    return parser
