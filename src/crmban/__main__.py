"""Entry point for crmban CLI."""

import sys


def main():
    from crmban.cli import build_parser, configure_logging

    parser = build_parser()
    # A bare URL argument opens the board for that organisation
    argv = sys.argv[1:]
    if argv and argv[0].startswith("http"):
        argv = ["tui", "--url", argv[0], *argv[1:]]
    args = parser.parse_args(argv)

    configure_logging(args.verbose)
    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
