"""Main CLI dispatcher for funccover.

This module provides the main command-line interface for funccover,
dispatching commands to the appropriate sub-modules.
"""

import argparse
import sys

from funccover import __version__

from .instrument import add_instrument_parser, run_instrument


def build_parser():
    parser = argparse.ArgumentParser(
        description="funccover - function coverage for Python sources", prog="funccover"
    )

    parser.add_argument("--version", action="version", version=f"funccover {__version__}")

    subparsers = parser.add_subparsers(
        dest="command", help="Available commands", required=True
    )

    add_instrument_parser(subparsers)
    return parser


def main(argv=None):
    """Main entry point for the funccover CLI.

    Returns:
        int: Exit code (0 for success, non-zero for error).
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "instrument":
        return run_instrument(args)

    parser.print_help()
    return 2


if __name__ == "__main__":
    sys.exit(main())
