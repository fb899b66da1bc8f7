"""Command line tool for loading individual files from a remote git repository."""

import argparse
import logging
import sys
import traceback

from git_file_loader.exceptions import GitLoaderException
from . import checkout, list_files

_LOGGER = logging.getLogger(__name__)


def _make_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Command line utility for reading files of a remote git repository.",
    )
    parser.add_argument(
        "--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    )

    subparsers = parser.add_subparsers(dest="command", help="Command", required=True)

    list_files.ListAction.register(subparsers)
    checkout.CheckoutAction.register(subparsers)
    return parser


def main() -> None:
    """Git-file-loader command line tool main entry point."""
    parser = _make_parser()
    args = parser.parse_args()

    if args.log_level:
        logging.basicConfig(level=args.log_level)

    action = args.cls()
    try:
        action.run(**vars(args))
    except GitLoaderException as err:
        if args.log_level == "DEBUG":
            traceback.print_exc(file=sys.stderr)
        print("git-file-loader error: ", err, file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
