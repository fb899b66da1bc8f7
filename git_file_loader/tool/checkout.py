"""Git-file-loader checkout action."""

import logging
import os
import pathlib
import shutil
import sys
from argparse import ArgumentParser, _SubParsersAction as SubParsersAction
from typing import cast

from git_file_loader.loader import GitLoader

from .connection_flags import add_connection_flags, build_connection


_LOGGER = logging.getLogger(__name__)


def _print_file(local_file: pathlib.Path) -> None:
    """Print the target of a symlink or the raw content of a file."""
    if local_file.is_symlink():
        print(os.readlink(local_file))
        return
    sys.stdout.flush()
    sys.stdout.buffer.write(local_file.read_bytes())
    sys.stdout.buffer.flush()


class CheckoutAction:
    """Check out individual files from the remote repository."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "checkout",
                aliases=["co"],
                help="Check out individual files from the remote repository",
                description=(
                    "Check out only the specified files and print their contents, "
                    "or copy them into an output directory."
                ),
            ),
        )
        add_connection_flags(args)
        args.add_argument(
            "paths",
            metavar="PATH",
            nargs="+",
            help="Path of a file relative to the repository root",
        )
        args.add_argument(
            "--output-dir",
            help="Directory to copy the files into instead of printing them",
            type=pathlib.Path,
            default=None,
        )
        args.set_defaults(cls=cls)
        return args

    def run(  # type: ignore[no-untyped-def]
        self,
        paths: list[str],
        output_dir: pathlib.Path | None,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Action implementation."""
        connection = build_connection(**kwargs)
        with GitLoader(connection) as loader:
            loader.clone()
            files = loader.checkout_files(paths)
            for path, local_file in files.items():
                if not local_file.exists() and not local_file.is_symlink():
                    _LOGGER.warning("%s does not exist at %s", path, connection.ref)
                    continue
                if output_dir is None:
                    _print_file(local_file)
                    continue
                dest = output_dir / path
                dest.parent.mkdir(parents=True, exist_ok=True)
                shutil.copy2(local_file, dest, follow_symlinks=False)
                print(dest)
