"""Git-file-loader list action."""

import logging
from argparse import ArgumentParser, _SubParsersAction as SubParsersAction
from typing import cast

from git_file_loader.loader import GitLoader

from .connection_flags import add_connection_flags, build_connection
from .format import FORMATTERS, PrintFormatter


_LOGGER = logging.getLogger(__name__)

COLUMNS = ["object_id", "path"]


class ListAction:
    """List the files in the remote repository."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "list",
                aliases=["ls"],
                help="List files in the remote repository",
                description="Print the path and object id of every file at a reference.",
            ),
        )
        add_connection_flags(args)
        args.add_argument(
            "--output",
            "-o",
            choices=["text", "yaml", "json"],
            default="text",
            help="Output format of the command",
        )
        args.set_defaults(cls=cls)
        return args

    def run(  # type: ignore[no-untyped-def]
        self,
        output: str,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Action implementation."""
        connection = build_connection(**kwargs)
        with GitLoader(connection) as loader:
            loader.clone()
            records = [record.to_dict() for record in loader.list_paths()]

        if output in FORMATTERS:
            FORMATTERS[output]().print(records)
            return
        if not records:
            print(f"No files found at {connection.ref}")
            return
        PrintFormatter(COLUMNS).print(records)
