"""Library for the flags describing the remote repository connection."""

from argparse import ArgumentParser, BooleanOptionalAction
import dataclasses
import logging
import os
import pathlib
from typing import Any

from git_file_loader.connection import (
    DEFAULT_REF,
    RepositoryConnection,
    load_connection,
)
from git_file_loader.exceptions import InputException

_LOGGER = logging.getLogger(__name__)

PASSWORD_ENV = "GIT_LOADER_PASSWORD"
PASSPHRASE_ENV = "GIT_LOADER_PASSPHRASE"

CONNECTION_FIELDS = [field.name for field in dataclasses.fields(RepositoryConnection)]


def add_connection_flags(args: ArgumentParser) -> None:
    """Add flags for connecting to the remote repository."""
    args.add_argument(
        "--config",
        help="YAML file with the repository connection, overridden by other flags",
        type=pathlib.Path,
        default=None,
    )
    args.add_argument(
        "--url",
        help="URL of the remote repository",
        default=None,
    )
    args.add_argument(
        "--ref",
        help=f"Reference to read files from (default {DEFAULT_REF})",
        default=None,
    )
    args.add_argument(
        "--login",
        help="Login for password authentication",
        default=None,
    )
    args.add_argument(
        "--password",
        help=f"Password for password authentication, or set {PASSWORD_ENV}",
        default=None,
    )
    args.add_argument(
        "--private-key",
        dest="private_key_path",
        help="Private key for ssh authentication, preferred over a password",
        type=pathlib.Path,
        default=None,
    )
    args.add_argument(
        "--passphrase",
        help=f"Passphrase of the private key, or set {PASSPHRASE_ENV}",
        default=None,
    )
    args.add_argument(
        "--suffix",
        help="Suffix for the name of the local storage directory",
        default=None,
    )
    args.add_argument(
        "--storage-dir",
        help="Parent directory for the local storage (default system temp dir)",
        type=pathlib.Path,
        default=None,
    )
    args.add_argument(
        "--timeout",
        help="Seconds to wait for the clone before giving up",
        type=float,
        default=None,
    )
    args.add_argument(
        "--partial",
        help="Clone without file contents, fetching them during checkout",
        action=BooleanOptionalAction,
        default=None,
    )


def build_connection(**kwargs: Any) -> RepositoryConnection:
    """Build a RepositoryConnection from the flags and environment."""
    overrides = {
        key: value
        for key in CONNECTION_FIELDS
        if (value := kwargs.get(key)) is not None
    }
    if "password" not in overrides and (password := os.environ.get(PASSWORD_ENV)):
        overrides["password"] = password
    if "passphrase" not in overrides and (
        passphrase := os.environ.get(PASSPHRASE_ENV)
    ):
        overrides["passphrase"] = passphrase

    if config := kwargs.get("config"):
        _LOGGER.debug("Loading connection from %s", config)
        return dataclasses.replace(load_connection(config), **overrides)
    if "url" not in overrides:
        raise InputException("Either --url or --config must be specified")
    return RepositoryConnection(**overrides)
