"""Library for cloning a remote repository without a working tree.

Credentials never live in global state. Each clone, and each checkout that may
fetch file contents of a partial clone, builds a `TransportSession`
holding the environment handed to the `git` process, plus an askpass helper
script in a private temporary directory that answers username, password and
key passphrase prompts from that environment. The helper directory is removed
as soon as the git call returns.
"""

import contextlib
from dataclasses import dataclass, field
import logging
import os
import shlex
import stat
import tempfile
from pathlib import Path
from typing import Generator

import git

from .connection import Credentials, KeyCredentials, RepositoryConnection
from .exceptions import TransportError

__all__ = [
    "TransportSession",
    "transport_session",
    "clone",
]

_LOGGER = logging.getLogger(__name__)

ASKPASS_NAME = "askpass.sh"
ASKPASS_LOGIN_VAR = "GIT_LOADER_ASKPASS_LOGIN"
ASKPASS_SECRET_VAR = "GIT_LOADER_ASKPASS_SECRET"

# git asks "Username for '<url>': " and "Password for '<url>': ", ssh asks for
# the key passphrase. Secrets are read from the environment, not the script.
ASKPASS_SCRIPT = f"""#!/bin/sh
case "$1" in
  Username*) printf '%s\\n' "${ASKPASS_LOGIN_VAR}" ;;
  *) printf '%s\\n' "${ASKPASS_SECRET_VAR}" ;;
esac
"""


@dataclass(frozen=True)
class TransportSession:
    """Per-call transport settings passed to the git process."""

    env: dict[str, str] = field(default_factory=dict, repr=False)
    """Environment variables for the git process."""

    askpass: Path | None = None
    """Helper answering credential prompts, if credentials are configured."""


def _write_askpass(helper_dir: Path) -> Path:
    askpass = helper_dir / ASKPASS_NAME
    askpass.write_text(ASKPASS_SCRIPT)
    askpass.chmod(stat.S_IRWXU)
    return askpass


def _ssh_command(private_key_path: Path) -> str:
    # Host keys are not verified for key based remotes, trading host
    # authenticity for unattended use.
    return " ".join(
        [
            "ssh",
            "-i",
            shlex.quote(str(private_key_path)),
            "-o",
            "IdentitiesOnly=yes",
            "-o",
            "StrictHostKeyChecking=no",
            "-o",
            "UserKnownHostsFile=/dev/null",
        ]
    )


def _credential_env(credentials: Credentials, askpass: Path) -> dict[str, str]:
    """Return the environment that selects the given credentials."""
    if isinstance(credentials, KeyCredentials):
        return {
            "GIT_SSH_COMMAND": _ssh_command(credentials.private_key_path),
            "SSH_ASKPASS": str(askpass),
            "SSH_ASKPASS_REQUIRE": "force",
            "DISPLAY": os.environ.get("DISPLAY", ":0"),
            ASKPASS_SECRET_VAR: credentials.passphrase or "",
        }
    return {
        "GIT_ASKPASS": str(askpass),
        ASKPASS_LOGIN_VAR: credentials.login or "",
        ASKPASS_SECRET_VAR: credentials.password or "",
    }


@contextlib.contextmanager
def transport_session(
    credentials: Credentials | None,
) -> Generator[TransportSession, None, None]:
    """Create a ContextManager with the transport settings for one git call."""
    env = {"GIT_TERMINAL_PROMPT": "0"}
    if credentials is None:
        _LOGGER.debug("No credentials configured, using anonymous access")
        yield TransportSession(env=env)
        return
    with tempfile.TemporaryDirectory(prefix="git-loader-auth-") as helper_dir:
        askpass = _write_askpass(Path(helper_dir))
        env.update(_credential_env(credentials, askpass))
        _LOGGER.debug("Using %s for transport", type(credentials).__name__)
        yield TransportSession(env=env, askpass=askpass)


def clone(connection: RepositoryConnection, path: Path) -> git.Repo:
    """Clone the remote repository into path without checking out any files.

    The path must be missing or an empty directory.
    """
    url = connection.url
    try:
        git.Git.check_unsafe_protocols(url)
    except git.exc.UnsafeProtocolError as err:
        raise TransportError(f"Refusing to clone {url}: {err}") from err

    args = ["--no-checkout"]
    if connection.partial:
        args.append("--filter=blob:none")
    _LOGGER.info("Cloning repository %s to %s", url, path)
    with transport_session(connection.credentials) as session:
        try:
            git.Git(str(path.parent)).clone(
                *args,
                "--",
                url,
                str(path),
                env=session.env,
                kill_after_timeout=connection.timeout,
            )
        except git.GitCommandError as err:
            raise TransportError(f"Unable to clone {url}: {err}") from err
    return git.Repo(str(path))
