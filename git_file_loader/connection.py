"""Connection settings for a remote repository.

A `RepositoryConnection` is created once by the caller and handed to a
`GitLoader`. It may be built directly or read from a YAML document with the
same keys, for example:

```yaml
url: git@github.com:example/project.git
ref: refs/remotes/origin/main
private_key_path: ~/.ssh/id_ed25519
suffix: project
```
"""

from dataclasses import dataclass, field
import logging
from pathlib import Path

import yaml
from mashumaro import DataClassDictMixin
from mashumaro.codecs.yaml import yaml_decode
from mashumaro.config import BaseConfig
from mashumaro.exceptions import InvalidFieldValue, MissingField

from .exceptions import InputException

__all__ = [
    "DEFAULT_REF",
    "RepositoryConnection",
    "PasswordCredentials",
    "KeyCredentials",
    "Credentials",
    "load_connection",
]

_LOGGER = logging.getLogger(__name__)

# Remote-tracking reference for the primary branch of the remote, set by clone.
DEFAULT_REF = "refs/remotes/origin/HEAD"


@dataclass(frozen=True)
class PasswordCredentials:
    """Login and password pair supplied to the remote on request."""

    login: str | None
    password: str | None = field(default=None, repr=False)


@dataclass(frozen=True)
class KeyCredentials:
    """Private key identity used for ssh remotes."""

    private_key_path: Path
    passphrase: str | None = field(default=None, repr=False)


Credentials = PasswordCredentials | KeyCredentials


@dataclass(frozen=True, kw_only=True)
class RepositoryConnection(DataClassDictMixin):
    """Immutable configuration for cloning a remote repository."""

    url: str
    """URL of the remote repository (ssh, https or a local path)."""

    ref: str = DEFAULT_REF
    """Reference checked out by default, the remote primary branch."""

    login: str | None = None
    """Login for password based authentication."""

    password: str | None = field(default=None, repr=False)
    """Password for password based authentication."""

    private_key_path: Path | None = None
    """Private key for ssh authentication, preferred over a password."""

    passphrase: str | None = field(default=None, repr=False)
    """Optional passphrase protecting the private key."""

    suffix: str | None = None
    """Disambiguates the name of the local storage directory."""

    storage_dir: Path | None = None
    """Parent directory of the local storage, the system temp dir if unset."""

    timeout: float | None = None
    """Deadline in seconds for the clone, no deadline if unset."""

    partial: bool = False
    """Clone without blobs, fetching file contents only on checkout."""

    def __post_init__(self) -> None:
        if not self.url:
            raise InputException("Repository connection requires a url")
        if not self.ref:
            raise InputException("Repository connection requires a ref")
        if self.timeout is not None and self.timeout <= 0:
            raise InputException(f"Clone timeout must be positive: {self.timeout}")

    @property
    def credentials(self) -> Credentials | None:
        """Return the active credentials, key based taking precedence."""
        if self.private_key_path is not None:
            if self.login or self.password:
                _LOGGER.debug("Private key configured, ignoring login/password")
            return KeyCredentials(
                private_key_path=self.private_key_path.expanduser(),
                passphrase=self.passphrase,
            )
        if self.login is not None or self.password is not None:
            return PasswordCredentials(login=self.login, password=self.password)
        return None

    @classmethod
    def parse_yaml(cls, content: str) -> "RepositoryConnection":
        """Parse a serialized connection."""
        try:
            return yaml_decode(content, cls)
        except (MissingField, InvalidFieldValue) as err:
            raise InputException(f"Invalid repository connection: {err}") from err
        except (yaml.YAMLError, TypeError, ValueError) as err:
            raise InputException(
                f"Unable to parse repository connection: {err}"
            ) from err

    class Config(BaseConfig):
        omit_none = True


def load_connection(config_path: Path) -> RepositoryConnection:
    """Return the connection stored in a YAML file."""
    try:
        content = config_path.read_text()
    except OSError as err:
        raise InputException(f"Unable to read config {config_path}: {err}") from err
    if not content.strip():
        raise InputException(f"Config file {config_path} is empty")
    return RepositoryConnection.parse_yaml(content)
