"""Library for formatting command output."""

from abc import ABC, abstractmethod
import json
import sys
from typing import Any, Generator, TextIO

import yaml


PADDING = 4


def column_format_string(rows: list[list[str]]) -> str:
    """Produce a format string based on max width of columns."""
    widths = [0] * len(rows[0])
    for row in rows:
        for i, value in enumerate(row):
            widths[i] = max(widths[i], len(value))
    # The last column is not padded to avoid trailing whitespace
    return "".join([f"{{:{w + PADDING}}}" for w in widths[:-1]]) + "{}"


def format_columns(
    headers: list[str], rows: list[list[str]]
) -> Generator[str, None, None]:
    """Yield the header and rows aligned in columns."""
    if not headers:
        return
    data = [headers] + rows
    format_string = column_format_string(data)
    for row in data:
        yield format_string.format(*row)


class StructFormatter(ABC):
    """A formatter that prints a list of records."""

    @abstractmethod
    def format(self, data: list[dict[str, Any]]) -> Generator[str, None, None]:
        """Format the records."""

    def print(self, data: list[dict[str, Any]], file: TextIO = sys.stdout) -> None:
        """Print the records."""
        for line in self.format(data):
            print(line, file=file)


class PrintFormatter(StructFormatter):
    """A formatter that prints human readable columns."""

    def __init__(self, keys: list[str]) -> None:
        """Initialize the PrintFormatter with the keys to print."""
        self._keys = keys

    def format(self, data: list[dict[str, Any]]) -> Generator[str, None, None]:
        """Format the records as columns."""
        if not data:
            return
        rows = [[str(row[key]) for key in self._keys] for row in data]
        yield from format_columns([key.upper() for key in self._keys], rows)


class YamlListFormatter(StructFormatter):
    """A formatter that prints the records as a yaml list."""

    def format(self, data: list[dict[str, Any]]) -> Generator[str, None, None]:
        """Format the records."""
        content = yaml.dump(data, sort_keys=False, explicit_start=True)
        yield from content.rstrip("\n").split("\n")


class JsonFormatter(StructFormatter):
    """A formatter that prints json output."""

    def format(self, data: list[dict[str, Any]]) -> Generator[str, None, None]:
        """Format the records."""
        yield from json.dumps(data, indent=4, sort_keys=False).split("\n")


FORMATTERS: dict[str, type[StructFormatter]] = {
    "yaml": YamlListFormatter,
    "json": JsonFormatter,
}
