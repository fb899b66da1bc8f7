"""Test helpers for git-file-loader tools."""

import sys

import pytest

from git_file_loader.tool.git_file_loader import main

PROGRAM = "git-file-loader"


def run_command(monkeypatch: pytest.MonkeyPatch, args: list[str]) -> None:
    """Run the command line tool with the specified arguments."""
    monkeypatch.setattr(sys, "argv", [PROGRAM] + args)
    main()
