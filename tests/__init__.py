"""Tests for git-file-loader."""
