"""Command line tool for loading files from a remote git repository."""
