"""reprocheck CLI — Typer-based command-line interface.

Provides the ``reprocheck`` command with subcommands for recording a
build, comparing it against a reference repository, and sniffing the
producing environment of an archive.

All output uses Rich for formatted terminal display.
"""
