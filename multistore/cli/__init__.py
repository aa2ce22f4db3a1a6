"""multistore CLI — Typer-based command-line interface.

Provides the ``multistore`` command with subcommands for listing adapter
types, validating a declarations file and running pushes and queries
against the targets it declares.

All output uses Rich for formatted terminal display.
"""
