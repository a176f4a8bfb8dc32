"""runwarden CLI: Typer-based command-line interface.

Provides the ``runwarden`` command with subcommands for listing runs,
printing a snapshot, watching a run live and tailing a text file.

All output uses Rich for formatted terminal display.
"""
