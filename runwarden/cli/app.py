"""Main Typer application: imports and registers all CLI commands.

Entry point: ``runwarden`` (configured via pyproject.toml project.scripts).

Commands: runs, snapshot, watch, tail.
"""

from __future__ import annotations

import typer

from runwarden.cli.commands.runs_cmd import runs_cmd
from runwarden.cli.commands.snapshot_cmd import snapshot_cmd
from runwarden.cli.commands.tail_cmd import tail_cmd
from runwarden.cli.commands.watch_cmd import watch_cmd
from runwarden.config import config, configure_logging

app = typer.Typer(
    name="runwarden",
    help="runwarden: live monitoring for on-disk orchestration runs.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# Register subcommands
app.command(name="runs", help="List runs under the runs root.")(runs_cmd)
app.command(name="snapshot", help="Print one snapshot of a run.")(snapshot_cmd)
app.command(name="watch", help="Watch a run live.")(watch_cmd)
app.command(name="tail", help="Tail a growing text file.")(tail_cmd)


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Set up logging before any command runs."""
    if verbose:
        config.debug = True
    configure_logging(config)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
