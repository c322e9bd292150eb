"""Consolidated CLI for tournament tools using a plugin architecture."""

import typer

# Import CLI subcommands from plugins
from tournament_scheduler.cli import app as scheduler_app

# Create main application
app = typer.Typer(
    name="tournament",
    help="Tournament scheduling tools",
    no_args_is_help=True,
)

# Register plugin subcommands
app.add_typer(scheduler_app, name="scheduler", help="Schedule tournament matches")


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
