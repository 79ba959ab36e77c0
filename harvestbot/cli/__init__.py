"""Harvestbot CLI — command line interface."""

import click
from harvestbot import __version__
from .shared import console


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="harvestbot")
@click.pass_context
def cli(ctx):
    """Harvestbot — Telegram community bot with crypto digests"""
    if ctx.invoked_subcommand is None:
        _show_help()


def _show_help():
    """Show all available commands grouped by category."""
    console.print(f"[bold]Harvestbot v{__version__}[/bold] — Telegram community bot with crypto digests\n")

    groups = {
        "Usage": [
            ("start", "Start the Telegram bot and the digest scheduler"),
        ],
        "Tools": [
            ("digest", "Build one digest and print it (--send to broadcast)"),
            ("route TEXT", "Show which keyword reply a message would trigger"),
        ],
    }

    for category, commands in groups.items():
        console.print(f"  [bold cyan]{category}[/bold cyan]")
        for name, desc in commands:
            console.print(f"    [bold]harvestbot {name:12s}[/bold] {desc}")
        console.print()

    console.print("[dim]Run 'harvestbot <command> --help' for details on a specific command.[/dim]")


# Import all command modules (registers commands onto cli group)
from . import cmd_start  # noqa: E402, F401
from . import cmd_digest  # noqa: E402, F401


@cli.command(name="help", hidden=True)
def help_cmd():
    """Show all available commands."""
    _show_help()
