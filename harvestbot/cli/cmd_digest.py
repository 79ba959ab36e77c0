"""Digest preview/broadcast and keyword routing commands."""

import asyncio
import sys

import click
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from . import cli
from .shared import console


@cli.command()
@click.option("--send", is_flag=True, help="Broadcast the digest to TARGET_CHAT_ID")
def digest(send):
    """Build one prices + news digest and print it."""
    from harvestbot.config import load_settings
    from harvestbot.digest import aggregate, broadcast_digest, build_digest_sources

    settings = load_settings()
    sources = build_digest_sources(settings)

    if not send:
        result = asyncio.run(aggregate(sources))
        for name, fragment in zip((s.name for s in sources), result.fragments):
            console.print(Panel(Text(fragment), title=name, expand=False))
        return

    if not settings.bot_token or not settings.target_chat_id:
        console.print("[red]BOT_TOKEN and TARGET_CHAT_ID must be set to send a digest.[/red]")
        sys.exit(1)

    from harvestbot.communication.telegram import TelegramChannel
    from harvestbot.handlers import default_context

    async def _broadcast() -> bool:
        channel = TelegramChannel(settings.bot_token, default_context(digest_sources=sources))
        await channel.open()
        try:
            return await broadcast_digest(sources, settings.target_chat_id, channel.execute)
        finally:
            await channel.stop()

    if asyncio.run(_broadcast()):
        console.print(f"[green]✓ Digest sent to {settings.target_chat_id}[/green]")
    else:
        console.print("[red]✗ Digest was not delivered (see logs)[/red]")
        sys.exit(1)


@cli.command()
@click.argument("text")
def route(text):
    """Show which keyword reply TEXT would trigger."""
    from harvestbot.communication.keywords import match_keyword
    from harvestbot.content import default_keyword_table

    table = default_keyword_table()
    entry = match_keyword(table, text)

    keywords = Table(title="Keyword table (registration order)")
    keywords.add_column("#", justify="right")
    keywords.add_column("Keyword")
    keywords.add_column("Matched")
    for i, e in enumerate(table, 1):
        keywords.add_row(str(i), e.keyword, "✓" if entry is e else "")
    console.print(keywords)

    if entry is None:
        console.print("[yellow]No keyword matched — the message passes through silently.[/yellow]")
        return
    console.print(Panel(Text(entry.response.text), title=f"reply for '{entry.keyword}'", expand=False))
