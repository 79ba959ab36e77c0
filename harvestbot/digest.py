"""Digest aggregation — fetch every source concurrently, format, merge.

Used by the scheduled broadcast and by the /crypto_updates command.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Sequence, Union

from .communication.outbound import SendMessage
from .formatting import format_news, format_prices
from .sources import CoinRankingSource, Err, NewsApiSource, SourceClient, SourceResult

logger = logging.getLogger("harvestbot.digest")

DIGEST_SEPARATOR = "\n\n"


@dataclass(frozen=True)
class DigestSource:
    """A source client paired with the formatter for its results."""

    name: str
    client: SourceClient
    formatter: Callable[[SourceResult], str]


@dataclass(frozen=True)
class Digest:
    fragments: tuple[str, ...]
    separator: str = DIGEST_SEPARATOR

    @property
    def text(self) -> str:
        return self.separator.join(self.fragments)


def build_digest_sources(settings) -> tuple[DigestSource, ...]:
    """Build the configured sources in digest order: prices, then news."""
    return (
        DigestSource(
            name="prices",
            client=CoinRankingSource(
                url=settings.coinranking_url,
                api_key=settings.coinranking_api_key,
                limit=settings.coinranking_limit,
                time_period=settings.coinranking_time_period,
                timeout=settings.fetch_timeout,
            ),
            formatter=format_prices,
        ),
        DigestSource(
            name="news",
            client=NewsApiSource(
                url=settings.newsapi_url,
                api_key=settings.news_api_org_key,
                query=settings.newsapi_query,
                page_size=settings.newsapi_page_size,
                timeout=settings.fetch_timeout,
            ),
            formatter=format_news,
        ),
    )


def _render(source: DigestSource, result: SourceResult) -> str:
    """Format one result; fall back to the source's placeholder, then a generic one."""
    for attempt in (result, Err("formatting failed")):
        try:
            fragment = source.formatter(attempt)
        except Exception as e:
            logger.error(f"Formatter for '{source.name}' failed: {e}", exc_info=True)
            continue
        if fragment:
            return fragment
    return f"⚠️ {source.name.capitalize()} unavailable."


async def aggregate(sources: Sequence[DigestSource]) -> Digest:
    """Fetch all sources concurrently and merge their fragments.

    Waits for every fetch to settle. One failure never cancels the others.
    Fragments keep the order of `sources`, not completion order. Never raises.
    """
    start = time.monotonic()
    results = await asyncio.gather(
        *(source.client.fetch() for source in sources),
        return_exceptions=True,
    )

    fragments = []
    for source, result in zip(sources, results):
        if isinstance(result, BaseException):
            if isinstance(result, asyncio.CancelledError):
                raise result
            logger.error(f"Source '{source.name}' raised past its boundary: {result!r}")
            result = Err(f"unexpected error ({type(result).__name__})")
        if isinstance(result, Err):
            logger.warning(f"Source '{source.name}' unavailable: {result.reason}")
        fragments.append(_render(source, result))

    elapsed_ms = int((time.monotonic() - start) * 1000)
    logger.info(f"Digest built from {len(sources)} sources in {elapsed_ms}ms")
    return Digest(fragments=tuple(fragments))


async def broadcast_digest(
    sources: Sequence[DigestSource],
    chat_id: Optional[Union[int, str]],
    send: Callable[[SendMessage], Awaitable[bool]],
) -> bool:
    """Build a digest and send it to the broadcast chat.

    Returns True if the send succeeded. Errors are logged, never raised, so a
    failed run cannot stop the scheduler.
    """
    if not chat_id:
        logger.warning("Digest broadcast skipped: no target chat configured")
        return False

    try:
        digest = await aggregate(sources)
        sent = await send(SendMessage(chat_id=chat_id, text=digest.text))
    except Exception as e:
        logger.error(f"❌ Error sending crypto update: {e}", exc_info=True)
        return False

    if sent:
        logger.info(f"✅ Crypto update sent to {chat_id}")
    else:
        logger.error(f"❌ Crypto update to {chat_id} was not delivered")
    return sent
