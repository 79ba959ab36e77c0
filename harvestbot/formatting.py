"""Digest fragment formatters (Telegram HTML).

Telegram supports a limited HTML subset:
  <b>bold</b>, <i>italic</i>, <a href="url">link</a>, ...

Every formatter here is pure and total: it accepts any SourceResult,
including Err and empty success payloads, and always returns a non-empty
string. Text coming from providers is HTML-escaped.
"""

import html as _html

from .sources import Err, NewsFeed, PriceBoard, SourceResult

PRICES_UNAVAILABLE = "⚠️ Failed to retrieve crypto prices."
NEWS_UNAVAILABLE = "⚠️ Failed to retrieve crypto news."

# Err reasons carrying a message from the provider (see sources/newsapi.py)
API_ERROR_PREFIX = "API Error:"

NO_PRICE_DATA = "Could not retrieve cryptocurrency data at this time."
NO_NEWS_DATA = "No cryptocurrency news available at this time."

MAX_COINS = 10

CHANGE_UP = "📈"
CHANGE_DOWN = "📉"
CHANGE_FLAT = "➡️"


def _escape(text: str) -> str:
    """Escape HTML special characters in plain text segments."""
    return _html.escape(text, quote=False)


def format_usd(value: float) -> str:
    """Render a USD amount as `$1,234.56` (`-$1.00` for negatives)."""
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def change_marker(change: float) -> str:
    if change > 0:
        return CHANGE_UP
    if change < 0:
        return CHANGE_DOWN
    return CHANGE_FLAT


def format_change(change: float) -> str:
    return f"{change_marker(change)} {change:.2f}%"


def format_prices(result: SourceResult) -> str:
    """Format a CoinRanking result into the prices fragment."""
    if isinstance(result, Err) or not isinstance(result.payload, PriceBoard):
        return PRICES_UNAVAILABLE

    board = result.payload
    coins = board.coins[:MAX_COINS]
    if not coins:
        return NO_PRICE_DATA

    lines = [f"<b>📊 Top {len(coins)} Crypto Updates (Last {_escape(board.time_period)}):</b>", ""]
    for coin in coins:
        lines.append(f"<b>{_escape(coin.name)} ({_escape(coin.symbol)})</b>")
        lines.append(f"  Price: {format_usd(coin.price)}")
        lines.append(f"  Change: {format_change(coin.change)}")
        lines.append("")

    stats = board.stats
    if stats:
        lines.append("<b>Market Stats:</b>")
        lines.append(f"  Total Coins: {stats.total_coins:,}")
        lines.append(f"  Total Market Cap: {format_usd(stats.total_market_cap)}")
        lines.append(f"  Total 24h Vol: {format_usd(stats.total_24h_volume)}")

    return "\n".join(lines).strip()


def format_news(result: SourceResult) -> str:
    """Format a NewsAPI result into the news fragment.

    An error reported by NewsAPI itself is shown next to the placeholder.
    """
    if isinstance(result, Err):
        if result.reason.startswith(API_ERROR_PREFIX):
            return f"{NEWS_UNAVAILABLE} ({_escape(result.reason)})"
        return NEWS_UNAVAILABLE
    if not isinstance(result.payload, NewsFeed):
        return NEWS_UNAVAILABLE

    articles = result.payload.articles
    if not articles:
        return NO_NEWS_DATA

    lines = ["<b>📰 Latest Crypto News:</b>", ""]
    for i, article in enumerate(articles, 1):
        url = _html.escape(article.url, quote=True)
        lines.append(f'{i}. <a href="{url}">{_escape(article.title)}</a>')
        lines.append(f"   <i>Source: {_escape(article.source_name)}</i>")
        lines.append("")

    return "\n".join(lines).strip()
