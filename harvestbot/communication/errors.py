"""Error classification for user-facing messages."""

import asyncio

import httpx
from telegram.error import BadRequest, Forbidden, NetworkError, RetryAfter, TimedOut


def classify_error(e: Exception) -> str:
    """Classify any exception into a user-friendly message.

    Returns a short string suitable for sending directly to the user.
    """
    # 1-4: Telegram API errors (subclass order matters: TimedOut is a NetworkError)
    if isinstance(e, RetryAfter):
        return "Too many requests right now. Please wait a moment and try again."
    if isinstance(e, TimedOut):
        return "Telegram took too long to respond. Please try again."
    if isinstance(e, Forbidden):
        return "I don't have permission to do that in this chat."
    if isinstance(e, BadRequest):
        return "Telegram rejected the request. Please try again."
    if isinstance(e, NetworkError):
        return "Network problem talking to Telegram. Please try again."

    # 5: httpx HTTP status errors from data providers
    if isinstance(e, httpx.HTTPStatusError):
        code = e.response.status_code
        if code == 429:
            return "Data provider rate limit reached. Please try again later."
        if code in (401, 403):
            return "Data provider rejected our credentials."
        if 500 <= code < 600:
            return "Data provider is having server issues. Please try again later."
        return f"Data provider returned HTTP {code}. Please try again later."

    # 6-7: Network / timeout errors
    if isinstance(e, httpx.ConnectError):
        return "Cannot connect to the data provider. Please try again later."
    if isinstance(e, (httpx.TimeoutException, asyncio.TimeoutError)):
        return "Request timed out. Please try again."

    # 8: Fallback, include type name for debugging
    type_name = type(e).__name__
    return f"Something went wrong ({type_name}). Please try again later."
