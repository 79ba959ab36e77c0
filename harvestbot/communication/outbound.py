"""Outbound actions — what handlers ask the transport to do.

Handlers never talk to Telegram directly. They yield these values and the
channel adapter executes them, so decision logic can be tested without a bot.

Handles:
- Message sends (HTML or plain, optional inline keyboard)
- Callback acknowledgements
- Admin actions (ban, shutdown)
- Message splitting for platform length limits
"""

from dataclasses import dataclass
from typing import Optional, Union

# Telegram's hard limit for a single message
MAX_MESSAGE_LENGTH = 4096


@dataclass(frozen=True)
class Button:
    """Inline keyboard button: opens `url` or sends `callback_data`."""

    label: str
    url: Optional[str] = None
    callback_data: Optional[str] = None

    def __post_init__(self):
        if (self.url is None) == (self.callback_data is None):
            raise ValueError(f"Button '{self.label}' needs exactly one of url/callback_data")


# Rows of buttons, top to bottom
Controls = tuple[tuple[Button, ...], ...]


@dataclass(frozen=True)
class SendMessage:
    chat_id: Union[int, str]
    text: str
    controls: Controls = ()
    html: bool = True


@dataclass(frozen=True)
class AnswerCallback:
    callback_id: str
    text: Optional[str] = None


@dataclass(frozen=True)
class BanMember:
    chat_id: Union[int, str]
    user_id: int


@dataclass(frozen=True)
class RequestShutdown:
    reason: str = ""


OutboundAction = Union[SendMessage, AnswerCallback, BanMember, RequestShutdown]


def _safe_cut(text: str, cut: int) -> int:
    """Move a cut back so it does not land inside an HTML tag or entity."""
    head = text[:cut]
    tag = head.rfind("<")
    if tag > head.rfind(">"):
        cut = tag
    entity = text.rfind("&", 0, cut)
    if entity != -1 and ";" not in text[entity:cut]:
        cut = entity
    return cut


def split_message(text: str, max_length: int = MAX_MESSAGE_LENGTH, html: bool = False) -> list[str]:
    """Split a long message into chunks respecting platform length limits.

    Tries to split at newlines first, then spaces, then hard-cuts. With
    `html`, a split never lands inside a tag or an entity like `&lt;`.

    Args:
        text: Message text to split
        max_length: Maximum length per chunk (default: 4096 for Telegram)
        html: Text is Telegram HTML

    Returns:
        List of message chunks
    """
    if len(text) <= max_length:
        return [text]

    chunks = []
    remaining = text

    while remaining:
        if len(remaining) <= max_length:
            chunks.append(remaining)
            break

        split_at = remaining.rfind("\n", 0, max_length)
        if split_at <= 0:
            split_at = remaining.rfind(" ", 0, max_length)
        if split_at <= 0:
            split_at = max_length
        if html:
            split_at = _safe_cut(remaining, split_at) or split_at

        chunks.append(remaining[:split_at])
        remaining = remaining[split_at:].lstrip()

    return chunks
