"""Inbound events — one value per Telegram update, consumed once by the Dispatcher."""

from dataclasses import dataclass
from typing import Optional, Union


@dataclass(frozen=True)
class Sender:
    user_id: int
    first_name: str = ""
    username: Optional[str] = None


@dataclass(frozen=True)
class TextMessage:
    chat_id: Union[int, str]
    sender: Optional[Sender]
    text: str


@dataclass(frozen=True)
class Command:
    """A /command. `name` is lower-case, without the slash or @botname."""

    chat_id: Union[int, str]
    name: str
    sender: Optional[Sender]
    args: tuple[str, ...] = ()
    reply_to_user_id: Optional[int] = None


@dataclass(frozen=True)
class CallbackAction:
    chat_id: Union[int, str]
    action_id: str
    callback_id: str
    sender: Optional[Sender]


@dataclass(frozen=True)
class NewMember:
    chat_id: Union[int, str]
    profile: Sender


InboundEvent = Union[TextMessage, Command, CallbackAction, NewMember]


def parse_command(text: str) -> Optional[tuple[str, tuple[str, ...]]]:
    """Split '/Name@bot arg1 arg2' into ('name', ('arg1', 'arg2')).

    Returns None if the text is not a command.
    """
    if not text or not text.startswith("/"):
        return None
    head, *args = text.split()
    name = head[1:].split("@", 1)[0].lower()
    if not name:
        return None
    return name, tuple(args)
