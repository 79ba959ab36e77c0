"""Communication layer — chat-side event handling.

- Inbound: events built from Telegram updates
- Keywords: first-match keyword router
- Dispatch: event → handler routing, admin gate
- Outbound: actions returned by handlers, message splitting
- Telegram: python-telegram-bot transport adapter
"""

from .inbound import CallbackAction, Command, InboundEvent, NewMember, Sender, TextMessage
from .outbound import AnswerCallback, BanMember, Button, RequestShutdown, SendMessage, split_message

__all__ = [
    # Inbound
    "InboundEvent",
    "TextMessage",
    "Command",
    "CallbackAction",
    "NewMember",
    "Sender",
    # Outbound
    "Button",
    "SendMessage",
    "AnswerCallback",
    "BanMember",
    "RequestShutdown",
    "split_message",
]
