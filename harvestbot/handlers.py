"""Command, callback and welcome handlers.

Every handler is an async generator `(event, context) -> outbound actions`.
"""

import html as _html
import logging

from . import content
from .communication.dispatch import ActionSpec, BotContext, CommandSpec, build_context
from .communication.inbound import CallbackAction, Command, NewMember
from .communication.outbound import BanMember, RequestShutdown, SendMessage
from .digest import aggregate

logger = logging.getLogger("harvestbot.handlers")


# ── Commands ─────────────────────────────────────────────────

async def cmd_start(event: Command, context: BotContext):
    yield SendMessage(chat_id=event.chat_id, text=content.START_TEXT, html=False)


async def cmd_help(event: Command, context: BotContext):
    lines = ["Available commands:"]
    for spec in context.menu:
        lines.append(f"/{spec.name} - {spec.description}")
    yield SendMessage(chat_id=event.chat_id, text="\n".join(lines), html=False)


async def cmd_faq(event: Command, context: BotContext):
    yield SendMessage(chat_id=event.chat_id, text=content.FAQ_TEXT)


async def cmd_crypto_updates(event: Command, context: BotContext):
    """Reply with a fresh prices + news digest."""
    yield SendMessage(chat_id=event.chat_id, text=content.FETCHING_TEXT, html=False)
    digest = await aggregate(context.digest_sources)
    yield SendMessage(chat_id=event.chat_id, text=digest.text)


async def cmd_ban(event: Command, context: BotContext):
    """Ban the author of the replied-to message, or `/ban <user_id>`."""
    user_id = event.reply_to_user_id
    if user_id is None and event.args:
        try:
            user_id = int(event.args[0])
        except ValueError:
            user_id = None

    if user_id is None:
        yield SendMessage(chat_id=event.chat_id, text=content.BAN_USAGE_TEXT)
        return

    logger.warning(f"Ban requested for user {user_id} in chat {event.chat_id} by {event.sender.user_id}")
    yield BanMember(chat_id=event.chat_id, user_id=user_id)
    yield SendMessage(chat_id=event.chat_id, text=f"User {user_id} has been banned.", html=False)


async def cmd_shutdown(event: Command, context: BotContext):
    yield SendMessage(chat_id=event.chat_id, text=content.SHUTDOWN_TEXT, html=False)
    yield RequestShutdown(reason=f"/shutdown by {event.sender.user_id}")


# ── Callback actions ─────────────────────────────────────────

async def action_start_intro(event: CallbackAction, context: BotContext):
    yield SendMessage(chat_id=event.chat_id, text=content.INTRO_PROMPT_TEXT)


async def action_kyc_help(event: CallbackAction, context: BotContext):
    yield SendMessage(chat_id=event.chat_id, text=content.KYC_HELP_TEXT)


# ── New members ──────────────────────────────────────────────

async def welcome_member(event: NewMember, context: BotContext):
    name = _html.escape(event.profile.first_name or "there", quote=False)
    yield SendMessage(chat_id=event.chat_id, text=f"👋 Welcome, <b>{name}</b>!")
    yield SendMessage(
        chat_id=event.chat_id,
        text=content.WELCOME_INTRO_TEXT,
        controls=content.WELCOME_CONTROLS,
    )


# ── Tables ───────────────────────────────────────────────────

def default_commands() -> tuple[CommandSpec, ...]:
    """Commands in menu order."""
    return (
        CommandSpec("start", "Welcome message", cmd_start, listed=False),
        CommandSpec("help", "Show this help message", cmd_help),
        CommandSpec("faq", "Frequently Asked Questions", cmd_faq),
        CommandSpec("crypto_updates", "Get latest crypto prices & news", cmd_crypto_updates),
        CommandSpec("ban", "Ban a user (admin only)", cmd_ban, admin_only=True),
        CommandSpec("shutdown", "Shutdown the bot (admin only)", cmd_shutdown, admin_only=True),
    )


def default_actions() -> tuple[ActionSpec, ...]:
    return (
        ActionSpec(content.ACTION_START_INTRO, action_start_intro),
        ActionSpec(content.ACTION_KYC_HELP, action_kyc_help, ack_text=content.KYC_HELP_ACK),
    )


def default_context(digest_sources=()) -> BotContext:
    return build_context(
        keywords=content.default_keyword_table(),
        commands=default_commands(),
        actions=default_actions(),
        welcome=welcome_member,
        digest_sources=digest_sources,
    )
