"""Dispatcher — maps one inbound event to exactly one handler.

    Command        → command table (admin gate first when required)
    CallbackAction → action table, acknowledge the button, then handler
    TextMessage    → keyword router; no match falls through silently
    NewMember      → welcome handler, never gated

Handlers are async generators yielding outbound actions. The channel adapter
executes each action as soon as it is yielded.
"""

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import (
    AsyncIterator,
    Callable,
    Iterable,
    Mapping,
    Optional,
    Protocol,
    Union,
)

from .. import content
from .errors import classify_error
from .inbound import CallbackAction, Command, InboundEvent, NewMember, TextMessage
from .keywords import KeywordTable, route
from .outbound import AnswerCallback, OutboundAction, SendMessage

logger = logging.getLogger("harvestbot.dispatch")

Handler = Callable[..., AsyncIterator[OutboundAction]]

ADMIN_STATUSES = frozenset({"administrator", "creator"})


# ═══════════════════════════════════════════════════════════════
# ADMIN GATE
# ═══════════════════════════════════════════════════════════════

class MembershipLookup(Protocol):
    async def get_member_status(self, chat_id: Union[int, str], user_id: int) -> str:
        ...


@dataclass(frozen=True)
class AdminCheckResult:
    is_admin: bool
    # Set when the lookup itself failed (as opposed to a plain "no")
    error: Optional[str] = None


class AdminGate:
    """Checks chat membership status on every call. Results are not cached."""

    def __init__(self, lookup: MembershipLookup):
        self._lookup = lookup

    async def check(self, chat_id: Union[int, str], user_id: int) -> AdminCheckResult:
        try:
            status = await self._lookup.get_member_status(chat_id, user_id)
        except Exception as e:
            logger.error(f"Admin check failed for user {user_id} in chat {chat_id}: {e}")
            return AdminCheckResult(is_admin=False, error=f"{type(e).__name__}: {e}")

        is_admin = status in ADMIN_STATUSES
        if not is_admin:
            logger.warning(f"Admin check denied user {user_id} in chat {chat_id} (status={status})")
        return AdminCheckResult(is_admin=is_admin)

    async def authorize(self, chat_id: Union[int, str], user_id: int) -> bool:
        return (await self.check(chat_id, user_id)).is_admin


# ═══════════════════════════════════════════════════════════════
# TABLES
# ═══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class CommandSpec:
    name: str
    description: str
    handler: Handler
    admin_only: bool = False
    # Shown in /help and the Telegram command menu
    listed: bool = True


@dataclass(frozen=True)
class ActionSpec:
    action_id: str
    handler: Handler
    # Toast shown on the pressed button; None answers silently
    ack_text: Optional[str] = None


@dataclass(frozen=True)
class BotContext:
    """Read-only tables built once at startup and shared by every dispatch."""

    keywords: KeywordTable
    commands: Mapping[str, CommandSpec]
    actions: Mapping[str, ActionSpec]
    welcome: Handler
    digest_sources: tuple = field(default=())

    @property
    def menu(self) -> tuple[CommandSpec, ...]:
        return tuple(spec for spec in self.commands.values() if spec.listed)


def build_context(
    keywords: KeywordTable,
    commands: Iterable[CommandSpec],
    actions: Iterable[ActionSpec],
    welcome: Handler,
    digest_sources: Iterable = (),
) -> BotContext:
    command_table = {}
    for spec in commands:
        if spec.name in command_table:
            raise ValueError(f"Duplicate command: /{spec.name}")
        command_table[spec.name] = spec

    action_table = {}
    for spec in actions:
        if spec.action_id in action_table:
            raise ValueError(f"Duplicate action: {spec.action_id}")
        action_table[spec.action_id] = spec

    return BotContext(
        keywords=tuple(keywords),
        commands=MappingProxyType(command_table),
        actions=MappingProxyType(action_table),
        welcome=welcome,
        digest_sources=tuple(digest_sources),
    )


# ═══════════════════════════════════════════════════════════════
# DISPATCHER
# ═══════════════════════════════════════════════════════════════

class Dispatcher:
    """Routes inbound events to handlers.

    Usage:
        dispatcher = Dispatcher(context, AdminGate(channel))
        async for action in dispatcher.dispatch(event):
            await channel.execute(action)
    """

    def __init__(self, context: BotContext, admin_gate: AdminGate):
        self.context = context
        self.admin_gate = admin_gate

    async def dispatch(self, event: InboundEvent) -> AsyncIterator[OutboundAction]:
        if isinstance(event, Command):
            stream = self._on_command(event)
        elif isinstance(event, CallbackAction):
            stream = self._on_callback(event)
        elif isinstance(event, TextMessage):
            stream = self._on_text(event)
        elif isinstance(event, NewMember):
            stream = self._run(self.context.welcome, event, event.chat_id)
        else:
            logger.debug(f"Ignoring unsupported event: {type(event).__name__}")
            return

        async for action in stream:
            yield action

    async def _on_command(self, event: Command) -> AsyncIterator[OutboundAction]:
        spec = self.context.commands.get(event.name)
        if spec is None:
            logger.debug(f"Unknown command /{event.name} — ignored")
            return

        if spec.admin_only:
            denial = await self._admin_denial(event)
            if denial:
                yield SendMessage(chat_id=event.chat_id, text=denial, html=False)
                return

        logger.info(f"/{spec.name} from {event.sender.user_id if event.sender else '?'}")
        async for action in self._run(spec.handler, event, event.chat_id):
            yield action

    async def _admin_denial(self, event: Command) -> Optional[str]:
        """Return the reply text if the sender may not run an admin command."""
        if event.sender is None:
            logger.warning(f"/{event.name}: no sender on the update, cannot verify")
            return content.UNVERIFIED_USER_TEXT

        result = await self.admin_gate.check(event.chat_id, event.sender.user_id)
        if result.error:
            return content.PERMISSION_CHECK_FAILED_TEXT
        if not result.is_admin:
            return content.NOT_AUTHORIZED_TEXT
        return None

    async def _on_callback(self, event: CallbackAction) -> AsyncIterator[OutboundAction]:
        spec = self.context.actions.get(event.action_id)
        if spec is None:
            logger.debug(f"Unknown callback action '{event.action_id}' — ignored")
            return

        yield AnswerCallback(callback_id=event.callback_id, text=spec.ack_text)
        async for action in self._run(spec.handler, event, event.chat_id):
            yield action

    async def _on_text(self, event: TextMessage) -> AsyncIterator[OutboundAction]:
        payload = route(self.context.keywords, event.text)
        if payload is None:
            return
        yield SendMessage(chat_id=event.chat_id, text=payload.text, controls=payload.controls)

    async def _run(self, handler: Handler, event, chat_id) -> AsyncIterator[OutboundAction]:
        """Run a handler; an exception becomes a user-visible error reply."""
        try:
            async for action in handler(event, self.context):
                yield action
        except Exception as e:
            logger.error(f"Handler {getattr(handler, '__name__', handler)} failed: {e}", exc_info=True)
            yield SendMessage(chat_id=chat_id, text=f"⚠️ {classify_error(e)}", html=False)
