"""Telegram channel adapter.

Turns python-telegram-bot updates into inbound events, feeds them to the
Dispatcher and executes the outbound actions it yields.
"""

import logging
import time
from typing import Callable, Optional, Union

from telegram import BotCommand, InlineKeyboardButton, InlineKeyboardMarkup, Update
from telegram.constants import ParseMode
from telegram.error import TelegramError
from telegram.ext import (
    Application,
    CallbackQueryHandler,
    ContextTypes,
    MessageHandler,
    filters,
)

from .dispatch import AdminGate, BotContext, Dispatcher
from .errors import classify_error
from .inbound import (
    CallbackAction,
    Command,
    InboundEvent,
    NewMember,
    Sender,
    TextMessage,
    parse_command,
)
from .outbound import (
    AnswerCallback,
    BanMember,
    Controls,
    OutboundAction,
    RequestShutdown,
    SendMessage,
    split_message,
)

logger = logging.getLogger("harvestbot.telegram")


def _sender(user) -> Optional[Sender]:
    if user is None:
        return None
    return Sender(user_id=user.id, first_name=user.first_name or "", username=user.username)


def build_keyboard(controls: Controls) -> Optional[InlineKeyboardMarkup]:
    """Convert button rows into a Telegram inline keyboard."""
    if not controls:
        return None
    rows = [
        [
            InlineKeyboardButton(b.label, url=b.url)
            if b.url
            else InlineKeyboardButton(b.label, callback_data=b.callback_data)
            for b in row
        ]
        for row in controls
    ]
    return InlineKeyboardMarkup(rows)


def update_to_events(update: Update) -> list[InboundEvent]:
    """Convert one Telegram update into inbound events.

    A service message announcing several new members yields one NewMember
    per person. Edited messages and other updates the bot does not handle
    yield nothing.
    """
    query = update.callback_query
    if query is not None:
        user = query.from_user
        message = query.message
        chat_id = message.chat.id if message is not None else user.id
        return [CallbackAction(
            chat_id=chat_id,
            action_id=query.data or "",
            callback_id=query.id,
            sender=_sender(user),
        )]

    # Only new messages; an edit must not re-run a command or keyword reply
    message = update.message
    if message is None:
        return []
    chat = message.chat

    if message.new_chat_members:
        return [
            NewMember(chat_id=chat.id, profile=_sender(member))
            for member in message.new_chat_members
            if not member.is_bot
        ]

    text = message.text
    if not text:
        return []

    sender = _sender(message.from_user)
    parsed = parse_command(text)
    if parsed:
        name, args = parsed
        reply = message.reply_to_message
        reply_to_user_id = reply.from_user.id if reply is not None and reply.from_user else None
        return [Command(
            chat_id=chat.id,
            name=name,
            sender=sender,
            args=args,
            reply_to_user_id=reply_to_user_id,
        )]

    return [TextMessage(chat_id=chat.id, sender=sender, text=text)]


class TelegramChannel:
    """Telegram bot adapter for Harvestbot."""

    def __init__(
        self,
        bot_token: str,
        context: BotContext,
        on_shutdown: Optional[Callable[[str], None]] = None,
    ):
        self.bot_token = bot_token
        # The channel itself answers membership lookups for the admin gate
        self.dispatcher = Dispatcher(context, AdminGate(self))
        self.app: Optional[Application] = None
        self._on_shutdown = on_shutdown

    async def open(self):
        """Build and initialize the bot without polling (send-only use)."""
        self.app = Application.builder().token(self.bot_token).build()
        await self.app.initialize()

    async def start(self):
        """Start the Telegram bot (long polling)."""
        self.app = Application.builder().token(self.bot_token).build()

        # First matching handler wins, so service messages go first.
        # Edited messages are not handled.
        new_message = filters.UpdateType.MESSAGE
        self.app.add_handler(MessageHandler(
            new_message & filters.StatusUpdate.NEW_CHAT_MEMBERS,
            self._handle_update,
        ))
        self.app.add_handler(MessageHandler(new_message & filters.COMMAND, self._handle_update))
        self.app.add_handler(MessageHandler(
            new_message & filters.TEXT & ~filters.COMMAND,
            self._handle_update,
        ))
        self.app.add_handler(CallbackQueryHandler(self._handle_update))

        self.app.add_error_handler(self._handle_error)

        logger.info("Starting Telegram bot...")
        await self.app.initialize()
        await self.app.start()
        await self.app.updater.start_polling(drop_pending_updates=True)

        # Register bot commands menu (the "/" button in Telegram)
        try:
            await self.app.bot.set_my_commands([
                BotCommand(spec.name, spec.description)
                for spec in self.dispatcher.context.menu
            ])
        except TelegramError as e:
            logger.warning(f"Could not register command menu: {e}")

        logger.info("Bot started in polling mode!")

    async def stop(self):
        """Stop the Telegram bot."""
        if not self.app:
            return
        if self.app.updater and self.app.updater.running:
            await self.app.updater.stop()
        if self.app.running:
            await self.app.stop()
        await self.app.shutdown()
        logger.info("Telegram bot stopped.")

    # ── Transport operations used by the core ───────────────

    async def get_member_status(self, chat_id: Union[int, str], user_id: int) -> str:
        member = await self.app.bot.get_chat_member(chat_id, user_id)
        return member.status

    async def execute(self, action: OutboundAction) -> bool:
        """Perform one outbound action. Failures are logged, never raised."""
        try:
            await self._perform(action)
        except Exception as e:
            logger.error(f"Failed to execute {type(action).__name__}: {e}")
            return False
        return True

    async def _perform(self, action: OutboundAction):
        """Perform one outbound action, raising on failure."""
        if isinstance(action, SendMessage):
            await self._send(action)
        elif isinstance(action, AnswerCallback):
            await self.app.bot.answer_callback_query(action.callback_id, text=action.text)
        elif isinstance(action, BanMember):
            await self.app.bot.ban_chat_member(action.chat_id, action.user_id)
            logger.warning(f"Banned user {action.user_id} from chat {action.chat_id}")
        elif isinstance(action, RequestShutdown):
            logger.warning(f"Shutdown requested: {action.reason}")
            if self._on_shutdown:
                self._on_shutdown(action.reason)
        else:
            raise TypeError(f"Unknown outbound action: {action!r}")

    async def _send(self, action: SendMessage):
        chunks = split_message(action.text, html=action.html)
        keyboard = build_keyboard(action.controls)
        parse_mode = ParseMode.HTML if action.html else None
        for i, chunk in enumerate(chunks):
            # Keyboard goes on the last chunk only
            markup = keyboard if i == len(chunks) - 1 else None
            await self.app.bot.send_message(
                chat_id=action.chat_id,
                text=chunk,
                parse_mode=parse_mode,
                reply_markup=markup,
            )

    # ── Update handling ─────────────────────────────────────

    async def _handle_update(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        start = time.monotonic()
        for event in update_to_events(update):
            await self._consume(self.dispatcher.dispatch(event))
        ms = int((time.monotonic() - start) * 1000)
        logger.info(f"Response time: {ms}ms")

    async def _consume(self, stream):
        """Execute a handler's actions in order.

        A failed ban ends the stream with an error reply, so the handler's
        confirmation that follows it is never sent.
        """
        async for action in stream:
            if not isinstance(action, BanMember):
                await self.execute(action)
                continue
            try:
                await self._perform(action)
            except Exception as e:
                logger.error(f"Failed to ban user {action.user_id} in chat {action.chat_id}: {e}")
                await stream.aclose()
                await self.execute(SendMessage(
                    chat_id=action.chat_id,
                    text=f"⚠️ Could not ban user {action.user_id}. {classify_error(e)}",
                    html=False,
                ))
                return

    async def _handle_error(self, update: object, context: ContextTypes.DEFAULT_TYPE):
        """Handle errors."""
        logger.error(f"Telegram error: {context.error}", exc_info=context.error)
