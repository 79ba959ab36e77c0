"""Tests for the Telegram channel adapter (no network, bot API mocked)."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from telegram import InlineKeyboardMarkup
from telegram.constants import ParseMode
from telegram.error import BadRequest

from harvestbot import content
from harvestbot.communication.inbound import CallbackAction, Command, NewMember, TextMessage
from harvestbot.communication.outbound import (
    AnswerCallback,
    BanMember,
    Button,
    RequestShutdown,
    SendMessage,
)
from harvestbot.communication.telegram import TelegramChannel, build_keyboard, update_to_events
from harvestbot.handlers import default_context

CHAT = -100777


def _user(uid=1001, first_name="Alice", username="alice", is_bot=False):
    return SimpleNamespace(id=uid, first_name=first_name, username=username, is_bot=is_bot)


def _message_update(text=None, new_members=None, reply_to=None, user=None, edited=False):
    message = SimpleNamespace(
        chat=SimpleNamespace(id=CHAT),
        text=text,
        new_chat_members=new_members or [],
        from_user=user or _user(),
        reply_to_message=reply_to,
    )
    return SimpleNamespace(
        callback_query=None,
        message=None if edited else message,
        edited_message=message if edited else None,
        effective_message=message,
        effective_chat=message.chat,
    )


def _callback_update(data, with_message=True):
    message = SimpleNamespace(chat=SimpleNamespace(id=CHAT)) if with_message else None
    query = SimpleNamespace(id="q1", data=data, from_user=_user(), message=message)
    return SimpleNamespace(callback_query=query, message=None, effective_message=message, effective_chat=None)


@pytest.fixture
def channel():
    ch = TelegramChannel("123:abc", default_context())
    ch.app = MagicMock()
    ch.app.bot = AsyncMock()
    return ch


class TestUpdateToEvents:
    def test_plain_text(self):
        [event] = update_to_events(_message_update(text="need kyc help"))
        assert isinstance(event, TextMessage)
        assert event.chat_id == CHAT
        assert event.sender.user_id == 1001
        assert event.text == "need kyc help"

    def test_command_with_bot_suffix_and_args(self):
        [event] = update_to_events(_message_update(text="/BAN@harvest_bot 42"))
        assert isinstance(event, Command)
        assert event.name == "ban"
        assert event.args == ("42",)
        assert event.reply_to_user_id is None

    def test_command_reply_target(self):
        reply = SimpleNamespace(from_user=_user(uid=55))
        [event] = update_to_events(_message_update(text="/ban", reply_to=reply))
        assert event.reply_to_user_id == 55

    def test_new_members_skip_bots(self):
        members = [_user(uid=1, first_name="Ada"), _user(uid=2, is_bot=True), _user(uid=3, first_name="Bo")]
        events = update_to_events(_message_update(new_members=members))

        assert all(isinstance(e, NewMember) for e in events)
        assert [e.profile.user_id for e in events] == [1, 3]

    def test_callback(self):
        [event] = update_to_events(_callback_update("kyc_help"))
        assert event == CallbackAction(
            chat_id=CHAT,
            action_id="kyc_help",
            callback_id="q1",
            sender=event.sender,
        )
        assert event.sender.first_name == "Alice"

    def test_callback_without_message_uses_user_chat(self):
        [event] = update_to_events(_callback_update("start_intro", with_message=False))
        assert event.chat_id == 1001

    def test_non_text_message_ignored(self):
        assert update_to_events(_message_update(text=None)) == []

    @pytest.mark.parametrize("text", ["I need kyc help", "/shutdown", "/ban 42"])
    def test_edited_message_ignored(self, text):
        assert update_to_events(_message_update(text=text, edited=True)) == []


class TestBuildKeyboard:
    def test_empty(self):
        assert build_keyboard(()) is None

    def test_rows(self):
        markup = build_keyboard((
            (Button("Docs", url="https://example.com/kyc"), Button("Help", callback_data="kyc_help")),
        ))
        assert isinstance(markup, InlineKeyboardMarkup)
        [[docs, help_]] = markup.inline_keyboard
        assert docs.url == "https://example.com/kyc"
        assert help_.callback_data == "kyc_help"


class TestExecute:
    @pytest.mark.asyncio
    async def test_send_html_with_keyboard(self, channel):
        action = SendMessage(chat_id=CHAT, text="<b>hi</b>", controls=content.WELCOME_CONTROLS)
        assert await channel.execute(action) is True

        kwargs = channel.app.bot.send_message.call_args.kwargs
        assert kwargs["chat_id"] == CHAT
        assert kwargs["parse_mode"] == ParseMode.HTML
        assert isinstance(kwargs["reply_markup"], InlineKeyboardMarkup)

    @pytest.mark.asyncio
    async def test_plain_text(self, channel):
        await channel.execute(SendMessage(chat_id=CHAT, text="a < b", html=False))
        kwargs = channel.app.bot.send_message.call_args.kwargs
        assert kwargs["parse_mode"] is None
        assert kwargs["reply_markup"] is None

    @pytest.mark.asyncio
    async def test_long_message_keyboard_on_last_chunk(self, channel):
        text = ("line\n" * 1500).strip()
        await channel.execute(SendMessage(chat_id=CHAT, text=text, controls=content.WELCOME_CONTROLS))

        calls = channel.app.bot.send_message.call_args_list
        assert len(calls) == 2
        assert calls[0].kwargs["reply_markup"] is None
        assert calls[1].kwargs["reply_markup"] is not None

    @pytest.mark.asyncio
    async def test_answer_callback(self, channel):
        await channel.execute(AnswerCallback(callback_id="q1", text="ok"))
        channel.app.bot.answer_callback_query.assert_awaited_once_with("q1", text="ok")

    @pytest.mark.asyncio
    async def test_ban(self, channel):
        await channel.execute(BanMember(chat_id=CHAT, user_id=42))
        channel.app.bot.ban_chat_member.assert_awaited_once_with(CHAT, 42)

    @pytest.mark.asyncio
    async def test_shutdown_calls_hook(self):
        reasons = []
        ch = TelegramChannel("123:abc", default_context(), on_shutdown=reasons.append)
        ch.app = MagicMock()
        assert await ch.execute(RequestShutdown(reason="bye")) is True
        assert reasons == ["bye"]

    @pytest.mark.asyncio
    async def test_failure_returns_false(self, channel):
        channel.app.bot.send_message.side_effect = ConnectionError("down")
        assert await channel.execute(SendMessage(chat_id=CHAT, text="x")) is False

    @pytest.mark.asyncio
    async def test_member_status(self, channel):
        channel.app.bot.get_chat_member.return_value = SimpleNamespace(status="creator")
        assert await channel.get_member_status(CHAT, 7) == "creator"
        channel.app.bot.get_chat_member.assert_awaited_once_with(CHAT, 7)


class TestHandleUpdate:
    @pytest.mark.asyncio
    async def test_keyword_message_replies(self, channel):
        await channel._handle_update(_message_update(text="How do I signup?"), None)

        kwargs = channel.app.bot.send_message.call_args.kwargs
        assert kwargs["text"] == content.SIGNUP_RESPONSE.text

    @pytest.mark.asyncio
    async def test_admin_command_denied_for_member(self, channel):
        channel.app.bot.get_chat_member.return_value = SimpleNamespace(status="member")
        await channel._handle_update(_message_update(text="/shutdown"), None)

        kwargs = channel.app.bot.send_message.call_args.kwargs
        assert kwargs["text"] == content.NOT_AUTHORIZED_TEXT
        channel.app.bot.ban_chat_member.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_callback_acknowledged(self, channel):
        await channel._handle_update(_callback_update("kyc_help"), None)

        channel.app.bot.answer_callback_query.assert_awaited_once_with("q1", text=content.KYC_HELP_ACK)
        assert channel.app.bot.send_message.call_args.kwargs["text"] == content.KYC_HELP_TEXT

    @pytest.mark.asyncio
    async def test_unrelated_text_is_silent(self, channel):
        await channel._handle_update(_message_update(text="hello"), None)
        channel.app.bot.send_message.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_edited_command_not_rerun(self, channel):
        channel.app.bot.get_chat_member.return_value = SimpleNamespace(status="creator")
        reply = SimpleNamespace(from_user=_user(uid=42))
        await channel._handle_update(_message_update(text="/ban", reply_to=reply, edited=True), None)

        channel.app.bot.get_chat_member.assert_not_awaited()
        channel.app.bot.ban_chat_member.assert_not_awaited()
        channel.app.bot.send_message.assert_not_awaited()


class TestBanOutcome:
    @pytest.fixture
    def admin_channel(self, channel):
        channel.app.bot.get_chat_member.return_value = SimpleNamespace(status="administrator")
        return channel

    def _sent_texts(self, channel):
        return [c.kwargs["text"] for c in channel.app.bot.send_message.call_args_list]

    @pytest.mark.asyncio
    async def test_confirmation_after_successful_ban(self, admin_channel):
        reply = SimpleNamespace(from_user=_user(uid=42))
        await admin_channel._handle_update(_message_update(text="/ban", reply_to=reply), None)

        admin_channel.app.bot.ban_chat_member.assert_awaited_once_with(CHAT, 42)
        assert self._sent_texts(admin_channel) == ["User 42 has been banned."]

    @pytest.mark.asyncio
    async def test_failed_ban_reports_failure(self, admin_channel):
        admin_channel.app.bot.ban_chat_member.side_effect = BadRequest("User is an administrator of the chat")
        reply = SimpleNamespace(from_user=_user(uid=42))
        await admin_channel._handle_update(_message_update(text="/ban", reply_to=reply), None)

        [text] = self._sent_texts(admin_channel)
        assert "Could not ban user 42" in text
        assert "Telegram rejected the request" in text
        assert "has been banned" not in text


class TestStop:
    @pytest.mark.asyncio
    async def test_stop_before_start_is_noop(self):
        ch = TelegramChannel("123:abc", default_context())
        await ch.stop()

    @pytest.mark.asyncio
    async def test_stop_skips_components_not_running(self, channel):
        channel.app.updater.running = False
        channel.app.running = False
        channel.app.shutdown = AsyncMock()
        channel.app.stop = AsyncMock()

        await channel.stop()

        channel.app.stop.assert_not_awaited()
        channel.app.shutdown.assert_awaited_once()
