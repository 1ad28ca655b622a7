"""Telegram bot using python-telegram-bot: two answers per question and an inline settings screen."""

from __future__ import annotations

import asyncio
import logging
import signal

from telegram import BotCommand, InlineKeyboardMarkup, Message, Update
from telegram.constants import ChatAction
from telegram.error import TelegramError
from telegram.ext import (
    Application,
    CallbackQueryHandler,
    CommandHandler,
    ContextTypes,
    MessageHandler,
    filters,
)

from relaybot.actions import Acknowledge, Navigate, SetField, parse_callback
from relaybot.config import BotConfig
from relaybot.keyboards import prompt_keyboard, settings_keyboard, start_keyboard
from relaybot.llm import CompletionGateway
from relaybot.prompts import (
    UNRESTRICTED_PARAMS,
    build_constrained_messages,
    build_constrained_params,
    build_unrestricted_messages,
)
from relaybot.sessions import SessionStore
from relaybot.settings import Settings, describe_settings

logger = logging.getLogger(__name__)

MAX_REPLY_LEN = 3500
TRUNCATION_MARKER = "\n\n…(truncated)"

WELCOME_TEXT = "Hi! This bot is for experimenting with answer controls.\nCommands: /reset, /controls"
RESET_TEXT = "OK, context and settings have been reset."
NEW_SESSION_TEXT = "Started a new session."
NEW_QUESTION_TEXT = "OK! Type your new question 🙂"
START_SCREEN_TEXT = "Press Start to begin and see the settings."
PROMPT_TEXT = "Ask a question. I will send 2 answers: (1) constrained and (2) unrestricted."
FAILURE_TEXT = "Oops, the model request failed. See the console log."

BOT_COMMANDS = (
    ("start", "Start a new session"),
    ("reset", "Reset context and settings"),
    ("controls", "Show the settings screen"),
)


def truncate_reply(text: str) -> str:
    if len(text) <= MAX_REPLY_LEN:
        return text
    return text[:MAX_REPLY_LEN] + TRUNCATION_MARKER


def settings_screen_text(summary: str) -> str:
    return f"⚙️ Settings\n{summary}\n\nUse the buttons below to change parameters:"


class TelegramBot:
    def __init__(
        self,
        config: BotConfig,
        sessions: SessionStore,
        gateway: CompletionGateway,
    ) -> None:
        self._config = config
        self._sessions = sessions
        self._gateway = gateway
        self._app: Application | None = None

    def build_application(self) -> Application:
        self._app = (
            Application.builder()
            .token(self._config.telegram_token)
            .post_init(self._post_init)
            .build()
        )
        self._setup_handlers()
        return self._app

    def start(self) -> None:
        """Run polling in the main thread until SIGINT/SIGTERM."""
        app = self.build_application()
        logger.info(
            "telegram_bot_started model=%s base_url=%s",
            self._gateway.model,
            self._config.llm_base_url,
        )
        try:
            app.run_polling(
                allowed_updates=Update.ALL_TYPES,
                stop_signals=(signal.SIGINT, signal.SIGTERM),
            )
        finally:
            self._app = None
            logger.info("telegram_bot_stopped sessions=%s", len(self._sessions))

    async def _post_init(self, app: Application) -> None:
        await app.bot.set_my_commands([BotCommand(name, desc) for name, desc in BOT_COMMANDS])

    def _setup_handlers(self) -> None:
        assert self._app is not None
        self._app.add_handler(CommandHandler("start", self._cmd_start))
        self._app.add_handler(CommandHandler("reset", self._cmd_reset))
        self._app.add_handler(CommandHandler("controls", self._cmd_controls))
        self._app.add_handler(CallbackQueryHandler(self._handle_callback))
        self._app.add_handler(
            MessageHandler(filters.TEXT & ~filters.COMMAND, self._handle_text)
        )
        self._app.add_error_handler(self._on_error)

    async def _send(
        self,
        context: ContextTypes.DEFAULT_TYPE,
        chat_id: int,
        text: str,
        reply_markup: InlineKeyboardMarkup | None = None,
    ) -> Message:
        return await context.bot.send_message(chat_id=chat_id, text=text, reply_markup=reply_markup)

    # Screens

    async def _show_start_screen(self, context: ContextTypes.DEFAULT_TYPE, chat_id: int) -> None:
        await self._send(context, chat_id, START_SCREEN_TEXT, start_keyboard())

    async def _show_prompt(self, context: ContextTypes.DEFAULT_TYPE, chat_id: int) -> None:
        await self._send(context, chat_id, PROMPT_TEXT, prompt_keyboard())

    async def _show_settings(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Edit the settings screen in place when possible, otherwise send a new one."""
        chat_id = update.effective_chat.id
        state = self._sessions.ensure(chat_id)
        text = settings_screen_text(describe_settings(state.settings))
        keyboard = settings_keyboard(state.settings)

        query = update.callback_query
        if query is not None:
            try:
                await query.edit_message_text(text, reply_markup=keyboard)
            except TelegramError as exc:
                logger.debug("settings_edit_in_place_failed chat_id=%s error=%s", chat_id, exc)
            else:
                if query.message is not None:
                    self._sessions.remember_settings_message(chat_id, query.message.message_id)
                return

        if state.settings_message_id is not None:
            try:
                await context.bot.edit_message_text(
                    text=text,
                    chat_id=chat_id,
                    message_id=state.settings_message_id,
                    reply_markup=keyboard,
                )
                return
            except TelegramError as exc:
                logger.debug("settings_edit_by_id_failed chat_id=%s error=%s", chat_id, exc)
                self._sessions.forget_settings_message(chat_id)

        message = await self._send(context, chat_id, text, keyboard)
        self._sessions.remember_settings_message(chat_id, message.message_id)

    async def _begin_session(
        self, update: Update, context: ContextTypes.DEFAULT_TYPE, confirmation: str
    ) -> None:
        chat_id = update.effective_chat.id
        self._sessions.reset(chat_id)
        await self._send(context, chat_id, confirmation)
        await self._show_settings(update, context)
        await self._show_prompt(context, chat_id)

    # Commands

    async def _cmd_start(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        await self._begin_session(update, context, WELCOME_TEXT)
        logger.info("telegram_command_handled chat_id=%s command=start", update.effective_chat.id)

    async def _cmd_reset(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        await self._begin_session(update, context, RESET_TEXT)
        logger.info("telegram_command_handled chat_id=%s command=reset", update.effective_chat.id)

    async def _cmd_controls(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        self._sessions.ensure(update.effective_chat.id)
        await self._show_settings(update, context)
        logger.info("telegram_command_handled chat_id=%s command=controls", update.effective_chat.id)

    # Buttons

    async def _handle_callback(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        query = update.callback_query
        if query is None or update.effective_chat is None:
            return
        chat_id = update.effective_chat.id
        action = parse_callback(query.data)

        if isinstance(action, SetField):
            settings = self._sessions.update_setting(chat_id, action.field, action.value)
            await query.answer("OK")
            await self._show_settings(update, context)
            logger.info(
                "telegram_settings_changed chat_id=%s %s=%s",
                chat_id,
                action.field,
                getattr(settings, action.field),
            )
        elif isinstance(action, Navigate):
            await self._navigate(update, context, action.target)
        elif isinstance(action, Acknowledge):
            await query.answer(" ")

    async def _navigate(self, update: Update, context: ContextTypes.DEFAULT_TYPE, target: str) -> None:
        chat_id = update.effective_chat.id
        await update.callback_query.answer("OK")
        if target == "do_start":
            await self._begin_session(update, context, NEW_SESSION_TEXT)
        elif target == "new_question":
            await self._send(context, chat_id, NEW_QUESTION_TEXT)
        elif target == "open_settings":
            await self._show_settings(update, context)
        elif target == "back_to_prompt":
            await self._show_prompt(context, chat_id)

    # Text

    async def _handle_text(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        if update.effective_chat is None or update.effective_message is None:
            return
        chat_id = update.effective_chat.id
        user_text = (update.effective_message.text or "").strip()
        if not user_text or user_text.startswith("/"):
            return

        # No state means the process restarted since this chat last pressed Start.
        if not self._sessions.has(chat_id):
            await self._show_start_screen(context, chat_id)
            logger.info("telegram_text_without_session chat_id=%s", chat_id)
            return

        state = self._sessions.get(chat_id)
        settings = state.settings
        history = list(state.history)

        try:
            unrestricted = await self._answer_twice(context, chat_id, history, user_text, settings)
        except Exception:
            logger.exception("telegram_update_error chat_id=%s text=%r", chat_id, user_text[:200])
            await self._send(context, chat_id, FAILURE_TEXT)
            await self._show_prompt(context, chat_id)
            return

        self._sessions.append_exchange(chat_id, user_text, unrestricted)
        logger.info("telegram_message_processed chat_id=%s history_len=%s", chat_id, len(state.history))
        await self._show_prompt(context, chat_id)

    async def _answer_twice(
        self,
        context: ContextTypes.DEFAULT_TYPE,
        chat_id: int,
        history: list[dict[str, str]],
        user_text: str,
        settings: Settings,
    ) -> str:
        """Constrained request and reply, then unrestricted request and reply; returns the latter's text."""
        await context.bot.send_chat_action(chat_id=chat_id, action=ChatAction.TYPING)
        constrained = await asyncio.to_thread(
            self._gateway.complete,
            build_constrained_messages(history, user_text, settings),
            build_constrained_params(settings),
        )
        await self._send(
            context,
            chat_id,
            "✅ Constrained\n" + describe_settings(settings) + "\n\n" + truncate_reply(constrained),
        )

        await context.bot.send_chat_action(chat_id=chat_id, action=ChatAction.TYPING)
        unrestricted = await asyncio.to_thread(
            self._gateway.complete,
            build_unrestricted_messages(history, user_text),
            UNRESTRICTED_PARAMS,
        )
        await self._send(
            context,
            chat_id,
            "🟦 Unrestricted\n"
            f"temp: {UNRESTRICTED_PARAMS.temperature}, max_tokens: {UNRESTRICTED_PARAMS.max_tokens}\n\n"
            + truncate_reply(unrestricted),
        )
        return unrestricted

    async def _on_error(self, update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
        chat = getattr(update, "effective_chat", None)
        chat_id = chat.id if chat is not None else None
        logger.error("telegram_update_error chat_id=%s", chat_id, exc_info=context.error)
