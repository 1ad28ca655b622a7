"""In-memory per-chat conversation state: history, settings, settings screen id."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from relaybot.settings import DEFAULT_SETTINGS, Settings

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_PROMPT = "You are a helpful assistant. Answer to the point."


class SessionNotInitialized(KeyError):
    """Raised when a chat's state is read before ensure() or reset()."""


@dataclass
class ConversationState:
    history: list[dict[str, str]]
    settings: Settings = DEFAULT_SETTINGS
    settings_message_id: int | None = None


class SessionStore:
    """Process-lifetime mapping chat_id -> ConversationState.

    Accessed from the single dispatcher task only, so there is no locking.
    Nothing is ever evicted except by reset().
    """

    def __init__(self, system_prompt: str = DEFAULT_SYSTEM_PROMPT) -> None:
        self._system_prompt = system_prompt
        self._states: dict[int, ConversationState] = {}

    def __len__(self) -> int:
        return len(self._states)

    def _new_state(self) -> ConversationState:
        return ConversationState(history=[{"role": "system", "content": self._system_prompt}])

    def has(self, chat_id: int) -> bool:
        return chat_id in self._states

    def ensure(self, chat_id: int) -> ConversationState:
        state = self._states.get(chat_id)
        if state is None:
            state = self._new_state()
            self._states[chat_id] = state
            logger.debug("session_created chat_id=%s", chat_id)
        return state

    def reset(self, chat_id: int) -> ConversationState:
        self._states.pop(chat_id, None)
        logger.debug("session_reset chat_id=%s", chat_id)
        return self.ensure(chat_id)

    def get(self, chat_id: int) -> ConversationState:
        try:
            return self._states[chat_id]
        except KeyError:
            raise SessionNotInitialized(chat_id) from None

    def update_setting(self, chat_id: int, name: str, value: Any) -> Settings:
        state = self.ensure(chat_id)
        state.settings = state.settings.with_field(name, value)
        return state.settings

    def append_exchange(self, chat_id: int, user_text: str, answer: str) -> None:
        history = self.get(chat_id).history
        history.append({"role": "user", "content": user_text})
        history.append({"role": "assistant", "content": answer})

    def remember_settings_message(self, chat_id: int, message_id: int) -> None:
        self.ensure(chat_id).settings_message_id = message_id

    def forget_settings_message(self, chat_id: int) -> None:
        state = self._states.get(chat_id)
        if state is not None:
            state.settings_message_id = None
