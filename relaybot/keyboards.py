"""Inline keyboards for the settings, prompt and start screens."""

from __future__ import annotations

from typing import Any

from telegram import InlineKeyboardButton, InlineKeyboardMarkup

from relaybot.actions import FIELD_CHOICES, Acknowledge, Navigate, SetField, callback_id
from relaybot.settings import Settings, format_number

SELECTED_MARK = "🟩 "

_SECTIONS = (
    ("max_tokens", "Tokens per answer (max_tokens)"),
    ("format", "Output format"),
    ("temperature", "Randomness (temperature)"),
    ("frequency_penalty", "Word repetition penalty (frequency_penalty)"),
    ("presence_penalty", "Topic repetition penalty (presence_penalty)"),
    ("use_stop", "Stop condition (stop)"),
)

_FORMAT_LABELS = {"bullets": "List", "json": "JSON"}


def _choice_label(value: Any) -> str:
    if isinstance(value, bool):
        return "ON" if value else "OFF"
    if isinstance(value, str):
        return _FORMAT_LABELS.get(value, value)
    if isinstance(value, float):
        return format_number(value)
    return str(value)


def _button(label: str, action: Navigate | SetField | Acknowledge) -> InlineKeyboardButton:
    return InlineKeyboardButton(label, callback_data=callback_id(action))


def _label_row(text: str) -> list[InlineKeyboardButton]:
    return [_button(f"- {text} -", Acknowledge())]


def settings_keyboard(settings: Settings) -> InlineKeyboardMarkup:
    rows: list[list[InlineKeyboardButton]] = []
    for name, label in _SECTIONS:
        current = getattr(settings, name)
        rows.append(_label_row(label))
        row = []
        for value in FIELD_CHOICES[name]:
            text = _choice_label(value)
            if value == current and isinstance(value, bool) == isinstance(current, bool):
                text = SELECTED_MARK + text
            row.append(_button(text, SetField(name, value)))
        rows.append(row)
    rows.append([_button("⬅️ Back", Navigate("back_to_prompt"))])
    return InlineKeyboardMarkup(rows)


def prompt_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        [
            [
                _button("🆕 New question", Navigate("new_question")),
                _button("⚙️ Change settings", Navigate("open_settings")),
            ]
        ]
    )


def start_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup([[_button("▶️ Start", Navigate("do_start"))]])
