"""Inline button actions and their callback ids."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from relaybot.settings import (
    FORMAT_CHOICES,
    MAX_TOKENS_CHOICES,
    PENALTY_CHOICES,
    STOP_CHOICES,
    TEMPERATURE_CHOICES,
    format_number,
)

NAV_TARGETS = ("new_question", "open_settings", "back_to_prompt", "do_start")

# settings field -> callback id prefix
_FIELD_PREFIXES = {
    "max_tokens": "len",
    "format": "fmt",
    "temperature": "temp",
    "frequency_penalty": "freq",
    "presence_penalty": "pres",
    "use_stop": "stop",
}

FIELD_CHOICES: dict[str, tuple[Any, ...]] = {
    "max_tokens": MAX_TOKENS_CHOICES,
    "format": FORMAT_CHOICES,
    "temperature": TEMPERATURE_CHOICES,
    "frequency_penalty": PENALTY_CHOICES,
    "presence_penalty": PENALTY_CHOICES,
    "use_stop": STOP_CHOICES,
}


@dataclass(frozen=True)
class Navigate:
    target: str


@dataclass(frozen=True)
class SetField:
    field: str
    value: Any


@dataclass(frozen=True)
class Acknowledge:
    pass


Action = Union[Navigate, SetField, Acknowledge]


def _encode_value(value: Any) -> str:
    if isinstance(value, bool):
        return "on" if value else "off"
    if isinstance(value, float):
        return format_number(value)
    return str(value)


def callback_id(action: Action) -> str:
    if isinstance(action, Navigate):
        return action.target
    if isinstance(action, SetField):
        return f"{_FIELD_PREFIXES[action.field]}_{_encode_value(action.value)}"
    return "noop"


def _build_table() -> dict[str, Action]:
    table: dict[str, Action] = {"noop": Acknowledge()}
    for target in NAV_TARGETS:
        table[target] = Navigate(target)
    for name, choices in FIELD_CHOICES.items():
        for value in choices:
            action = SetField(name, value)
            table[callback_id(action)] = action
    return table


_CALLBACKS = _build_table()


def parse_callback(data: str | None) -> Action:
    """Decode a callback id; anything unknown is treated as an inert press."""
    return _CALLBACKS.get(data or "", Acknowledge())
