"""Builds the constrained and unrestricted requests from user text and settings."""

from __future__ import annotations

import math

from relaybot.llm import GenerationParams
from relaybot.settings import STOP_MARKER, Settings

MAX_LENGTH_WORDS = 120
WORDS_PER_TOKEN = 0.75

UNRESTRICTED_PARAMS = GenerationParams(
    temperature=0.7,
    max_tokens=800,
    frequency_penalty=0.0,
    presence_penalty=0.0,
)


def length_budget_words(max_tokens: int) -> int:
    # Half-up rounding, not Python's banker's rounding.
    return min(MAX_LENGTH_WORDS, math.floor(max_tokens * WORDS_PER_TOKEN + 0.5))


def build_constrained_prompt(user_text: str, settings: Settings) -> str:
    if settings.format == "json":
        format_instruction = (
            'Response format: strict JSON without markdown. '
            'Fields: {"answer": string, "bullets": string[]}.'
        )
    else:
        format_instruction = "Response format: a list of 3-6 items. Keep each item short."

    length_instruction = (
        f"Length limit: stay within about {length_budget_words(settings.max_tokens)} words at most."
    )

    if settings.use_stop:
        stop_instruction = f"Termination: print {STOP_MARKER} on its own line at the very end."
    else:
        stop_instruction = "Termination: stop right after the requirements are met."

    return "\n".join(
        [
            user_text.strip(),
            "",
            "Answer requirements:",
            f"- {format_instruction}",
            f"- {length_instruction}",
            f"- {stop_instruction}",
        ]
    )


def build_constrained_params(settings: Settings) -> GenerationParams:
    return GenerationParams(
        temperature=settings.temperature,
        max_tokens=settings.max_tokens,
        frequency_penalty=settings.frequency_penalty,
        presence_penalty=settings.presence_penalty,
        stop=(STOP_MARKER,) if settings.use_stop else None,
    )


def build_constrained_messages(
    history: list[dict[str, str]], user_text: str, settings: Settings
) -> list[dict[str, str]]:
    return [*history, {"role": "user", "content": build_constrained_prompt(user_text, settings)}]


def build_unrestricted_messages(history: list[dict[str, str]], user_text: str) -> list[dict[str, str]]:
    return [*history, {"role": "user", "content": user_text}]
