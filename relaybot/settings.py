"""Per-chat generation settings for the constrained answer."""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Any

STOP_MARKER = "<END>"

MAX_TOKENS_CHOICES = (64, 128, 256, 512)
FORMAT_CHOICES = ("bullets", "json")
TEMPERATURE_CHOICES = (0.2, 0.9)
PENALTY_CHOICES = (0.0, 0.6)
STOP_CHOICES = (True, False)

DEFAULT_TEMPERATURE = 0.7

# 0.7 is only valid as the initial value; buttons offer 0.2 and 0.9.
_ALLOWED: dict[str, tuple[Any, ...]] = {
    "max_tokens": MAX_TOKENS_CHOICES,
    "format": FORMAT_CHOICES,
    "temperature": TEMPERATURE_CHOICES + (DEFAULT_TEMPERATURE,),
    "frequency_penalty": PENALTY_CHOICES,
    "presence_penalty": PENALTY_CHOICES,
    "use_stop": STOP_CHOICES,
}


@dataclass(frozen=True)
class Settings:
    max_tokens: int = 128
    format: str = "bullets"
    temperature: float = DEFAULT_TEMPERATURE
    frequency_penalty: float = 0.0
    presence_penalty: float = 0.0
    use_stop: bool = True

    def with_field(self, name: str, value: Any) -> Settings:
        """Return a copy with one field replaced; reject unknown fields and values."""
        if name not in _ALLOWED:
            raise ValueError(f"Unknown settings field: {name}")
        if value not in _ALLOWED[name] or isinstance(value, bool) != (name == "use_stop"):
            raise ValueError(f"Invalid value for {name}: {value!r}")
        return replace(self, **{name: value})

    def as_dict(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


DEFAULT_SETTINGS = Settings()


def format_number(value: float) -> str:
    return f"{value:g}"


def describe_settings(settings: Settings) -> str:
    fmt = "JSON" if settings.format == "json" else "List"
    stop = f"ON ({STOP_MARKER})" if settings.use_stop else "OFF"
    return (
        f"max_tokens: {settings.max_tokens} | format: {fmt} | "
        f"temp: {format_number(settings.temperature)} | "
        f"freq: {format_number(settings.frequency_penalty)} | "
        f"pres: {format_number(settings.presence_penalty)} | stop: {stop}"
    )
