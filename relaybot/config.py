"""Bot configuration: secrets from the environment, optional YAML overrides."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from relaybot.llm import DEFAULT_MODEL, DEFAULT_TIMEOUT_SECONDS, GROQ_BASE
from relaybot.sessions import DEFAULT_SYSTEM_PROMPT

TOKEN_ENV = "TELEGRAM_BOT_TOKEN"
API_KEY_ENVS = ("GROQ_API_KEY", "LLM_API_KEY")

_FILE_KEYS = {"llm_base_url", "llm_model", "llm_timeout_seconds", "system_prompt", "log_level"}


@dataclass(frozen=True)
class BotConfig:
    telegram_token: str
    llm_api_key: str
    llm_base_url: str = GROQ_BASE
    llm_model: str = DEFAULT_MODEL
    llm_timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    log_level: str = "INFO"


class ConfigError(ValueError):
    """Raised when configuration is missing or invalid."""


def _read_env(env: Mapping[str, str], name: str) -> str | None:
    raw = (env.get(name) or "").strip()
    return raw if raw else None


def _load_file(config_path: Path) -> dict[str, Any]:
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")
    with config_path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh) or {}
    if not isinstance(raw, dict):
        raise ConfigError(f"Config file must contain a mapping: {config_path}")
    unknown = set(raw.keys()).difference(_FILE_KEYS)
    if unknown:
        raise ConfigError(f"Unknown config keys: {', '.join(sorted(unknown))}")
    return raw


def _timeout(raw: Any) -> int:
    try:
        value = int(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"llm_timeout_seconds must be an integer, got {raw!r}") from exc
    return max(5, min(120, value))


def load_config(
    config_path: Path | None = None,
    env: Mapping[str, str] | None = None,
    *,
    dotenv_path: Path | None = None,
) -> BotConfig:
    """Load secrets (after reading .env) and optional YAML overrides; fail on missing secrets."""
    if env is None:
        load_dotenv(dotenv_path=dotenv_path)
        env = os.environ

    token = _read_env(env, TOKEN_ENV)
    if token is None:
        raise ConfigError(f"Missing {TOKEN_ENV} (set it in the environment or .env)")
    api_key = next((v for v in (_read_env(env, n) for n in API_KEY_ENVS) if v), None)
    if api_key is None:
        raise ConfigError(f"Missing {API_KEY_ENVS[0]} (set it in the environment or .env)")

    raw = _load_file(config_path) if config_path is not None else {}

    return BotConfig(
        telegram_token=token,
        llm_api_key=api_key,
        llm_base_url=str(raw.get("llm_base_url", GROQ_BASE)).strip() or GROQ_BASE,
        llm_model=str(raw.get("llm_model", DEFAULT_MODEL)).strip() or DEFAULT_MODEL,
        llm_timeout_seconds=_timeout(raw.get("llm_timeout_seconds", DEFAULT_TIMEOUT_SECONDS)),
        system_prompt=str(raw.get("system_prompt", DEFAULT_SYSTEM_PROMPT)).strip() or DEFAULT_SYSTEM_PROMPT,
        log_level=str(raw.get("log_level", "INFO")).strip().upper() or "INFO",
    )
