"""relaybot runtime entry point."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from relaybot.config import ConfigError, load_config
from relaybot.llm import CompletionGateway
from relaybot.sessions import SessionStore
from relaybot.telegram_bot import TelegramBot

logger = logging.getLogger("relaybot")

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run the two-answer Telegram LLM bot")
    parser.add_argument(
        "--config",
        default=None,
        help="Optional YAML file with non-secret overrides (model, base URL, system prompt)",
    )
    parser.add_argument(
        "--env-file",
        default=None,
        help="Optional .env path; defaults to the nearest .env",
    )
    parser.add_argument("--log-level", default=None, help="Override log level, e.g. DEBUG")
    return parser


def configure_logging(level: str) -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)
    # httpx logs request URLs, which contain the bot token.
    logging.getLogger("httpx").setLevel(logging.WARNING)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging((args.log_level or "INFO").upper())
    try:
        config = load_config(
            Path(args.config).resolve() if args.config else None,
            dotenv_path=Path(args.env_file) if args.env_file else None,
        )
    except ConfigError as exc:
        logger.error("startup aborted: %s", exc)
        return 2
    if not args.log_level:
        logging.getLogger().setLevel(config.log_level)

    sessions = SessionStore(system_prompt=config.system_prompt)
    gateway = CompletionGateway(
        config.llm_api_key,
        base_url=config.llm_base_url,
        model=config.llm_model,
        timeout_seconds=config.llm_timeout_seconds,
    )
    TelegramBot(config=config, sessions=sessions, gateway=gateway).start()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
