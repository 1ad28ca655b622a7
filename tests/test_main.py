from __future__ import annotations

import unittest
from unittest.mock import patch

from relaybot import main as entry


class MainStartupTests(unittest.TestCase):
    def test_missing_secrets_abort_before_bot_starts(self) -> None:
        with patch.dict("os.environ", {}, clear=True), \
                patch("relaybot.config.load_dotenv") as load_dotenv, \
                patch.object(entry, "TelegramBot") as bot_cls, \
                patch.object(entry, "configure_logging"):
            with self.assertLogs("relaybot", level="ERROR") as logs:
                status = entry.main([])
        self.assertEqual(status, 2)
        load_dotenv.assert_called_once()
        bot_cls.assert_not_called()
        self.assertIn("TELEGRAM_BOT_TOKEN", "\n".join(logs.output))

    def test_valid_env_starts_bot(self) -> None:
        env = {"TELEGRAM_BOT_TOKEN": "123:abc", "GROQ_API_KEY": "gsk_test"}
        with patch.dict("os.environ", env, clear=True), \
                patch("relaybot.config.load_dotenv"), \
                patch.object(entry, "TelegramBot") as bot_cls, \
                patch.object(entry, "configure_logging"):
            status = entry.main(["--log-level", "debug"])
        self.assertEqual(status, 0)
        bot_cls.return_value.start.assert_called_once_with()
        config = bot_cls.call_args.kwargs["config"]
        self.assertEqual(config.telegram_token, "123:abc")


if __name__ == "__main__":
    unittest.main()
