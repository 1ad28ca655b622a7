from __future__ import annotations

import unittest

from relaybot.sessions import DEFAULT_SYSTEM_PROMPT, SessionNotInitialized, SessionStore
from relaybot.settings import DEFAULT_SETTINGS, Settings, describe_settings


class SessionStoreTests(unittest.TestCase):
    def test_first_ensure_creates_defaults(self) -> None:
        store = SessionStore()
        state = store.ensure(42)
        self.assertEqual(state.history, [{"role": "system", "content": DEFAULT_SYSTEM_PROMPT}])
        self.assertEqual(state.settings, DEFAULT_SETTINGS)
        self.assertIsNone(state.settings_message_id)

    def test_ensure_is_idempotent(self) -> None:
        store = SessionStore()
        store.ensure(1)
        store.update_setting(1, "format", "json")
        store.append_exchange(1, "hi", "hello")
        before_history = list(store.get(1).history)
        before_settings = store.get(1).settings
        store.ensure(1)
        self.assertEqual(store.get(1).history, before_history)
        self.assertEqual(store.get(1).settings, before_settings)

    def test_reset_matches_fresh_chat(self) -> None:
        store = SessionStore(system_prompt="Be brief.")
        store.ensure(7)
        store.update_setting(7, "max_tokens", 512)
        store.update_setting(7, "use_stop", False)
        store.append_exchange(7, "q", "a")
        store.remember_settings_message(7, 99)
        store.reset(7)
        state = store.ensure(7)
        fresh = store.ensure(8)
        self.assertEqual(state.history, fresh.history)
        self.assertEqual(state.settings, fresh.settings)
        self.assertIsNone(state.settings_message_id)

    def test_get_before_ensure_raises(self) -> None:
        store = SessionStore()
        self.assertFalse(store.has(5))
        with self.assertRaises(SessionNotInitialized):
            store.get(5)

    def test_update_setting_leaves_history_alone(self) -> None:
        store = SessionStore()
        store.ensure(3)
        store.append_exchange(3, "q", "a")
        history = list(store.get(3).history)
        settings = store.update_setting(3, "max_tokens", 256)
        self.assertEqual(settings, Settings(max_tokens=256))
        self.assertEqual(store.get(3).history, history)

    def test_forget_settings_message(self) -> None:
        store = SessionStore()
        store.remember_settings_message(4, 10)
        self.assertEqual(store.get(4).settings_message_id, 10)
        store.forget_settings_message(4)
        self.assertIsNone(store.get(4).settings_message_id)
        store.forget_settings_message(404)
        self.assertFalse(store.has(404))


class SettingsTests(unittest.TestCase):
    def test_with_field_rejects_unknown_values(self) -> None:
        with self.assertRaises(ValueError):
            DEFAULT_SETTINGS.with_field("max_tokens", 100)
        with self.assertRaises(ValueError):
            DEFAULT_SETTINGS.with_field("color", "red")
        with self.assertRaises(ValueError):
            DEFAULT_SETTINGS.with_field("frequency_penalty", False)
        with self.assertRaises(ValueError):
            DEFAULT_SETTINGS.with_field("use_stop", 1)

    def test_with_field_returns_new_value(self) -> None:
        changed = DEFAULT_SETTINGS.with_field("temperature", 0.9)
        self.assertEqual(changed.temperature, 0.9)
        self.assertEqual(DEFAULT_SETTINGS.temperature, 0.7)

    def test_describe_settings(self) -> None:
        self.assertEqual(
            describe_settings(DEFAULT_SETTINGS),
            "max_tokens: 128 | format: List | temp: 0.7 | freq: 0 | pres: 0 | stop: ON (<END>)",
        )
        custom = Settings(format="json", frequency_penalty=0.6, use_stop=False)
        self.assertEqual(
            describe_settings(custom),
            "max_tokens: 128 | format: JSON | temp: 0.7 | freq: 0.6 | pres: 0 | stop: OFF",
        )


if __name__ == "__main__":
    unittest.main()
