from __future__ import annotations

import unittest

from relaybot.actions import Acknowledge, Navigate, SetField, callback_id, parse_callback
from relaybot.keyboards import prompt_keyboard, settings_keyboard, start_keyboard
from relaybot.settings import Settings


class CallbackParsingTests(unittest.TestCase):
    def test_known_ids(self) -> None:
        self.assertEqual(parse_callback("len_256"), SetField("max_tokens", 256))
        self.assertEqual(parse_callback("fmt_json"), SetField("format", "json"))
        self.assertEqual(parse_callback("temp_0.2"), SetField("temperature", 0.2))
        self.assertEqual(parse_callback("freq_0.6"), SetField("frequency_penalty", 0.6))
        self.assertEqual(parse_callback("pres_0"), SetField("presence_penalty", 0.0))
        self.assertEqual(parse_callback("stop_off"), SetField("use_stop", False))
        self.assertEqual(parse_callback("open_settings"), Navigate("open_settings"))
        self.assertEqual(parse_callback("noop"), Acknowledge())

    def test_unknown_ids_are_inert(self) -> None:
        self.assertEqual(parse_callback("len_999"), Acknowledge())
        self.assertEqual(parse_callback("temp_0.7"), Acknowledge())
        self.assertEqual(parse_callback(None), Acknowledge())

    def test_callback_id_encoding(self) -> None:
        self.assertEqual(callback_id(SetField("use_stop", True)), "stop_on")
        self.assertEqual(callback_id(SetField("frequency_penalty", 0.0)), "freq_0")
        self.assertEqual(callback_id(Navigate("do_start")), "do_start")
        self.assertEqual(callback_id(Acknowledge()), "noop")


class KeyboardTests(unittest.TestCase):
    def _labels(self, markup) -> list[list[str]]:
        return [[b.text for b in row] for row in markup.inline_keyboard]

    def test_settings_keyboard_marks_current_choices(self) -> None:
        rows = self._labels(settings_keyboard(Settings()))
        self.assertEqual(len(rows), 13)
        self.assertEqual(rows[1], ["64", "🟩 128", "256", "512"])
        self.assertEqual(rows[3], ["🟩 List", "JSON"])
        # default temperature 0.7 is not one of the buttons
        self.assertEqual(rows[5], ["0.2", "0.9"])
        self.assertEqual(rows[7], ["🟩 0", "0.6"])
        self.assertEqual(rows[11], ["🟩 ON", "OFF"])
        self.assertEqual(rows[12], ["⬅️ Back"])

    def test_every_settings_button_decodes(self) -> None:
        markup = settings_keyboard(Settings(max_tokens=512, use_stop=False))
        for row in markup.inline_keyboard:
            for button in row:
                action = parse_callback(button.callback_data)
                if button.text.startswith("- "):
                    self.assertEqual(action, Acknowledge())
                else:
                    self.assertNotEqual(action, Acknowledge())
        rows = self._labels(markup)
        self.assertEqual(rows[1][3], "🟩 512")
        self.assertEqual(rows[11], ["ON", "🟩 OFF"])

    def test_navigation_keyboards(self) -> None:
        prompt = prompt_keyboard().inline_keyboard
        self.assertEqual([b.callback_data for b in prompt[0]], ["new_question", "open_settings"])
        start = start_keyboard().inline_keyboard
        self.assertEqual(start[0][0].callback_data, "do_start")


if __name__ == "__main__":
    unittest.main()
