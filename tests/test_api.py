"""Tests for key-label intake."""

import unittest

from deskcalc_pkg.api import is_known_key, new_session, press, run_keys, tokenize_keys
from deskcalc_pkg.types import DisplayMode, Panel


class TestTokenize(unittest.TestCase):
    def test_numbers_split_into_keystrokes(self):
        self.assertEqual(tokenize_keys("12.5 + √ ="), ["1", "2", ".", "5", "+", "√", "="])

    def test_labels_kept_whole(self):
        self.assertEqual(tokenize_keys("4 1/x x² (-) M+"), ["4", "1/x", "x²", "(-)", "M+"])

    def test_empty(self):
        self.assertEqual(tokenize_keys("   "), [])


class TestPress(unittest.TestCase):
    def setUp(self):
        self.session = new_session()

    def test_digit_returns_snapshot(self):
        snap = press(self.session, "9")
        self.assertEqual(snap.main_display, "9")
        self.assertEqual(snap.display_mode, DisplayMode.INPUT)

    def test_operator_aliases(self):
        for key in ("x", "×", "*"):
            with self.subTest(key=key):
                self.assertEqual(run_keys(f"6 {key} 7 =").main_display, "42")
        for key in ("÷", "/"):
            with self.subTest(key=key):
                self.assertEqual(run_keys(f"8 {key} 2 =").main_display, "4")

    def test_unary_aliases(self):
        self.assertEqual(run_keys("16 sqrt").main_display, "4")
        self.assertEqual(run_keys("3 sqr").main_display, "9")
        self.assertEqual(run_keys("3 +/-").main_display, "-3")

    def test_panel_keys(self):
        press(self.session, "Memory")
        self.assertEqual(self.session.active_panel, Panel.MEMORY)
        press(self.session, "History")
        self.assertEqual(self.session.active_panel, Panel.HISTORY)

    def test_scientific_keys_do_nothing(self):
        press(self.session, "5")
        snap = press(self.session, "(")
        self.assertEqual(snap.main_display, "5")
        self.assertEqual(snap.expression, "")

    def test_unknown_key(self):
        self.assertFalse(is_known_key("sin"))
        with self.assertRaises(ValueError):
            press(self.session, "sin")

    def test_run_keys_accepts_iterables(self):
        snap = run_keys(["1", "+", "1", "="], self.session)
        self.assertEqual(snap.main_display, "2")
        self.assertEqual(self.session.history, ["1 + 1 = 2"])

    def test_to_dict(self):
        data = run_keys("5 ÷ 0 =").to_dict()
        self.assertEqual(data["main_display"], "Cannot divide by zero")
        self.assertEqual(data["display_mode"], "Input")
        self.assertEqual(data["active_panel"], "history")
        self.assertIn("error", data)
        self.assertNotIn("error", run_keys("1").to_dict())


if __name__ == "__main__":
    unittest.main()
