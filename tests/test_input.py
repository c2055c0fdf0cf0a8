"""Regression tests for raw-key decoding.

Covers ESC timing, CSI/SS3 navigation sequences, modifiers, control bytes and
UTF-8 input. These protect interactive input handling in raw terminal mode.
"""

import os
import time
import unittest

from cmdpager import input as input_mod
from cmdpager.input import parse_key


class ReadKeyTests(unittest.TestCase):
    def setUp(self) -> None:
        input_mod._PENDING_BYTES.clear()

    def tearDown(self) -> None:
        input_mod._PENDING_BYTES.clear()

    def _read_all(self, data: bytes, count: int = 1):
        read_fd, write_fd = os.pipe()
        try:
            os.write(write_fd, data)
            return [input_mod.read_key(read_fd, timeout_ms=20) for _ in range(count)]
        finally:
            os.close(read_fd)
            os.close(write_fd)

    def test_single_escape_returns_esc_without_second_keypress(self) -> None:
        read_fd, write_fd = os.pipe()
        try:
            os.write(write_fd, b"\x1b")
            started = time.monotonic()
            key = input_mod.read_key(read_fd, timeout_ms=20)
            elapsed = time.monotonic() - started
        finally:
            os.close(read_fd)
            os.close(write_fd)

        self.assertEqual(key, parse_key("esc"))
        # Esc waits briefly for sequence bytes, but should not require another key press.
        self.assertLess(elapsed, 0.2)

    def test_timeout_without_input_returns_none(self) -> None:
        read_fd, write_fd = os.pipe()
        try:
            key = input_mod.read_key(read_fd, timeout_ms=10)
        finally:
            os.close(read_fd)
            os.close(write_fd)

        self.assertIsNone(key)

    def test_arrow_sequences(self) -> None:
        keys = self._read_all(b"\x1b[A\x1b[B\x1b[C\x1b[D", count=4)
        self.assertEqual(keys, [parse_key(name) for name in ("up", "down", "right", "left")])

    def test_ss3_arrows_match_csi_arrows(self) -> None:
        self.assertEqual(self._read_all(b"\x1bOA"), [parse_key("up")])

    def test_page_keys(self) -> None:
        keys = self._read_all(b"\x1b[5~\x1b[6~", count=2)
        self.assertEqual(keys, [parse_key("pgup"), parse_key("pgdn")])

    def test_home_and_end_variants(self) -> None:
        keys = self._read_all(b"\x1b[H\x1b[F\x1b[1~\x1b[4~", count=4)
        self.assertEqual(keys, [parse_key("home"), parse_key("end"), parse_key("home"), parse_key("end")])

    def test_xterm_modifier_parameter(self) -> None:
        keys = self._read_all(b"\x1b[1;5A\x1b[1;2B\x1b[5;3~", count=3)
        self.assertEqual(keys, [parse_key("C-up"), parse_key("S-down"), parse_key("M-pgup")])

    def test_back_tab_is_shift_tab(self) -> None:
        self.assertEqual(self._read_all(b"\x1b[Z"), [parse_key("S-tab")])

    def test_unknown_csi_sequence_is_dropped(self) -> None:
        keys = self._read_all(b"\x1b[99~x", count=2)
        self.assertEqual(keys, [None, parse_key("x")])

    def test_control_bytes(self) -> None:
        keys = self._read_all(b"\x12\x05\x19\r\t\x7f\x00", count=7)
        self.assertEqual(
            keys,
            [
                parse_key("C-r"),
                parse_key("C-e"),
                parse_key("C-y"),
                parse_key("enter"),
                parse_key("tab"),
                parse_key("backspace"),
                parse_key("C-space"),
            ],
        )

    def test_ctrl_chord_bindings_match_decoded_control_bytes(self) -> None:
        keys = self._read_all(b"\x08\t\n\r", count=4)
        self.assertEqual(keys, [parse_key(name) for name in ("C-h", "C-i", "C-j", "C-m")])

    def test_uppercase_letter_is_shift_key(self) -> None:
        self.assertEqual(self._read_all(b"G"), [parse_key("S-g")])

    def test_space_byte_is_named_space(self) -> None:
        self.assertEqual(self._read_all(b" "), [parse_key("space")])

    def test_utf8_character_is_one_key(self) -> None:
        keys = self._read_all("é".encode("utf-8") + b"q", count=2)
        self.assertEqual(keys, [parse_key("é"), parse_key("q")])

    def test_escape_prefixed_letter_is_alt_key(self) -> None:
        keys = self._read_all(b"\x1bxq", count=2)
        self.assertEqual(keys, [parse_key("M-x"), parse_key("q")])

    def test_double_escape_yields_two_escapes(self) -> None:
        keys = self._read_all(b"\x1b\x1b", count=2)
        self.assertEqual(keys, [parse_key("esc"), parse_key("esc")])

    def test_escape_then_control_byte_is_alt_control(self) -> None:
        key = self._read_all(b"\x1b\x12")[0]
        self.assertEqual(key, parse_key("C-M-r"))


if __name__ == "__main__":
    unittest.main()
