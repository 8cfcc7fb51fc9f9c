"""Turn a USB computer keyboard into a simple MIDI note source."""

from __future__ import annotations

from collections.abc import Callable, Sequence

MessageHandler = Callable[[bytes], None]

REPORT_KEYS = 6
NOTE_ON_VELOCITY = 100

# Valid for a standard QWERTY layout: upper-case letter, digit or comma.
_KEY_TABLE: dict[str, int] = {
    ",": 72,
    "M": 71,
    "J": 70,
    "N": 69,
    "H": 68,
    "B": 67,
    "G": 66,
    "V": 65,
    "C": 64,
    "D": 63,
    "X": 62,
    "S": 61,
    "Z": 60,
    "U": 59,
    "7": 58,
    "Y": 57,
    "6": 56,
    "T": 55,
    "5": 54,
    "R": 53,
    "E": 52,
    "3": 51,
    "W": 50,
    "2": 49,
    "Q": 48,
}


def _key_character(key_code: int) -> str | None:
    if 0x04 <= key_code <= 0x1D:
        return chr(key_code - 0x04 + ord("A"))
    if 0x1E <= key_code <= 0x26:
        return chr(key_code - 0x1E + ord("1"))
    if key_code == 0x36:
        return ","
    return None


def key_number(key_code: int) -> int | None:
    """Return the MIDI note for a USB HID key code, or None if it plays nothing."""
    char = _key_character(key_code)
    if char is None:
        return None
    return _KEY_TABLE.get(char)


class PCKeyboard:
    """Convert raw keyboard reports into MIDI note-on and note-off messages."""

    def __init__(self, handler: MessageHandler) -> None:
        self._handler = handler
        self._last_keys: tuple[int, ...] = (0,) * REPORT_KEYS
        self.connected = True

    def key_status(self, modifiers: int, raw_keys: Sequence[int]) -> None:
        """Handle one keyboard report of six key codes."""
        keys = tuple(raw_keys)
        if len(keys) != REPORT_KEYS:
            raise ValueError(f"a key report holds {REPORT_KEYS} key codes, got {len(keys)}")

        for code in self._last_keys:
            if code and code not in keys:
                note = key_number(code)
                if note is not None:
                    self._handler(bytes((0x80, note, 0)))

        for code in keys:
            if code and code not in self._last_keys:
                note = key_number(code)
                if note is not None:
                    self._handler(bytes((0x90, note, NOTE_ON_VELOCITY)))

        self._last_keys = keys

    def device_removed(self) -> None:
        """Mark the keyboard as unplugged."""
        self.connected = False