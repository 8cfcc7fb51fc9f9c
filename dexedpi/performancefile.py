"""Reading and writing performance files and their voice data text."""

from __future__ import annotations

import os
from collections.abc import Iterable, Mapping

from dexedpi.performance import ALL_TONE_GENERATORS, NUM_VOICE_PARAM, PerformanceSettings

_HEX_DIGITS = frozenset("0123456789ABCDEFabcdef")
_VOICE_TEXT_LENGTH = NUM_VOICE_PARAM * 3 - 1


def voice_data_to_text(data: Iterable[int]) -> str:
    """Render voice parameters as upper-case hex pairs separated by spaces."""
    values = bytes(data)
    if len(values) != NUM_VOICE_PARAM:
        raise ValueError(f"voice data holds {NUM_VOICE_PARAM} bytes, got {len(values)}")
    return " ".join(f"{value:02X}" for value in values)


def voice_data_from_text(text: str) -> bytes:
    """Parse voice parameters written by :func:`voice_data_to_text`."""
    if len(text) < _VOICE_TEXT_LENGTH:
        raise ValueError(
            f"voice data text needs at least {_VOICE_TEXT_LENGTH} characters, got {len(text)}"
        )
    values = bytearray()
    for offset in range(0, NUM_VOICE_PARAM * 3, 3):
        pair = text[offset : offset + 2]
        if len(pair) != 2 or not set(pair) <= _HEX_DIGITS:
            raise ValueError(f"invalid hex byte {pair!r} at position {offset}")
        values.append(int(pair, 16))
    return bytes(values)


def read_properties(path: str | os.PathLike[str]) -> dict[str, str]:
    """Read ``key=value`` lines from a properties file, skipping blanks and comments."""
    properties: dict[str, str] = {}
    with open(path, encoding="utf-8") as stream:
        for line_number, line in enumerate(stream, start=1):
            text = line.strip()
            if not text or text.startswith("#"):
                continue
            key, separator, value = text.partition("=")
            key = key.strip()
            if not separator or not key:
                raise ValueError(f"{os.fspath(path)}:{line_number}: expected key=value")
            properties[key] = value.strip()
    return properties


def write_properties(properties: Mapping[str, object], path: str | os.PathLike[str]) -> None:
    """Write properties as ``key=value`` lines in their given order."""
    with open(path, "w", encoding="utf-8", newline="\n") as stream:
        for key, value in properties.items():
            stream.write(f"{key}={value}\n")


def load_performance(path: str | os.PathLike[str]) -> PerformanceSettings:
    """Load a performance file into settings, filling in defaults."""
    return PerformanceSettings.from_properties(read_properties(path))


def save_performance(
    settings: PerformanceSettings,
    path: str | os.PathLike[str],
    tone_generators: int = ALL_TONE_GENERATORS,
) -> None:
    """Save the first ``tone_generators`` tone generators and the effects to a file."""
    write_properties(settings.to_properties(tone_generators), path)