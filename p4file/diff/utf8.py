"""UTF-8 remediation for depot content and diff output."""

from __future__ import annotations

import re
from typing import Any

REPLACEMENT_CHARACTER = "�"
REPLACEMENT_BYTES = REPLACEMENT_CHARACTER.encode("utf-8")  # b"\xef\xbf\xbd"

_HIGH_BYTES = re.compile(rb"[\x80-\xff]")
_UTF8_SEQUENCE = re.compile(
    rb"[\xc0-\xdf][\x80-\xbf]"
    rb"|[\xe0-\xef][\x80-\xbf]{2}"
    rb"|[\xf0-\xf7][\x80-\xbf]{3}"
    rb"|[\xf8-\xfb][\x80-\xbf]{4}"
    rb"|[\xfc-\xfd][\x80-\xbf]{5}"
)
# Bytes undefined in Windows-1252; their presence suggests Mac Roman.
_NOT_CP1252 = re.compile(rb"[\x81\x8d\x8f\x90\x9d]")


class Utf8Filter:
    """Make byte strings valid UTF-8.

    Two independent behaviours:

    - convert encoding: input with high bytes but no valid UTF-8
      multi-byte sequence is assumed to be Windows-1252 (or Mac Roman) and
      converted to UTF-8. Disabled by default.
    - replace invalid: any remaining invalid UTF-8 sequence is replaced
      with U+FFFD. Enabled by default.
    """

    def __init__(self, replace_invalid: bool = True, convert_encoding: bool = False) -> None:
        self.replace_invalid = bool(replace_invalid)
        self.convert_encoding = bool(convert_encoding)

    @property
    def options(self) -> dict[str, bool]:
        return {"replace": self.replace_invalid, "convert": self.convert_encoding}

    def set_replace_invalid(self, enabled: bool) -> Utf8Filter:
        self.replace_invalid = bool(enabled)
        return self

    def set_convert_encoding(self, enabled: bool) -> Utf8Filter:
        self.convert_encoding = bool(enabled)
        return self

    def filter(self, value: Any) -> Any:
        """Filter bytes; lists, tuples and dicts are filtered recursively.

        Strings are already decoded text and are returned unchanged, as is
        anything else that is not bytes.
        """
        if isinstance(value, dict):
            return {key: self.filter(item) for key, item in value.items()}
        if isinstance(value, (list, tuple)):
            return type(value)(self.filter(item) for item in value)
        if not isinstance(value, (bytes, bytearray)):
            return value

        data = bytes(value)
        if self.convert_encoding:
            data = convert_encoding(data)
        if self.replace_invalid:
            data = replace_invalid(data)
        return data


def convert_encoding(data: bytes) -> bytes:
    """Convert Windows-1252 / Mac Roman input to UTF-8.

    Input without high bytes, or with at least one valid UTF-8 multi-byte
    sequence, is returned unchanged.
    """
    if not _HIGH_BYTES.search(data) or _UTF8_SEQUENCE.search(data):
        return data
    source = "mac_roman" if _NOT_CP1252.search(data) else "cp1252"
    return data.decode(source, errors="replace").encode("utf-8")


def replace_invalid(data: bytes) -> bytes:
    """Replace invalid UTF-8 byte sequences with U+FFFD."""
    return data.decode("utf-8", errors="replace").encode("utf-8")


def decode(data: bytes) -> str:
    """Decode filtered bytes, preserving any invalid bytes as surrogates."""
    return data.decode("utf-8", errors="surrogateescape")
