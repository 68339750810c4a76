"""Validators for Perforce attribute names and change numbers."""

from __future__ import annotations

import re

from p4file.exceptions import InvalidArgumentError

DEFAULT_CHANGE = "default"

_PURELY_NUMERIC = re.compile(r"^[0-9]+$")
# isprint() rejects 0x00-0x1f and DEL; high-bit bytes are let through by the server.
_UNPRINTABLE = re.compile(r"[\x00-\x1f\x7f]")
_WHITESPACE = re.compile(r"\s")
_REVISION_CHARS = re.compile(r"[@#]")
_WILDCARDS = re.compile(r"\*|\.\.\.")


def attribute_name_error(value: object) -> str | None:
    """Return the reason an attribute name is invalid, or None if it is valid.

    Attribute names follow the server's key-name rules: no leading minus,
    not purely numeric, printable, no whitespace, no revision characters,
    no slashes and no wildcards.
    """
    if not isinstance(value, str):
        return "Invalid type given."
    if value == "":
        return "Is an empty string."
    if value[0] == "-":
        return "First character cannot be minus ('-')."
    if _PURELY_NUMERIC.match(value):
        return "Purely numeric values are not allowed."
    if _UNPRINTABLE.search(value):
        return "Unprintable characters are not permitted."
    if _WHITESPACE.search(value):
        return "Whitespace is not permitted."
    if _REVISION_CHARS.search(value):
        return "Revision characters ('#', '@') are not permitted."
    if "/" in value:
        return "Slashes ('/') are not permitted."
    if _WILDCARDS.search(value):
        return "Wildcards ('*', '...') are not permitted."
    return None


def is_valid_attribute_name(value: object) -> bool:
    """Check whether value is usable as a file attribute name."""
    return attribute_name_error(value) is None


def validate_attribute_name(value: object) -> str:
    """Return value unchanged if it is a valid attribute name.

    Raises:
        InvalidArgumentError: If the name is invalid.
    """
    reason = attribute_name_error(value)
    if reason is not None:
        raise InvalidArgumentError(f"Invalid attribute name {value!r}: {reason}")
    return value  # type: ignore[return-value]


def change_number_error(value: object) -> str | None:
    """Return the reason a change number is invalid, or None if it is valid."""
    if value == DEFAULT_CHANGE:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        return "Change number must be an integer or purely numeric string."
    if isinstance(value, str) and not _PURELY_NUMERIC.match(value):
        return "Change number must be an integer or purely numeric string."
    if int(value) < 1:
        return "Change numbers must be greater than zero."
    return None


def is_valid_change_number(value: object) -> bool:
    """Check whether value is 'default' or a positive change number."""
    return change_number_error(value) is None
