"""Entries of a filter expression tree."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from p4file.filter.operators import Comparator, Connective

if TYPE_CHECKING:
    from p4file.filter.expression import FilterExpression


@dataclass(frozen=True)
class Condition:
    """A single ``field <comparator> value`` test.

    A ``comparator`` of None marks a raw expression passed through
    verbatim in ``field`` (see ``FilterExpression(raw)``).
    """

    field: str
    value: str | None
    comparator: Comparator | None = Comparator.EQUAL
    connective: Connective = Connective.AND
    case_insensitive: bool | None = None


@dataclass(frozen=True)
class SubFilter:
    """A nested expression rendered as a parenthesised group."""

    filter: FilterExpression
    connective: Connective = Connective.AND


Entry = Condition | SubFilter
