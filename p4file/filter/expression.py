"""Build fstat filter expressions (``p4 fstat -F``) from typed conditions.

The server's filter grammar is the jobview grammar: conditions joined by
``&``, ``|`` and ``^`` (not), grouped with parentheses. Equality and
substring tests are rendered as regex matches because the ``=`` operator
cannot express every literal and has no case-insensitive form.
"""

from __future__ import annotations

import re
from collections.abc import Sequence

from p4file.exceptions import InvalidArgumentError
from p4file.filter.nodes import Condition, Entry, SubFilter
from p4file.filter.operators import (
    GROUP_CLOSE,
    GROUP_OPEN,
    LOGICAL_NOT,
    POSITIVE_COMPARATORS,
    Comparator,
    Connective,
    invert_operator,
    is_negated_operator,
    to_comparator,
    to_connective,
)

# Literal matching needs several escaping passes because the server
# interprets the value as a regex after its own unescaping.
_EQUALS_PASSES: tuple[re.Pattern[str], ...] = (
    re.compile(r"([^a-zA-Z0-9])"),
    re.compile(r"([\n\r$^*()\[\]|?])"),
    re.compile(r"([\n\r$^()\[\]|])"),
)
_REGEX_PASS = re.compile(r"([^a-zA-Z0-9*\[\]?.+])")
_ASCII_LETTER = re.compile(r"[a-zA-Z]")

_REGEX_COMPARATORS = frozenset({Comparator.REGEX, Comparator.NOT_REGEX})


def escape_for_equals(value: str | None) -> str:
    """Escape value so that a filter clause matches it literally."""
    if not value:
        return ""
    for pattern in _EQUALS_PASSES:
        value = pattern.sub(r"\\\1", value)
    return value


def escape_for_regex(value: str | None) -> str:
    """Escape value for use in a regex clause, keeping ``*[]?.+`` active."""
    if not value:
        return ""
    return _REGEX_PASS.sub(r"\\\1", value)


def case_insensitive_regex(value: str) -> str:
    """Expand each ASCII letter of a regex into a ``[Aa]`` character class.

    Letters already inside a bracket expression are expanded in place
    without adding another pair of brackets. Escaped brackets do not
    change the bracket depth.
    """
    result: list[str] = []
    depth = 0
    escape = False
    for char in value:
        if char == "[" and not escape:
            depth += 1
        elif char == "]" and not escape:
            depth = max(depth - 1, 0)
        if _ASCII_LETTER.match(char):
            pair = char.upper() + char.lower()
            char = pair if depth > 0 else f"[{pair}]"
        escape = (not escape) if char == "\\" else False
        result.append(char)
    return "".join(result)


class FilterExpression:
    """An ordered list of conditions and nested groups.

    Insertion order determines precedence in the rendered expression;
    only sub-filters introduce explicit grouping.

    Usage:
        expr = FilterExpression().add_condition("attr-state", ["open", "review"])
        expr.add_condition("headType", "binary", Comparator.NOT_CONTAINS)
        expr.render()
        # (attr-state~=\\^open\\$ | attr-state~=\\^review\\$) & ^headType~=binary
    """

    def __init__(self, raw: str | None = None) -> None:
        self._entries: list[Entry] = []
        if isinstance(raw, str):
            self._entries.append(Condition(field=raw, value="", comparator=None))

    @classmethod
    def create(cls, raw: str | None = None) -> FilterExpression:
        """Create a new expression, optionally seeded with a raw string filter."""
        return cls(raw)

    @property
    def entries(self) -> tuple[Entry, ...]:
        """Snapshot of the conditions and sub-filters in insertion order."""
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        # Empty raw filters and empty groups render nothing.
        return bool(self.render())

    def add_condition(
        self,
        field: str,
        value: str | Sequence[str] | None,
        comparator: Comparator | str = Comparator.EQUAL,
        connective: Connective | str | None = Connective.AND,
        case_insensitive: bool | None = None,
    ) -> FilterExpression:
        """Add a field condition.

        Args:
            field: Fstat field to filter on.
            value: None, a string, or a non-empty list of strings. A list
                passes if any of its values satisfies the comparison.
            comparator: Comparison operator, EQUAL by default.
            connective: Logical connective joining this condition to the
                previous entry. None means AND.
            case_insensitive: Match ignoring case (regex comparisons only).

        Returns:
            self, for chaining.

        Raises:
            InvalidArgumentError: If any argument is invalid. Nothing is
                added in that case.
        """
        if not isinstance(field, str) or not field:
            raise InvalidArgumentError("Cannot add condition. Field must be a non-empty string.")

        if isinstance(value, (list, tuple)):
            if not value:
                raise InvalidArgumentError(
                    "Cannot add condition. Value must be null, a string or an array of strings."
                )
            if not all(isinstance(item, str) for item in value):
                raise InvalidArgumentError(
                    "Cannot add condition. Value array must contain only strings."
                )
        elif value is not None and not isinstance(value, str):
            raise InvalidArgumentError(
                "Cannot add condition. Value must be null, a string or an array of strings."
            )

        comparator = to_comparator(comparator)
        connective = to_connective(connective)

        if isinstance(value, (list, tuple)):
            # "field not in {a, b}" is NOT (field=a | field=b), so move the
            # negation from the comparator onto the group's connective.
            if is_negated_operator(comparator):
                comparator = invert_operator(comparator)
                connective = invert_operator(connective)

            group = type(self)()
            for item in value:
                group.add_condition(field, item, comparator, Connective.OR, case_insensitive)
            return self.add_sub_filter(group, connective)

        self._entries.append(
            Condition(
                field=field,
                value=value,
                comparator=comparator,
                connective=connective,
                case_insensitive=case_insensitive,
            )
        )
        return self

    add = add_condition

    def add_sub_filter(
        self,
        filter: FilterExpression,
        connective: Connective | str | None = Connective.AND,
    ) -> FilterExpression:
        """Add a group of conditions to this filter.

        Raises:
            InvalidArgumentError: If filter is not a FilterExpression or the
                connective is invalid.
        """
        if not isinstance(filter, FilterExpression):
            raise InvalidArgumentError("Cannot add sub-filter. Invalid type passed.")
        self._entries.append(SubFilter(filter=filter, connective=to_connective(connective)))
        return self

    def render(self) -> str:
        """Generate the fstat filter expression."""
        parts: list[str] = []

        for entry in self._entries:
            if isinstance(entry, SubFilter):
                clause = entry.filter.render()
                if clause:
                    clause = GROUP_OPEN + clause + GROUP_CLOSE
            else:
                clause = _render_condition(entry)
            if not clause:
                continue

            # The first entry drops its connective; a negated one survives as NOT.
            if parts:
                parts.append(f" {entry.connective.value} ")
            elif is_negated_operator(entry.connective):
                parts.append(LOGICAL_NOT)
            parts.append(clause)

        return "".join(parts)

    @property
    def expression(self) -> str:
        return self.render()

    def __str__(self) -> str:
        return self.render()

    def __repr__(self) -> str:
        return f"FilterExpression({self.render()!r})"

    escape_for_equals = staticmethod(escape_for_equals)
    escape_for_regex = staticmethod(escape_for_regex)
    is_negated_operator = staticmethod(is_negated_operator)
    invert_operator = staticmethod(invert_operator)


def _render_condition(condition: Condition) -> str:
    """Render a single condition as ``field<op><value>``."""
    comparator = condition.comparator
    if comparator is None:
        # raw pass-through filter
        return condition.field

    if comparator in _REGEX_COMPARATORS:
        value = escape_for_regex(condition.value)
    else:
        value = escape_for_equals(condition.value)

    # An empty value matches empty/unset attributes.
    if value == "":
        negated = is_negated_operator(comparator)
        comparator = Comparator.NOT_REGEX if negated else Comparator.REGEX
        value = escape_for_regex("^$")

    # The grammar has no "!=" style operators.
    prefix = ""
    if comparator in POSITIVE_COMPARATORS:
        prefix = LOGICAL_NOT
        comparator = POSITIVE_COMPARATORS[comparator]

    if comparator is Comparator.EQUAL:
        comparator = Comparator.REGEX
        value = escape_for_regex("^") + value + escape_for_regex("$")
    elif comparator is Comparator.CONTAINS:
        comparator = Comparator.REGEX

    if condition.case_insensitive and comparator is Comparator.REGEX:
        value = case_insensitive_regex(value)

    return f"{prefix}{condition.field}{comparator.value}{value}"
