"""Comparison and connective operators of the fstat filter grammar."""

from __future__ import annotations

import enum

from p4file.exceptions import InvalidArgumentError


class Comparator(str, enum.Enum):
    """Field comparison operators.

    Values are the grammar tokens. The negated forms have no native
    server operator; they are rendered as a logical NOT of the positive form.
    """

    EQUAL = "="
    NOT_EQUAL = "!="
    CONTAINS = "~"
    NOT_CONTAINS = "!~"
    REGEX = "~="
    NOT_REGEX = "!~="
    GT = ">"
    LT = "<"
    GTE = ">="
    LTE = "<="

    def __str__(self) -> str:
        return self.value


class Connective(str, enum.Enum):
    """Logical connectives joining conditions."""

    AND = "&"
    AND_NOT = "&^"
    OR = "|"
    OR_NOT = "|^"

    def __str__(self) -> str:
        return self.value


Operator = Comparator | Connective

LOGICAL_NOT = "^"
GROUP_OPEN = "("
GROUP_CLOSE = ")"

_NEGATED: frozenset[Operator] = frozenset(
    {
        Comparator.NOT_EQUAL,
        Comparator.NOT_CONTAINS,
        Comparator.NOT_REGEX,
        Connective.AND_NOT,
        Connective.OR_NOT,
    }
)

_INVERTED_COMPARATORS: dict[Comparator, Comparator] = {
    Comparator.EQUAL: Comparator.NOT_EQUAL,
    Comparator.NOT_EQUAL: Comparator.EQUAL,
    Comparator.CONTAINS: Comparator.NOT_CONTAINS,
    Comparator.NOT_CONTAINS: Comparator.CONTAINS,
    Comparator.REGEX: Comparator.NOT_REGEX,
    Comparator.NOT_REGEX: Comparator.REGEX,
    Comparator.GT: Comparator.LT,
    Comparator.LT: Comparator.GT,
    Comparator.GTE: Comparator.LTE,
    Comparator.LTE: Comparator.GTE,
}

_INVERTED_CONNECTIVES: dict[Connective, Connective] = {
    Connective.AND: Connective.AND_NOT,
    Connective.AND_NOT: Connective.AND,
    Connective.OR: Connective.OR_NOT,
    Connective.OR_NOT: Connective.OR,
}

# Every enum member must have an inverse; a new member without one fails at import.
assert set(_INVERTED_COMPARATORS) == set(Comparator)
assert set(_INVERTED_CONNECTIVES) == set(Connective)

# Positive counterpart of each negated comparator.
POSITIVE_COMPARATORS: dict[Comparator, Comparator] = {
    Comparator.NOT_EQUAL: Comparator.EQUAL,
    Comparator.NOT_CONTAINS: Comparator.CONTAINS,
    Comparator.NOT_REGEX: Comparator.REGEX,
}


def to_comparator(value: object) -> Comparator:
    """Coerce a Comparator or its token string.

    Raises:
        InvalidArgumentError: If value is not a known comparison operator.
    """
    if isinstance(value, Comparator):
        return value
    try:
        return Comparator(value)
    except ValueError:
        raise InvalidArgumentError(f"Invalid comparison operator: {value!r}") from None


def to_connective(value: object) -> Connective:
    """Coerce a Connective or its token string; None means AND.

    Raises:
        InvalidArgumentError: If value is not a known connective.
    """
    if value is None:
        return Connective.AND
    if isinstance(value, Connective):
        return value
    try:
        return Connective(value)
    except ValueError:
        raise InvalidArgumentError(f"Invalid connective: {value!r}") from None


def _to_operator(value: object) -> Operator:
    if isinstance(value, (Comparator, Connective)):
        return value
    for enum_type in (Comparator, Connective):
        try:
            return enum_type(value)
        except ValueError:
            continue
    raise InvalidArgumentError(f"Invalid operator: {value!r}")


def is_negated_operator(operator: object) -> bool:
    """Check if the given comparison or connective operator is negated.

    Raises:
        InvalidArgumentError: If the operator is unknown.
    """
    return _to_operator(operator) in _NEGATED


def invert_operator(operator: object) -> Operator:
    """Return the inverse of a comparison or connective operator.

    Raises:
        InvalidArgumentError: If the operator is unknown.
    """
    op = _to_operator(operator)
    if isinstance(op, Comparator):
        return _INVERTED_COMPARATORS[op]
    return _INVERTED_CONNECTIVES[op]
