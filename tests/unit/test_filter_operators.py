"""Unit tests for filter operators."""

from __future__ import annotations

import pytest

from p4file.exceptions import InvalidArgumentError
from p4file.filter.operators import (
    Comparator,
    Connective,
    invert_operator,
    is_negated_operator,
    to_comparator,
    to_connective,
)


class TestNegation:
    @pytest.mark.parametrize(
        "operator",
        [
            Comparator.NOT_EQUAL,
            Comparator.NOT_CONTAINS,
            Comparator.NOT_REGEX,
            Connective.AND_NOT,
            Connective.OR_NOT,
        ],
    )
    def test_negated(self, operator) -> None:
        assert is_negated_operator(operator) is True

    @pytest.mark.parametrize(
        "operator",
        [
            Comparator.EQUAL,
            Comparator.CONTAINS,
            Comparator.REGEX,
            Comparator.GT,
            Comparator.LTE,
            Connective.AND,
            Connective.OR,
        ],
    )
    def test_not_negated(self, operator) -> None:
        assert is_negated_operator(operator) is False

    def test_accepts_token_strings(self) -> None:
        assert is_negated_operator("!=") is True
        assert is_negated_operator("&^") is True
        assert is_negated_operator("|") is False

    def test_unknown_operator_raises(self) -> None:
        with pytest.raises(InvalidArgumentError):
            is_negated_operator("<>")


class TestInversion:
    def test_every_operator_inverts_and_back(self) -> None:
        for operator in [*Comparator, *Connective]:
            assert invert_operator(invert_operator(operator)) is operator

    def test_regex_pair(self) -> None:
        assert invert_operator(Comparator.REGEX) is Comparator.NOT_REGEX
        assert invert_operator(Comparator.NOT_REGEX) is Comparator.REGEX

    def test_ordering_comparators_swap(self) -> None:
        assert invert_operator(Comparator.GT) is Comparator.LT
        assert invert_operator(Comparator.GTE) is Comparator.LTE

    def test_connectives(self) -> None:
        assert invert_operator(Connective.AND) is Connective.AND_NOT
        assert invert_operator("|^") is Connective.OR

    def test_unknown_operator_raises(self) -> None:
        with pytest.raises(InvalidArgumentError):
            invert_operator("bogus")


class TestCoercion:
    def test_comparator_from_token(self) -> None:
        assert to_comparator("~=") is Comparator.REGEX

    def test_comparator_rejects_connective(self) -> None:
        with pytest.raises(InvalidArgumentError):
            to_comparator("&")

    def test_connective_none_is_and(self) -> None:
        assert to_connective(None) is Connective.AND

    def test_connective_rejects_garbage(self) -> None:
        with pytest.raises(InvalidArgumentError):
            to_connective("and")

    def test_str_is_token(self) -> None:
        assert str(Comparator.NOT_REGEX) == "!~="
        assert str(Connective.OR_NOT) == "|^"
