"""Unit tests for fstat filter expressions."""

from __future__ import annotations

import re

import pytest

from p4file.exceptions import InvalidArgumentError
from p4file.filter.expression import (
    FilterExpression,
    case_insensitive_regex,
    escape_for_equals,
    escape_for_regex,
)
from p4file.filter.nodes import Condition, SubFilter
from p4file.filter.operators import Comparator, Connective

# One backslash level per escaping pass, removed in reverse order.
_UNESCAPE_PASSES = (
    re.compile(r"\\([\n\r$^()\[\]|])"),
    re.compile(r"\\([\n\r$^*()\[\]|?])"),
    re.compile(r"\\([^a-zA-Z0-9])"),
)


def _unescape_equals(value: str) -> str:
    for pattern in _UNESCAPE_PASSES:
        value = pattern.sub(r"\1", value)
    return value

# ---------------------------------------------------------------------------
# Empty expressions
# ---------------------------------------------------------------------------


class TestEmpty:
    def test_new_expression_renders_empty(self) -> None:
        assert FilterExpression().render() == ""

    def test_create_renders_empty(self) -> None:
        assert FilterExpression.create().render() == ""

    def test_empty_raw_string_renders_empty(self) -> None:
        assert FilterExpression("").render() == ""

    def test_only_empty_sub_filters_render_empty(self) -> None:
        expr = FilterExpression().add_sub_filter(FilterExpression())
        expr.add_sub_filter(FilterExpression(), Connective.OR)
        assert expr.render() == ""

    def test_empty_sub_filter_leaves_no_dangling_connective(self) -> None:
        expr = FilterExpression().add_condition("a", "1")
        expr.add_sub_filter(FilterExpression(), Connective.OR)
        expr.add_condition("b", "2")
        assert expr.render() == r"a~=\^1\$ & b~=\^2\$"

    def test_empty_raw_string_then_condition(self) -> None:
        assert FilterExpression("").add_condition("g", "x").render() == r"g~=\^x\$"

    def test_empty_raw_string_between_conditions(self) -> None:
        expr = FilterExpression().add_condition("a", "1")
        expr.add_sub_filter(FilterExpression(""), Connective.OR)
        expr.add_condition("b", "2", connective=Connective.OR)
        assert expr.render() == r"a~=\^1\$ | b~=\^2\$"

    def test_empty_is_falsy(self) -> None:
        assert not FilterExpression()
        assert len(FilterExpression().add_condition("a", "1")) == 1

    def test_truthiness_follows_rendering(self) -> None:
        assert not FilterExpression("")
        assert not FilterExpression().add_sub_filter(FilterExpression())
        assert FilterExpression().add_condition("a", "1")
        assert FilterExpression("headType=text")


# ---------------------------------------------------------------------------
# Single conditions
# ---------------------------------------------------------------------------


class TestConditions:
    def test_raw_string_passes_through(self) -> None:
        assert FilterExpression("headType=text").render() == "headType=text"

    def test_equal_becomes_anchored_regex(self) -> None:
        expr = FilterExpression().add_condition("attr-title", "Hello")
        assert expr.render() == r"attr-title~=\^Hello\$"

    def test_equal_escapes_spaces(self) -> None:
        expr = FilterExpression().add_condition("attr-title", "foo bar")
        assert expr.render() == r"attr-title~=\^foo\ bar\$"

    def test_not_equal_uses_logical_not(self) -> None:
        expr = FilterExpression().add_condition("f", "a", Comparator.NOT_EQUAL)
        assert expr.render() == r"^f~=\^a\$"

    def test_contains_becomes_regex(self) -> None:
        expr = FilterExpression().add_condition("f", "foo", Comparator.CONTAINS)
        assert expr.render() == "f~=foo"

    def test_not_contains(self) -> None:
        expr = FilterExpression().add_condition("f", "foo", "!~")
        assert expr.render() == "^f~=foo"

    def test_regex_keeps_wildcards(self) -> None:
        expr = FilterExpression().add_condition("f", "a.*b", Comparator.REGEX)
        assert expr.render() == "f~=a.*b"

    def test_not_regex(self) -> None:
        expr = FilterExpression().add_condition("f", "x+", Comparator.NOT_REGEX)
        assert expr.render() == "^f~=x+"

    def test_ordering_comparator(self) -> None:
        expr = FilterExpression().add_condition("headRev", "5", Comparator.GT)
        assert expr.render() == "headRev>5"

    def test_null_value_matches_empty(self) -> None:
        expr = FilterExpression().add_condition("attr-x", None)
        assert expr.render() == r"attr-x~=\^\$"

    def test_empty_value_keeps_negation(self) -> None:
        expr = FilterExpression().add_condition("attr-x", "", Comparator.NOT_EQUAL)
        assert expr.render() == r"^attr-x~=\^\$"

    def test_condition_records_are_stored(self) -> None:
        expr = FilterExpression().add_condition("f", "v", Comparator.REGEX, None, True)
        (entry,) = expr.entries
        assert entry == Condition(
            field="f",
            value="v",
            comparator=Comparator.REGEX,
            connective=Connective.AND,
            case_insensitive=True,
        )

    def test_add_alias(self) -> None:
        assert FilterExpression().add("f", "v").render() == r"f~=\^v\$"


# ---------------------------------------------------------------------------
# Connectives and grouping
# ---------------------------------------------------------------------------


class TestConnectives:
    def test_and_is_default(self) -> None:
        expr = FilterExpression().add_condition("a", "1").add_condition("b", "2")
        assert expr.render() == r"a~=\^1\$ & b~=\^2\$"

    def test_or(self) -> None:
        expr = FilterExpression().add_condition("a", "1")
        expr.add_condition("b", "2", connective=Connective.OR)
        assert expr.render() == r"a~=\^1\$ | b~=\^2\$"

    def test_and_not_between_entries(self) -> None:
        expr = FilterExpression().add_condition("a", "1")
        expr.add_condition("b", "2", connective="&^")
        assert expr.render() == r"a~=\^1\$ &^ b~=\^2\$"

    def test_first_connective_dropped(self) -> None:
        expr = FilterExpression().add_condition("a", "1", connective=Connective.OR)
        assert expr.render() == r"a~=\^1\$"

    def test_first_negated_connective_becomes_not(self) -> None:
        expr = FilterExpression().add_condition("a", "1", connective=Connective.AND_NOT)
        assert expr.render() == r"^a~=\^1\$"

    def test_sub_filter_is_parenthesised(self) -> None:
        inner = FilterExpression().add_condition("b", "2")
        inner.add_condition("c", "3", connective=Connective.OR)
        expr = FilterExpression().add_condition("a", "1").add_sub_filter(inner)
        assert expr.render() == r"a~=\^1\$ & (b~=\^2\$ | c~=\^3\$)"

    def test_sub_filter_entry(self) -> None:
        inner = FilterExpression().add_condition("b", "2")
        expr = FilterExpression().add_sub_filter(inner, Connective.OR)
        assert expr.entries == (SubFilter(filter=inner, connective=Connective.OR),)

    def test_sub_filter_type_checked(self) -> None:
        with pytest.raises(InvalidArgumentError):
            FilterExpression().add_sub_filter("a=b")  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# Array values
# ---------------------------------------------------------------------------


class TestArrayValues:
    def test_any_of(self) -> None:
        expr = FilterExpression().add_condition("attr-state", ["open", "review"])
        assert expr.render() == r"(attr-state~=\^open\$ | attr-state~=\^review\$)"

    def test_negation_applies_to_whole_group(self) -> None:
        expr = FilterExpression().add_condition("f", ["a", "b"], Comparator.NOT_EQUAL)
        rendered = expr.render()
        assert rendered == r"^(f~=\^a\$ | f~=\^b\$)"
        assert "&" not in rendered

    def test_negated_group_after_other_entry(self) -> None:
        expr = FilterExpression().add_condition("g", "x")
        expr.add_condition("f", ["a", "b"], Comparator.NOT_CONTAINS)
        assert expr.render() == r"g~=\^x\$ &^ (f~=a | f~=b)"

    def test_negated_or_group(self) -> None:
        expr = FilterExpression().add_condition("g", "x")
        expr.add_condition("f", ("a",), Comparator.NOT_EQUAL, Connective.OR)
        assert expr.render() == r"g~=\^x\$ |^ (f~=\^a\$)"

    def test_case_insensitive_reaches_elements(self) -> None:
        expr = FilterExpression().add_condition(
            "f", ["ab", "c"], Comparator.REGEX, case_insensitive=True
        )
        assert expr.render() == "(f~=[Aa][Bb] | f~=[Cc])"


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class TestValidation:
    @pytest.mark.parametrize(
        "args",
        [
            ("", "v"),
            (None, "v"),
            ("f", 5),
            ("f", []),
            ("f", ["a", 1]),
            ("f", "v", "=="),
            ("f", "v", Comparator.EQUAL, "and"),
        ],
    )
    def test_invalid_arguments_raise(self, args) -> None:
        expr = FilterExpression()
        with pytest.raises(InvalidArgumentError):
            expr.add_condition(*args)

    def test_failed_add_changes_nothing(self) -> None:
        expr = FilterExpression().add_condition("a", "1")
        before = expr.render()
        with pytest.raises(InvalidArgumentError):
            expr.add_condition("f", ["a", "b"], Comparator.EQUAL, "bogus")
        assert len(expr) == 1
        assert expr.render() == before


# ---------------------------------------------------------------------------
# Escaping
# ---------------------------------------------------------------------------


class TestEscaping:
    def test_equals_leaves_alphanumerics(self) -> None:
        assert escape_for_equals("abcXYZ019") == "abcXYZ019"

    def test_equals_escapes_punctuation_once(self) -> None:
        assert escape_for_equals("a b-c") == r"a\ b\-c"

    def test_equals_escapes_regex_metacharacters_three_times(self) -> None:
        assert escape_for_equals("a(b") == r"a\\\(b"
        assert escape_for_equals("$") == r"\\\$"

    def test_equals_escapes_wildcards_twice(self) -> None:
        assert escape_for_equals("a*b") == r"a\\*b"
        assert escape_for_equals("?") == r"\\?"

    @pytest.mark.parametrize(
        ("char", "depth"),
        [
            ("\n", 3),
            ("\r", 3),
            ("$", 3),
            ("^", 3),
            ("(", 3),
            (")", 3),
            ("[", 3),
            ("]", 3),
            ("|", 3),
            ("*", 2),
            ("?", 2),
            (" ", 1),
            ("-", 1),
            (".", 1),
            ("+", 1),
            ("~", 1),
            ("\\", 1),
        ],
    )
    def test_equals_escape_depth(self, char, depth) -> None:
        assert escape_for_equals(f"a{char}b") == "a" + "\\" * depth + char + "b"

    @pytest.mark.parametrize(
        "value",
        [
            "line\nnext",
            "cr\rlf",
            "$HOME",
            "^start",
            "f(x)",
            "[abc]",
            "a|b",
            "glob*?",
            "a\n\r$^*()[]|?b",
            "dir/sub file-1.txt",
        ],
    )
    def test_equals_unescapes_to_original(self, value) -> None:
        assert _unescape_equals(escape_for_equals(value)) == value

    def test_equals_empty(self) -> None:
        assert escape_for_equals("") == ""
        assert escape_for_equals(None) == ""

    def test_regex_keeps_operators(self) -> None:
        assert escape_for_regex("a.*[bc]?+") == "a.*[bc]?+"

    def test_regex_escapes_anchors_and_spaces(self) -> None:
        assert escape_for_regex("^a b$") == r"\^a\ b\$"

    def test_static_aliases(self) -> None:
        assert FilterExpression.escape_for_equals("a b") == r"a\ b"
        assert FilterExpression.escape_for_regex("^") == r"\^"


# ---------------------------------------------------------------------------
# Case-insensitive regex
# ---------------------------------------------------------------------------


class TestCaseInsensitive:
    def test_every_letter_expanded(self) -> None:
        expr = FilterExpression().add_condition("f", "abc", Comparator.REGEX, case_insensitive=True)
        assert expr.render() == "f~=[Aa][Bb][Cc]"

    def test_letters_inside_class_expanded_in_place(self) -> None:
        assert case_insensitive_regex("[ab]c") == "[AaBb][Cc]"

    def test_escaped_bracket_is_literal(self) -> None:
        assert case_insensitive_regex(r"\[a") == r"\[[Aa]"

    def test_digits_untouched(self) -> None:
        assert case_insensitive_regex("v1") == "[Vv]1"

    def test_equal_is_case_insensitive_too(self) -> None:
        expr = FilterExpression().add_condition("f", "Ab", case_insensitive=True)
        assert expr.render() == r"f~=\^[Aa][Bb]\$"

    def test_ordering_comparator_not_expanded(self) -> None:
        expr = FilterExpression().add_condition("f", "a", Comparator.GT, case_insensitive=True)
        assert expr.render() == "f>a"


class TestRender:
    def test_render_is_repeatable(self) -> None:
        expr = FilterExpression().add_condition("f", ["a", "b"], Comparator.NOT_EQUAL)
        expr.add_condition("g", "x", Comparator.REGEX, case_insensitive=True)
        first = expr.render()
        assert expr.render() == first
        assert str(expr) == first
        assert expr.expression == first

    def test_repr(self) -> None:
        assert repr(FilterExpression("a=b")) == "FilterExpression('a=b')"
