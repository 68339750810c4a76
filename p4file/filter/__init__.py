"""Filter expressions and query options for ``p4 fstat``."""

from p4file.filter.expression import (
    FilterExpression,
    case_insensitive_regex,
    escape_for_equals,
    escape_for_regex,
)
from p4file.filter.nodes import Condition, SubFilter
from p4file.filter.operators import (
    Comparator,
    Connective,
    invert_operator,
    is_negated_operator,
)
from p4file.filter.query import (
    SORT_DATE,
    SORT_FILE_SIZE,
    SORT_FILE_TYPE,
    SORT_HAVE_REV,
    SORT_HEAD_REV,
    QueryBuilder,
    QueryOptions,
    SortDirection,
)

__all__ = [
    "SORT_DATE",
    "SORT_FILE_SIZE",
    "SORT_FILE_TYPE",
    "SORT_HAVE_REV",
    "SORT_HEAD_REV",
    "Comparator",
    "Condition",
    "Connective",
    "FilterExpression",
    "QueryBuilder",
    "QueryOptions",
    "SortDirection",
    "SubFilter",
    "case_insensitive_regex",
    "escape_for_equals",
    "escape_for_regex",
    "invert_operator",
    "is_negated_operator",
]
