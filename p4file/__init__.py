"""p4file - Perforce file queries and diffs.

Compiles fstat filter expressions and query flags, and turns revision
comparisons into structured diffs.
"""

from p4file.config import Config, load_config, save_config
from p4file.diff import (
    DiffEngine,
    DiffLine,
    DiffOptions,
    DiffResult,
    FileRevision,
    LineKind,
    Utf8Filter,
)
from p4file.exceptions import InvalidArgumentError, P4CommandError, P4Error, P4FileError
from p4file.filter import (
    Comparator,
    Connective,
    FilterExpression,
    QueryBuilder,
    SortDirection,
)
from p4file.utils.p4 import P4Runner

__version__ = "0.1.0"

__all__ = [
    "Comparator",
    "Config",
    "Connective",
    "DiffEngine",
    "DiffLine",
    "DiffOptions",
    "DiffResult",
    "FileRevision",
    "FilterExpression",
    "InvalidArgumentError",
    "LineKind",
    "P4CommandError",
    "P4Error",
    "P4FileError",
    "P4Runner",
    "QueryBuilder",
    "SortDirection",
    "Utf8Filter",
    "__version__",
    "load_config",
    "save_config",
]
