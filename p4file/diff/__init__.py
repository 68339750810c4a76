"""Structured diffs of Perforce file revisions."""

from p4file.diff.engine import (
    DiffEngine,
    diff,
    parse_unified_diff,
    read_depot_contents,
    synthesize_add_delete,
)
from p4file.diff.models import (
    MAX_FILESIZE,
    ContentSource,
    DiffLine,
    DiffOptions,
    DiffResult,
    FileRevision,
    LineKind,
)
from p4file.diff.utf8 import Utf8Filter

__all__ = [
    "MAX_FILESIZE",
    "ContentSource",
    "DiffEngine",
    "DiffLine",
    "DiffOptions",
    "DiffResult",
    "FileRevision",
    "LineKind",
    "Utf8Filter",
    "diff",
    "parse_unified_diff",
    "read_depot_contents",
    "synthesize_add_delete",
]
