"""Data classes shared by the diff engine and its content source."""

from __future__ import annotations

import enum
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

# 1 MB; larger add/delete content is truncated.
MAX_FILESIZE = 1_048_576
DEFAULT_CONTEXT_LINES = 5

_TEXT_TYPES = re.compile(r"text|unicode|utf")


class LineKind(str, enum.Enum):
    """Kind of a diff line, keyed by its leading marker."""

    META = "meta"
    SAME = "same"
    DELETE = "delete"
    ADD = "add"


@dataclass(frozen=True)
class DiffLine:
    """A single line of a diff.

    ``left_line`` is only set for SAME/DELETE lines and ``right_line`` only
    for SAME/ADD lines. META lines (hunk headers) carry neither.
    """

    text: str
    kind: LineKind
    line_ending: str = ""
    left_line: int | None = None
    right_line: int | None = None


@dataclass(frozen=True)
class DiffResult:
    """Outcome of comparing two file revisions.

    Attributes:
        lines: Added, deleted, context and hunk header lines.
        is_truncated: The byte cap if content was cut short, else False.
        is_identical: True if both sides have the same content.
    """

    lines: tuple[DiffLine, ...] = ()
    is_truncated: int | bool = False
    is_identical: bool = False

    @property
    def is_same(self) -> bool:
        return self.is_identical

    @property
    def added(self) -> int:
        return sum(1 for line in self.lines if line.kind is LineKind.ADD)

    @property
    def deleted(self) -> int:
        return sum(1 for line in self.lines if line.kind is LineKind.DELETE)


@dataclass
class DiffOptions:
    """Options influencing a diff.

    Attributes:
        ignore_whitespace: Ignore whitespace and line-ending changes.
        utf8_convert: Convert non UTF-8 (Windows-1252/Mac Roman) input to UTF-8.
        utf8_sanitize: Replace invalid UTF-8 sequences with U+FFFD.
        max_filesize: Byte cap for add/delete content.
        context_lines: Lines of context around each hunk.
    """

    ignore_whitespace: bool = False
    utf8_convert: bool = False
    utf8_sanitize: bool = False
    max_filesize: int = MAX_FILESIZE
    context_lines: int = DEFAULT_CONTEXT_LINES

    def merged(self, overrides: DiffOptions | Mapping[str, Any] | None) -> DiffOptions:
        """Return a copy with values from overrides applied."""
        if overrides is None:
            return DiffOptions(**vars(self))
        if isinstance(overrides, DiffOptions):
            return DiffOptions(**vars(overrides))
        values = vars(self) | {k: v for k, v in overrides.items() if k in vars(self)}
        return DiffOptions(**values)


@dataclass
class FileRevision:
    """One side of a diff: a file at a given revision in the depot.

    Built from ``p4 fstat`` output via :meth:`from_fstat`, or directly.
    """

    filespec: str
    head_type: str = "text"
    head_action: str = "edit"
    digest: str | None = None
    file_size: int | None = None
    status: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_fstat(cls, record: Mapping[str, str]) -> FileRevision:
        """Create a revision from a tagged fstat record."""
        depot_file = record.get("depotFile", "")
        rev = record.get("headRev")
        filespec = f"{depot_file}#{rev}" if rev else depot_file
        size = record.get("fileSize")
        return cls(
            filespec=filespec,
            head_type=record.get("headType", ""),
            head_action=record.get("headAction", ""),
            digest=record.get("digest"),
            file_size=int(size) if size and size.isdigit() else None,
            status=dict(record),
        )

    @property
    def is_text(self) -> bool:
        return bool(_TEXT_TYPES.search(self.head_type))

    @property
    def is_binary(self) -> bool:
        return not self.is_text

    @property
    def is_deleted(self) -> bool:
        return "delete" in self.head_action

    @property
    def is_purged(self) -> bool:
        return self.head_action == "purge"

    @property
    def is_deleted_or_purged(self) -> bool:
        return self.is_deleted or self.is_purged


class ContentSource(Protocol):
    """Fetches content, diff output and digests from the server."""

    def fetch_content(self, revision: FileRevision, max_bytes: int | None) -> tuple[bytes, bool]:
        """Return up to max_bytes of depot content and whether it was cropped."""
        ...

    def fetch_diff_text(
        self,
        left: FileRevision,
        right: FileRevision,
        ignore_whitespace: bool,
        context_lines: int,
    ) -> list[bytes]:
        """Return unified diff output blocks; the first block is the file header."""
        ...

    def fetch_digest(self, revision: FileRevision) -> str | None:
        """Return the content digest of the revision, if known."""
        ...
