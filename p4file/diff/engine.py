"""Diff two file revisions into structured lines.

Edited files are compared with ``p4 diff2`` and its unified output is
parsed. Added or deleted files (or a comparison where one side is
missing) have no diff2 output to parse, so their content is listed as a
single all-added or all-deleted hunk instead.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from typing import Any

from p4file.diff.models import (
    ContentSource,
    DiffLine,
    DiffOptions,
    DiffResult,
    FileRevision,
    LineKind,
)
from p4file.diff.utf8 import REPLACEMENT_BYTES, Utf8Filter, decode
from p4file.exceptions import InvalidArgumentError

logger = logging.getLogger(__name__)

_MARKERS: dict[str, LineKind] = {
    "@": LineKind.META,
    " ": LineKind.SAME,
    "-": LineKind.DELETE,
    "+": LineKind.ADD,
}

# "@@ -133,29 +133,27 @@"; the counts are optional for single-line hunks.
_HUNK_HEADER = re.compile(r"@@ -([0-9]+)(?:,[0-9]+)? \+([0-9]+)(?:,[0-9]+)? @@")

_LINE_ENDING = re.compile(r"(\r\n|\n|\r)")
_LINE_SPLIT = re.compile(r"\r\n|\n|\r")


def _utf8_filter(data: bytes, convert: bool, sanitize: bool) -> bytes:
    if not (convert or sanitize):
        return data
    return Utf8Filter(replace_invalid=sanitize, convert_encoding=convert).filter(data)


def parse_unified_diff(text: str) -> list[DiffLine]:
    """Parse unified diff text into diff lines.

    Each line keeps its original terminator so callers can spot
    line-ending-only changes. Hunk headers seed the left/right line
    counters; lines that start with an unknown marker (such as
    ``\\ No newline at end of file``) are skipped. A hunk header that does
    not parse leaves the counters unset, so the following lines carry no
    line numbers.
    """
    lines: list[DiffLine] = []
    left: int | None = None
    right: int | None = None

    parts = _LINE_ENDING.split(text)
    for i in range(0, len(parts), 2):
        line = parts[i]
        ending = parts[i + 1] if i + 1 < len(parts) else ""

        if not line or line[0] not in _MARKERS:
            continue
        kind = _MARKERS[line[0]]

        if kind is LineKind.META:
            match = _HUNK_HEADER.match(line)
            if match:
                left, right = int(match.group(1)), int(match.group(2))
            else:
                logger.debug("Unparsable hunk header: %r", line)
                left = right = None
            lines.append(DiffLine(text=line, kind=kind, line_ending=ending))
            continue

        left_line = right_line = None
        if kind in (LineKind.SAME, LineKind.DELETE) and left is not None:
            left_line = left
            left += 1
        if kind in (LineKind.SAME, LineKind.ADD) and right is not None:
            right_line = right
            right += 1

        lines.append(
            DiffLine(
                text=line,
                kind=kind,
                line_ending=ending,
                left_line=left_line,
                right_line=right_line,
            )
        )

    return lines


def split_content_lines(text: str) -> list[str]:
    """Split content on any line ending; a final terminator adds no empty line."""
    if text == "":
        return []
    lines = _LINE_SPLIT.split(text)
    if lines[-1] == "":
        lines.pop()
    return lines


def synthesize_add_delete(text: str, is_add: bool) -> list[DiffLine]:
    """List file content as one all-added or all-deleted hunk."""
    content = split_content_lines(text)
    count = len(content)
    header = f"@@ -1,0 +1,{count} @@" if is_add else f"@@ -1,{count} +1,0 @@"

    lines = [DiffLine(text=header, kind=LineKind.META)]
    for number, line in enumerate(content, start=1):
        if is_add:
            lines.append(DiffLine(text="+" + line, kind=LineKind.ADD, right_line=number))
        else:
            lines.append(DiffLine(text="-" + line, kind=LineKind.DELETE, left_line=number))
    return lines


def read_depot_contents(
    source: ContentSource,
    revision: FileRevision,
    max_size: int | None = None,
    convert: bool = False,
    sanitize: bool = False,
) -> tuple[str, bool]:
    """Fetch depot content, capped at max_size bytes, and make it text.

    Returns:
        Tuple of (content, cropped).
    """
    data, cropped = source.fetch_content(revision, max_size)
    if max_size and len(data) > max_size:
        data = data[:max_size]
        cropped = True

    data = _utf8_filter(data, convert, sanitize)

    # Cropping may split a multi-byte character; the replacement
    # character it turns into is an artifact, not content.
    if cropped and sanitize and data.endswith(REPLACEMENT_BYTES):
        data = data[: -len(REPLACEMENT_BYTES)]

    if cropped:
        logger.debug("Content of %s cropped at %d bytes", revision.filespec, max_size)
    return decode(data), cropped


class DiffEngine:
    """Compare file revisions using a content source.

    Usage:
        engine = DiffEngine(P4Runner())
        result = engine.diff(left=old_revision, right=new_revision)
        for line in result.lines:
            ...
    """

    def __init__(self, source: ContentSource, options: DiffOptions | None = None) -> None:
        self.source = source
        self.options = options or DiffOptions()

    def diff(
        self,
        left: FileRevision | None = None,
        right: FileRevision | None = None,
        options: DiffOptions | Mapping[str, Any] | None = None,
    ) -> DiffResult:
        """Compare left and right revisions.

        Args:
            left: Left-hand (old) revision, or None.
            right: Right-hand (new) revision, or None.
            options: Overrides for the engine's default options.

        Returns:
            DiffResult with lines, truncation flag and identical flag.

        Raises:
            InvalidArgumentError: If neither side is given.
        """
        if left is None and right is None:
            raise InvalidArgumentError("Cannot diff. Must specify at least one file to diff.")

        opts = self.options.merged(options)
        lines: list[DiffLine] = []
        truncated: int | bool = False

        # Only examine contents if neither side is binary and one side has content.
        left_has_content = left is not None and not left.is_deleted_or_purged
        right_has_content = right is not None and not right.is_deleted_or_purged
        binary = (left is not None and left.is_binary) or (right is not None and right.is_binary)

        if not binary and (left_has_content or right_has_content):
            if left_has_content and right_has_content:
                logger.debug("Diffing %s against %s", left.filespec, right.filespec)
                lines = self._diff_edit(left, right, opts)
            else:
                lines, truncated = self._diff_add_delete(left, right, opts)

        identical = False
        if not lines and left is not None and right is not None:
            identical = self._same_digest(left, right)

        return DiffResult(lines=tuple(lines), is_truncated=truncated, is_identical=identical)

    def _diff_edit(
        self, left: FileRevision, right: FileRevision, opts: DiffOptions
    ) -> list[DiffLine]:
        blocks = self.source.fetch_diff_text(
            left, right, opts.ignore_whitespace, opts.context_lines
        )
        # first block is the file header
        data = b"".join(_to_bytes(block) for block in blocks[1:])
        data = _utf8_filter(data, opts.utf8_convert, opts.utf8_sanitize)
        return parse_unified_diff(decode(data))

    def _diff_add_delete(
        self, left: FileRevision | None, right: FileRevision | None, opts: DiffOptions
    ) -> tuple[list[DiffLine], int | bool]:
        # Content from the right implies an add, from the left a delete.
        if right is not None and not right.is_deleted_or_purged:
            revision, is_add = right, True
        else:
            revision, is_add = left, False
        assert revision is not None

        logger.debug("Listing %s as %s", revision.filespec, "added" if is_add else "deleted")
        content, cropped = read_depot_contents(
            self.source,
            revision,
            opts.max_filesize,
            convert=opts.utf8_convert,
            sanitize=opts.utf8_sanitize,
        )
        truncated: int | bool = opts.max_filesize if cropped else False
        return synthesize_add_delete(content, is_add), truncated

    def _same_digest(self, left: FileRevision, right: FileRevision) -> bool:
        # Two unknown digests are not evidence of equal content.
        left_digest = left.digest if left.digest is not None else self.source.fetch_digest(left)
        right_digest = (
            right.digest if right.digest is not None else self.source.fetch_digest(right)
        )
        return left_digest is not None and left_digest == right_digest


def _to_bytes(block: bytes | str) -> bytes:
    if isinstance(block, str):
        return block.encode("utf-8", errors="surrogateescape")
    return block


def diff(
    source: ContentSource,
    left: FileRevision | None = None,
    right: FileRevision | None = None,
    options: DiffOptions | Mapping[str, Any] | None = None,
) -> DiffResult:
    """Compare two revisions with a one-off engine."""
    return DiffEngine(source).diff(left, right, options)
