"""Shared pytest fixtures."""

from __future__ import annotations

import shutil
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from p4file.diff.models import FileRevision

if TYPE_CHECKING:
    from collections.abc import Generator


class FakeSource:
    """In-memory content source recording the calls made to it."""

    def __init__(
        self,
        contents: dict[str, bytes] | None = None,
        diff_blocks: list[bytes] | None = None,
        digests: dict[str, str] | None = None,
    ) -> None:
        self.contents = contents or {}
        self.diff_blocks = diff_blocks or []
        self.digests = digests or {}
        self.calls: list[tuple] = []

    def fetch_content(self, revision: FileRevision, max_bytes: int | None) -> tuple[bytes, bool]:
        self.calls.append(("content", revision.filespec, max_bytes))
        data = self.contents.get(revision.filespec, b"")
        if max_bytes and len(data) > max_bytes:
            return data[:max_bytes], True
        return data, False

    def fetch_diff_text(
        self,
        left: FileRevision,
        right: FileRevision,
        ignore_whitespace: bool,
        context_lines: int,
    ) -> list[bytes]:
        self.calls.append(
            ("diff", left.filespec, right.filespec, ignore_whitespace, context_lines)
        )
        return list(self.diff_blocks)

    def fetch_digest(self, revision: FileRevision) -> str | None:
        self.calls.append(("digest", revision.filespec))
        return self.digests.get(revision.filespec)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    path = Path(tempfile.mkdtemp())
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)


@pytest.fixture
def sample_config(temp_dir: Path) -> Path:
    """Create a sample config file."""
    config_path = temp_dir / "config.toml"
    config_path.write_text("""[p4]
executable = "/usr/local/bin/p4"
port = "ssl:perforce:1666"
user = "tester"

[diff]
ignore_whitespace = true
context_lines = 3
utf8_sanitize = true

[query]
sort_clause_count = 3

[display]
colored_output = false
""")
    return config_path


@pytest.fixture
def fake_source() -> FakeSource:
    """Empty in-memory content source."""
    return FakeSource()


@pytest.fixture
def make_source() -> type[FakeSource]:
    """Factory for content sources with canned content, diffs and digests."""
    return FakeSource
