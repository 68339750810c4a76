"""Run p4 commands for file content, diffs, digests and fstat queries."""

from __future__ import annotations

import logging
import subprocess
from typing import TYPE_CHECKING

from p4file.diff.models import FileRevision
from p4file.exceptions import InvalidArgumentError, P4CommandError, P4NotFoundError

if TYPE_CHECKING:
    from collections.abc import Generator

    from p4file.filter.query import QueryBuilder

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024


def parse_ztag(text: str) -> list[dict[str, str]]:
    """Parse ``p4 -ztag`` output into one dictionary per record.

    Records are separated by blank lines; each field line has the form
    ``... name value``.
    """
    records: list[dict[str, str]] = []
    current: dict[str, str] = {}
    for line in text.splitlines():
        if not line.strip():
            if current:
                records.append(current)
                current = {}
            continue
        if not line.startswith("... "):
            continue
        # nested fields ("... ... otherOpen0 user") are flattened
        while line.startswith("... "):
            line = line[4:]
        name, _, value = line.partition(" ")
        current[name] = value
    if current:
        records.append(current)
    return records


class P4Runner:
    """Thin wrapper around the ``p4`` command line client.

    Implements the content source interface used by the diff engine.

    Attributes:
        executable: Path or name of the p4 binary.
        port: P4PORT override (``-p``).
        user: P4USER override (``-u``).
        client: P4CLIENT override (``-c``).
        charset: P4CHARSET override (``-C``).
    """

    def __init__(
        self,
        executable: str = "p4",
        *,
        port: str | None = None,
        user: str | None = None,
        client: str | None = None,
        charset: str | None = None,
    ) -> None:
        self.executable = executable
        self.port = port
        self.user = user
        self.client = client
        self.charset = charset

    def _command(self, args: list[str]) -> list[str]:
        cmd = [self.executable]
        for flag, value in (
            ("-p", self.port),
            ("-u", self.user),
            ("-c", self.client),
            ("-C", self.charset),
        ):
            if value:
                cmd.extend([flag, value])
        return cmd + args

    def run(self, args: list[str]) -> bytes:
        """Run a p4 command and return its standard output.

        Raises:
            P4NotFoundError: If the p4 executable cannot be started.
            P4CommandError: If the command exits non-zero.
        """
        cmd = self._command(args)
        logger.debug("p4: %s", cmd)
        try:
            result = subprocess.run(cmd, capture_output=True)
        except FileNotFoundError as e:
            raise P4NotFoundError(self.executable) from e

        if result.returncode != 0:
            raise P4CommandError(
                args, result.returncode, result.stderr.decode("utf-8", errors="replace")
            )
        return result.stdout

    def iter_print(
        self, revision: FileRevision, chunk_size: int = DEFAULT_CHUNK_SIZE
    ) -> Generator[bytes, None, None]:
        """Stream the depot content of a revision in chunks.

        Closing the generator early terminates the p4 process, so callers
        can stop reading once they have enough.
        """
        args = ["print", "-q", revision.filespec]
        cmd = self._command(args)
        logger.debug("p4: %s", cmd)
        try:
            proc = subprocess.Popen(cmd, stdout=subprocess.PIPE, stderr=subprocess.PIPE)
        except FileNotFoundError as e:
            raise P4NotFoundError(self.executable) from e

        assert proc.stdout is not None and proc.stderr is not None
        try:
            while chunk := proc.stdout.read(chunk_size):
                yield chunk
            stderr = proc.stderr.read()
            if proc.wait() != 0:
                raise P4CommandError(
                    args, proc.returncode, stderr.decode("utf-8", errors="replace")
                )
        finally:
            if proc.poll() is None:
                proc.kill()
                proc.wait()
            proc.stdout.close()
            proc.stderr.close()

    def fetch_content(
        self, revision: FileRevision, max_bytes: int | None = None
    ) -> tuple[bytes, bool]:
        """Read depot content, stopping once more than max_bytes arrived.

        Returns:
            Tuple of (content cut to max_bytes, whether it was cut).
        """
        chunks: list[bytes] = []
        size = 0
        stream = self.iter_print(revision)
        try:
            for chunk in stream:
                chunks.append(chunk)
                size += len(chunk)
                if max_bytes and size > max_bytes:
                    break
        finally:
            stream.close()

        data = b"".join(chunks)
        if max_bytes and len(data) > max_bytes:
            return data[:max_bytes], True
        return data, False

    def fetch_diff_text(
        self,
        left: FileRevision,
        right: FileRevision,
        ignore_whitespace: bool = False,
        context_lines: int = 5,
    ) -> list[bytes]:
        """Run ``p4 diff2`` in unified mode.

        Returns:
            The ``==== ... ====`` file header followed by the diff body.
        """
        mode = f"-d{'w' if ignore_whitespace else ''}u{context_lines}"
        output = self.run(["diff2", mode, left.filespec, right.filespec])
        header, _, body = output.partition(b"\n")
        return [header, body] if body else [header]

    def fetch_digest(self, revision: FileRevision) -> str | None:
        """Look up the content digest of a revision."""
        output = self.run(["-ztag", "fstat", "-Ol", "-T", "digest", revision.filespec])
        for record in parse_ztag(output.decode("utf-8", errors="replace")):
            if "digest" in record:
                return record["digest"]
        return None

    def fstat(self, query: QueryBuilder) -> list[dict[str, str]]:
        """Run ``p4 fstat`` for a query and return the tagged records.

        Raises:
            InvalidArgumentError: If the query has no filespecs.
        """
        if not query.filespecs:
            raise InvalidArgumentError("Cannot run query; no filespecs given.")
        output = self.run(["-ztag", "fstat", *query.fstat_args()])
        return parse_ztag(output.decode("utf-8", errors="replace"))

    def fetch_revisions(self, query: QueryBuilder) -> list[FileRevision]:
        """Run a query and wrap each file record in a FileRevision."""
        return [
            FileRevision.from_fstat(record)
            for record in self.fstat(query)
            if "depotFile" in record
        ]
