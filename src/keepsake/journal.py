# SPDX-FileCopyrightText: 2026 Keepsake authors
#
# SPDX-License-Identifier: Apache-2.0

"""Append-only JSONL journal of load/save diagnostics."""

import json
import logging
import os
from pathlib import Path
from types import TracebackType
from typing import Any

from keepsake.errors import Diagnostic
from keepsake.persistence import _full_write, fsync_dir

_log = logging.getLogger(__name__)


class DiagnosticJournal:
    """Durable record of every failure the loader and saver report.

    One JSON object per line, fsynced before record() returns. A torn
    trailing line left by a crash is cut off the next time the journal
    is opened.
    """

    def __init__(self, path: Path, context: dict[str, str] | None = None) -> None:
        self._path = path
        self._context = context or {}
        self._fd: int | None = None

    @property
    def path(self) -> Path:
        return self._path

    def open(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._truncate_partial_tail()
        self._fd = os.open(
            self._path,
            os.O_WRONLY | os.O_CREAT | os.O_APPEND,
            0o644,
        )
        fsync_dir(self._path.parent)

    def __enter__(self) -> "DiagnosticJournal":
        self.open()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    def record(self, diagnostic: Diagnostic) -> None:
        """Append one diagnostic. Durable on return."""
        if self._fd is None:
            msg = "DiagnosticJournal not open"
            raise RuntimeError(msg)
        _full_write(self._fd, self._serialize(diagnostic))
        os.fsync(self._fd)

    def close(self) -> None:
        if self._fd is not None:
            os.close(self._fd)
            self._fd = None

    def _serialize(self, diagnostic: Diagnostic) -> bytes:
        entry: dict[str, Any] = {
            **self._context,
            "ts": diagnostic.timestamp,
            "event": diagnostic.kind.value,
            "data": diagnostic.to_dict(),
        }
        return (json.dumps(entry, separators=(",", ":")) + "\n").encode()

    def _truncate_partial_tail(self) -> None:
        if not self._path.exists():
            return
        content = self._path.read_bytes()
        if not content or content.endswith(b"\n"):
            return
        last_nl = content.rfind(b"\n")
        truncate_to = last_nl + 1 if last_nl >= 0 else 0
        fd = os.open(self._path, os.O_WRONLY)
        try:
            os.ftruncate(fd, truncate_to)
            os.fsync(fd)
        finally:
            os.close(fd)


def read_journal(path: Path) -> list[dict[str, Any]]:
    """Parse a journal file. Missing file reads as empty."""
    if not path.exists():
        return []
    entries: list[dict[str, Any]] = []
    for line in path.read_text().splitlines():
        if line.strip():
            entries.append(json.loads(line))
    return entries


class Reporter:
    """Routes diagnostics to the logger and, if given, a journal.

    Never raises: a journal write failure is logged and dropped so that
    reporting cannot mask the failure being reported.
    """

    def __init__(self, journal: DiagnosticJournal | None = None) -> None:
        self._journal = journal

    @property
    def journal(self) -> DiagnosticJournal | None:
        return self._journal

    def report(self, diagnostic: Diagnostic) -> None:
        _log.warning(
            "%s during %s of %s%s",
            diagnostic.kind.value,
            diagnostic.operation,
            diagnostic.path,
            f" ({diagnostic.cause})" if diagnostic.cause else "",
        )
        if self._journal is None:
            return
        try:
            self._journal.record(diagnostic)
        except (OSError, RuntimeError):
            _log.exception("could not journal %s", diagnostic.kind.value)


__all__ = ["DiagnosticJournal", "Reporter", "read_journal"]
