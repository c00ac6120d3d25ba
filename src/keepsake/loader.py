# SPDX-FileCopyrightText: 2026 Keepsake authors
#
# SPDX-License-Identifier: Apache-2.0

"""Read side: bytes on disk -> decoded value, or an explicit miss."""

import logging
from collections.abc import Callable
from typing import Any, TypeVar

from keepsake import now_millis
from keepsake.backup import backup_and_discard
from keepsake.config import KeepsakeConfig
from keepsake.errors import DecodeError, Diagnostic, ErrorKind, describe
from keepsake.journal import Reporter
from keepsake.location import BackupTag, StorageLocation
from keepsake.result import Absent, Corrupted, Loaded, LoadResult
from keepsake.serializer import JsonSerializer, Serializer

T = TypeVar("T")

_log = logging.getLogger(__name__)


class Loader:
    """Reads locations. Never writes, except to quarantine a corrupt file."""

    def __init__(
        self,
        serializer: Serializer | None = None,
        config: KeepsakeConfig | None = None,
        *,
        reporter: Reporter | None = None,
        clock: Callable[[], int] = now_millis,
    ) -> None:
        self._serializer = serializer or JsonSerializer()
        self._config = config or KeepsakeConfig()
        self._reporter = reporter or Reporter()
        self._clock = clock

    def load(
        self,
        type_: type[T],
        location: StorageLocation,
        *,
        report_errors: bool = True,
    ) -> LoadResult:
        """Decode the file at ``location`` as ``type_``.

        Missing file -> Absent, with no side effects. Unreadable or
        undecodable file -> Corrupted. With ``report_errors`` (user-facing
        loads) the failure is reported and the bad file is moved aside as
        a ``corrupted`` backup so the caller can start from defaults.
        Without it (save verification) the miss is silent.
        """
        if not location.exists():
            return Absent()
        try:
            value = self._serializer.decode(self._read(location), type_)
            if value is None:
                msg = "document decoded to null"
                raise DecodeError(msg)
        except Exception as exc:
            if report_errors:
                self._quarantine(location, exc)
            return Corrupted(exc)
        return Loaded(value)

    def _read(self, location: StorageLocation) -> bytes:
        with location.path.open("rb") as raw:
            if not location.compressed:
                return raw.read()
            stream = self._config.compression.wrap_reader(raw)
            try:
                return stream.read()
            finally:
                stream.close()

    def _quarantine(self, location: StorageLocation, exc: BaseException) -> None:
        self._reporter.report(
            Diagnostic(
                ErrorKind.CORRUPT_CONFIG,
                location.path,
                "load",
                f"{describe(exc)}; resetting to defaults",
            )
        )
        reclaim = backup_and_discard(
            location,
            BackupTag.CORRUPTED,
            reporter=self._reporter,
            clock=self._clock,
        )
        if reclaim.backup is not None:
            _log.info("corrupt config kept at %s", reclaim.backup)


def value_or_none(result: LoadResult) -> Any:
    """Collapse a load result to the value, or None on any miss."""
    if isinstance(result, Loaded):
        return result.value
    return None
