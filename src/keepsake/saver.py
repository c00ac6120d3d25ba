# SPDX-FileCopyrightText: 2026 Keepsake authors
#
# SPDX-License-Identifier: Apache-2.0

"""Write side: encode -> stage -> verify -> promote.

The target is only ever replaced by a staged file that has already been
read back and decoded. Every exit path removes the staging file, either by
promoting it or by handing it to the backup helper.
"""

import logging
import os
from collections.abc import Callable
from pathlib import Path
from typing import Any

from keepsake import now_millis
from keepsake.backup import backup_and_discard
from keepsake.config import KeepsakeConfig
from keepsake.errors import Diagnostic, ErrorKind, describe
from keepsake.journal import Reporter
from keepsake.loader import Loader
from keepsake.location import BackupTag, StorageLocation
from keepsake.persistence import fsync_dir, write_file
from keepsake.result import Corrupted, Loaded, Saved, SaveFailed, SaveResult
from keepsake.serializer import JsonSerializer, Serializer

_log = logging.getLogger(__name__)


class _PromotionError(Exception):
    """Staged file verified but could not be moved over the target."""

    def __init__(self, cause: OSError) -> None:
        super().__init__(str(cause))
        self.cause = cause


class Saver:
    """Sole writer of targets. Failures come back as SaveFailed, never raised."""

    def __init__(
        self,
        serializer: Serializer | None = None,
        config: KeepsakeConfig | None = None,
        *,
        loader: Loader | None = None,
        reporter: Reporter | None = None,
        clock: Callable[[], int] = now_millis,
    ) -> None:
        self._serializer = serializer or JsonSerializer()
        self._config = config or KeepsakeConfig()
        self._reporter = reporter or Reporter()
        self._clock = clock
        self._loader = loader or Loader(
            self._serializer, self._config, reporter=self._reporter, clock=clock
        )

    @property
    def config(self) -> KeepsakeConfig:
        return self._config

    def save(self, value: Any, location: StorageLocation) -> SaveResult:
        """Durably replace ``location`` with ``value``.

        On failure the previous target is untouched and the staged bytes are
        kept as a ``backup`` file unless the target is marked unimportant.
        """
        staging = location.staging(self._config.staging_suffix)
        try:
            data = self._serializer.encode(value)
            self._stage(data, staging)
            check = self._loader.load(type(value), staging, report_errors=False)
            if not isinstance(check, Loaded):
                cause = check.cause if isinstance(check, Corrupted) else None
                return self._fail(
                    ErrorKind.VERIFICATION_FAILED, location, staging, cause
                )
            self._promote(staging, location)
        except _PromotionError as exc:
            return self._fail(ErrorKind.PROMOTION_FAILED, location, staging, exc.cause)
        except Exception as exc:
            _log.exception("unexpected error saving %s", location.path)
            return self._fail(ErrorKind.SAVE_FAILED, location, staging, exc)
        _log.debug("saved %s (%d bytes)", location.path, len(data))
        return Saved(location.path, len(data))

    def _stage(self, data: bytes, staging: StorageLocation) -> None:
        wrap = self._config.compression.wrap_writer if staging.compressed else None
        write_file(staging.path, data, wrap=wrap, fsync=self._config.fsync)

    def _promote(self, staging: StorageLocation, target: StorageLocation) -> None:
        src, dst = staging.path, target.path
        try:
            try:
                os.rename(src, dst)
            except FileExistsError:
                # Platform refuses to rename over an existing file.
                _log.debug("atomic rename refused for %s, replacing", dst)
                os.replace(src, dst)
        except OSError as exc:
            raise _PromotionError(exc) from exc
        if not self._config.fsync:
            return
        # The new content is already in place; only rename durability is at stake.
        try:
            fsync_dir(dst.parent)
        except OSError as exc:
            _log.warning("could not fsync %s after promotion: %s", dst.parent, exc)

    def _fail(
        self,
        kind: ErrorKind,
        target: StorageLocation,
        staging: StorageLocation,
        cause: BaseException | None,
    ) -> SaveFailed:
        self._reporter.report(Diagnostic(kind, target.path, "save", describe(cause)))
        backup: Path | None = None
        if self._config.is_unimportant(target):
            _discard(staging.path)
        else:
            reclaim = backup_and_discard(
                staging, BackupTag.BACKUP, reporter=self._reporter, clock=self._clock
            )
            backup = reclaim.backup
        return SaveFailed(kind, target.path, cause, backup)


def _discard(path: Path) -> None:
    """Drop a staging file whose loss is acceptable."""
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        _log.warning("could not remove staging file %s: %s", path, exc)
