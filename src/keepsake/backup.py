# SPDX-FileCopyrightText: 2026 Keepsake authors
#
# SPDX-License-Identifier: Apache-2.0

"""Best-effort preservation of files about to be abandoned.

A file is moved aside to ``<path>-<millis>-<tag>`` by trying each strategy
in RECLAIM_CHAIN until one works. Nothing escapes to the caller, since this
runs inside other failure paths.
"""

import enum
import logging
import os
import re
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from keepsake import now_millis
from keepsake.errors import Diagnostic, ErrorKind, describe
from keepsake.journal import Reporter
from keepsake.location import STAGING_SUFFIX, BackupTag, StorageLocation

_log = logging.getLogger(__name__)


class ReclaimStep(enum.Enum):
    ATOMIC = "atomic"
    OVERWRITE = "overwrite"
    DELETE = "delete"
    GAVE_UP = "gave_up"


@dataclass(frozen=True)
class Reclaim:
    """Which strategy won, and where the file went if it was kept."""

    step: ReclaimStep
    backup: Path | None = None

    @property
    def preserved(self) -> bool:
        return self.backup is not None


def _atomic(src: Path, dst: Path) -> None:
    os.rename(src, dst)


def _overwrite(src: Path, dst: Path) -> None:
    os.replace(src, dst)


def _delete(src: Path, dst: Path) -> None:
    os.unlink(src)


# Tried in order; first success wins.
RECLAIM_CHAIN: tuple[tuple[ReclaimStep, Callable[[Path, Path], None]], ...] = (
    (ReclaimStep.ATOMIC, _atomic),
    (ReclaimStep.OVERWRITE, _overwrite),
    (ReclaimStep.DELETE, _delete),
)


def backup_and_discard(
    location: StorageLocation,
    tag: BackupTag,
    *,
    reporter: Reporter | None = None,
    clock: Callable[[], int] = now_millis,
) -> Reclaim:
    """Move ``location`` aside as a tagged backup, or delete it. Never raises."""
    src = location.path
    if not src.exists():
        _log.debug("nothing to reclaim at %s", src)
        return Reclaim(ReclaimStep.DELETE)
    dst = location.backup(tag, clock()).path
    _log.info("backing up %s to %s", src, dst.name)
    last_error: OSError | None = None
    for step, strategy in RECLAIM_CHAIN:
        try:
            strategy(src, dst)
        except OSError as exc:
            _log.debug("reclaim step %s failed for %s: %s", step.value, src, exc)
            last_error = exc
            continue
        if step is ReclaimStep.DELETE:
            _log.warning("could not back up %s, deleted it instead", src)
            return Reclaim(step)
        return Reclaim(step, dst)
    diag = Diagnostic(ErrorKind.BACKUP_FAILED, src, "backup", describe(last_error))
    if reporter is not None:
        reporter.report(diag)
    else:
        _log.error("gave up reclaiming %s: %s", src, diag.cause)
    return Reclaim(ReclaimStep.GAVE_UP)


def list_backups(
    location: StorageLocation, *, staging_suffix: str = STAGING_SUFFIX
) -> list[Path]:
    """Existing backups of ``location``, oldest first.

    Covers both quarantined targets and staged writes kept by failed saves
    (``<name><staging_suffix>-<millis>-<tag>``).
    """
    parent = location.path.parent
    if not parent.is_dir():
        return []
    tags = "|".join(re.escape(t.value) for t in BackupTag)
    name = re.escape(location.path.name)
    suffix = re.escape(staging_suffix)
    pattern = re.compile(rf"^{name}(?:{suffix})?-(\d+)-(?:{tags})$")
    found: list[tuple[int, str, Path]] = []
    for child in parent.iterdir():
        m = pattern.match(child.name)
        if m and child.is_file():
            found.append((int(m.group(1)), child.name, child))
    return [p for _, _, p in sorted(found)]
