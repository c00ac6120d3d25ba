# SPDX-FileCopyrightText: 2026 Keepsake authors
#
# SPDX-License-Identifier: Apache-2.0

"""Failure taxonomy and diagnostic records."""

import enum
from dataclasses import dataclass, field
from pathlib import Path

from keepsake import now_iso


class ErrorKind(enum.Enum):
    NOT_FOUND = "not_found"
    CORRUPT_CONFIG = "corrupt_config"
    VERIFICATION_FAILED = "verification_failed"
    PROMOTION_FAILED = "promotion_failed"
    SAVE_FAILED = "save_failed"
    BACKUP_FAILED = "backup_failed"


class KeepsakeError(Exception):
    """Base for errors surfaced to callers who opt into raising."""

    def __init__(self, kind: ErrorKind, path: Path, cause: BaseException | None = None) -> None:
        self.kind = kind
        self.path = path
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"{kind.value} for '{path}'{detail}")


class DecodeError(Exception):
    """Raised by a serializer when bytes do not decode to the requested type."""


@dataclass(frozen=True)
class Diagnostic:
    """One failure report. Enough context to debug without a traceback."""

    kind: ErrorKind
    path: Path
    operation: str
    cause: str = ""
    timestamp: str = field(default_factory=now_iso)

    def to_dict(self) -> dict[str, str]:
        return {
            "kind": self.kind.value,
            "path": str(self.path),
            "operation": self.operation,
            "cause": self.cause,
        }


def describe(exc: BaseException | None) -> str:
    """Render an exception as ``Type: message`` for diagnostics."""
    if exc is None:
        return ""
    return f"{type(exc).__name__}: {exc}"
