# SPDX-FileCopyrightText: 2026 Keepsake authors
#
# SPDX-License-Identifier: Apache-2.0

"""Explicit outcomes for load and save. Callers branch on the variant."""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Generic, TypeVar

from keepsake.errors import ErrorKind, KeepsakeError

T = TypeVar("T")


@dataclass(frozen=True)
class Absent:
    """No file at the location. Callers use defaults."""


@dataclass(frozen=True)
class Loaded(Generic[T]):
    value: T


@dataclass(frozen=True)
class Corrupted:
    """The file exists but could not be read or decoded."""

    cause: BaseException


LoadResult = Absent | Loaded[Any] | Corrupted


@dataclass(frozen=True)
class Saved:
    path: Path
    size: int


@dataclass(frozen=True)
class SaveFailed:
    """The target was left as it was before the call."""

    kind: ErrorKind
    path: Path
    cause: BaseException | None = None
    backup: Path | None = None

    def raise_for_failure(self) -> None:
        raise KeepsakeError(self.kind, self.path, self.cause)


SaveResult = Saved | SaveFailed
