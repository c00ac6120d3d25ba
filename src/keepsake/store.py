# SPDX-FileCopyrightText: 2026 Keepsake authors
#
# SPDX-License-Identifier: Apache-2.0

"""Named config files under a root directory, plus path-level helpers."""

from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

from keepsake.backup import list_backups
from keepsake.config import KeepsakeConfig
from keepsake.journal import DiagnosticJournal, Reporter
from keepsake.loader import Loader, value_or_none
from keepsake.location import StorageLocation
from keepsake.result import Loaded, LoadResult, Saved, SaveResult
from keepsake.saver import Saver
from keepsake.serializer import Serializer

T = TypeVar("T")

_PLAIN_SUFFIX = ".json"
_GZIP_SUFFIX = ".json.gz"


class ConfigStore:
    """Thin facade: logical name -> root/<name>.json[.gz]. No in-memory cache."""

    def __init__(
        self,
        root: Path,
        config: KeepsakeConfig | None = None,
        *,
        serializer: Serializer | None = None,
        journal: DiagnosticJournal | None = None,
    ) -> None:
        self._root = root
        self._config = config or KeepsakeConfig()
        reporter = Reporter(journal)
        self._loader = Loader(serializer, self._config, reporter=reporter)
        self._saver = Saver(
            serializer, self._config, loader=self._loader, reporter=reporter
        )

    @property
    def root(self) -> Path:
        return self._root

    def location(self, name: str, *, compressed: bool = False) -> StorageLocation:
        if not name or "/" in name or "\\" in name or name.startswith("."):
            msg = f"invalid config name: {name!r}"
            raise ValueError(msg)
        suffix = _GZIP_SUFFIX if compressed else _PLAIN_SUFFIX
        return StorageLocation(self._root / f"{name}{suffix}", compressed)

    def load_result(
        self, type_: type[T], name: str, *, compressed: bool = False
    ) -> LoadResult:
        return self._loader.load(type_, self.location(name, compressed=compressed))

    def load(self, type_: type[T], name: str, *, compressed: bool = False) -> T | None:
        """Stored value, or None when missing or corrupt."""
        return value_or_none(self.load_result(type_, name, compressed=compressed))  # type: ignore[no-any-return]

    def load_or_default(
        self,
        type_: type[T],
        name: str,
        default_factory: Callable[[], T],
        *,
        compressed: bool = False,
    ) -> T:
        """Stored value, or a fresh default when missing or corrupt."""
        result = self.load_result(type_, name, compressed=compressed)
        if isinstance(result, Loaded):
            return result.value  # type: ignore[no-any-return]
        return default_factory()

    def save_result(self, value: Any, name: str, *, compressed: bool = False) -> SaveResult:
        return self._saver.save(value, self.location(name, compressed=compressed))

    def save(self, value: Any, name: str, *, compressed: bool = False) -> bool:
        """Persist ``value``. True on success; failures are already reported."""
        return isinstance(self.save_result(value, name, compressed=compressed), Saved)

    def backups(self, name: str, *, compressed: bool = False) -> list[Path]:
        """Quarantined copies and kept failed writes for ``name``, oldest first."""
        return list_backups(
            self.location(name, compressed=compressed),
            staging_suffix=self._config.staging_suffix,
        )


def load_config(
    type_: type[T],
    path: Path,
    *,
    compressed: bool = False,
    report_errors: bool = True,
    serializer: Serializer | None = None,
) -> T | None:
    """Load one file. None when it is missing or could not be decoded."""
    loader = Loader(serializer)
    result = loader.load(type_, StorageLocation(path, compressed), report_errors=report_errors)
    return value_or_none(result)  # type: ignore[no-any-return]


def save_config(
    value: Any,
    path: Path,
    *,
    compressed: bool = False,
    serializer: Serializer | None = None,
    unimportant: frozenset[str] = frozenset(),
) -> None:
    """Save one file. Failures are reported through logging, not raised."""
    saver = Saver(serializer, KeepsakeConfig(unimportant=unimportant))
    saver.save(value, StorageLocation(path, compressed))
