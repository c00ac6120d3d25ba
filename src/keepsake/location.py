# SPDX-FileCopyrightText: 2026 Keepsake authors
#
# SPDX-License-Identifier: Apache-2.0

"""On-disk addressing: targets, staging siblings, and backups."""

import enum
from dataclasses import dataclass, replace
from pathlib import Path

STAGING_SUFFIX = ".temp"


class BackupTag(enum.Enum):
    CORRUPTED = "corrupted"
    BACKUP = "backup"


@dataclass(frozen=True)
class StorageLocation:
    """A file path plus whether its bytes are compressed."""

    path: Path
    compressed: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.path, Path):
            object.__setattr__(self, "path", Path(self.path))

    @property
    def logical_name(self) -> str:
        """File name up to its first dot: ``petCache.json.gz`` -> ``petCache``."""
        return self.path.name.split(".", 1)[0]

    def staging(self, suffix: str = STAGING_SUFFIX) -> "StorageLocation":
        """Sibling the saver writes to before promotion."""
        return replace(self, path=self.path.with_name(self.path.name + suffix))

    def backup(self, tag: BackupTag, millis: int) -> "StorageLocation":
        """``<path>-<millis>-<tag>`` in the same directory."""
        name = f"{self.path.name}-{millis}-{tag.value}"
        return replace(self, path=self.path.with_name(name))

    def exists(self) -> bool:
        return self.path.exists()
