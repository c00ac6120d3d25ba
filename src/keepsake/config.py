# SPDX-FileCopyrightText: 2026 Keepsake authors
#
# SPDX-License-Identifier: Apache-2.0

"""Settings handed to the loader and saver at construction."""

from dataclasses import dataclass, field

from keepsake.compression import Compression, GzipCompression
from keepsake.location import STAGING_SUFFIX, StorageLocation


@dataclass(frozen=True, kw_only=True)
class KeepsakeConfig:
    """Immutable persistence settings.

    ``unimportant`` lists logical names (file name up to the first dot)
    whose failed writes are dropped instead of backed up, e.g. derived
    caches that are cheap to rebuild.
    """

    unimportant: frozenset[str] = frozenset()
    staging_suffix: str = STAGING_SUFFIX
    fsync: bool = True
    compression: Compression = field(default_factory=GzipCompression)

    def __post_init__(self) -> None:
        if not self.staging_suffix:
            msg = "staging_suffix must be non-empty"
            raise ValueError(msg)
        if not isinstance(self.unimportant, frozenset):
            object.__setattr__(self, "unimportant", frozenset(self.unimportant))

    def is_unimportant(self, location: StorageLocation) -> bool:
        name = location.path.name
        return location.logical_name in self.unimportant or name in self.unimportant
