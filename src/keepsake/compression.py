# SPDX-FileCopyrightText: 2026 Keepsake authors
#
# SPDX-License-Identifier: Apache-2.0

"""Transparent byte-stream transforms applied around file I/O."""

import gzip
from dataclasses import dataclass
from typing import BinaryIO, Protocol, runtime_checkable


@runtime_checkable
class Compression(Protocol):
    """Wraps raw file streams. Must not alter logical content."""

    def wrap_writer(self, stream: BinaryIO) -> BinaryIO:
        """Return a stream that encodes into ``stream``. Closing it must not close ``stream``."""
        ...

    def wrap_reader(self, stream: BinaryIO) -> BinaryIO:
        """Return a stream that decodes from ``stream``."""
        ...


@dataclass(frozen=True)
class GzipCompression:
    """gzip framing. mtime is pinned so equal payloads give equal bytes."""

    compresslevel: int = 9

    def wrap_writer(self, stream: BinaryIO) -> BinaryIO:
        return gzip.GzipFile(  # type: ignore[return-value]
            fileobj=stream, mode="wb", compresslevel=self.compresslevel, mtime=0
        )

    def wrap_reader(self, stream: BinaryIO) -> BinaryIO:
        return gzip.GzipFile(fileobj=stream, mode="rb")  # type: ignore[return-value]
