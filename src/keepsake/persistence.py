# SPDX-FileCopyrightText: 2026 Keepsake authors
#
# SPDX-License-Identifier: Apache-2.0

"""Crash-safe file write primitives."""

import io
import os
from collections.abc import Callable
from pathlib import Path
from typing import BinaryIO


def _full_write(fd: int, data: bytes) -> None:
    """Write all bytes, retrying on short writes."""
    while data:
        n = os.write(fd, data)
        data = data[n:]


class _FdWriter(io.RawIOBase):
    """Minimal binary stream over a raw fd so compressors can wrap it."""

    def __init__(self, fd: int) -> None:
        self._fd = fd

    def writable(self) -> bool:
        return True

    def write(self, b: bytes) -> int:  # type: ignore[override]
        data = bytes(b)
        _full_write(self._fd, data)
        return len(data)


def write_file(
    path: Path,
    data: bytes,
    *,
    wrap: Callable[[BinaryIO], BinaryIO] | None = None,
    fsync: bool = True,
) -> None:
    """Create or truncate path and write data to it, fsynced on return.

    ``wrap`` turns the raw stream into e.g. a compressing one. The wrapper
    is closed (flushing any trailer) before the fd is synced and closed, so
    no handle is left open on return, including on error.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd = os.open(str(path), os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o644)
    try:
        if wrap is None:
            _full_write(fd, data)
        else:
            raw = _FdWriter(fd)
            stream = wrap(raw)  # type: ignore[arg-type]
            try:
                stream.write(data)
            finally:
                stream.close()
        if fsync:
            os.fsync(fd)
    finally:
        os.close(fd)


def fsync_dir(dirpath: Path) -> None:
    """Fsync a directory to make its entries durable. No-op off POSIX."""
    if os.name != "posix":
        return
    fd = os.open(dirpath, os.O_RDONLY)
    try:
        os.fsync(fd)
    finally:
        os.close(fd)
