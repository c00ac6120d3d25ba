# SPDX-FileCopyrightText: 2026 Keepsake authors
#
# SPDX-License-Identifier: Apache-2.0

"""Tests for the backup-and-discard reclaim chain."""

import os
from pathlib import Path

import pytest

from keepsake.backup import ReclaimStep, backup_and_discard, list_backups
from keepsake.errors import ErrorKind
from keepsake.journal import DiagnosticJournal, Reporter, read_journal
from keepsake.location import BackupTag, StorageLocation

MILLIS = 1_700_000_000_000


def _clock() -> int:
    return MILLIS


def _fail(*args: object) -> None:
    raise PermissionError("denied")


@pytest.fixture()
def source(tmp_path: Path) -> StorageLocation:
    loc = StorageLocation(tmp_path / "settings.json")
    loc.path.write_bytes(b"precious")
    return loc


def test_atomic_move(source: StorageLocation) -> None:
    reclaim = backup_and_discard(source, BackupTag.BACKUP, clock=_clock)
    assert reclaim.step is ReclaimStep.ATOMIC
    assert reclaim.preserved
    assert reclaim.backup == source.path.with_name(f"settings.json-{MILLIS}-backup")
    assert reclaim.backup.read_bytes() == b"precious"
    assert not source.exists()


def test_falls_back_to_overwrite(
    source: StorageLocation, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(os, "rename", _fail)
    reclaim = backup_and_discard(source, BackupTag.CORRUPTED, clock=_clock)
    assert reclaim.step is ReclaimStep.OVERWRITE
    assert reclaim.backup is not None
    assert reclaim.backup.name.endswith("-corrupted")
    assert not source.exists()


def test_falls_back_to_delete(
    source: StorageLocation, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(os, "rename", _fail)
    monkeypatch.setattr(os, "replace", _fail)
    reclaim = backup_and_discard(source, BackupTag.BACKUP, clock=_clock)
    assert reclaim.step is ReclaimStep.DELETE
    assert not reclaim.preserved
    assert not source.exists()
    assert list_backups(source) == []


def test_gives_up_without_raising(
    source: StorageLocation, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.setattr(os, "rename", _fail)
    monkeypatch.setattr(os, "replace", _fail)
    monkeypatch.setattr(os, "unlink", _fail)
    journal_path = tmp_path / "diag.jsonl"
    with DiagnosticJournal(journal_path) as journal:
        reclaim = backup_and_discard(
            source, BackupTag.BACKUP, reporter=Reporter(journal), clock=_clock
        )
    assert reclaim.step is ReclaimStep.GAVE_UP
    assert source.exists()
    entries = read_journal(journal_path)
    assert [e["event"] for e in entries] == [ErrorKind.BACKUP_FAILED.value]
    assert "PermissionError" in entries[0]["data"]["cause"]


def test_missing_source_is_noop(tmp_path: Path) -> None:
    loc = StorageLocation(tmp_path / "absent.json")
    reclaim = backup_and_discard(loc, BackupTag.BACKUP, clock=_clock)
    assert reclaim.step is ReclaimStep.DELETE
    assert list(tmp_path.iterdir()) == []


def test_list_backups_oldest_first(tmp_path: Path) -> None:
    loc = StorageLocation(tmp_path / "settings.json")
    for name in (
        "settings.json-300-backup",
        "settings.json-20-corrupted",
        "settings.json-1000-backup",
        "settings.json",
        "settings.json.temp",
        "other.json-10-backup",
        "settings.json-abc-backup",
        "settings.json-5-unknown",
        "settings.json.temp-50-backup",
        "settings.json.tmp-7-backup",
    ):
        (tmp_path / name).write_bytes(b"x")
    assert [p.name for p in list_backups(loc)] == [
        "settings.json-20-corrupted",
        "settings.json.temp-50-backup",
        "settings.json-300-backup",
        "settings.json-1000-backup",
    ]


def test_list_backups_missing_dir(tmp_path: Path) -> None:
    assert list_backups(StorageLocation(tmp_path / "nope" / "x.json")) == []


def test_list_backups_custom_staging_suffix(tmp_path: Path) -> None:
    loc = StorageLocation(tmp_path / "settings.json")
    (tmp_path / "settings.json.partial-9-backup").write_bytes(b"x")
    (tmp_path / "settings.json.temp-8-backup").write_bytes(b"x")
    names = [p.name for p in list_backups(loc, staging_suffix=".partial")]
    assert names == ["settings.json.partial-9-backup"]
