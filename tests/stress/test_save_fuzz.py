# SPDX-FileCopyrightText: 2026 Keepsake authors
#
# SPDX-License-Identifier: Apache-2.0

"""Stateful fuzzer for the save/load protocol.

Interleaves saves, failing saves, simulated crashes mid-save, and on-disk
corruption, and checks after every step that the target is either absent
or decodes to the last value that was successfully saved.
Gated behind --run-stress.
"""

from __future__ import annotations

import itertools
import shutil
import tempfile
from pathlib import Path
from typing import Any, TypeVar

import pytest
from hypothesis import settings
from hypothesis import strategies as st
from hypothesis.stateful import RuleBasedStateMachine, invariant, rule

from keepsake.backup import list_backups
from keepsake.config import KeepsakeConfig
from keepsake.errors import DecodeError
from keepsake.loader import Loader
from keepsake.location import StorageLocation
from keepsake.result import Absent, Corrupted, Loaded, Saved, SaveFailed
from keepsake.saver import Saver
from keepsake.serializer import JsonSerializer

pytestmark = pytest.mark.stress

T = TypeVar("T")

values = st.dictionaries(
    st.text(max_size=8),
    st.integers() | st.text(max_size=16) | st.booleans() | st.none(),
    max_size=6,
)


class FlakySerializer(JsonSerializer):
    """Decode fails while ``broken`` is set."""

    def __init__(self) -> None:
        super().__init__()
        self.broken = False

    def decode(self, data: bytes, type_: type[T]) -> T:
        if self.broken:
            raise DecodeError("injected")
        return super().decode(data, type_)


class SaveLoadStateMachine(RuleBasedStateMachine):
    """Shadow state is the last value that reached the target."""

    def __init__(self) -> None:
        super().__init__()
        self._dir = Path(tempfile.mkdtemp(prefix="keepsake-fuzz-"))
        self._ticks = itertools.count(1)
        self._serializer = FlakySerializer()
        self._compressed = False
        self._saver = Saver(self._serializer, clock=self._clock)
        self._loader = Loader(clock=self._clock)
        self._target = StorageLocation(self._dir / "state.json")
        self._expected: dict[str, Any] | None = None
        self._corrupted = 0

    def _clock(self) -> int:
        # Strictly increasing so backups never collide.
        return next(self._ticks)

    @rule(value=values)
    def save(self, value: dict[str, Any]) -> None:
        self._serializer.broken = False
        assert isinstance(self._saver.save(value, self._target), Saved)
        self._expected = value

    @rule(value=values)
    def failing_save(self, value: dict[str, Any]) -> None:
        self._serializer.broken = True
        try:
            assert isinstance(self._saver.save(value, self._target), SaveFailed)
        finally:
            self._serializer.broken = False

    @rule(junk=st.binary(max_size=32))
    def crash_mid_save(self, junk: bytes) -> None:
        """Leave a half-written staging file behind, as a killed process would."""
        self._target.staging().path.write_bytes(junk)

    @rule(junk=st.binary(min_size=1, max_size=32))
    def corrupt_target(self, junk: bytes) -> None:
        if self._expected is None:
            return
        self._target.path.write_bytes(b"\x00" + junk)
        result = self._loader.load(dict, self._target)
        assert isinstance(result, Corrupted)
        self._expected = None
        self._corrupted += 1

    @invariant()
    def target_matches_last_save(self) -> None:
        result = self._loader.load(dict, self._target, report_errors=False)
        if self._expected is None:
            assert result == Absent()
        else:
            assert result == Loaded(self._expected)

    @invariant()
    def one_corrupted_backup_per_quarantine(self) -> None:
        names = [p.name for p in list_backups(self._target)]
        assert sum(n.endswith("-corrupted") for n in names) == self._corrupted

    def teardown(self) -> None:
        shutil.rmtree(self._dir, ignore_errors=True)


SaveLoadStateMachine.TestCase.settings = settings(
    max_examples=200, stateful_step_count=30, deadline=None
)
test_save_load_fuzz = SaveLoadStateMachine.TestCase


def test_unimportant_fuzz_leaves_no_backups() -> None:
    """Unimportant targets never accumulate backup files, however saves fail."""
    directory = Path(tempfile.mkdtemp(prefix="keepsake-fuzz-"))
    try:
        serializer = FlakySerializer()
        config = KeepsakeConfig(unimportant=frozenset({"cache"}))
        saver = Saver(serializer, config)
        target = StorageLocation(directory / "cache.json")
        for i in range(50):
            serializer.broken = i % 3 == 0
            saver.save({"i": i}, target)
        assert list_backups(target) == []
        assert {p.name for p in directory.iterdir()} == {"cache.json"}
    finally:
        shutil.rmtree(directory, ignore_errors=True)
