"""Tests for replaying stored pin state at startup."""

import pytest

from conftest import BrokenStore, RecordingPins
from pinstate.exceptions import StoreError
from pinstate.recovery import RecoveryRunner


def test_replays_every_record_once(store, pins) -> None:
    for pin_id, active in [(1, True), (2, False), (3, True)]:
        store.upsert(pin_id, active)

    count = RecoveryRunner(store, pins).run()

    assert count == 3
    assert sorted(pins.calls) == [(1, True), (2, False), (3, True)]


def test_empty_store_drives_nothing(store, pins) -> None:
    assert RecoveryRunner(store, pins).run() == 0
    assert pins.calls == []


def test_scan_failure_propagates() -> None:
    pins = RecordingPins()

    with pytest.raises(StoreError):
        RecoveryRunner(BrokenStore(), pins).run()
    assert pins.calls == []
