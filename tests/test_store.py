"""Tests for the SQLite backed state store."""

import sqlite3

import pytest

from pinstate.exceptions import StoreError
from pinstate.store import PinState, StateStore


def test_open_creates_missing_file(tmp_path) -> None:
    path = tmp_path / "nested" / "gpio.db"

    store = StateStore.open(str(path))
    store.ensure_schema()
    store.close()

    assert path.exists()


def test_open_fails_for_unusable_path(tmp_path) -> None:
    blocker = tmp_path / "file"
    blocker.write_text("not a directory")

    with pytest.raises(StoreError):
        StateStore.open(str(blocker / "gpio.db"))


def test_schema_matches_expected_layout(store) -> None:
    columns = store.conn.execute("PRAGMA table_info(gpio)").fetchall()

    assert [(c[1], c[2].lower(), c[5]) for c in columns] == [("gpioID", "integer", 1), ("active", "bool", 0)]


def test_ensure_schema_is_rerunnable_on_existing_data(db_path, store) -> None:
    store.upsert(5, True)
    store.ensure_schema()

    reopened = StateStore.open(db_path)
    reopened.ensure_schema()
    try:
        assert reopened.get_all() == [PinState(5, True)]
    finally:
        reopened.close()


def test_upsert_is_idempotent(store) -> None:
    for _ in range(3):
        store.upsert(9, True)

    assert store.get_all() == [PinState(9, True)]


def test_upsert_replaces_existing_value(store) -> None:
    store.upsert(9, True)
    store.upsert(9, False)

    assert store.lookup(9) is False
    assert len(store.get_all()) == 1


def test_get_status_defaults_to_inactive(store) -> None:
    assert store.get_status(42) is False
    assert store.lookup(42) is None


def test_get_status_swallows_failures(store) -> None:
    store.conn.execute("DROP TABLE gpio")

    assert store.get_status(1) is False
    with pytest.raises(StoreError):
        store.lookup(1)


def test_upsert_failure_raises(store) -> None:
    store.conn.execute("DROP TABLE gpio")

    with pytest.raises(StoreError, match="no such table"):
        store.upsert(1, True)


def test_get_all_returns_records_in_key_order(store) -> None:
    store.upsert(3, True)
    store.upsert(1, True)
    store.upsert(2, False)

    assert store.get_all() == [PinState(1, True), PinState(2, False), PinState(3, True)]


def test_get_all_skips_rows_without_state(db_path, store) -> None:
    store.upsert(1, True)
    conn = sqlite3.connect(db_path)
    conn.execute("INSERT INTO gpio (gpioID, active) VALUES (2, NULL)")
    conn.commit()
    conn.close()

    assert store.get_all() == [PinState(1, True)]


def test_out_of_range_key_is_a_store_error(store) -> None:
    too_big = 2**64

    with pytest.raises(StoreError):
        store.upsert(too_big, True)
    with pytest.raises(StoreError):
        store.lookup(too_big)
    assert store.get_status(too_big) is False
