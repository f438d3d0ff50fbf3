"""Shared pytest fixtures and fakes."""

import pytest

from api import create_app
from pinstate.config import Settings
from pinstate.context import PinContext
from pinstate.exceptions import StoreError
from pinstate.logging import configure_logging
from pinstate.store import StateStore


class RecordingPins:
    """Pin controller fake that remembers every set_level call."""

    def __init__(self):
        self.calls = []

    def set_level(self, pin_id, active):
        self.calls.append((pin_id, active))


class BrokenStore:
    """State store whose reads and writes always fail."""

    def __init__(self):
        self.upserts = 0

    def upsert(self, pin_id, active):
        self.upserts += 1
        raise StoreError("database is locked")

    def lookup(self, pin_id):
        raise StoreError("database is locked")

    def get_status(self, pin_id):
        return False

    def get_all(self):
        raise StoreError("database is locked")


@pytest.fixture(autouse=True)
def quiet_logging():
    """Console-only logging, rebuilt so handlers write to the current stderr."""
    configure_logging('', 'INFO')


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "gpio.db")


@pytest.fixture
def store(db_path):
    state_store = StateStore.open(db_path)
    state_store.ensure_schema()
    yield state_store
    state_store.close()


@pytest.fixture
def pins():
    return RecordingPins()


@pytest.fixture
def settings(db_path):
    return Settings(dbfile=db_path, simulate=True, log_dir='')


@pytest.fixture
def make_client(store, pins, settings):
    """Return a factory building a test client; keyword args override context parts."""

    def factory(**overrides):
        context = PinContext(
            store=overrides.get('store', store),
            pins=overrides.get('pins', pins),
            settings=overrides.get('settings', settings),
        )
        return create_app(context).test_client()

    return factory


@pytest.fixture
def client(make_client):
    return make_client()
