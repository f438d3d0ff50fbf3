# store.py
# SQLite persistence of the last commanded state of each pin

import os
import sqlite3
import threading
from typing import List, NamedTuple, Optional

from .exceptions import StoreError
from .logging import log_event, get_logger

store_logger = get_logger('store')

CREATE_GPIO_TABLE_SQL = '''CREATE TABLE IF NOT EXISTS gpio (
    "gpioID" integer NOT NULL PRIMARY KEY AUTOINCREMENT,
    "active" bool
)'''

UPSERT_GPIO_SQL = '''INSERT INTO gpio(gpioID, active) VALUES (?, ?)
    ON CONFLICT(gpioID) DO UPDATE SET active=excluded.active'''

SELECT_GPIO_SQL = 'SELECT active FROM gpio WHERE gpioID = ?'

SELECT_ALL_GPIO_SQL = 'SELECT gpioID, active FROM gpio ORDER BY gpioID'


class PinState(NamedTuple):
    pin_id: int
    active: bool


class StateStore:
    """
    Durable pin_id -> active mapping.

    A single connection is shared by the request threads, so every statement
    runs under one lock. Write and scan failures raise StoreError; get_status
    keeps the quiet "unknown means inactive" contract.
    """

    def __init__(self, conn, path=None):
        self.conn = conn
        self.path = path
        self.lock = threading.Lock()

    @classmethod
    def open(cls, path):
        """Create the database file if needed and open it"""
        try:
            if path != ':memory:' and not os.path.exists(path):
                directory = os.path.dirname(os.path.abspath(path))
                os.makedirs(directory, exist_ok=True)
                open(path, 'a').close()
                log_event(store_logger, 'INFO', 'Created state database', path=path)
            conn = sqlite3.connect(path, check_same_thread=False)
        except (OSError, sqlite3.Error) as e:
            log_event(store_logger, 'ERROR', 'Could not open state database', path=path, error=str(e))
            raise StoreError(f"Could not open {path}: {e}")
        return cls(conn, path)

    def _execute(self, sql, params=(), commit=False):
        with self.lock:
            try:
                cursor = self.conn.execute(sql, params)
                rows = cursor.fetchall()
                if commit:
                    self.conn.commit()
                return rows
            except (sqlite3.Error, OverflowError) as e:
                if commit:
                    self.conn.rollback()
                raise StoreError(str(e))

    def ensure_schema(self):
        try:
            self._execute(CREATE_GPIO_TABLE_SQL, commit=True)
        except StoreError as e:
            log_event(store_logger, 'ERROR', 'Schema creation failed', error=str(e))
            raise

    def upsert(self, pin_id, active):
        try:
            self._execute(UPSERT_GPIO_SQL, (pin_id, bool(active)), commit=True)
        except StoreError as e:
            log_event(store_logger, 'ERROR', 'Pin state write failed', pin=pin_id, active=active, error=str(e))
            raise

    def lookup(self, pin_id) -> Optional[bool]:
        """Stored state for pin_id, None if never set; raises StoreError"""
        try:
            rows = self._execute(SELECT_GPIO_SQL, (pin_id,))
        except StoreError as e:
            log_event(store_logger, 'ERROR', 'Pin state lookup failed', pin=pin_id, error=str(e))
            raise
        if not rows:
            return None
        return bool(rows[0][0])

    def get_status(self, pin_id) -> bool:
        try:
            active = self.lookup(pin_id)
        except StoreError:
            return False
        if active is None:
            log_event(store_logger, 'DEBUG', 'No stored state for pin', pin=pin_id)
            return False
        return active

    def get_all(self) -> List[PinState]:
        try:
            rows = self._execute(SELECT_ALL_GPIO_SQL)
        except StoreError as e:
            log_event(store_logger, 'ERROR', 'Pin state scan failed', error=str(e))
            raise

        states = []
        for pin_id, active in rows:
            if active is None:
                log_event(store_logger, 'WARN', 'Skipping unreadable row', pin=pin_id, active=active)
                continue
            states.append(PinState(int(pin_id), bool(active)))
        return states

    def close(self):
        with self.lock:
            self.conn.close()
