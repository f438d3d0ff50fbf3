# context.py
# Process-wide handles built once at startup and handed to the API
import threading
from collections import defaultdict
from contextlib import contextmanager
from dataclasses import dataclass, field

from .config import Settings


@dataclass
class PinContext:
    store: object
    pins: object
    settings: Settings = field(default_factory=Settings)
    _pin_locks: dict = field(default_factory=lambda: defaultdict(threading.Lock), repr=False)
    _locks_guard: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @contextmanager
    def pin_guard(self, pin_id):
        """Serialize hardware write + upsert per pin when serialize_writes is on"""
        if not self.settings.serialize_writes:
            yield
            return

        with self._locks_guard:
            lock = self._pin_locks[pin_id]
        with lock:
            yield
