"""
Durable session id counter.
"""

import json
import logging
import threading
from pathlib import Path

from drivelog.errors import CounterError
from drivelog.utils.atomic import atomic_write_text


logger = logging.getLogger(__name__)

COUNTER_KEY = "lastSessionId"


class SessionCounter:
    """
    Process-wide monotonically increasing session id, persisted across restarts.

    The file holds the last issued id; the next id is that value plus one and
    is written back before it is handed out, so an id is never reused even if
    the process dies right after allocation.
    """

    def __init__(self, path: Path):
        self._path = path
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def peek(self) -> int:
        """Return the last issued id (0 if none has been issued yet)."""
        with self._lock:
            return self._read()

    def next_id(self) -> int:
        """Increment the persisted counter and return the new id."""
        with self._lock:
            new_id = self._read() + 1
            try:
                atomic_write_text(self._path, json.dumps({COUNTER_KEY: new_id}))
            except OSError as e:
                raise CounterError(f"Failed to persist session counter {self._path}: {e}") from e
            logger.debug(f"Allocated session id {new_id}")
            return new_id

    def _read(self) -> int:
        if not self._path.exists():
            return 0
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
            value = int(payload[COUNTER_KEY])
        except (OSError, ValueError, KeyError, TypeError) as e:
            raise CounterError(f"Corrupt session counter {self._path}: {e}") from e
        if value < 0:
            raise CounterError(f"Negative session counter in {self._path}: {value}")
        return value
