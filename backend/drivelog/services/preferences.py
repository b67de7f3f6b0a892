"""
User preferences store (tyre type, driver name).

The recorder reads these once at the start of each session so a session's
metadata stays stable for its whole duration.
"""

import json
import logging
import threading
from pathlib import Path
from typing import Optional, Protocol

from drivelog.models.session import TyreType
from drivelog.utils.atomic import atomic_write_text


logger = logging.getLogger(__name__)

DEFAULT_TYRE = TyreType.SUMMER

_UNSET = object()


class Preferences(Protocol):
    """Settings collaborator consumed by the recorder."""

    def current_tyre_type(self) -> Optional[TyreType]:
        ...

    def current_driver_name(self) -> Optional[str]:
        ...


class PreferencesStore:
    """JSON-file backed preferences."""

    def __init__(self, path: Path):
        self._path = path
        self._lock = threading.Lock()
        self._tyre_type: Optional[TyreType] = DEFAULT_TYRE
        self._driver_name: Optional[str] = None
        self._load()

    @property
    def path(self) -> Path:
        return self._path

    def current_tyre_type(self) -> Optional[TyreType]:
        with self._lock:
            return self._tyre_type

    def current_driver_name(self) -> Optional[str]:
        with self._lock:
            return self._driver_name

    def update(self, tyre_type=_UNSET, driver_name=_UNSET) -> None:
        """
        Change one or both preferences and persist them.

        Passing None clears a value; omitting an argument leaves it unchanged.
        """
        with self._lock:
            if tyre_type is not _UNSET:
                self._tyre_type = TyreType(tyre_type) if tyre_type is not None else None
            if driver_name is not _UNSET:
                self._driver_name = driver_name or None
            self._save()

    def as_dict(self) -> dict:
        with self._lock:
            return {
                "selectedTyre": self._tyre_type.value if self._tyre_type else None,
                "driverName": self._driver_name,
            }

    def _load(self) -> None:
        if not self._path.exists():
            return
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable preferences file {self._path}: {e}")
            return

        tyre = payload.get("selectedTyre", DEFAULT_TYRE.value)
        try:
            self._tyre_type = TyreType(tyre) if tyre is not None else None
        except ValueError:
            logger.warning(f"Unknown tyre type in preferences: {tyre!r}")
            self._tyre_type = None
        self._driver_name = payload.get("driverName") or None

    def _save(self) -> None:
        payload = {
            "selectedTyre": self._tyre_type.value if self._tyre_type else None,
            "driverName": self._driver_name or "",
        }
        atomic_write_text(self._path, json.dumps(payload, indent=2))
