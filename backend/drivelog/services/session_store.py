"""
Session Store - persists finalized sessions and manages the session archive.

One pretty-printed JSON file per finalized session, named after the local
finalize time and the session id:

    2024-05-01_14-03-22_session_17.json

The file name doubles as the session's archive reference.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Iterable

from drivelog.errors import InvalidSessionRef, PersistenceFailure, SessionNotFound
from drivelog.models.session import Session, SessionSummary
from drivelog.utils.atomic import atomic_write_text


logger = logging.getLogger(__name__)

SESSION_EXT = ".json"
FILENAME_TIME_FORMAT = "%Y-%m-%d_%H-%M-%S"


def session_filename(session: Session) -> str:
    """Build the archive file name for a sealed session."""
    if session.session_end is None:
        raise ValueError(f"Session {session.session_id} has no end time")
    stamp = datetime.fromtimestamp(session.session_end).strftime(FILENAME_TIME_FORMAT)
    return f"{stamp}_session_{session.session_id}{SESSION_EXT}"


class SessionStore:
    """
    File-system archive of finalized sessions.

    Never touches the recorder's active in-memory session: it only sees
    sessions after they have been sealed.
    """

    def __init__(self, data_folder: Path):
        self._data_folder = data_folder
        self._data_folder.mkdir(parents=True, exist_ok=True)

    @property
    def data_folder(self) -> Path:
        return self._data_folder

    def persist(self, session: Session) -> Path:
        """
        Write a sealed session to the archive.

        Returns:
            Path of the written file

        Raises:
            PersistenceFailure: the session is still open, could not be
                serialized, or the file could not be written. No partial
                file is left behind.
        """
        if not session.is_sealed:
            raise PersistenceFailure(f"Session {session.session_id} is still open")

        try:
            filepath = self._data_folder / session_filename(session)
            text = json.dumps(session.to_dict(), indent=2, allow_nan=False)
            atomic_write_text(filepath, text, overwrite=False)
        except (OSError, ValueError, TypeError, OverflowError) as e:
            raise PersistenceFailure(f"Failed to save session {session.session_id}: {e}") from e

        logger.info(f"Session saved to: {filepath}")
        return filepath

    def list_sessions(self) -> list[SessionSummary]:
        """
        List all persisted sessions, newest first.

        Files that cannot be parsed are logged and skipped.
        """
        summaries = []
        for filepath in self._session_files():
            try:
                session = self._read(filepath)
            except (OSError, ValueError, KeyError, TypeError) as e:
                logger.warning(f"Skipping unreadable session file {filepath.name}: {e}")
                continue
            summaries.append(SessionSummary.from_session(filepath.name, session))

        summaries.sort(
            key=lambda s: (s.session_end or s.session_start, s.ref),
            reverse=True,
        )
        logger.debug(f"Listed {len(summaries)} sessions in {self._data_folder}")
        return summaries

    def count(self) -> int:
        return len(self._session_files())

    def load_session(self, ref: str) -> Session:
        filepath = self._resolve(ref)
        try:
            return self._read(filepath)
        except (OSError, ValueError, KeyError, TypeError) as e:
            raise PersistenceFailure(f"Failed to read session {ref}: {e}") from e

    def delete(self, ref: str) -> None:
        filepath = self._resolve(ref)
        try:
            filepath.unlink()
        except FileNotFoundError as e:
            raise SessionNotFound(f"Session not found: {ref}") from e
        logger.info(f"Deleted file: {filepath}")

    def export_refs(self, refs: Iterable[str]) -> list[Path]:
        """Resolve refs to absolute file paths for a sharing collaborator."""
        return [self._resolve(ref).resolve() for ref in refs]

    def _session_files(self) -> list[Path]:
        if not self._data_folder.exists():
            logger.warning(f"Sessions folder does not exist: {self._data_folder}")
            return []
        return sorted(p for p in self._data_folder.glob(f"*{SESSION_EXT}") if p.is_file())

    def _resolve(self, ref: str) -> Path:
        if not ref or "/" in ref or "\\" in ref or ref in (".", "..") or not ref.endswith(SESSION_EXT):
            raise InvalidSessionRef(f"Invalid session reference: {ref!r}")
        filepath = self._data_folder / ref
        if not filepath.is_file():
            raise SessionNotFound(f"Session not found: {ref}")
        return filepath

    def _read(self, filepath: Path) -> Session:
        with open(filepath, "r", encoding="utf-8") as f:
            return Session.from_dict(json.load(f))
