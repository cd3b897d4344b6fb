"""
Session manager: one GameSession per player profile.

Sessions share a single SnapshotStore and save under their own profile
id.  On startup nothing is loaded; a stored profile is restored on first
access.  Saving stays explicit (or per-profile ``auto_save``).
"""

from __future__ import annotations

import logging
import uuid
from typing import Any

from lifeline.api.persistence import SnapshotStore
from lifeline.core.config import GameConfig
from lifeline.core.events import EventCatalog
from lifeline.core.session import GameSession

logger = logging.getLogger(__name__)


class SessionManager:
    """Manages multiple game sessions with optional SQLite persistence.

    Parameters
    ----------
    db_path : str | None
        Path to the SQLite database file.  ``None`` disables persistence
        (pure in-memory mode).  Default ``"data/lifeline.db"``.
    catalog : EventCatalog | None
        Shared event catalog; the bundled catalog when omitted.
    """

    def __init__(
        self,
        db_path: str | None = "data/lifeline.db",
        catalog: EventCatalog | None = None,
    ):
        self.sessions: dict[str, GameSession] = {}
        self.catalog = catalog if catalog is not None else EventCatalog.load()

        self._store: SnapshotStore | None = None
        if db_path is not None:
            self._store = SnapshotStore(db_path)

    def _build_session(self, session_id: str, config: GameConfig) -> GameSession:
        return GameSession(
            config=config,
            catalog=self.catalog,
            storage=self._store,
            storage_key=session_id,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def create_session(self, config: GameConfig | None = None) -> tuple[str, GameSession]:
        """Create an empty (not started) session for a new profile."""
        session_id = uuid.uuid4().hex[:8]
        config = config or GameConfig()
        session = self._build_session(session_id, config)
        self.sessions[session_id] = session
        return session_id, session

    def get_session(self, session_id: str) -> GameSession:
        """Get a session by id, restoring it from storage if needed.

        Raises KeyError if not found in memory or storage.
        """
        if session_id in self.sessions:
            return self.sessions[session_id]

        if self._store is not None and self._store.has(session_id):
            # load_game swaps in the config stored with the snapshot
            session = self._build_session(session_id, GameConfig())
            result = session.load_game()
            if not result.ok:
                logger.warning(
                    "Profile %s could not be restored: %s", session_id, result.error,
                )
            self.sessions[session_id] = session
            return session

        raise KeyError(f"Session '{session_id}' not found")

    def delete_session(self, session_id: str) -> None:
        """Delete a session from memory and storage."""
        in_memory = session_id in self.sessions
        in_db = self._store is not None and self._store.has(session_id)
        if not in_memory and not in_db:
            raise KeyError(f"Session '{session_id}' not found")

        self.sessions.pop(session_id, None)
        if self._store is not None:
            self._store.delete(session_id)

    def list_sessions(self) -> list[dict[str, Any]]:
        """Summaries of in-memory and stored-but-not-loaded sessions."""
        seen: set[str] = set()
        result: list[dict[str, Any]] = []

        for sid, session in self.sessions.items():
            seen.add(sid)
            state = session.state
            result.append({
                "id": sid,
                "character_name": state.character.name if state.character else None,
                "age": state.character.age if state.character else None,
                "game_year": state.game_year,
                "status": state.status.value,
            })

        if self._store is not None:
            for meta in self._store.list_snapshots():
                if meta["key"] in seen:
                    continue
                result.append({
                    "id": meta["key"],
                    "character_name": meta["character_name"],
                    "age": meta["age"],
                    "game_year": meta["game_year"],
                    "status": "stored",
                })

        return result

    def close(self) -> None:
        """Close the persistence store."""
        if self._store is not None:
            self._store.close()
