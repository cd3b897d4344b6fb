"""
SQLite-backed snapshot persistence for Lifeline sessions.

Stores snapshot metadata in columns for fast listing, and the full
snapshot as a zlib-compressed JSON blob.

Database failures are logged as warnings and never crash the app; the
store degrades to reporting "not saved" / "nothing stored".  A blob that
cannot be decoded raises ``DataContractViolation`` so the session can fall
back to a fresh game and report the failure.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import zlib
from datetime import datetime, timezone
from typing import Any

from lifeline.core.errors import DataContractViolation
from lifeline.core.session import SnapshotStorage

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Blob compress / decompress
# ---------------------------------------------------------------------------

def compress_snapshot(snapshot: dict[str, Any]) -> bytes:
    """Serialize a snapshot dict to zlib-compressed JSON bytes."""
    json_bytes = json.dumps(snapshot, default=str).encode("utf-8")
    return zlib.compress(json_bytes, level=6)


def decompress_snapshot(blob: bytes) -> dict[str, Any]:
    """Decompress a zlib blob and parse JSON.  Raises on corrupt data."""
    try:
        data = json.loads(zlib.decompress(blob).decode("utf-8"))
    except (zlib.error, UnicodeDecodeError, json.JSONDecodeError, TypeError) as exc:
        raise DataContractViolation(f"Corrupt snapshot blob: {exc}") from exc
    if not isinstance(data, dict):
        raise DataContractViolation("Snapshot blob does not hold an object")
    return data


# ---------------------------------------------------------------------------
# SQLite SnapshotStore
# ---------------------------------------------------------------------------

_SCHEMA = """
CREATE TABLE IF NOT EXISTS snapshots (
    key TEXT PRIMARY KEY,
    character_name TEXT,
    age INTEGER,
    game_year INTEGER NOT NULL DEFAULT 0,
    is_game_started INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    snapshot_blob BLOB
);
"""


class SnapshotStore(SnapshotStorage):
    """SQLite-backed storage for session snapshots.

    Thread-safety: uses ``check_same_thread=False`` so FastAPI's
    thread pool can access it.  Writes are serialized by SQLite's
    internal locking.
    """

    def __init__(self, db_path: str = "data/lifeline.db"):
        self.db_path = db_path
        self._conn: sqlite3.Connection | None = None
        self._init_db()

    def _init_db(self) -> None:
        """Open connection and create table if needed."""
        try:
            self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
            if self.db_path != ":memory:":
                self._conn.execute("PRAGMA journal_mode=WAL")
            self._conn.execute(_SCHEMA)
            self._conn.commit()
        except Exception:
            logger.warning(
                "Failed to open SQLite database at %s; "
                "snapshots will not be persisted",
                self.db_path,
                exc_info=True,
            )
            self._conn = None

    @property
    def available(self) -> bool:
        """True if the database connection is open."""
        return self._conn is not None

    # ---- SnapshotStorage ----

    def save(self, key: str, snapshot: dict[str, Any]) -> bool:
        """Insert or replace the snapshot stored under ``key``."""
        if not self.available:
            return False
        character = snapshot.get("character") or {}
        now = datetime.now(timezone.utc).isoformat()
        try:
            self._conn.execute(  # type: ignore[union-attr]
                """
                INSERT INTO snapshots
                    (key, character_name, age, game_year, is_game_started,
                     created_at, updated_at, snapshot_blob)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    character_name = excluded.character_name,
                    age = excluded.age,
                    game_year = excluded.game_year,
                    is_game_started = excluded.is_game_started,
                    updated_at = excluded.updated_at,
                    snapshot_blob = excluded.snapshot_blob
                """,
                (
                    key,
                    character.get("name"),
                    character.get("age"),
                    int(snapshot.get("gameYear", 0)),
                    int(bool(snapshot.get("isGameStarted", False))),
                    now, now,
                    compress_snapshot(snapshot),
                ),
            )
            self._conn.commit()  # type: ignore[union-attr]
            return True
        except Exception:
            logger.warning("Failed to save snapshot %s", key, exc_info=True)
            return False

    def load(self, key: str) -> dict[str, Any] | None:
        """Return the decoded snapshot, or None if absent or the DB failed."""
        if not self.available:
            return None
        try:
            cur = self._conn.execute(  # type: ignore[union-attr]
                "SELECT snapshot_blob FROM snapshots WHERE key = ?", (key,),
            )
            row = cur.fetchone()
        except Exception:
            logger.warning("Failed to load snapshot %s", key, exc_info=True)
            return None
        if row is None or row[0] is None:
            return None
        return decompress_snapshot(row[0])

    # ---- Extra operations ----

    def delete(self, key: str) -> None:
        """Remove a snapshot."""
        if not self.available:
            return
        try:
            self._conn.execute(  # type: ignore[union-attr]
                "DELETE FROM snapshots WHERE key = ?", (key,),
            )
            self._conn.commit()  # type: ignore[union-attr]
        except Exception:
            logger.warning("Failed to delete snapshot %s", key, exc_info=True)

    def has(self, key: str) -> bool:
        if not self.available:
            return False
        try:
            cur = self._conn.execute(  # type: ignore[union-attr]
                "SELECT 1 FROM snapshots WHERE key = ?", (key,),
            )
            return cur.fetchone() is not None
        except Exception:
            return False

    def list_snapshots(self) -> list[dict[str, Any]]:
        """Metadata for all stored snapshots (no blob)."""
        if not self.available:
            return []
        try:
            cur = self._conn.execute(  # type: ignore[union-attr]
                """
                SELECT key, character_name, age, game_year, is_game_started,
                       created_at, updated_at
                FROM snapshots
                ORDER BY updated_at DESC
                """,
            )
            return [
                {
                    "key": r[0],
                    "character_name": r[1],
                    "age": r[2],
                    "game_year": r[3],
                    "is_game_started": bool(r[4]),
                    "created_at": r[5],
                    "updated_at": r[6],
                }
                for r in cur.fetchall()
            ]
        except Exception:
            logger.warning("Failed to list snapshots", exc_info=True)
            return []

    def close(self) -> None:
        """Close the database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None
