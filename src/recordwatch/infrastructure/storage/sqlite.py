"""SQLite storage implementation."""

import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from recordwatch.core.exceptions import StorageError
from recordwatch.core.models import CuratedAlbumEntry, OrgNotificationConfig, TrackedUser
from recordwatch.utils.datetime import ensure_isoformat, iso_to_datetime


SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    user_key TEXT PRIMARY KEY,
    username TEXT NOT NULL,
    watermark TEXT,
    last_checked_at TIMESTAMP
);

CREATE TABLE IF NOT EXISTS org_settings (
    org_key TEXT PRIMARY KEY,
    default_channel TEXT
);

CREATE TABLE IF NOT EXISTS org_channel_overrides (
    org_key TEXT NOT NULL,
    source TEXT NOT NULL,
    channel_id TEXT NOT NULL,
    PRIMARY KEY (org_key, source)
);

CREATE TABLE IF NOT EXISTS tracked_albums (
    title TEXT NOT NULL,
    artist TEXT NOT NULL,
    source TEXT NOT NULL,
    PRIMARY KEY (title, artist, source)
);

CREATE TABLE IF NOT EXISTS metadata (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_tracked_albums_source ON tracked_albums(source);
"""


class WatchStorage:
    """SQLite storage for tracked users, routing and curated albums."""

    def __init__(self, path: Path | str):
        self.path = Path(path)
        if str(path) != ":memory:":
            self.path.parent.mkdir(parents=True, exist_ok=True)
        self._conn: Optional[sqlite3.Connection] = None

    def connect(self) -> sqlite3.Connection:
        """Get or create database connection."""
        if self._conn is None:
            # The scheduler thread and manual triggers share this connection;
            # the cycle guard keeps writes single-threaded.
            self._conn = sqlite3.connect(str(self.path), check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
        return self._conn

    def initialize(self) -> None:
        """Initialize database schema."""
        try:
            conn = self.connect()
            conn.executescript(SCHEMA)
            conn.commit()
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to initialize {self.path}: {exc}") from exc

    def close(self) -> None:
        """Close database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    # Metadata helpers

    def get_metadata(self, key: str) -> Optional[str]:
        """Get metadata value by key."""
        cur = self.connect().execute("SELECT value FROM metadata WHERE key = ?", (key,))
        row = cur.fetchone()
        return row["value"] if row else None

    def set_metadata(self, key: str, value: str) -> None:
        """Set metadata value."""
        self.connect().execute(
            "REPLACE INTO metadata(key, value) VALUES(?, ?)",
            (key, value),
        )
        self.connect().commit()

    # User helpers

    def link_user(self, user_key: str, username: str) -> TrackedUser:
        """Track a user. Relinking to a different profile clears the watermark."""
        self.connect().execute(
            """
            INSERT INTO users(user_key, username, watermark, last_checked_at)
            VALUES(?, ?, NULL, NULL)
            ON CONFLICT(user_key) DO UPDATE SET
                username=excluded.username,
                watermark=CASE WHEN users.username = excluded.username THEN users.watermark ELSE NULL END
            """,
            (user_key, username),
        )
        self.connect().commit()
        user = self.get_user(user_key)
        if user is None:
            raise StorageError(f"Linked user {user_key} could not be read back from {self.path}")
        return user

    def unlink_user(self, user_key: str) -> bool:
        """Stop tracking a user. Returns False when the user was not linked."""
        cur = self.connect().execute("DELETE FROM users WHERE user_key = ?", (user_key,))
        self.connect().commit()
        return cur.rowcount > 0

    def get_user(self, user_key: str) -> Optional[TrackedUser]:
        """Get tracked user by key."""
        cur = self.connect().execute("SELECT * FROM users WHERE user_key = ?", (user_key,))
        row = cur.fetchone()
        return _row_to_user(row) if row else None

    def iter_users(self) -> Iterable[TrackedUser]:
        """Iterate over all tracked users."""
        cur = self.connect().execute("SELECT * FROM users ORDER BY user_key")
        # Materialize so callers can write while iterating
        rows = cur.fetchall()
        for row in rows:
            yield _row_to_user(row)

    def set_watermark(self, user_key: str, watermark: Optional[str], checked_at: datetime) -> None:
        """Persist watermark and last-checked time for a user."""
        self.connect().execute(
            "UPDATE users SET watermark = ?, last_checked_at = ? WHERE user_key = ?",
            (watermark, ensure_isoformat(checked_at), user_key),
        )
        self.connect().commit()

    def touch_user(self, user_key: str, checked_at: datetime) -> None:
        """Update last-checked time without moving the watermark."""
        self.connect().execute(
            "UPDATE users SET last_checked_at = ? WHERE user_key = ?",
            (ensure_isoformat(checked_at), user_key),
        )
        self.connect().commit()

    # Organization helpers

    def set_default_channel(self, org_key: str, channel_id: Optional[str]) -> None:
        """Set the fallback notification channel for an organization."""
        self.connect().execute(
            """
            INSERT INTO org_settings(org_key, default_channel) VALUES(?, ?)
            ON CONFLICT(org_key) DO UPDATE SET default_channel=excluded.default_channel
            """,
            (org_key, channel_id),
        )
        self.connect().commit()

    def set_channel_override(self, org_key: str, source: str, channel_id: Optional[str]) -> None:
        """Route one source tag to a dedicated channel; ``None`` removes the override."""
        conn = self.connect()
        conn.execute("INSERT OR IGNORE INTO org_settings(org_key, default_channel) VALUES(?, NULL)", (org_key,))
        if channel_id is None:
            conn.execute(
                "DELETE FROM org_channel_overrides WHERE org_key = ? AND source = ?",
                (org_key, source),
            )
        else:
            conn.execute(
                "REPLACE INTO org_channel_overrides(org_key, source, channel_id) VALUES(?, ?, ?)",
                (org_key, source, channel_id),
            )
        conn.commit()

    def list_org_configs(self) -> List[OrgNotificationConfig]:
        """All organization routing configs with their overrides."""
        conn = self.connect()
        overrides: Dict[str, Dict[str, str]] = {}
        for row in conn.execute("SELECT org_key, source, channel_id FROM org_channel_overrides"):
            overrides.setdefault(row["org_key"], {})[row["source"]] = row["channel_id"]
        return [
            OrgNotificationConfig(
                org_key=row["org_key"],
                default_channel=row["default_channel"],
                overrides=overrides.get(row["org_key"], {}),
            )
            for row in conn.execute("SELECT org_key, default_channel FROM org_settings ORDER BY org_key")
        ]

    # Curated album helpers

    def list_curated_albums(self) -> List[CuratedAlbumEntry]:
        """Fetch the full curated album set."""
        cur = self.connect().execute("SELECT title, artist, source FROM tracked_albums ORDER BY source, title")
        return [CuratedAlbumEntry(title=row["title"], artist=row["artist"], source=row["source"]) for row in cur]

    def replace_curated_albums(self, source: str, entries: Iterable[CuratedAlbumEntry]) -> int:
        """Replace all rows of one source in a single transaction."""
        rows = [(e.title, e.artist, source) for e in entries]
        conn = self.connect()
        try:
            with conn:
                conn.execute("DELETE FROM tracked_albums WHERE source = ?", (source,))
                conn.executemany(
                    "INSERT OR IGNORE INTO tracked_albums(title, artist, source) VALUES(?, ?, ?)",
                    rows,
                )
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to replace curated albums for {source}: {exc}") from exc
        return len(rows)


def _row_to_user(row: sqlite3.Row) -> TrackedUser:
    """Convert database row to TrackedUser."""
    return TrackedUser(
        user_key=row["user_key"],
        username=row["username"],
        watermark=row["watermark"],
        last_checked_at=iso_to_datetime(row["last_checked_at"]),
    )


__all__ = ["WatchStorage"]
