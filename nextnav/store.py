"""
Navigation history and shortcut stores.

In-memory stores back the default engine; SQLiteHistoryStore persists
history across restarts.
"""

import json
import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Optional

from .exceptions import InvalidInputError
from .models import NavigationEvent, UserCustomMenuItem

logger = logging.getLogger(__name__)


def _validate_event(event: NavigationEvent) -> None:
    if not event.user_id:
        raise InvalidInputError("user_id cannot be empty", field="user_id")


class InMemoryHistoryStore:
    """Navigation events kept per user in process memory."""

    def __init__(self):
        self._user_events: dict[str, list[NavigationEvent]] = {}

    async def add_event(self, event: NavigationEvent) -> None:
        _validate_event(event)
        self._user_events.setdefault(event.user_id, []).append(event)

    async def get_user_history(
        self, user_id: str, since: Optional[datetime] = None
    ) -> list[NavigationEvent]:
        history = list(self._user_events.get(user_id, []))
        if since is not None:
            history = [e for e in history if e.timestamp >= since]
        return history

    async def get_all_history(self, since: Optional[datetime] = None) -> list[NavigationEvent]:
        history = [e for events in self._user_events.values() for e in events]
        if since is not None:
            history = [e for e in history if e.timestamp >= since]
        return history


class InMemoryPreferencesStore:
    """Custom menu items keyed by (user_id, item_name)."""

    def __init__(self):
        self._user_menus: dict[str, dict[str, UserCustomMenuItem]] = {}

    async def add_or_update(self, item: UserCustomMenuItem) -> None:
        if not item.user_id or not item.item_name:
            raise InvalidInputError("user_id and item_name cannot be empty")
        self._user_menus.setdefault(item.user_id, {})[item.item_name] = item

    async def remove(self, user_id: str, item_name: str) -> None:
        menu = self._user_menus.get(user_id)
        if menu and menu.pop(item_name, None) is not None:
            logger.debug(f"Removed menu item '{item_name}' for user '{user_id}'")

    async def get_all(self, user_id: str) -> list[UserCustomMenuItem]:
        return sorted(self._user_menus.get(user_id, {}).values(), key=lambda i: i.order)


class SQLiteHistoryStore:
    """SQLite-backed storage for navigation events."""

    def __init__(self, db_path: Path):
        """
        Initialize the history store.

        Args:
            db_path: Database file (parent directories are created)
        """
        self.db_path = Path(db_path)
        self._conn: Optional[sqlite3.Connection] = None
        self._init_db()

    def _init_db(self) -> None:
        """Initialize database connection and schema."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
        self._conn.row_factory = sqlite3.Row

        self._create_schema()
        logger.info(f"SQLiteHistoryStore initialized: {self.db_path}")

    def _create_schema(self) -> None:
        schema = """
        CREATE TABLE IF NOT EXISTS navigation_events (
            event_id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL,
            current_page TEXT NOT NULL,
            previous_page TEXT,
            timestamp TEXT NOT NULL,
            session_id TEXT,
            context_data TEXT
        );

        CREATE INDEX IF NOT EXISTS idx_events_user ON navigation_events(user_id, timestamp);
        CREATE INDEX IF NOT EXISTS idx_events_timestamp ON navigation_events(timestamp);
        """
        try:
            self._conn.executescript(schema)
            self._conn.commit()
        except sqlite3.Error as e:
            logger.error(f"Failed to create schema: {e}")
            raise

    async def add_event(self, event: NavigationEvent) -> None:
        _validate_event(event)
        try:
            self._conn.execute(
                """
                INSERT OR REPLACE INTO navigation_events
                (event_id, user_id, current_page, previous_page, timestamp,
                 session_id, context_data)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    event.event_id,
                    event.user_id,
                    event.current_page_or_feature,
                    event.previous_page_or_feature,
                    event.timestamp.isoformat(),
                    event.session_id,
                    json.dumps(event.context_data) if event.context_data is not None else None,
                ),
            )
            self._conn.commit()
        except sqlite3.Error as e:
            logger.error(f"Failed to save event {event.event_id}: {e}")
            self._conn.rollback()
            raise

    async def get_user_history(
        self, user_id: str, since: Optional[datetime] = None
    ) -> list[NavigationEvent]:
        return self._query("user_id = ?", [user_id], since)

    async def get_all_history(self, since: Optional[datetime] = None) -> list[NavigationEvent]:
        return self._query(None, [], since)

    def _query(
        self, condition: Optional[str], params: list, since: Optional[datetime]
    ) -> list[NavigationEvent]:
        query = "SELECT * FROM navigation_events"
        if condition:
            query += f" WHERE {condition}"

        cursor = self._conn.execute(query, params)
        events = [self._row_to_event(row) for row in cursor]
        # ISO strings with differing offsets do not sort lexically, filter in Python
        if since is not None:
            events = [e for e in events if e.timestamp >= since]
        return events

    def _row_to_event(self, row: sqlite3.Row) -> NavigationEvent:
        return NavigationEvent(
            event_id=row["event_id"],
            user_id=row["user_id"],
            current_page_or_feature=row["current_page"],
            previous_page_or_feature=row["previous_page"],
            timestamp=datetime.fromisoformat(row["timestamp"]),
            session_id=row["session_id"],
            context_data=json.loads(row["context_data"]) if row["context_data"] else None,
        )

    def get_stats(self) -> dict:
        cursor = self._conn.execute(
            "SELECT COUNT(*) AS n_events, COUNT(DISTINCT user_id) AS n_users FROM navigation_events"
        )
        row = cursor.fetchone()
        return {"n_events": row["n_events"], "n_users": row["n_users"], "db_path": str(self.db_path)}

    def close(self) -> None:
        """Close database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> "SQLiteHistoryStore":
        return self

    def __exit__(self, *args) -> None:
        self.close()
