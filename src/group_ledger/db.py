"""SQLite storage for group membership and the append-only entry log."""

import json
import sqlite3
from datetime import datetime
from pathlib import Path

from .exceptions import SequenceError
from .models import LedgerEntry, Member


class Database:
    """SQLite database manager."""

    def __init__(self, db_path: Path):
        """Initialize database connection."""
        self.db_path = db_path
        self.conn = sqlite3.connect(str(db_path))
        self.conn.row_factory = sqlite3.Row
        self._init_schema()

    def _init_schema(self):
        """Initialize database schema."""
        cursor = self.conn.cursor()

        # Groups table (membership snapshot as a JSON array)
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS groups (
                group_id TEXT PRIMARY KEY,
                members TEXT NOT NULL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """
        )

        # Ledger entries table (append-only)
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS ledger_entries (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                group_id TEXT NOT NULL,
                sequence INTEGER NOT NULL,
                kind TEXT NOT NULL,
                payload TEXT NOT NULL,
                recorded_at TIMESTAMP NOT NULL,
                UNIQUE (group_id, sequence)
            )
        """
        )

        self.conn.commit()

    def close(self):
        """Close database connection."""
        self.conn.close()

    # ========================================================================
    # Group operations
    # ========================================================================

    def save_group(self, group_id: str, members: tuple[Member, ...] | list[Member]):
        """Create a group or replace its membership snapshot."""
        now = datetime.now().isoformat()
        cursor = self.conn.cursor()
        cursor.execute(
            """
            INSERT INTO groups (group_id, members, created_at, updated_at)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(group_id) DO UPDATE SET
                members = excluded.members,
                updated_at = excluded.updated_at
            """,
            (group_id, json.dumps(list(members)), now, now),
        )
        self.conn.commit()

    def get_group_members(self, group_id: str) -> tuple[Member, ...] | None:
        """Get a group's membership snapshot, or None if the group doesn't exist."""
        cursor = self.conn.cursor()
        cursor.execute("SELECT members FROM groups WHERE group_id = ?", (group_id,))
        row = cursor.fetchone()
        return tuple(json.loads(row["members"])) if row else None

    def list_groups(self) -> list[str]:
        """Get all group ids, oldest first."""
        cursor = self.conn.cursor()
        cursor.execute("SELECT group_id FROM groups ORDER BY created_at, group_id")
        return [row["group_id"] for row in cursor.fetchall()]

    # ========================================================================
    # Ledger entry operations
    # ========================================================================

    def append_entry(self, entry: LedgerEntry) -> int:
        """
        Append an entry to its group's log.

        Raises:
            SequenceError: If the group already has an entry with this sequence
        """
        cursor = self.conn.cursor()
        try:
            cursor.execute(
                """
                INSERT INTO ledger_entries (
                    group_id, sequence, kind, payload, recorded_at
                ) VALUES (?, ?, ?, ?, ?)
                """,
                (
                    entry.group_id,
                    entry.sequence,
                    entry.event.kind,
                    entry.model_dump_json(),
                    entry.recorded_at.isoformat(),
                ),
            )
        except sqlite3.IntegrityError as e:
            self.conn.rollback()
            raise SequenceError(
                f"Group {entry.group_id!r} already has entry #{entry.sequence}"
            ) from e
        self.conn.commit()
        row_id = cursor.lastrowid
        if row_id is None:
            raise RuntimeError("Failed to insert ledger entry")
        return row_id

    def get_entries(self, group_id: str) -> list[LedgerEntry]:
        """Get a group's entries in sequence order."""
        cursor = self.conn.cursor()
        cursor.execute(
            """
            SELECT payload
            FROM ledger_entries
            WHERE group_id = ?
            ORDER BY sequence
            """,
            (group_id,),
        )
        return [LedgerEntry.model_validate_json(row["payload"]) for row in cursor.fetchall()]
