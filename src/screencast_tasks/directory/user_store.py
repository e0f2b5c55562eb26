# src/screencast_tasks/directory/user_store.py

from __future__ import annotations

import contextlib
import logging
import sqlite3
import time
from collections.abc import Iterator
from pathlib import Path
from uuid import UUID

from ..core.errors import StoreError
from ..core.models import TeamMember, User

logger = logging.getLogger(__name__)


class UserStore:
    """
    SQLite user directory.

    Lives in the same database file as the task table. Only what the task
    executor needs: users and their team members.
    """

    def __init__(self, db_path: str | Path = "tasks.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        logger.info("UserStore ready db=%s", self._db_path)

    # ---- low-level helpers ----

    @contextlib.contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        try:
            conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        except sqlite3.Error as exc:
            raise StoreError(f"cannot open {self._db_path}: {exc}") from exc
        conn.row_factory = sqlite3.Row
        try:
            conn.execute("PRAGMA foreign_keys=ON")
            yield conn
        except sqlite3.Error as exc:
            raise StoreError(f"{self._db_path}: {exc}") from exc
        finally:
            conn.close()

    def _ensure_schema(self) -> None:
        with self._connection() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS users (
                    id TEXT PRIMARY KEY,
                    email TEXT NOT NULL,
                    name TEXT NOT NULL DEFAULT ''
                )
                """
            )
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS team_members (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
                    team_member_id TEXT NOT NULL,
                    created_at REAL NOT NULL,
                    UNIQUE(user_id, team_member_id)
                )
                """
            )
            cur.execute("CREATE INDEX IF NOT EXISTS idx_team_members_user ON team_members(user_id)")
            conn.commit()

    @staticmethod
    def _row_to_user(row: sqlite3.Row) -> User:
        return User(id=UUID(row["id"]), email=str(row["email"]), name=str(row["name"] or ""))

    # ---- UserDirectory ----

    def lookup_user(self, user_id: UUID) -> User | None:
        with self._connection() as conn:
            row = conn.execute("SELECT id, email, name FROM users WHERE id = ?", (str(user_id),)).fetchone()
            return self._row_to_user(row) if row else None

    def team_members(self, user: User) -> list[TeamMember]:
        with self._connection() as conn:
            rows = conn.execute(
                """
                SELECT user_id, team_member_id, created_at
                FROM team_members
                WHERE user_id = ?
                ORDER BY created_at ASC, id ASC
                """,
                (str(user.id),),
            ).fetchall()
            return [
                TeamMember(
                    user_id=UUID(r["user_id"]),
                    team_member_id=UUID(r["team_member_id"]),
                    created_at=float(r["created_at"]),
                )
                for r in rows
            ]

    # ---- writes ----

    def add_user(self, user: User) -> None:
        with self._connection() as conn:
            conn.execute(
                """
                INSERT INTO users(id, email, name) VALUES (?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET email = excluded.email, name = excluded.name
                """,
                (str(user.id), user.email, user.name),
            )
            conn.commit()

    def add_team_member(self, user_id: UUID, team_member_id: UUID) -> bool:
        """Returns False if the member was already on the team."""
        with self._connection() as conn:
            cur = conn.execute(
                """
                INSERT OR IGNORE INTO team_members(user_id, team_member_id, created_at)
                VALUES (?, ?, ?)
                """,
                (str(user_id), str(team_member_id), time.time()),
            )
            conn.commit()
            return cur.rowcount == 1

    def remove_team_member(self, user_id: UUID, team_member_id: UUID) -> bool:
        """Returns False if there was nothing to remove."""
        with self._connection() as conn:
            cur = conn.execute(
                "DELETE FROM team_members WHERE user_id = ? AND team_member_id = ?",
                (str(user_id), str(team_member_id)),
            )
            conn.commit()
            return cur.rowcount == 1

    def delete_user(self, user_id: UUID) -> None:
        with self._connection() as conn:
            conn.execute("DELETE FROM users WHERE id = ?", (str(user_id),))
            conn.commit()
