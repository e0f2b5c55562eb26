# src/screencast_tasks/tasks/task_store.py

from __future__ import annotations

import contextlib
import logging
import sqlite3
from collections.abc import Iterator
from datetime import datetime, timezone
from pathlib import Path

from ..core.errors import StoreError
from .task_models import StoredTask, Task, to_utc

logger = logging.getLogger(__name__)


class TaskStore:
    """
    SQLite task store.

    Table `tasks`:
    - id   INTEGER primary key (row identity, used for deletion)
    - date REAL unix timestamp (when the task becomes due)
    - json TEXT encoded task
    - key  TEXT unique dedupe key

    Thread-safety:
    - each method opens its own SQLite connection
    - no transaction spans more than one call

    Every sqlite3 failure surfaces as StoreError.
    """

    def __init__(self, db_path: str | Path = "tasks.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        try:
            total = self.count_tasks()
        except StoreError:
            total = -1
        logger.info("TaskStore ready db=%s total=%s", self._db_path, total)

    @property
    def db_path(self) -> Path:
        return self._db_path

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        self._configure_conn(conn)
        return conn

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")

    @contextlib.contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        try:
            conn = self._get_conn()
        except sqlite3.Error as exc:
            raise StoreError(f"cannot open {self._db_path}: {exc}") from exc
        try:
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
                CREATE TABLE IF NOT EXISTS tasks (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    date REAL NOT NULL,
                    json TEXT NOT NULL,
                    key TEXT NOT NULL UNIQUE
                )
                """
            )
            cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_date ON tasks(date, id)")
            conn.commit()

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> StoredTask:
        return StoredTask(
            id=int(row["id"]),
            due_at=datetime.fromtimestamp(float(row["date"]), tz=timezone.utc),
            payload=str(row["json"]),
            dedupe_key=str(row["key"]),
        )

    # ---- public API ----

    def count_tasks(self) -> int:
        with self._connection() as conn:
            (n,) = conn.execute("SELECT COUNT(*) FROM tasks").fetchone()
            return int(n)

    def upsert(self, at: datetime, task: Task) -> None:
        """
        Schedule `task` to run at `at`.

        Inserts a new row, or, when a row with the same dedupe key exists,
        overwrites its date and payload in place (the row keeps its id).
        """
        key = task.dedupe_key(at)
        payload = task.encode().decode("utf-8")
        ts = to_utc(at).timestamp()

        with self._connection() as conn:
            conn.execute(
                """
                INSERT INTO tasks(date, json, key)
                VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    date = excluded.date,
                    json = excluded.json
                """,
                (ts, payload, key),
            )
            conn.commit()
        logger.debug("Task scheduled key=%s at=%s", key, at.isoformat())

    def due_tasks(self, *, now: datetime | None = None, limit: int | None = None) -> list[StoredTask]:
        """
        Rows with date <= now, earliest first; ties in insertion order.

        Read-only: nothing is claimed or modified.
        """
        now_ts = to_utc(now).timestamp() if now is not None else datetime.now(timezone.utc).timestamp()

        sql = "SELECT id, date, json, key FROM tasks WHERE date <= ? ORDER BY date ASC, id ASC"
        params: list[float | int] = [now_ts]
        if limit is not None:
            sql += " LIMIT ?"
            params.append(int(limit))

        with self._connection() as conn:
            rows = conn.execute(sql, params).fetchall()
            return [self._row_to_task(r) for r in rows]

    def delete(self, row: StoredTask | int) -> None:
        """Remove exactly one row by id. Deleting a row that is already gone is a no-op."""
        task_id = row.id if isinstance(row, StoredTask) else int(row)
        with self._connection() as conn:
            cur = conn.execute("DELETE FROM tasks WHERE id = ?", (task_id,))
            conn.commit()
            if cur.rowcount == 0:
                logger.debug("Task %s already deleted", task_id)

    def get_by_key(self, key: str) -> StoredTask | None:
        with self._connection() as conn:
            row = conn.execute("SELECT id, date, json, key FROM tasks WHERE key = ?", (key,)).fetchone()
            return self._row_to_task(row) if row else None

    def list_tasks(self, limit: int = 100) -> list[StoredTask]:
        """All rows (due or not), earliest first."""
        with self._connection() as conn:
            rows = conn.execute(
                "SELECT id, date, json, key FROM tasks ORDER BY date ASC, id ASC LIMIT ?",
                (int(limit),),
            ).fetchall()
            return [self._row_to_task(r) for r in rows]
