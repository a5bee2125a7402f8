"""
Task store for the API.

``TaskStore`` owns the one SQLite connection the service uses.  It is
constructed once in the application lifespan, attached to ``app.state``, and
handed to each route through the ``get_store`` dependency.  Every public
method performs a single statement (or a read followed by a write) and
commits before returning.

Store failures surface as ``StoreError``; a missing row on update/delete is
the ``TaskNotFoundError`` subclass.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

from fastapi import Request

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS tasks (
    id     INTEGER PRIMARY KEY AUTOINCREMENT,
    name   TEXT    NOT NULL,
    info   TEXT    NOT NULL DEFAULT '',
    isDone INTEGER NOT NULL DEFAULT 0
)
"""

_SELECT_COLUMNS = "id, name, info, isDone"

# SQLite INTEGER is a signed 64-bit value; larger ids cannot be bound
MIN_TASK_ID = -(2 ** 63)
MAX_TASK_ID = 2 ** 63 - 1


class StoreError(Exception):
    """A persistence operation failed."""


class TaskNotFoundError(StoreError):
    """No task row matches the requested id."""

    def __init__(self, task_id: int, action: str) -> None:
        self.task_id = task_id
        super().__init__(f"Record to {action} not found: no task with id={task_id}")


class _Unset:
    """Marker for a patch field that was not supplied."""
    _instance: _Unset | None = None

    def __new__(cls) -> _Unset:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET = _Unset()


@dataclass(frozen=True)
class TaskPatch:
    """Field changes for one task.

    Each field is either ``UNSET`` (leave the stored value alone) or the new
    value to write.
    """

    name: str | _Unset = UNSET
    info: str | _Unset = UNSET
    isDone: bool | _Unset = UNSET

    def changes(self) -> dict[str, Any]:
        """Return only the fields that carry a value."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not UNSET
        }

    def is_empty(self) -> bool:
        return not self.changes()


def _row_to_task(row: sqlite3.Row) -> dict[str, Any]:
    task = dict(row)
    task["isDone"] = bool(task["isDone"])
    return task


class TaskStore:
    """SQLite-backed task table accessed through a single shared connection.

    The connection is opened with ``check_same_thread=False`` because
    FastAPI runs sync routes in a threadpool; a lock serialises use of it.
    """

    def __init__(self, db_path: str | Path) -> None:
        self.db_path = Path(db_path)
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.Lock()

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    @property
    def connected(self) -> bool:
        return self._conn is not None

    def connect(self) -> None:
        """Open the connection, apply pragmas, and create the table if missing.

        Raises:
            StoreError: If the database cannot be opened or initialised.
        """
        try:
            conn = sqlite3.connect(str(self.db_path), check_same_thread=False,
                                   timeout=10)
        except sqlite3.Error as exc:
            raise StoreError(f"Could not open database at '{self.db_path}': {exc}") from exc
        try:
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA synchronous=NORMAL")
            conn.execute("PRAGMA busy_timeout=5000")
            with conn:
                conn.execute(_SCHEMA)
        except sqlite3.Error as exc:
            conn.close()
            raise StoreError(f"Could not initialise database at '{self.db_path}': {exc}") from exc
        with self._lock:
            self._conn = conn

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    def _require_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StoreError("Task store is not connected")
        return self._conn

    # ── Operations ────────────────────────────────────────────────────────────

    def count_tasks(self) -> int:
        with self._lock:
            conn = self._require_conn()
            try:
                return conn.execute("SELECT COUNT(*) FROM tasks").fetchone()[0]
            except sqlite3.Error as exc:
                raise StoreError(str(exc)) from exc

    def list_tasks(self) -> list[dict[str, Any]]:
        """Return every task in id order."""
        with self._lock:
            conn = self._require_conn()
            try:
                rows = conn.execute(
                    f"SELECT {_SELECT_COLUMNS} FROM tasks ORDER BY id"
                ).fetchall()
            except sqlite3.Error as exc:
                raise StoreError(str(exc)) from exc
        return [_row_to_task(r) for r in rows]

    def create_task(self, name: str, info: str = "", is_done: bool = False) -> dict[str, Any]:
        """Insert a task and return it with its assigned id."""
        with self._lock:
            conn = self._require_conn()
            try:
                with conn:
                    cur = conn.execute(
                        "INSERT INTO tasks (name, info, isDone) VALUES (?, ?, ?)",
                        (name, info, int(is_done)),
                    )
                    row = conn.execute(
                        f"SELECT {_SELECT_COLUMNS} FROM tasks WHERE id = ?",
                        (cur.lastrowid,),
                    ).fetchone()
            except sqlite3.Error as exc:
                raise StoreError(str(exc)) from exc
        return _row_to_task(row)

    def update_task(self, task_id: int, patch: TaskPatch) -> dict[str, Any]:
        """Apply *patch* to the task and return the stored result.

        Only fields set on the patch are written.  An empty patch leaves the
        row untouched but still fails for an unknown id.

        Raises:
            TaskNotFoundError: No task has this id.
            StoreError: The statement failed.
        """
        changes = patch.changes()
        if "isDone" in changes:
            changes["isDone"] = int(changes["isDone"])
        with self._lock:
            conn = self._require_conn()
            try:
                with conn:
                    if changes:
                        assignments = ", ".join(f"{col} = ?" for col in changes)
                        cur = conn.execute(
                            f"UPDATE tasks SET {assignments} WHERE id = ?",
                            [*changes.values(), task_id],
                        )
                        if cur.rowcount == 0:
                            raise TaskNotFoundError(task_id, "update")
                    row = conn.execute(
                        f"SELECT {_SELECT_COLUMNS} FROM tasks WHERE id = ?",
                        (task_id,),
                    ).fetchone()
            except (sqlite3.Error, OverflowError) as exc:
                raise StoreError(str(exc)) from exc
        if row is None:
            raise TaskNotFoundError(task_id, "update")
        return _row_to_task(row)

    def delete_task(self, task_id: int) -> dict[str, Any]:
        """Delete the task and return its values from just before deletion.

        Raises:
            TaskNotFoundError: No task has this id.
            StoreError: The statement failed.
        """
        with self._lock:
            conn = self._require_conn()
            try:
                with conn:
                    row = conn.execute(
                        f"SELECT {_SELECT_COLUMNS} FROM tasks WHERE id = ?",
                        (task_id,),
                    ).fetchone()
                    if row is None:
                        raise TaskNotFoundError(task_id, "delete")
                    conn.execute("DELETE FROM tasks WHERE id = ?", (task_id,))
            except (sqlite3.Error, OverflowError) as exc:
                raise StoreError(str(exc)) from exc
        return _row_to_task(row)


def get_store(request: Request) -> TaskStore:
    """FastAPI dependency: the ``TaskStore`` created in the app lifespan.

    Usage in a route::

        @router.get("/example")
        def example(store: TaskStore = Depends(get_store)):
            ...
    """
    return request.app.state.store
