from __future__ import annotations

import logging
import os
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from typing import Generator, List, Optional, Tuple

from .errors import DuplicateAccount, UnknownIdentity
from .models import TaskEntity, TaskPatch, TaskStatus, UserEntity, apply_patch
from .repositories import ListQuery, MonotonicClock, TaskRepository, UserRepository

logger = logging.getLogger(__name__)

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS users (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        email TEXT NOT NULL UNIQUE,
        password_hash TEXT NOT NULL,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS tasks (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        title TEXT NOT NULL,
        description TEXT NULL,
        status TEXT NOT NULL DEFAULT 'pending' CHECK (status IN ('pending', 'completed')),
        owner_id INTEGER NOT NULL REFERENCES users(id),
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_tasks_owner_created_at ON tasks(owner_id, created_at)",
    "CREATE INDEX IF NOT EXISTS idx_tasks_owner_status ON tasks(owner_id, status)",
)


# SQLite INTEGER is signed 64-bit; larger Python ints cannot be bound
_MAX_SQL_INT = 2**63 - 1


def _storable(*values: int) -> bool:
    return all(0 <= v <= _MAX_SQL_INT for v in values)


def _ts(value: datetime) -> str:
    # fixed-width text keeps lexical order equal to chronological order
    return value.isoformat(timespec="microseconds")


class SQLiteDatabase:
    """
    Owns the SQLite file, its schema and the clock shared by both repositories.

    Each operation opens its own connection, so instances are safe to share
    between request threads.
    """

    def __init__(self, db_path: str) -> None:
        os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
        self._db_path = db_path
        self.clock = MonotonicClock()
        self._init_db()
        logger.info("SQLite store ready db=%s", db_path)

    @contextmanager
    def connect(self, write: bool = False) -> Generator[sqlite3.Connection, None, None]:
        conn = sqlite3.connect(self._db_path, timeout=30.0)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        try:
            if write:
                # lookup-then-act sequences run under one write lock
                conn.execute("BEGIN IMMEDIATE")
            yield conn
            conn.commit()
        except BaseException:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_db(self) -> None:
        with self.connect() as conn:
            for statement in _SCHEMA:
                conn.execute(statement)


class SQLiteUserRepository(UserRepository):
    """SQLite account store implementing the UserRepository interface."""

    def __init__(self, database: SQLiteDatabase) -> None:
        self._db = database

    @staticmethod
    def _row_to_entity(row: sqlite3.Row) -> UserEntity:
        return {
            "id": int(row["id"]),
            "name": str(row["name"]),
            "email": str(row["email"]),
            "password_hash": str(row["password_hash"]),
            "created_at": datetime.fromisoformat(row["created_at"]),
        }

    def create(self, name: str, email: str, password_hash: str) -> UserEntity:
        now = _ts(self._db.clock.now())
        with self._db.connect(write=True) as conn:
            try:
                cur = conn.execute(
                    "INSERT INTO users (name, email, password_hash, created_at) VALUES (?, ?, ?, ?)",
                    (name, email, password_hash, now),
                )
            except sqlite3.IntegrityError as e:
                raise DuplicateAccount() from e
            row = conn.execute("SELECT * FROM users WHERE id = ?", (cur.lastrowid,)).fetchone()
            assert row is not None
            return self._row_to_entity(row)

    def get(self, user_id: int) -> Optional[UserEntity]:
        if not _storable(user_id):
            return None
        with self._db.connect() as conn:
            row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
            return self._row_to_entity(row) if row else None

    def get_by_email(self, email: str) -> Optional[UserEntity]:
        with self._db.connect() as conn:
            # '=' on TEXT uses BINARY collation: exact, case-sensitive match
            row = conn.execute("SELECT * FROM users WHERE email = ?", (email,)).fetchone()
            return self._row_to_entity(row) if row else None


class SQLiteTaskRepository(TaskRepository):
    """SQLite task store implementing the TaskRepository interface."""

    def __init__(self, database: SQLiteDatabase) -> None:
        self._db = database

    @staticmethod
    def _row_to_entity(row: sqlite3.Row) -> TaskEntity:
        return {
            "id": int(row["id"]),
            "title": str(row["title"]),
            "description": row["description"] if row["description"] is not None else None,
            "status": TaskStatus(row["status"]),
            "owner_id": int(row["owner_id"]),
            "created_at": datetime.fromisoformat(row["created_at"]),
            "updated_at": datetime.fromisoformat(row["updated_at"]),
        }

    @staticmethod
    def _select_owned(conn: sqlite3.Connection, task_id: int, owner_id: int) -> Optional[sqlite3.Row]:
        return conn.execute(
            "SELECT * FROM tasks WHERE id = ? AND owner_id = ?", (task_id, owner_id)
        ).fetchone()

    def create(self, owner_id: int, title: str, description: Optional[str]) -> TaskEntity:
        if not _storable(owner_id):
            raise UnknownIdentity()
        now = _ts(self._db.clock.now())
        with self._db.connect(write=True) as conn:
            try:
                cur = conn.execute(
                    """
                    INSERT INTO tasks (title, description, status, owner_id, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (title, description, TaskStatus.PENDING.value, owner_id, now, now),
                )
            except sqlite3.IntegrityError as e:
                raise UnknownIdentity() from e
            row = conn.execute("SELECT * FROM tasks WHERE id = ?", (cur.lastrowid,)).fetchone()
            assert row is not None
            return self._row_to_entity(row)

    def get(self, task_id: int, owner_id: int) -> Optional[TaskEntity]:
        if not _storable(task_id, owner_id):
            return None
        with self._db.connect() as conn:
            row = self._select_owned(conn, task_id, owner_id)
            return self._row_to_entity(row) if row else None

    def update(self, task_id: int, owner_id: int, patch: TaskPatch) -> Optional[TaskEntity]:
        if not _storable(task_id, owner_id):
            return None
        with self._db.connect(write=True) as conn:
            row = self._select_owned(conn, task_id, owner_id)
            if not row:
                return None
            updated = apply_patch(self._row_to_entity(row), patch, self._db.clock.now())
            conn.execute(
                """
                UPDATE tasks
                SET title = ?, description = ?, status = ?, updated_at = ?
                WHERE id = ? AND owner_id = ?
                """,
                (
                    updated["title"],
                    updated["description"],
                    updated["status"].value,
                    _ts(updated["updated_at"]),
                    task_id,
                    owner_id,
                ),
            )
            return updated

    def delete(self, task_id: int, owner_id: int) -> bool:
        if not _storable(task_id, owner_id):
            return False
        with self._db.connect(write=True) as conn:
            cur = conn.execute(
                "DELETE FROM tasks WHERE id = ? AND owner_id = ?", (task_id, owner_id)
            )
            return cur.rowcount > 0

    def list(self, owner_id: int, query: Optional[ListQuery] = None) -> Tuple[List[TaskEntity], int]:
        q = query or ListQuery()
        if not _storable(owner_id):
            return [], 0
        clauses = ["owner_id = ?"]
        params: list = [owner_id]

        if q.status is not None:
            clauses.append("status = ?")
            params.append(TaskStatus(q.status).value)

        where_sql = f"WHERE {' AND '.join(clauses)}"

        with self._db.connect() as conn:
            count_row = conn.execute(
                f"SELECT COUNT(*) AS cnt FROM tasks {where_sql}", params
            ).fetchone()
            total = int(count_row["cnt"]) if count_row else 0

            rows = conn.execute(
                f"""
                SELECT * FROM tasks
                {where_sql}
                ORDER BY created_at DESC, id ASC
                LIMIT ? OFFSET ?
                """,
                # an offset past every row yields an empty page, so clamping is lossless
                [*params, min(max(q.limit, 0), _MAX_SQL_INT), min(max(q.offset, 0), _MAX_SQL_INT)],
            ).fetchall()
            return [self._row_to_entity(r) for r in rows], total
