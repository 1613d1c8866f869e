from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from threading import Lock, RLock
from typing import Dict, List, Optional, Tuple

from .errors import DuplicateAccount, UnknownIdentity
from .models import TaskEntity, TaskPatch, TaskStatus, UserEntity, apply_patch
from .settings import Settings, get_settings


@dataclass(frozen=True)
class ListQuery:
    """
    Query parameters for listing one owner's tasks.
    """
    limit: int = 10
    offset: int = 0
    status: Optional[TaskStatus] = None


class MonotonicClock:
    """
    UTC clock that never returns the same instant twice.

    When the wall clock has not advanced since the previous reading, the
    result is bumped by one microsecond.
    """

    _TICK = timedelta(microseconds=1)

    def __init__(self) -> None:
        self._lock = Lock()
        self._last: Optional[datetime] = None

    def now(self) -> datetime:
        with self._lock:
            current = datetime.now(timezone.utc)
            if self._last is not None and current <= self._last:
                current = self._last + self._TICK
            self._last = current
            return current


# PUBLIC_INTERFACE
class UserRepository(ABC):
    """Abstract repository contract for account storage backends."""

    @abstractmethod
    def create(self, name: str, email: str, password_hash: str) -> UserEntity:
        """Persist a new user. Raise DuplicateAccount if the email is taken."""

    @abstractmethod
    def get(self, user_id: int) -> Optional[UserEntity]:
        """Return a user by id, or None if not found."""

    @abstractmethod
    def get_by_email(self, email: str) -> Optional[UserEntity]:
        """Return a user by exact email match, or None if not found."""


# PUBLIC_INTERFACE
class TaskRepository(ABC):
    """
    Abstract repository contract for task storage backends.

    Every read and write is scoped by owner: a task owned by someone else is
    reported exactly like a missing one.
    """

    @abstractmethod
    def create(self, owner_id: int, title: str, description: Optional[str]) -> TaskEntity:
        """Create a pending task. Raise UnknownIdentity if the owner does not exist."""

    @abstractmethod
    def get(self, task_id: int, owner_id: int) -> Optional[TaskEntity]:
        """Return the owner's task by id, or None."""

    @abstractmethod
    def update(self, task_id: int, owner_id: int, patch: TaskPatch) -> Optional[TaskEntity]:
        """Apply a patch to the owner's task. Return the new state or None if not found."""

    @abstractmethod
    def delete(self, task_id: int, owner_id: int) -> bool:
        """Delete the owner's task. Return True if deleted, False if not found."""

    @abstractmethod
    def list(self, owner_id: int, query: Optional[ListQuery] = None) -> Tuple[List[TaskEntity], int]:
        """
        Return a slice of the owner's tasks and the total count matching filters.
        - Filter by status
        - Newest first by created_at; equal timestamps keep insertion order
        - Supports limit/offset
        """


class InMemoryUserRepository(UserRepository):
    """
    Thread-safe in-memory account store suitable for testing and default runtime.
    """

    def __init__(self, clock: Optional[MonotonicClock] = None) -> None:
        self._lock = RLock()
        self._items: Dict[int, UserEntity] = {}
        self._by_email: Dict[str, int] = {}
        self._next_id = 1
        self._clock = clock or MonotonicClock()

    def create(self, name: str, email: str, password_hash: str) -> UserEntity:
        with self._lock:
            if email in self._by_email:
                raise DuplicateAccount()
            entity: UserEntity = {
                "id": self._next_id,
                "name": name,
                "email": email,
                "password_hash": password_hash,
                "created_at": self._clock.now(),
            }
            self._next_id += 1
            self._items[entity["id"]] = entity
            self._by_email[email] = entity["id"]
            return entity.copy()  # type: ignore[return-value]

    def get(self, user_id: int) -> Optional[UserEntity]:
        with self._lock:
            item = self._items.get(user_id)
            return None if item is None else item.copy()  # type: ignore[return-value]

    def get_by_email(self, email: str) -> Optional[UserEntity]:
        with self._lock:
            user_id = self._by_email.get(email)
            if user_id is None:
                return None
            return self._items[user_id].copy()  # type: ignore[return-value]


class InMemoryTaskRepository(TaskRepository):
    """
    Thread-safe in-memory task store. Owner existence is checked against the
    given account repository.
    """

    def __init__(self, users: UserRepository, clock: Optional[MonotonicClock] = None) -> None:
        self._users = users
        self._lock = RLock()
        self._items: Dict[int, TaskEntity] = {}
        self._next_id = 1
        self._clock = clock or MonotonicClock()

    def _owned(self, task_id: int, owner_id: int) -> Optional[TaskEntity]:
        item = self._items.get(task_id)
        if item is None or item["owner_id"] != owner_id:
            return None
        return item

    def create(self, owner_id: int, title: str, description: Optional[str]) -> TaskEntity:
        if self._users.get(owner_id) is None:
            raise UnknownIdentity()
        with self._lock:
            now = self._clock.now()
            entity: TaskEntity = {
                "id": self._next_id,
                "title": title,
                "description": description,
                "status": TaskStatus.PENDING,
                "owner_id": owner_id,
                "created_at": now,
                "updated_at": now,
            }
            self._next_id += 1
            self._items[entity["id"]] = entity
            return entity.copy()  # type: ignore[return-value]

    def get(self, task_id: int, owner_id: int) -> Optional[TaskEntity]:
        with self._lock:
            item = self._owned(task_id, owner_id)
            return None if item is None else item.copy()  # type: ignore[return-value]

    def update(self, task_id: int, owner_id: int, patch: TaskPatch) -> Optional[TaskEntity]:
        with self._lock:
            existing = self._owned(task_id, owner_id)
            if existing is None:
                return None
            updated = apply_patch(existing, patch, self._clock.now())
            self._items[task_id] = updated
            return updated.copy()  # type: ignore[return-value]

    def delete(self, task_id: int, owner_id: int) -> bool:
        with self._lock:
            if self._owned(task_id, owner_id) is None:
                return False
            del self._items[task_id]
            return True

    def list(self, owner_id: int, query: Optional[ListQuery] = None) -> Tuple[List[TaskEntity], int]:
        q = query or ListQuery()
        with self._lock:
            items = [t for t in self._items.values() if t["owner_id"] == owner_id]
            if q.status is not None:
                items = [t for t in items if t["status"] == q.status]
            total = len(items)

            # dict preserves insertion order and sorted() is stable, so equal
            # timestamps stay in insertion order even with reverse=True
            items_sorted = sorted(items, key=lambda t: t["created_at"], reverse=True)

            start = max(q.offset, 0)
            end = start + max(q.limit, 0)
            return [t.copy() for t in items_sorted[start:end]], total  # type: ignore[misc]


# PUBLIC_INTERFACE
def get_repositories(settings: Optional[Settings] = None) -> Tuple[UserRepository, TaskRepository]:
    """
    Factory to return the configured account and task repositories.
    - memory: InMemoryUserRepository + InMemoryTaskRepository
    - sqlite: SQLiteUserRepository + SQLiteTaskRepository sharing one file
    """
    settings = settings or get_settings()
    if settings.persistence_backend == "sqlite":
        from .db import SQLiteDatabase, SQLiteTaskRepository, SQLiteUserRepository

        database = SQLiteDatabase(settings.sqlite_db_path)
        return SQLiteUserRepository(database), SQLiteTaskRepository(database)

    clock = MonotonicClock()
    users = InMemoryUserRepository(clock)
    return users, InMemoryTaskRepository(users, clock)
