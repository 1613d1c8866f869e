from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional, TypedDict


# PUBLIC_INTERFACE
class TaskStatus(str, Enum):
    """Closed set of task states. Either state may move to the other."""

    PENDING = "pending"
    COMPLETED = "completed"


# PUBLIC_INTERFACE
class UserEntity(TypedDict):
    """
    A registered account as held by the storage backends.

    Fields:
    - id: Unique integer identifier
    - name: Display name
    - email: Login key, unique by exact string comparison
    - password_hash: Opaque credential hash; never leaves the account layer
    - created_at: Creation timestamp (UTC)
    """

    id: int
    name: str
    email: str
    password_hash: str
    created_at: datetime


# PUBLIC_INTERFACE
class TaskEntity(TypedDict):
    """
    A task owned by exactly one user.

    Fields:
    - id: Unique integer identifier
    - title: Non-empty title
    - description: Optional detailed description (None when absent)
    - status: TaskStatus
    - owner_id: Id of the owning user; never changes
    - created_at: Creation timestamp (UTC)
    - updated_at: Last mutation timestamp (UTC)
    """

    id: int
    title: str
    description: Optional[str]
    status: TaskStatus
    owner_id: int
    created_at: datetime
    updated_at: datetime


class TaskPatch(TypedDict, total=False):
    """Fields to change on a task. Keys that are absent are left untouched."""

    title: str
    description: Optional[str]
    status: TaskStatus


_PATCHABLE = ("title", "description", "status")


# PUBLIC_INTERFACE
def apply_patch(existing: TaskEntity, patch: TaskPatch, updated_at: datetime) -> TaskEntity:
    """
    Return a new task state with the present patch fields applied.

    The input entity is not modified. ``id``, ``owner_id`` and ``created_at``
    are always carried over unchanged.
    """
    updated: TaskEntity = existing.copy()  # type: ignore[assignment]
    for key in _PATCHABLE:
        if key in patch:
            updated[key] = patch[key]  # type: ignore[literal-required]
    if "status" in patch:
        updated["status"] = TaskStatus(patch["status"])
    updated["updated_at"] = updated_at
    return updated


def public_user(user: UserEntity) -> dict:
    """User view safe to hand to callers (no password hash)."""
    return {
        "id": user["id"],
        "name": user["name"],
        "email": user["email"],
        "created_at": user["created_at"],
    }
