"""
Task orchestration under an authenticated owner.

Every method takes the owner id derived from the caller's identity; it is
never read from client input.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from .errors import TaskNotFound, ValidationFailure
from .models import TaskEntity, TaskPatch, TaskStatus
from .repositories import ListQuery, TaskRepository
from .utils import page_window, pagination_envelope

logger = logging.getLogger(__name__)

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10


# PUBLIC_INTERFACE
class TaskService:
    """Owner-scoped task lifecycle: create, list, get, update, complete, delete."""

    def __init__(self, tasks: TaskRepository) -> None:
        self._tasks = tasks

    def create(self, owner_id: int, title: str, description: Optional[str] = None) -> TaskEntity:
        """Create a task. Status always starts as pending."""
        if not title or not title.strip():
            raise ValidationFailure("Title is required")
        task = self._tasks.create(owner_id, title, description)
        logger.debug("Created task id=%s owner=%s", task["id"], owner_id)
        return task

    def list(
        self,
        owner_id: int,
        status: Optional[TaskStatus] = None,
        page: int = DEFAULT_PAGE,
        limit: int = DEFAULT_LIMIT,
    ) -> Tuple[List[TaskEntity], Dict[str, Any]]:
        """
        Return one page of the owner's tasks, newest first, and its pagination block.
        """
        if page < 1:
            raise ValidationFailure("Page must be at least 1")
        if limit < 1:
            raise ValidationFailure("Limit must be at least 1")

        offset, size = page_window(page, limit)
        items, total = self._tasks.list(owner_id, ListQuery(limit=size, offset=offset, status=status))
        return items, pagination_envelope(page, limit, total)

    def find_one(self, task_id: int, owner_id: int) -> TaskEntity:
        task = self._tasks.get(task_id, owner_id)
        if task is None:
            raise TaskNotFound()
        return task

    def update(self, task_id: int, owner_id: int, patch: TaskPatch) -> TaskEntity:
        """
        Apply only the fields present in ``patch``. Raises TaskNotFound when
        the task is missing or owned by someone else.
        """
        if "title" in patch and (not patch["title"] or not patch["title"].strip()):
            raise ValidationFailure("Title must not be empty")
        updated = self._tasks.update(task_id, owner_id, patch)
        if updated is None:
            raise TaskNotFound()
        return updated

    def mark_completed(self, task_id: int, owner_id: int) -> TaskEntity:
        return self.update(task_id, owner_id, {"status": TaskStatus.COMPLETED})

    def remove(self, task_id: int, owner_id: int) -> Dict[str, str]:
        if not self._tasks.delete(task_id, owner_id):
            raise TaskNotFound()
        logger.debug("Deleted task id=%s owner=%s", task_id, owner_id)
        return {"message": "Task deleted successfully"}
