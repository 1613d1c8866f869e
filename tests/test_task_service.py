from datetime import timedelta

import pytest

from conftest import FrozenClock
from task_api.db import SQLiteTaskRepository
from task_api.errors import TaskNotFound, UnknownIdentity, ValidationFailure
from task_api.models import TaskStatus


@pytest.fixture()
def owners(services):
    """Two registered users; returns their ids."""
    ann, _ = services.accounts.register("Ann", "ann@x.com", "secret1")
    bob, _ = services.accounts.register("Bob", "bob@x.com", "secret2")
    return ann["id"], bob["id"]


class TestCreate:
    def test_defaults_to_pending_with_null_description(self, services, owners):
        ann, _ = owners
        task = services.tasks.create(ann, "T1")
        assert task["status"] == TaskStatus.PENDING
        assert task["description"] is None
        assert task["owner_id"] == ann
        assert task["created_at"] == task["updated_at"]

    def test_keeps_description(self, services, owners):
        ann, _ = owners
        task = services.tasks.create(ann, "T1", "details")
        assert task["description"] == "details"

    def test_rejects_empty_title(self, services, owners):
        ann, _ = owners
        with pytest.raises(ValidationFailure):
            services.tasks.create(ann, "   ")

    def test_unknown_owner_is_rejected_by_store(self, services, owners):
        with pytest.raises(UnknownIdentity):
            services.tasks.create(999, "Orphan")


class TestOwnerScoping:
    def test_other_user_cannot_see_or_touch_task(self, services, owners):
        ann, bob = owners
        task = services.tasks.create(ann, "Private")
        tid = task["id"]

        with pytest.raises(TaskNotFound):
            services.tasks.find_one(tid, bob)
        with pytest.raises(TaskNotFound):
            services.tasks.update(tid, bob, {"title": "Hijacked"})
        with pytest.raises(TaskNotFound):
            services.tasks.mark_completed(tid, bob)
        with pytest.raises(TaskNotFound):
            services.tasks.remove(tid, bob)

        tasks, pagination = services.tasks.list(bob)
        assert tasks == []
        assert pagination["total"] == 0

        # Untouched for the owner
        still = services.tasks.find_one(tid, ann)
        assert still["title"] == "Private"
        assert still["status"] == TaskStatus.PENDING

    def test_not_owned_and_missing_are_indistinguishable(self, services, owners):
        ann, bob = owners
        tid = services.tasks.create(ann, "Private")["id"]

        with pytest.raises(TaskNotFound) as not_owned:
            services.tasks.find_one(tid, bob)
        with pytest.raises(TaskNotFound) as missing:
            services.tasks.find_one(tid + 1000, bob)
        assert not_owned.value.message == missing.value.message
        assert not_owned.value.kind == missing.value.kind == "TaskNotFound"

    @pytest.mark.parametrize("task_id", [2**63, 2**64, 10**30])
    def test_ids_beyond_storage_range_are_not_found(self, services, owners, task_id):
        ann, _ = owners
        services.tasks.create(ann, "Real")

        with pytest.raises(TaskNotFound):
            services.tasks.find_one(task_id, ann)
        with pytest.raises(TaskNotFound):
            services.tasks.update(task_id, ann, {"title": "x"})
        with pytest.raises(TaskNotFound):
            services.tasks.mark_completed(task_id, ann)
        with pytest.raises(TaskNotFound):
            services.tasks.remove(task_id, ann)

    def test_owner_beyond_storage_range(self, services, owners):
        with pytest.raises(UnknownIdentity):
            services.tasks.create(2**64, "Orphan")
        tasks, pagination = services.tasks.list(2**64)
        assert tasks == []
        assert pagination["total"] == 0


class TestList:
    @pytest.mark.parametrize("page, limit", [(10**18, 100), (2**63, 1), (3, 2**63)])
    def test_huge_window_is_tolerated(self, services, owners, page, limit):
        ann, _ = owners
        for i in range(3):
            services.tasks.create(ann, f"Task {i}")

        tasks, pagination = services.tasks.list(ann, page=page, limit=limit)

        assert tasks == []
        assert pagination["page"] == page
        assert pagination["total"] == 3

    def test_second_page_of_fifteen(self, services, owners):
        ann, _ = owners
        for i in range(1, 16):
            services.tasks.create(ann, f"Task {i}")

        tasks, pagination = services.tasks.list(ann, page=2, limit=5)

        assert [t["title"] for t in tasks] == [f"Task {i}" for i in range(10, 5, -1)]
        assert pagination == {"page": 2, "limit": 5, "total": 15, "total_pages": 3}

    def test_defaults_and_newest_first(self, services, owners):
        ann, _ = owners
        for i in range(12):
            services.tasks.create(ann, f"Task {i}")

        tasks, pagination = services.tasks.list(ann)

        assert len(tasks) == 10
        assert pagination == {"page": 1, "limit": 10, "total": 12, "total_pages": 2}
        created = [t["created_at"] for t in tasks]
        assert created == sorted(created, reverse=True)

    def test_empty_result(self, services, owners):
        ann, _ = owners
        tasks, pagination = services.tasks.list(ann, status=TaskStatus.COMPLETED)
        assert tasks == []
        assert pagination == {"page": 1, "limit": 10, "total": 0, "total_pages": 0}

    def test_page_past_the_end_is_empty_but_counts(self, services, owners):
        ann, _ = owners
        for i in range(3):
            services.tasks.create(ann, f"Task {i}")
        tasks, pagination = services.tasks.list(ann, page=5, limit=2)
        assert tasks == []
        assert pagination["total"] == 3
        assert pagination["total_pages"] == 2

    def test_status_filter(self, services, owners):
        ann, _ = owners
        first = services.tasks.create(ann, "First")
        services.tasks.create(ann, "Second")
        services.tasks.mark_completed(first["id"], ann)

        done, p_done = services.tasks.list(ann, status=TaskStatus.COMPLETED)
        pending, p_pending = services.tasks.list(ann, status=TaskStatus.PENDING)

        assert [t["title"] for t in done] == ["First"]
        assert [t["title"] for t in pending] == ["Second"]
        assert p_done["total"] == 1
        assert p_pending["total"] == 1

    @pytest.mark.parametrize("page, limit", [(0, 10), (1, 0), (-1, 5)])
    def test_rejects_non_positive_window(self, services, owners, page, limit):
        ann, _ = owners
        with pytest.raises(ValidationFailure):
            services.tasks.list(ann, page=page, limit=limit)

    def test_equal_timestamps_keep_insertion_order(self, services, owners, repos):
        ann, _ = owners
        _, task_repo = repos
        frozen = FrozenClock()
        if isinstance(task_repo, SQLiteTaskRepository):
            task_repo._db.clock = frozen
        else:
            task_repo._clock = frozen

        ids = [services.tasks.create(ann, f"Tie {i}")["id"] for i in range(3)]

        tasks, _ = services.tasks.list(ann)
        assert [t["id"] for t in tasks] == ids


class TestUpdate:
    def test_applies_only_present_fields(self, services, owners):
        ann, _ = owners
        task = services.tasks.create(ann, "Original", "Keep me")

        updated = services.tasks.update(task["id"], ann, {"title": "Renamed"})

        assert updated["title"] == "Renamed"
        assert updated["description"] == "Keep me"
        assert updated["status"] == TaskStatus.PENDING
        assert updated["created_at"] == task["created_at"]
        assert updated["owner_id"] == ann
        assert updated["updated_at"] > task["updated_at"]

    def test_explicit_null_description_clears_it(self, services, owners):
        ann, _ = owners
        task = services.tasks.create(ann, "T", "Something")
        updated = services.tasks.update(task["id"], ann, {"description": None})
        assert updated["description"] is None

    def test_complete_then_reopen_round_trip(self, services, owners):
        ann, _ = owners
        task = services.tasks.create(ann, "T1", "d")

        completed = services.tasks.mark_completed(task["id"], ann)
        reopened = services.tasks.update(task["id"], ann, {"status": TaskStatus.PENDING})

        assert completed["status"] == TaskStatus.COMPLETED
        assert completed["title"] == "T1"
        assert completed["description"] == "d"
        assert reopened["status"] == TaskStatus.PENDING
        assert task["updated_at"] < completed["updated_at"] < reopened["updated_at"]
        assert services.tasks.find_one(task["id"], ann)["status"] == TaskStatus.PENDING

    def test_mark_completed_is_idempotent_on_status(self, services, owners):
        ann, _ = owners
        task = services.tasks.create(ann, "T1")
        services.tasks.mark_completed(task["id"], ann)
        again = services.tasks.mark_completed(task["id"], ann)
        assert again["status"] == TaskStatus.COMPLETED

    def test_rejects_empty_title(self, services, owners):
        ann, _ = owners
        task = services.tasks.create(ann, "T1")
        with pytest.raises(ValidationFailure):
            services.tasks.update(task["id"], ann, {"title": ""})
        assert services.tasks.find_one(task["id"], ann)["title"] == "T1"

    def test_missing_task(self, services, owners):
        ann, _ = owners
        with pytest.raises(TaskNotFound):
            services.tasks.update(12345, ann, {"status": TaskStatus.COMPLETED})


class TestRemove:
    def test_delete_then_lookup_is_not_found(self, services, owners):
        ann, _ = owners
        task = services.tasks.create(ann, "Doomed")

        assert services.tasks.remove(task["id"], ann) == {"message": "Task deleted successfully"}

        with pytest.raises(TaskNotFound):
            services.tasks.find_one(task["id"], ann)
        with pytest.raises(TaskNotFound):
            services.tasks.remove(task["id"], ann)
        tasks, pagination = services.tasks.list(ann)
        assert tasks == []
        assert pagination["total"] == 0


def test_timestamps_are_timezone_aware(services, owners):
    ann, _ = owners
    task = services.tasks.create(ann, "T1")
    assert task["created_at"].utcoffset() == timedelta(0)
