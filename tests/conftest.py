"""Pytest fixtures and configuration for planbox tests."""

import itertools
import uuid
from unittest.mock import MagicMock

import pytest

from planbox.errors import NetworkFailure
from planbox.store.planner import PlannerStore

SERVER_TIME = "2026-10-17T12:00:00Z"


class FakeResource:
    """In-memory stand-in for one backend collection.

    Every endpoint is a MagicMock so tests can assert calls or swap the
    side effect to simulate a rejected request.
    """

    def __init__(self, prefix, rows=None):
        self.prefix = prefix
        self.rows = {row["id"]: dict(row) for row in rows or []}
        self._ids = itertools.count(1)
        self.get_all = MagicMock(side_effect=self._get_all)
        self.create = MagicMock(side_effect=self._create)
        self.update = MagicMock(side_effect=self._update)
        self.delete = MagicMock(side_effect=self._delete)
        self.bulk_delete = MagicMock(side_effect=self._bulk_delete)
        self.bulk_update = MagicMock(side_effect=self._bulk_update)

    def _get_all(self, *args, **kwargs):
        return [dict(row) for row in self.rows.values()]

    def _create(self, payload):
        row = {
            "id": f"{self.prefix}-new-{next(self._ids)}",
            **payload,
            "created_at": SERVER_TIME,
            "updated_at": SERVER_TIME,
        }
        self.rows[row["id"]] = row
        return dict(row)

    def _update(self, entity_id, updates):
        row = {**self.rows[entity_id], **updates, "updated_at": SERVER_TIME}
        self.rows[entity_id] = row
        return dict(row)

    def _delete(self, entity_id):
        self.rows.pop(entity_id, None)
        return None

    def _bulk_delete(self, ids):
        for entity_id in ids:
            self.rows.pop(entity_id, None)
        return {"deleted": len(ids)}

    def _bulk_update(self, updates):
        for update in updates:
            self._update(update["id"], {k: v for k, v in update.items() if k != "id"})
        return {"updated": len(updates)}

    def fail_update_for(self, entity_id, status_code=500):
        """Reject updates of one entity; the rest still go through."""
        def update(target_id, updates):
            if target_id == entity_id:
                raise NetworkFailure("Internal Server Error", status_code=status_code)
            return self._update(target_id, updates)
        self.update.side_effect = update


@pytest.fixture
def test_user_id():
    """Test user ID."""
    return "test-user-123"


@pytest.fixture
def sample_task_base(test_user_id):
    """Base task data for creating test tasks.

    Returns a dict with default task attributes that can be overridden.
    """
    return {
        "id": str(uuid.uuid4()),
        "user_id": test_user_id,
        "title": "Test Task",
        "description": None,
        "status": "todo",
        "priority": "medium",
        "planned_date": "2026-10-14",
        "deadline": None,
        "estimated_minutes": 60,
        "scheduled_time": 0,
        "project_id": None,
        "parent_task_id": None,
        "tags": [],
        "order": 0,
        "created_at": "2026-10-01T09:00:00Z",
        "updated_at": "2026-10-01T09:00:00Z",
        "deleted_at": None,
    }


@pytest.fixture
def sample_segment_base(test_user_id):
    """Base time segment data: one hour on Wednesday 2026-10-14."""
    return {
        "id": str(uuid.uuid4()),
        "user_id": test_user_id,
        "task_id": "task-1",
        "title": "Test Task",
        "title_is_custom": False,
        "start_time": "2026-10-14T09:00:00Z",
        "end_time": "2026-10-14T10:00:00Z",
        "status": "planned",
        "order": 1,
        "source": "app",
        "deleted_at": None,
    }


@pytest.fixture
def sample_project_base(test_user_id):
    """Base project data: a ten-day bar in October 2026."""
    return {
        "id": str(uuid.uuid4()),
        "user_id": test_user_id,
        "name": "Test Project",
        "start_date": "2026-10-07",
        "deadline": "2026-10-17",
        "priority": "medium",
        "status": "not-started",
        "order": 0,
        "created_at": "2026-10-01T09:00:00Z",
        "updated_at": "2026-10-01T09:00:00Z",
    }


@pytest.fixture
def make_task(sample_task_base):
    """Factory for task rows: make_task("t1", title="A", order=2)."""
    def factory(task_id, **fields):
        return {**sample_task_base, "id": task_id, **fields}
    return factory


@pytest.fixture
def make_segment(sample_segment_base):
    def factory(segment_id, **fields):
        return {**sample_segment_base, "id": segment_id, **fields}
    return factory


@pytest.fixture
def make_project(sample_project_base):
    def factory(project_id, **fields):
        return {**sample_project_base, "id": project_id, **fields}
    return factory


@pytest.fixture
def fake_client():
    """Backend client double with empty in-memory resources."""
    client = MagicMock()
    client.tasks = FakeResource("task")
    client.time_segments = FakeResource("seg")
    client.projects = FakeResource("proj")
    return client


@pytest.fixture
def planner(fake_client):
    """PlannerStore over the fake backend (nothing loaded yet)."""
    return PlannerStore(fake_client)
