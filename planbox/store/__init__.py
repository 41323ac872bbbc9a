"""Optimistic in-memory store for planbox entities."""

from planbox.store.collection import OptimisticCollection
from planbox.store.projects import ProjectCollection
from planbox.store.segments import SegmentCollection
from planbox.store.tasks import TaskCollection
from planbox.store.planner import PlannerStore

__all__ = [
    "OptimisticCollection",
    "ProjectCollection",
    "SegmentCollection",
    "TaskCollection",
    "PlannerStore",
]
