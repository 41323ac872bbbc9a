"""Data models for planbox."""

from planbox.models.task import Task, TaskStatus, Priority
from planbox.models.time_segment import TimeSegment, SegmentStatus, SegmentSource
from planbox.models.project import Project, ProjectStatus

__all__ = [
    "Task",
    "TaskStatus",
    "Priority",
    "TimeSegment",
    "SegmentStatus",
    "SegmentSource",
    "Project",
    "ProjectStatus",
]
