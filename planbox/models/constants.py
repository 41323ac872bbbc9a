"""Constants for planbox.

This module centralizes the magic numbers and default values used throughout the package.
"""

from planbox.models.task import Priority, TaskStatus
from planbox.models.time_segment import SegmentSource, SegmentStatus


# Task defaults
DEFAULT_TASK_STATUS = TaskStatus.TODO
DEFAULT_TASK_PRIORITY = Priority.MEDIUM

# Segment defaults
DEFAULT_SEGMENT_MINUTES = 60  # Dropping a task on the timeline books one hour
DEFAULT_SEGMENT_STATUS = SegmentStatus.PLANNED
DEFAULT_SEGMENT_SOURCE = SegmentSource.APP
UNTITLED = "Untitled"

# Daily timeline
DAY_START_HOUR = 0
DAY_END_HOUR = 24
SNAP_MINUTES = 15  # Segment drags and drops land on quarter hours
FINE_SNAP_MINUTES = 1  # Snap step while the fine modifier (Shift) is held
MIN_SEGMENT_MINUTES = 15

# Segments that define a task's box; externally-synced events do not
BOX_SEGMENT_SOURCES = frozenset({SegmentSource.APP.value, SegmentSource.TASK.value})

# Backend
DEFAULT_API_URL = "http://localhost:4000"
