"""Scheduling engine for planbox: box resolution, windows, timelines, board."""

from planbox.engine.task_box import box_dates, is_qualifying_segment, group_tasks_by_date, tasks_for_day
from planbox.engine.date_window import ViewMode, DateRange, DateNavigator, window_for, filter_tasks_in_window
from planbox.engine.timeline import (
    DragMode,
    DragSession,
    TimelineGrid,
    bar_geometry,
    snap_delta_days,
    projects_for_month,
)
from planbox.engine.day_timeline import (
    DayTimeline,
    GanttRow,
    SegmentDragSession,
    gantt_rows,
    overlapping_segments,
    snap_delta_minutes,
)
from planbox.engine.board import BoardColumn, partition_board, resolve_transition, apply_board_transition

__all__ = [
    "box_dates",
    "is_qualifying_segment",
    "group_tasks_by_date",
    "tasks_for_day",
    "ViewMode",
    "DateRange",
    "DateNavigator",
    "window_for",
    "filter_tasks_in_window",
    "DragMode",
    "DragSession",
    "TimelineGrid",
    "bar_geometry",
    "snap_delta_days",
    "projects_for_month",
    "DayTimeline",
    "GanttRow",
    "SegmentDragSession",
    "gantt_rows",
    "overlapping_segments",
    "snap_delta_minutes",
    "BoardColumn",
    "partition_board",
    "resolve_transition",
    "apply_board_transition",
]
