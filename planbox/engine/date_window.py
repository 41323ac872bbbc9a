"""Date-range windows for the day and week views."""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import List, Optional, Sequence

from planbox.engine.task_box import SegmentsByTask, box_day_keys
from planbox.models.task import Task
from planbox.util import calendar_math as cm


class ViewMode(str, Enum):
    """Granularity of the visible window."""
    DAY = "day"
    WEEK = "week"


@dataclass(frozen=True)
class DateRange:
    """Inclusive [start, end] calendar-day range."""
    start: date
    end: date

    @property
    def start_key(self) -> str:
        return self.start.isoformat()

    @property
    def end_key(self) -> str:
        return self.end.isoformat()

    def contains(self, day: cm.DayLike) -> bool:
        # Compare as YYYY-MM-DD strings, never as timestamps
        key = cm.day_key(day)
        return self.start_key <= key <= self.end_key

    def days(self) -> List[date]:
        return [cm.add_days(self.start, i) for i in range(cm.days_between(self.start, self.end) + 1)]


def window_for(mode: ViewMode, anchor: cm.DayLike) -> DateRange:
    """Compute the visible window for a view mode around an anchor day."""
    day = cm.parse_day(anchor)
    if ViewMode(mode) == ViewMode.DAY:
        return DateRange(day, day)
    return DateRange(cm.start_of_week(day), cm.end_of_week(day))


def is_in_window(task: Task, segments_by_task: SegmentsByTask, window: DateRange) -> bool:
    """True if any day of the task's box falls inside the window."""
    return any(window.start_key <= key <= window.end_key for key in box_day_keys(task, segments_by_task))


def filter_tasks_in_window(
    tasks: Sequence[Task],
    segments_by_task: SegmentsByTask,
    window: DateRange,
) -> List[Task]:
    """Top-level tasks whose box overlaps the window, in input order."""
    return [
        task for task in tasks
        if task.parent_task_id is None and is_in_window(task, segments_by_task, window)
    ]


class DateNavigator:
    """Anchor day plus view mode, with previous/next/today navigation."""

    def __init__(self, mode: ViewMode = ViewMode.WEEK, anchor: Optional[cm.DayLike] = None):
        self.mode = ViewMode(mode)
        self.anchor = cm.parse_day(anchor) if anchor is not None else cm.today()

    @property
    def window(self) -> DateRange:
        return window_for(self.mode, self.anchor)

    def set_mode(self, mode: ViewMode) -> DateRange:
        self.mode = ViewMode(mode)
        return self.window

    def _step(self, direction: int) -> DateRange:
        if self.mode == ViewMode.DAY:
            self.anchor = cm.add_days(self.anchor, direction)
        else:
            self.anchor = cm.add_weeks(self.anchor, direction)
        return self.window

    def previous(self) -> DateRange:
        return self._step(-1)

    def next(self) -> DateRange:
        return self._step(1)

    def today(self) -> DateRange:
        self.anchor = cm.today()
        return self.window

    def is_current(self) -> bool:
        """True when the window contains today."""
        return self.window.contains(cm.today())
