"""Daily timeline: time segments laid out on a minute axis.

The counterpart of the monthly grid in ``timeline``. Positions are minutes
from the start of the visible hours, drags snap to quarter hours and every
delta is measured from the baseline captured when the gesture starts.
"""

import math
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Dict, List, Optional, Sequence

from planbox.engine.task_box import SegmentsByTask, order_sort_key, tasks_for_day
from planbox.engine.timeline import BarGeometry, CommitFn, DragMode, GestureSession
from planbox.models.constants import (
    DAY_END_HOUR,
    DAY_START_HOUR,
    DEFAULT_SEGMENT_MINUTES,
    FINE_SNAP_MINUTES,
    MIN_SEGMENT_MINUTES,
    SNAP_MINUTES,
)
from planbox.models.task import Task
from planbox.models.time_segment import TimeSegment, minutes_between
from planbox.util import calendar_math as cm

@dataclass(frozen=True)
class TimeSpan:
    """A start/end instant pair."""
    start: datetime
    end: datetime

    @property
    def duration_minutes(self) -> int:
        return minutes_between(self.start, self.end)


@dataclass(frozen=True)
class DayTimeline:
    """Visible hours of one calendar day.

    ``end_hour`` 24 means the following midnight.
    """
    day: date
    start_hour: int = DAY_START_HOUR
    end_hour: int = DAY_END_HOUR
    tz: tzinfo = timezone.utc

    def __post_init__(self):
        if not 0 <= self.start_hour < self.end_hour <= 24:
            raise ValueError(f"Invalid visible hours {self.start_hour}..{self.end_hour}")

    @property
    def starts_at(self) -> datetime:
        return datetime.combine(self.day, time(self.start_hour), tzinfo=self.tz)

    @property
    def ends_at(self) -> datetime:
        return self.starts_at + timedelta(hours=self.end_hour - self.start_hour)

    @property
    def total_minutes(self) -> int:
        return (self.end_hour - self.start_hour) * 60

    def minutes_at(self, instant: datetime) -> float:
        """Minutes from the left edge to ``instant`` (may fall outside the visible hours)."""
        return (instant - self.starts_at).total_seconds() / 60

    def drop_start(self, pointer_x: float, width_px: float, step: int = SNAP_MINUTES) -> datetime:
        """Start time for a task dropped at ``pointer_x``.

        The pointer is clamped to the timeline and snapped to ``step``
        minutes. The start is pulled back so the default one-hour segment
        ends by the end of the visible hours.

        Raises:
            ValueError: If the timeline has no width
        """
        if width_px <= 0:
            raise ValueError("width_px must be positive")
        clamped = min(max(pointer_x, 0.0), width_px)
        minutes = _round_to_step(clamped / width_px * self.total_minutes, step)
        latest = self.total_minutes - DEFAULT_SEGMENT_MINUTES
        return self.starts_at + timedelta(minutes=min(minutes, latest))


def _round_to_step(minutes: float, step: int) -> int:
    return math.floor(minutes / step + 0.5) * step


def segment_geometry(timeline: DayTimeline, start: datetime, end: datetime) -> BarGeometry:
    """Left/width percentages of a segment on the timeline."""
    return BarGeometry(
        left_percent=timeline.minutes_at(start) / timeline.total_minutes * 100,
        width_percent=(end - start).total_seconds() / 60 / timeline.total_minutes * 100,
    )


def snap_delta_minutes(delta_px: float, grid_width_px: float, total_minutes: int, step: int = SNAP_MINUTES) -> int:
    """Convert a pointer delta into whole minutes, rounded to ``step``.

    Raises:
        ValueError: If the timeline has no width
    """
    if grid_width_px <= 0:
        raise ValueError("grid_width_px must be positive")
    return _round_to_step(delta_px / grid_width_px * total_minutes, step)


@dataclass(frozen=True)
class SegmentDragBaseline:
    """Snapshot taken at gesture start."""
    mode: DragMode
    origin_x: float
    start: datetime
    end: datetime


def propose_time_span(
    baseline: SegmentDragBaseline,
    delta_minutes: int,
    day_start: datetime,
    day_end: datetime,
    min_minutes: int = MIN_SEGMENT_MINUTES,
) -> Optional[TimeSpan]:
    """Apply a snapped minute delta to the baseline, kept inside the day.

    Move keeps the duration and slides back inside the day when pushed past
    either edge. Resizes clamp the moving edge to the day and return None
    when the segment would get shorter than ``min_minutes``.
    """
    mode = DragMode(baseline.mode)
    delta = timedelta(minutes=delta_minutes)
    if mode == DragMode.MOVE:
        duration = baseline.end - baseline.start
        new_start = baseline.start + delta
        if new_start < day_start:
            new_start = day_start
        if new_start + duration > day_end:
            new_start = day_end - duration
        return TimeSpan(new_start, new_start + duration)

    minimum = timedelta(minutes=min_minutes)
    if mode == DragMode.RESIZE_LEFT:
        new_start = max(baseline.start + delta, day_start)
        if new_start + minimum <= baseline.end:
            return TimeSpan(new_start, baseline.end)
        return None
    new_end = min(baseline.end + delta, day_end)
    if new_end - minimum >= baseline.start:
        return TimeSpan(baseline.start, new_end)
    return None


class SegmentDragSession(GestureSession):
    """Drag/resize gesture on one segment block of the daily timeline.

    ``pointer_move(x, width, fine=True)`` snaps to single minutes instead of
    quarter hours.
    """

    def __init__(self, timeline: DayTimeline, commit: CommitFn, pointer_events=None):
        super().__init__(commit, pointer_events)
        self.timeline = timeline

    def _capture(self, mode: DragMode, pointer_x: float, start: datetime, end: datetime) -> SegmentDragBaseline:
        return SegmentDragBaseline(mode=mode, origin_x=pointer_x, start=start, end=end)

    def _snap(self, delta_px: float, grid_width_px: float, fine: bool) -> int:
        step = FINE_SNAP_MINUTES if fine else SNAP_MINUTES
        return snap_delta_minutes(delta_px, grid_width_px, self.timeline.total_minutes, step)

    def _propose(self, delta: int) -> Optional[TimeSpan]:
        return propose_time_span(self.baseline, delta, self.timeline.starts_at, self.timeline.ends_at)

    def display_span(self, start: datetime, end: datetime) -> TimeSpan:
        if self.preview is not None:
            return self.preview
        return TimeSpan(start, end)

    def geometry(self, start: datetime, end: datetime) -> BarGeometry:
        span = self.display_span(start, end)
        return segment_geometry(self.timeline, span.start, span.end)


def overlapping_segments(segment: TimeSegment, others: Sequence[TimeSegment]) -> List[TimeSegment]:
    """Segments on the same date whose time range overlaps ``segment``.

    Back-to-back segments (one ends when the other starts) do not overlap.
    """
    return [
        other for other in others
        if other.id != segment.id
        and other.deleted_at is None
        and other.date == segment.date
        and other.start_time < segment.end_time
        and segment.start_time < other.end_time
    ]


@dataclass
class GanttRow:
    """One task on the daily timeline with that day's segments."""
    task: Task
    segments: List[TimeSegment]
    subtasks: List["GanttRow"] = field(default_factory=list)

    @property
    def task_id(self) -> str:
        return self.task.id


def gantt_rows(
    tasks: Sequence[Task],
    segments_by_task: SegmentsByTask,
    day_segments: Sequence[TimeSegment],
    day: cm.DayLike,
) -> List[GanttRow]:
    """Rows for the daily timeline of ``day``.

    One row per open top-level task whose box contains the day, in display
    order. Segments are those starting on the day, by session number.
    Subtask rows list the task's remaining subtasks with their own segments.

    Args:
        tasks: All known tasks
        segments_by_task: Segments used for box resolution
        day_segments: Segments starting on ``day``
        day: Day to build rows for
    """
    by_task: Dict[str, List[TimeSegment]] = {}
    for segment in day_segments:
        by_task.setdefault(segment.task_id, []).append(segment)

    def row(task: Task, subtasks: List[GanttRow]) -> GanttRow:
        segments = sorted(by_task.get(task.id, []), key=lambda s: s.order)
        return GanttRow(task=task, segments=segments, subtasks=subtasks)

    rows = []
    for task in tasks_for_day(tasks, segments_by_task, day):
        children = sorted(
            (t for t in tasks if t.parent_task_id == task.id and t.deleted_at is None),
            key=order_sort_key,
        )
        rows.append(row(task, [row(child, []) for child in children]))
    return rows
