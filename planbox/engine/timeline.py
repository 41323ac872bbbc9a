"""Timeline geometry for the monthly Gantt chart.

Maps a [start, end] day pair onto a week-aligned grid as percentages, and maps
pointer drags back onto whole-day deltas. All drag math is done against the
baseline captured when the gesture starts, never frame-to-frame.
"""

import logging
import math
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional, Sequence

from planbox.models.project import Project
from planbox.util import calendar_math as cm

logger = logging.getLogger(__name__)


class DragMode(str, Enum):
    """Drag interaction on a bar."""
    MOVE = "move"
    RESIZE_LEFT = "resize-left"
    RESIZE_RIGHT = "resize-right"


class DragState(str, Enum):
    """Gesture lifecycle: idle -> dragging -> committing -> idle."""
    IDLE = "idle"
    DRAGGING = "dragging"
    COMMITTING = "committing"


@dataclass(frozen=True)
class DateSpan:
    """A start/end day pair."""
    start: date
    end: date

    @property
    def duration_days(self) -> int:
        return cm.days_between(self.start, self.end)


@dataclass(frozen=True)
class BarGeometry:
    """Horizontal placement of a bar, in percent of the grid width."""
    left_percent: float
    width_percent: float


@dataclass(frozen=True)
class TimelineGrid:
    """Week-aligned day grid, inclusive on both ends."""
    start: date
    end: date

    @classmethod
    def for_range(cls, start: cm.DayLike, end: cm.DayLike) -> "TimelineGrid":
        """Grid from the week containing ``start`` to the week containing ``end``."""
        return cls(cm.start_of_week(start), cm.end_of_week(end))

    @classmethod
    def for_month(cls, month: cm.DayLike) -> "TimelineGrid":
        """Grid covering every week that touches the month of ``month``."""
        return cls.for_range(cm.start_of_month(month), cm.end_of_month(month))

    @property
    def total_days(self) -> int:
        return cm.days_between(self.start, self.end) + 1

    @property
    def weeks(self) -> List[date]:
        return cm.week_starts_between(self.start, self.end)

    def offset_days(self, day: cm.DayLike) -> int:
        """Whole days from the grid's left edge to ``day``."""
        return cm.days_between(self.start, cm.parse_day(day))

    def day_at(self, offset: int) -> date:
        return cm.add_days(self.start, offset)


def bar_geometry(grid: TimelineGrid, start: cm.DayLike, end: cm.DayLike) -> BarGeometry:
    """Forward mapping from a day pair to left/width percentages."""
    start_offset = grid.offset_days(start)
    duration = cm.days_between(cm.parse_day(start), cm.parse_day(end))
    return BarGeometry(
        left_percent=start_offset / grid.total_days * 100,
        width_percent=duration / grid.total_days * 100,
    )


def snap_delta_days(delta_px: float, grid_width_px: float, total_days: int) -> int:
    """Convert a pointer delta into whole days, rounding half-way values up.

    Args:
        delta_px: Pointer movement since the gesture started
        grid_width_px: Rendered width of the whole grid
        total_days: Days spanned by the grid

    Returns:
        Snapped day delta

    Raises:
        ValueError: If the grid has no width
    """
    if grid_width_px <= 0:
        raise ValueError("grid_width_px must be positive")
    return math.floor(delta_px / grid_width_px * total_days + 0.5)


@dataclass(frozen=True)
class DragBaseline:
    """Snapshot taken at gesture start; every delta is measured from here."""
    mode: DragMode
    origin_x: float
    start: date
    end: date


def propose_span(baseline: DragBaseline, delta_days: int) -> Optional[DateSpan]:
    """Apply a snapped delta to the baseline.

    Move keeps the duration exactly. Resizes return None when the delta would
    invert or collapse the bar; callers keep their last valid preview.
    """
    mode = DragMode(baseline.mode)
    if mode == DragMode.MOVE:
        new_start = cm.add_days(baseline.start, delta_days)
        return DateSpan(new_start, cm.add_days(new_start, cm.days_between(baseline.start, baseline.end)))
    if mode == DragMode.RESIZE_LEFT:
        new_start = cm.add_days(baseline.start, delta_days)
        if new_start < baseline.end:
            return DateSpan(new_start, baseline.end)
        return None
    new_end = cm.add_days(baseline.end, delta_days)
    if new_end > baseline.start:
        return DateSpan(baseline.start, new_end)
    return None


CommitFn = Callable[[DragMode, Any], Awaitable[Any]]
MoveListener = Callable[[float, float], Any]
UpListener = Callable[[], Awaitable[Any]]


class GestureSession:
    """Drag/resize lifecycle shared by every timeline.

    Subclasses say how a baseline is captured, how pointer pixels snap to
    units and how a snapped delta becomes a span.

    ``pointer_events`` is optional; when given, its ``subscribe(on_move, on_up)``
    is called on gesture start and must return a zero-argument release
    callable. The release runs on every way out of the gesture: commit
    success, commit failure, release without a preview, cancel and close.
    """

    def __init__(self, commit: CommitFn, pointer_events: Any = None):
        self._commit = commit
        self._pointer_events = pointer_events
        self._release: Optional[Callable[[], None]] = None
        self.state = DragState.IDLE
        self.baseline: Any = None
        self.preview: Any = None
        self.error: Optional[Exception] = None

    def _capture(self, mode: DragMode, pointer_x: float, start: Any, end: Any) -> Any:
        raise NotImplementedError

    def _snap(self, delta_px: float, grid_width_px: float, fine: bool) -> int:
        raise NotImplementedError

    def _propose(self, delta: int) -> Any:
        raise NotImplementedError

    def begin(self, mode: DragMode, pointer_x: float, start: Any, end: Any) -> Any:
        """Start a gesture and capture the baseline."""
        if self.state != DragState.IDLE:
            raise RuntimeError(f"Cannot start a drag while {self.state.value}")
        self.baseline = self._capture(DragMode(mode), pointer_x, start, end)
        self.preview = None
        self.error = None
        self.state = DragState.DRAGGING
        if self._pointer_events is not None:
            self._release = self._pointer_events.subscribe(self.pointer_move, self.pointer_up)
        return self.baseline

    def pointer_move(self, pointer_x: float, grid_width_px: float, fine: bool = False) -> Any:
        """Update the preview for the current pointer position.

        A zero delta never starts a preview (movement threshold). A guard
        violation leaves the last valid preview in place.
        """
        if self.state != DragState.DRAGGING or self.baseline is None:
            return self.preview
        delta = self._snap(pointer_x - self.baseline.origin_x, grid_width_px, fine)
        if delta == 0 and self.preview is None:
            return None
        proposed = self._propose(delta)
        if proposed is not None:
            self.preview = proposed
        return self.preview

    async def pointer_up(self) -> Any:
        """End the gesture, committing the preview if there is one.

        Returns:
            The committed span, or None when nothing was committed

        Raises:
            Exception: Whatever the commit raised; the preview is discarded first
        """
        if self.state != DragState.DRAGGING or self.baseline is None:
            return None
        self._release_listeners()
        if self.preview is None:
            self._reset()
            return None

        mode = self.baseline.mode
        span = self.preview
        self.state = DragState.COMMITTING
        try:
            await self._commit(mode, span)
        except Exception as e:
            logger.error(f"Failed to commit {mode.value} to {span.start}..{span.end}: {type(e).__name__}: {str(e)}")
            self.error = e
            self._reset()
            raise
        self._reset()
        logger.debug(f"Committed {mode.value} to {span.start}..{span.end}")
        return span

    def cancel(self) -> None:
        """Abandon the gesture without committing. No effect once committing."""
        if self.state == DragState.DRAGGING:
            self._release_listeners()
            self._reset()

    def close(self) -> None:
        """Release everything; called when the bar goes away."""
        self._release_listeners()
        if self.state == DragState.DRAGGING:
            self._reset()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _release_listeners(self) -> None:
        release, self._release = self._release, None
        if release is not None:
            release()

    def _reset(self) -> None:
        self.state = DragState.IDLE
        self.baseline = None
        self.preview = None


class DragSession(GestureSession):
    """Drag/resize gesture on one project bar of a day grid."""

    def __init__(self, grid: TimelineGrid, commit: CommitFn, pointer_events: Any = None):
        super().__init__(commit, pointer_events)
        self.grid = grid

    def _capture(self, mode: DragMode, pointer_x: float, start: cm.DayLike, end: cm.DayLike) -> DragBaseline:
        return DragBaseline(mode=mode, origin_x=pointer_x, start=cm.parse_day(start), end=cm.parse_day(end))

    def _snap(self, delta_px: float, grid_width_px: float, fine: bool) -> int:
        return snap_delta_days(delta_px, grid_width_px, self.grid.total_days)

    def _propose(self, delta: int) -> Optional[DateSpan]:
        return propose_span(self.baseline, delta)

    def display_span(self, start: cm.DayLike, end: cm.DayLike) -> DateSpan:
        """The span to draw: the preview while one exists, else the entity's own."""
        if self.preview is not None:
            return self.preview
        return DateSpan(cm.parse_day(start), cm.parse_day(end))

    def geometry(self, start: cm.DayLike, end: cm.DayLike) -> BarGeometry:
        span = self.display_span(start, end)
        return bar_geometry(self.grid, span.start, span.end)

    def ghost_geometry(self, start: cm.DayLike, end: cm.DayLike) -> Optional[BarGeometry]:
        """Faded bar at the original position while a preview is shown."""
        if self.preview is None:
            return None
        return bar_geometry(self.grid, start, end)


def projects_for_month(projects: Sequence[Project], month: cm.DayLike) -> List[Project]:
    """Projects whose bar overlaps the month, sorted by manual order."""
    month_start = cm.start_of_month(month)
    month_end = cm.end_of_month(month)
    visible = [p for p in projects if p.start_date <= month_end and p.deadline >= month_start]
    return sorted(visible, key=lambda p: p.order)
