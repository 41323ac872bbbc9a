"""Tests for the daily timeline: minute snapping, segment drags and drops, overlaps."""

import asyncio
from datetime import date, datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from planbox.engine.day_timeline import (
    DayTimeline,
    SegmentDragBaseline,
    SegmentDragSession,
    TimeSpan,
    overlapping_segments,
    propose_time_span,
    segment_geometry,
    snap_delta_minutes,
)
from planbox.engine.timeline import DragMode, DragState
from planbox.errors import NetworkFailure
from planbox.models.time_segment import TimeSegment

DAY = DayTimeline(date(2026, 10, 14))
WIDTH = 1440.0  # one pixel per minute


def _at(hour, minute=0, day=14):
    return datetime(2026, 10, day, hour, minute, tzinfo=timezone.utc)


def _recording_commit(calls, error=None):
    async def commit(mode, span):
        calls.append((mode, span))
        if error is not None:
            raise error
        return span
    return commit


class TestDayTimeline:
    """Visible hours and geometry of one day."""

    def test_full_day_bounds(self):
        """Midnight to the next midnight, 1440 minutes."""
        assert DAY.starts_at == _at(0)
        assert DAY.ends_at == _at(0, day=15)
        assert DAY.total_minutes == 1440

    def test_invalid_hours_rejected(self):
        """Visible hours must be a non-empty range inside the day."""
        with pytest.raises(ValueError):
            DayTimeline(date(2026, 10, 14), start_hour=18, end_hour=8)

    def test_segment_geometry(self):
        """A 9:00-10:00 segment sits at 9/24 of the width, 1/24 wide."""
        geometry = segment_geometry(DAY, _at(9), _at(10))

        assert geometry.left_percent == pytest.approx(37.5)
        assert geometry.width_percent == pytest.approx(100 / 24)

    def test_geometry_on_partial_day(self):
        """Positions are measured from the first visible hour."""
        office = DayTimeline(date(2026, 10, 14), start_hour=8, end_hour=18)

        geometry = segment_geometry(office, _at(13), _at(14))
        assert geometry.left_percent == pytest.approx(50.0)
        assert geometry.width_percent == pytest.approx(10.0)


class TestDropStart:
    """Pointer position to start time for a dropped task."""

    def test_snaps_to_quarter_hour(self):
        """607px on a 1440px day is 10:07, which snaps to 10:00."""
        assert DAY.drop_start(607, WIDTH) == _at(10)
        assert DAY.drop_start(608, WIDTH) == _at(10, 15)

    def test_left_of_timeline_clamps_to_start(self):
        """A pointer left of the timeline drops at the first visible minute."""
        assert DAY.drop_start(-50, WIDTH) == _at(0)

    def test_one_hour_segment_fits_before_day_end(self):
        """Late drops are pulled back so the hour-long segment still ends by midnight."""
        assert DAY.drop_start(1430, WIDTH) == _at(23)
        assert DAY.drop_start(5000, WIDTH) == _at(23)

    def test_partial_day(self):
        """The middle of an 8:00-18:00 timeline is 13:00."""
        office = DayTimeline(date(2026, 10, 14), start_hour=8, end_hour=18)

        assert office.drop_start(300, 600) == _at(13)

    def test_zero_width_raises(self):
        """A timeline with no width cannot map pixels."""
        with pytest.raises(ValueError):
            DAY.drop_start(10, 0)


class TestSnapDeltaMinutes:
    """Pixel deltas to snapped minute deltas."""

    def test_rounds_to_quarter_hours(self):
        """Deltas round to the nearest 15 minutes."""
        assert snap_delta_minutes(50, WIDTH, 1440) == 45
        assert snap_delta_minutes(53, WIDTH, 1440) == 60
        assert snap_delta_minutes(-8, WIDTH, 1440) == -15
        assert snap_delta_minutes(7, WIDTH, 1440) == 0

    def test_fine_step(self):
        """A one-minute step keeps single minutes."""
        assert snap_delta_minutes(50.4, WIDTH, 1440, step=1) == 50

    def test_scales_with_width(self):
        """On a 720px day each pixel is two minutes."""
        assert snap_delta_minutes(15, 720, 1440) == 30

    def test_zero_width_raises(self):
        """A timeline with no width cannot map pixels."""
        with pytest.raises(ValueError):
            snap_delta_minutes(10, 0, 1440)


class TestProposeTimeSpan:
    """Snapped deltas applied to a segment baseline."""

    def test_move_keeps_duration(self):
        """Moving shifts both ends by the delta."""
        baseline = SegmentDragBaseline(DragMode.MOVE, 0, _at(9), _at(10))

        span = propose_time_span(baseline, 45, DAY.starts_at, DAY.ends_at)
        assert span == TimeSpan(_at(9, 45), _at(10, 45))
        assert span.duration_minutes == 60

    def test_move_slides_back_inside_the_day(self):
        """A move past either edge stops at the edge with the duration intact."""
        early = SegmentDragBaseline(DragMode.MOVE, 0, _at(0, 30), _at(1, 30))
        late = SegmentDragBaseline(DragMode.MOVE, 0, _at(23), _at(23, 45))

        assert propose_time_span(early, -60, DAY.starts_at, DAY.ends_at) == TimeSpan(_at(0), _at(1))
        assert propose_time_span(late, 60, DAY.starts_at, DAY.ends_at) == TimeSpan(_at(23, 15), _at(0, day=15))

    def test_resize_left_minimum_duration(self):
        """The start may come within 15 minutes of the end but no closer."""
        baseline = SegmentDragBaseline(DragMode.RESIZE_LEFT, 0, _at(9), _at(10))

        assert propose_time_span(baseline, 45, DAY.starts_at, DAY.ends_at) == TimeSpan(_at(9, 45), _at(10))
        assert propose_time_span(baseline, 60, DAY.starts_at, DAY.ends_at) is None

    def test_resize_left_clamps_to_day_start(self):
        """Dragging the start before midnight stops at midnight."""
        baseline = SegmentDragBaseline(DragMode.RESIZE_LEFT, 0, _at(9), _at(10))

        assert propose_time_span(baseline, -600, DAY.starts_at, DAY.ends_at) == TimeSpan(_at(0), _at(10))

    def test_resize_right(self):
        """The end may shrink to 15 minutes and is clamped to the day end."""
        baseline = SegmentDragBaseline(DragMode.RESIZE_RIGHT, 0, _at(9), _at(10))

        assert propose_time_span(baseline, -45, DAY.starts_at, DAY.ends_at) == TimeSpan(_at(9), _at(9, 15))
        assert propose_time_span(baseline, -46, DAY.starts_at, DAY.ends_at) is None
        assert propose_time_span(baseline, 1000, DAY.starts_at, DAY.ends_at) == TimeSpan(_at(9), _at(0, day=15))


class TestSegmentDragSession:
    """Gesture lifecycle on a segment block."""

    def test_move_commits_snapped_span(self):
        """A 50px move commits a 45-minute shift."""
        calls = []
        session = SegmentDragSession(DAY, _recording_commit(calls))

        session.begin(DragMode.MOVE, 100, _at(9), _at(10))
        preview = session.pointer_move(150, WIDTH)
        committed = asyncio.run(session.pointer_up())

        assert preview == TimeSpan(_at(9, 45), _at(10, 45))
        assert calls == [(DragMode.MOVE, preview)]
        assert committed == preview
        assert session.state == DragState.IDLE

    def test_fine_modifier_snaps_to_minutes(self):
        """Holding the fine modifier moves by single minutes."""
        session = SegmentDragSession(DAY, _recording_commit([]))

        session.begin(DragMode.RESIZE_RIGHT, 0, _at(9), _at(10))
        assert session.pointer_move(7, WIDTH, fine=True) == TimeSpan(_at(9), _at(10, 7))

    def test_small_movement_does_not_start_preview(self):
        """Releasing under half a snap step commits nothing."""
        calls = []
        session = SegmentDragSession(DAY, _recording_commit(calls))

        session.begin(DragMode.MOVE, 100, _at(9), _at(10))
        assert session.pointer_move(105, WIDTH) is None
        assert asyncio.run(session.pointer_up()) is None
        assert calls == []

    def test_guard_keeps_last_valid_preview(self):
        """A resize below the minimum leaves the previous preview shown."""
        session = SegmentDragSession(DAY, _recording_commit([]))

        session.begin(DragMode.RESIZE_RIGHT, 0, _at(9), _at(10))
        session.pointer_move(-30, WIDTH)
        assert session.pointer_move(-60, WIDTH) == TimeSpan(_at(9), _at(9, 30))

    def test_geometry_follows_preview(self):
        """The block is drawn at the preview while one exists."""
        session = SegmentDragSession(DAY, _recording_commit([]))

        session.begin(DragMode.MOVE, 0, _at(9), _at(10))
        session.pointer_move(60, WIDTH)
        assert session.geometry(_at(9), _at(10)).left_percent == pytest.approx(10 / 24 * 100)

    def test_commit_failure_discards_preview(self):
        """A rejected commit re-raises and leaves the session idle."""
        session = SegmentDragSession(DAY, _recording_commit([], error=NetworkFailure("Bad Gateway")))

        session.begin(DragMode.MOVE, 0, _at(9), _at(10))
        session.pointer_move(60, WIDTH)
        with pytest.raises(NetworkFailure):
            asyncio.run(session.pointer_up())

        assert session.preview is None
        assert session.state == DragState.IDLE
        assert isinstance(session.error, NetworkFailure)

    def test_pointer_listeners_released(self):
        """Subscribed listeners are released when the gesture ends."""
        release = MagicMock()
        events = MagicMock()
        events.subscribe.return_value = release
        session = SegmentDragSession(DAY, _recording_commit([]), pointer_events=events)

        session.begin(DragMode.MOVE, 0, _at(9), _at(10))
        session.cancel()

        events.subscribe.assert_called_once_with(session.pointer_move, session.pointer_up)
        release.assert_called_once_with()


class TestOverlappingSegments:
    """Time conflicts between segments."""

    def _segment(self, base, segment_id, start, end, **fields):
        return TimeSegment(**{**base, "id": segment_id, "start_time": start, "end_time": end, **fields})

    def test_overlaps_on_same_date(self, sample_segment_base):
        """Only segments sharing time on the same date conflict."""
        target = self._segment(sample_segment_base, "a", _at(9), _at(10))
        others = [
            target,
            self._segment(sample_segment_base, "inside", _at(9, 15), _at(9, 45)),
            self._segment(sample_segment_base, "after", _at(10), _at(11)),
            self._segment(sample_segment_base, "next-day", _at(9, day=15), _at(10, day=15)),
            self._segment(
                sample_segment_base, "deleted", _at(9, 30), _at(10, 30),
                deleted_at=_at(8),
            ),
        ]

        assert [s.id for s in overlapping_segments(target, others)] == ["inside"]

    def test_containing_segment_overlaps(self, sample_segment_base):
        """A segment that spans the whole target conflicts with it."""
        target = self._segment(sample_segment_base, "a", _at(9, 15), _at(9, 30))
        wide = self._segment(sample_segment_base, "wide", _at(8), _at(12))

        assert overlapping_segments(target, [wide]) == [wide]

    def test_naive_times_compare_with_aware(self, sample_segment_base):
        """Naive times are read as UTC, so mixed segments still compare."""
        target = self._segment(sample_segment_base, "a", _at(9), _at(10))
        naive = self._segment(sample_segment_base, "naive", datetime(2026, 10, 14, 9, 30), datetime(2026, 10, 14, 11))

        assert naive.start_time == _at(9, 30)
        assert overlapping_segments(target, [naive]) == [naive]
        assert naive.end_time - naive.start_time == timedelta(minutes=90)
