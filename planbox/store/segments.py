"""Time-segment collection."""

import logging
from collections import defaultdict
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set

from planbox.engine.timeline import CommitFn, DragMode
from planbox.models.payloads import build_drop_segment_payload, build_segment_payload
from planbox.models.task import Task
from planbox.models.time_segment import TimeSegment
from planbox.store.collection import OptimisticCollection, to_payload
from planbox.util import calendar_math as cm

logger = logging.getLogger(__name__)

_TIME_FIELDS = ("start_time", "end_time")


def _start_sort_key(segment: TimeSegment) -> tuple:
    return (segment.start_time, segment.order)


class SegmentCollection(OptimisticCollection[TimeSegment]):
    """Non-deleted time segments, sorted by start time."""

    kind = "time segment"

    def __init__(self, resource: Any):
        super().__init__(resource, TimeSegment, sort_key=_start_sort_key)

    def _active(self) -> List[TimeSegment]:
        return [s for s in self._items if s.deleted_at is None]

    def for_task(self, task_id: str) -> List[TimeSegment]:
        return sorted((s for s in self._active() if s.task_id == task_id), key=_start_sort_key)

    def for_day(self, day: cm.DayLike) -> List[TimeSegment]:
        """Segments starting on ``day``, earliest first."""
        target = cm.parse_day(day)
        return sorted((s for s in self._active() if s.start_day == target), key=_start_sort_key)

    def by_task(self, task_ids: Optional[Iterable[str]] = None) -> Dict[str, List[TimeSegment]]:
        """Group segments by task, optionally only for the given task ids."""
        wanted = set(task_ids) if task_ids is not None else None
        grouped: Dict[str, List[TimeSegment]] = defaultdict(list)
        for segment in sorted(self._active(), key=_start_sort_key):
            if wanted is None or segment.task_id in wanted:
                grouped[segment.task_id].append(segment)
        return dict(grouped)

    def for_day_by_task(self, day: cm.DayLike) -> Dict[str, List[TimeSegment]]:
        """Segments starting on ``day``, grouped by task."""
        grouped: Dict[str, List[TimeSegment]] = defaultdict(list)
        for segment in self.for_day(day):
            grouped[segment.task_id].append(segment)
        return dict(grouped)

    def dates_with_segments(self) -> List[date]:
        return sorted({s.start_day for s in self._active()})

    def scheduled_minutes(self, task_id: str) -> int:
        """Total minutes of the task's segments."""
        return sum(s.duration or 0 for s in self.for_task(task_id))

    def next_session_order(self, task_id: str, day: cm.DayLike) -> int:
        """Session number for a new segment of ``task_id`` on ``day``."""
        target = cm.parse_day(day)
        return sum(1 for s in self._active() if s.task_id == task_id and s.date == target) + 1

    async def create(self, payload: Dict[str, Any]) -> TimeSegment:
        """Create a segment; ``order`` is always the next session number for its task and day."""
        draft = self.model.model_validate({"id": "", **payload, "duration": None, "date": None})
        payload = {
            **payload,
            "date": cm.day_key(draft.start_day),
            "duration": draft.duration,
            "order": self.next_session_order(draft.task_id, draft.start_day),
        }
        return await super().create(payload)

    async def create_segment(
        self,
        task_id: str,
        start_time: datetime,
        end_time: datetime,
        title: str,
        **extra: Any,
    ) -> TimeSegment:
        return await self.create(build_segment_payload(task_id, start_time, end_time, title, **extra))

    async def create_from_drop(self, task_id: str, start_time: datetime, task: Optional[Task] = None) -> TimeSegment:
        """One-hour segment for a task dropped on the timeline."""
        return await self.create(build_drop_segment_payload(task_id, start_time, task=task))

    def _with_derived_fields(self, current: TimeSegment, patch: Dict[str, Any]) -> Dict[str, Any]:
        if not any(field in patch for field in _TIME_FIELDS):
            return patch
        # Raises before any network call if the new end is not after the new start
        candidate = self.model.model_validate({**current.model_dump(), **patch, "duration": None, "date": None})
        return {**patch, "duration": candidate.duration, "date": candidate.start_day}

    async def update(self, entity_id: str, patch: Dict[str, Any]) -> TimeSegment:
        """Update a segment; duration and date follow any change of start or end."""
        current = self.require(entity_id)
        return await super().update(entity_id, self._with_derived_fields(current, patch))

    async def bulk_delete(self, ids: Sequence[str]) -> Set[str]:
        """Remove several segments in one call.

        Returns:
            Ids of the tasks that owned the removed segments
        """
        ids = list(dict.fromkeys(ids))
        affected = {s.task_id for s in self._items if s.id in ids}
        self._items = [s for s in self._items if s.id not in ids]
        try:
            await self._call(self.resource.bulk_delete, ids)
        except Exception as e:
            self._record_failure("bulk delete", None, e)
            await self.resync()
            raise
        logger.debug(f"Deleted {len(ids)} time segments")
        return affected

    async def bulk_update(self, ids: Sequence[str], patch: Dict[str, Any]) -> Set[str]:
        """Apply the same patch to several segments, then reload from the backend.

        Returns:
            Ids of the tasks owning the updated segments
        """
        targets = [self.require(segment_id) for segment_id in dict.fromkeys(ids)]
        updates = []
        affected: Set[str] = set()
        for current in targets:
            segment_patch = self._with_derived_fields(current, patch)
            self._replace(current.id, self._merge(current, segment_patch))
            updates.append({"id": current.id, **to_payload(segment_patch)})
            affected.add(current.task_id)
        try:
            await self._call(self.resource.bulk_update, updates)
        except Exception as e:
            self._record_failure("bulk update", None, e)
            await self.resync()
            raise
        # The update went through; a failed reload only leaves the optimistic values
        self.error = None
        await self.resync()
        return affected

    def drop_for_task(self, task_id: str) -> List[str]:
        """Forget a deleted task's segments locally; the backend removes them with the task.

        Returns:
            Ids of the dropped segments
        """
        dropped = [s.id for s in self._items if s.task_id == task_id]
        self._items = [s for s in self._items if s.task_id != task_id]
        if dropped:
            logger.debug(f"Dropped {len(dropped)} time segments of deleted task {task_id}")
        return dropped

    def segment_commit(self, segment_id: str) -> CommitFn:
        """Commit callback for a SegmentDragSession on this segment."""

        async def commit(mode: DragMode, span) -> TimeSegment:
            return await self.update(segment_id, {"start_time": span.start, "end_time": span.end})

        return commit
