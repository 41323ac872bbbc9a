"""PlannerStore: the three collections plus the rules that span them.

One store is created per session and passed to whatever needs it.
"""

import asyncio
import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from planbox.engine.board import BoardColumn, partition_board
from planbox.engine.date_window import DateRange, filter_tasks_in_window
from planbox.engine.day_timeline import DayTimeline, GanttRow, SegmentDragSession, gantt_rows, overlapping_segments
from planbox.engine.task_box import dates_with_tasks, group_tasks_by_date, tasks_for_day
from planbox.engine.timeline import DragSession, TimelineGrid
from planbox.integrations.backend import BackendClient
from planbox.models.constants import UNTITLED
from planbox.models.payloads import build_task_payload
from planbox.models.task import Task, TaskStatus
from planbox.models.time_segment import SegmentStatus, TimeSegment
from planbox.store.projects import ProjectCollection
from planbox.store.segments import SegmentCollection
from planbox.store.tasks import TaskCollection
from planbox.util import calendar_math as cm

logger = logging.getLogger(__name__)


class PlannerStore:
    """In-memory planner state backed by the REST API."""

    def __init__(self, client: Optional[BackendClient] = None):
        self.client = client or BackendClient()
        self.tasks = TaskCollection(self.client.tasks)
        self.segments = SegmentCollection(self.client.time_segments)
        self.projects = ProjectCollection(self.client.projects)

    async def refresh_all(self) -> None:
        """Load tasks, segments and projects."""
        await asyncio.gather(self.tasks.refresh(), self.segments.refresh(), self.projects.refresh())
        logger.info(
            f"Loaded {len(self.tasks)} tasks, {len(self.segments)} time segments, {len(self.projects)} projects"
        )

    # Views

    def segments_by_task(self) -> Dict[str, List[TimeSegment]]:
        """Segments grouped by task, for tasks that still exist."""
        return self.segments.by_task(self.tasks.active_ids())

    def segment_title(self, segment: TimeSegment) -> str:
        """Custom title if set, else the task's current title."""
        if segment.title_is_custom and segment.title:
            return segment.title
        task = self.tasks.get(segment.task_id)
        if task is not None:
            return task.title
        return segment.title or UNTITLED

    def tasks_by_date(self) -> Dict[str, List[Task]]:
        return group_tasks_by_date(self.tasks.items, self.segments_by_task())

    def dates_with_tasks(self) -> List[date]:
        return dates_with_tasks(self.tasks.items, self.segments_by_task())

    def tasks_for_day(self, day: cm.DayLike) -> List[Task]:
        return tasks_for_day(self.tasks.items, self.segments_by_task(), day)

    def tasks_in_window(self, window: DateRange) -> List[Task]:
        return filter_tasks_in_window(self.tasks.items, self.segments_by_task(), window)

    def board(self, window: DateRange) -> Dict[BoardColumn, List[Task]]:
        """Board columns for the tasks in ``window``."""
        return partition_board(self.tasks_in_window(window))

    def project_drag(self, project_id: str, grid: TimelineGrid, pointer_events: Any = None) -> DragSession:
        """Drag session whose commit persists the project's new dates."""
        self.projects.require(project_id)
        return DragSession(grid, self.projects.bar_commit(project_id), pointer_events)

    def segment_drag(self, segment_id: str, timeline: DayTimeline, pointer_events: Any = None) -> SegmentDragSession:
        """Drag session on the daily timeline; the commit also refreshes the task's scheduled time."""
        segment = self.segments.require(segment_id)
        save = self.segments.segment_commit(segment_id)

        async def commit(mode, span) -> TimeSegment:
            saved = await save(mode, span)
            await self.sync_scheduled_time(segment.task_id)
            return saved

        return SegmentDragSession(timeline, commit, pointer_events)

    def gantt_rows(self, day: cm.DayLike) -> List[GanttRow]:
        """Daily timeline rows: open top-level tasks boxed on ``day`` with that day's segments."""
        return gantt_rows(self.tasks.items, self.segments_by_task(), self.segments.for_day(day), day)

    def segments_for_day_by_task(self, day: cm.DayLike) -> Dict[str, List[TimeSegment]]:
        return self.segments.for_day_by_task(day)

    def dates_with_segments(self) -> List[date]:
        return self.segments.dates_with_segments()

    def overlapping_segments(self, segment_id: str) -> List[TimeSegment]:
        """Other segments on the same date whose times overlap this one."""
        return overlapping_segments(self.segments.require(segment_id), self.segments.items)

    # Tasks

    async def create_task(self, title: str, planned_date: cm.DayLike, **fields: Any) -> Task:
        payload = build_task_payload(title, cm.parse_day(planned_date), **fields)
        return await self.tasks.create(payload)

    async def update_task(self, task_id: str, patch: Dict[str, Any]) -> Task:
        """Update a task and keep its segments consistent.

        Completing a task completes its segments; renaming it renames the
        segments that still use the task title.
        """
        task = await self.tasks.update(task_id, patch)
        if patch.get("status") == TaskStatus.COMPLETED.value:
            await self.complete_segments(task_id)
        if "title" in patch:
            await self._sync_segment_titles(task_id, task.title)
        return task

    async def delete_task(self, task_id: str) -> None:
        """Delete a task together with its time segments.

        The backend removes the segments with the task, so they are only
        dropped locally. If the delete fails both collections are re-loaded.
        """
        try:
            await self.tasks.delete(task_id)
        except Exception:
            await self.segments.resync()
            raise
        self.segments.drop_for_task(task_id)

    async def complete_segments(self, task_id: str) -> List[TimeSegment]:
        pending = [s for s in self.segments.for_task(task_id) if s.status != SegmentStatus.COMPLETED.value]
        return list(await asyncio.gather(
            *(self.segments.update(s.id, {"status": SegmentStatus.COMPLETED.value}) for s in pending)
        ))

    async def _sync_segment_titles(self, task_id: str, title: str) -> None:
        stale = [s for s in self.segments.for_task(task_id) if not s.title_is_custom and s.title != title]
        await asyncio.gather(*(self.segments.update(s.id, {"title": title}) for s in stale))

    async def sync_scheduled_time(self, task_id: str) -> Optional[Task]:
        """Write the task's segment total to ``scheduled_time`` if it changed."""
        task = self.tasks.get(task_id)
        if task is None:
            return None
        minutes = self.segments.scheduled_minutes(task_id)
        if task.scheduled_time == minutes:
            return task
        return await self.tasks.update(task_id, {"scheduled_time": minutes})

    # Segments

    async def create_segment(
        self,
        task_id: str,
        start_time: datetime,
        end_time: datetime,
        title: Optional[str] = None,
        **extra: Any,
    ) -> TimeSegment:
        task = self.tasks.get(task_id)
        title_is_custom = title is not None
        if title is None:
            title = task.title if task is not None else UNTITLED
        segment = await self.segments.create_segment(
            task_id, start_time, end_time, title, title_is_custom=title_is_custom, **extra
        )
        await self.sync_scheduled_time(task_id)
        return segment

    async def create_segment_from_drop(self, task_id: str, start_time: datetime) -> TimeSegment:
        segment = await self.segments.create_from_drop(task_id, start_time, task=self.tasks.get(task_id))
        await self.sync_scheduled_time(task_id)
        return segment

    async def create_segment_at(
        self, task_id: str, timeline: DayTimeline, pointer_x: float, width_px: float
    ) -> TimeSegment:
        """One-hour segment for a task dropped at ``pointer_x`` on the daily timeline."""
        return await self.create_segment_from_drop(task_id, timeline.drop_start(pointer_x, width_px))

    async def update_segment(self, segment_id: str, patch: Dict[str, Any]) -> TimeSegment:
        if "title" in patch and "title_is_custom" not in patch:
            patch = {**patch, "title_is_custom": True}
        segment = await self.segments.update(segment_id, patch)
        await self.sync_scheduled_time(segment.task_id)
        return segment

    async def delete_segment(self, segment_id: str) -> None:
        task_id = self.segments.require(segment_id).task_id
        await self.segments.delete(segment_id)
        await self.sync_scheduled_time(task_id)

    async def bulk_delete_segments(self, ids: List[str]) -> None:
        for task_id in await self.segments.bulk_delete(ids):
            await self.sync_scheduled_time(task_id)

    async def bulk_update_segments(self, ids: List[str], patch: Dict[str, Any]) -> None:
        for task_id in await self.segments.bulk_update(ids, patch):
            await self.sync_scheduled_time(task_id)

    # Projects

    async def create_project(self, payload: Dict[str, Any]):
        return await self.projects.create(payload)

    async def reorder_projects(self, source_index: int, destination_index: int):
        return await self.projects.reorder(source_index, destination_index)
