"""Project collection: manual order and Gantt bar persistence."""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from planbox.engine.timeline import CommitFn, DateSpan, DragMode, projects_for_month
from planbox.models.project import Project
from planbox.store.collection import OptimisticCollection
from planbox.util import calendar_math as cm

logger = logging.getLogger(__name__)


def reordered(projects: List[Project], source_index: int, destination_index: int) -> List[Project]:
    """Move one project and renumber the whole list so order == index.

    Raises:
        IndexError: If either index is outside the list
    """
    size = len(projects)
    if not 0 <= source_index < size or not 0 <= destination_index < size:
        raise IndexError(f"Cannot move index {source_index} to {destination_index} in {size} projects")
    moved = list(projects)
    project = moved.pop(source_index)
    moved.insert(destination_index, project)
    return [p if p.order == index else p.model_copy(update={"order": index}) for index, p in enumerate(moved)]


class ProjectCollection(OptimisticCollection[Project]):
    """Projects, always kept sorted by ``order``."""

    kind = "project"

    def __init__(self, resource: Any):
        super().__init__(resource, Project, sort_key=lambda p: p.order)

    @property
    def ordered(self) -> List[Project]:
        return sorted(self._items, key=lambda p: p.order)

    def next_order(self) -> int:
        """current max + 1, or 0 for the first project."""
        return max((p.order for p in self._items), default=-1) + 1

    def for_month(self, month: cm.DayLike) -> List[Project]:
        return projects_for_month(self._items, month)

    async def create(self, payload: Dict[str, Any]) -> Project:
        if "order" not in payload:
            payload = {**payload, "order": self.next_order()}
        return await super().create(payload)

    async def reorder(self, source_index: int, destination_index: int) -> List[Project]:
        """Move a project within the manual order and persist the new ranks.

        The new list is applied at once. Every project whose order changed is
        saved concurrently; if any save fails the whole list goes back to the
        snapshot taken before the move.

        Args:
            source_index: Current position of the project
            destination_index: Position to move it to

        Returns:
            The reordered projects

        Raises:
            IndexError: If an index is out of range
            PlanboxError: If any persistence call fails (after the revert)
        """
        snapshot = self.ordered
        updated = reordered(snapshot, source_index, destination_index)
        changed = [p for p in updated if self.get(p.id).order != p.order]
        self._items = updated
        if not changed:
            return list(updated)

        try:
            results = await asyncio.gather(
                *(self._call(self.resource.update, p.id, {"order": p.order}) for p in changed)
            )
        except Exception as e:
            self._items = snapshot
            self._record_failure("reorder", None, e)
            raise

        confirmed = {row["id"]: self._parse(row) for row in results if row}
        self._items = [confirmed.get(p.id, p) for p in updated]
        logger.debug(f"Reordered {len(changed)} projects ({source_index} -> {destination_index})")
        return self.items

    async def move_bar(self, project_id: str, new_start: cm.DayLike) -> Project:
        """Shift a project bar, keeping its duration."""
        project = self.require(project_id)
        start = cm.parse_day(new_start)
        deadline = cm.add_days(start, project.duration_days)
        return await self.update(project_id, {"start_date": start, "deadline": deadline})

    async def resize_bar(self, project_id: str, new_start: cm.DayLike, new_deadline: cm.DayLike) -> Project:
        """Set both ends of a project bar.

        Raises:
            ValueError: If the deadline would precede the start
        """
        self.require(project_id)
        start = cm.parse_day(new_start)
        deadline = cm.parse_day(new_deadline)
        if deadline < start:
            raise ValueError("deadline must be on or after start_date")
        return await self.update(project_id, {"start_date": start, "deadline": deadline})

    def bar_commit(self, project_id: str) -> CommitFn:
        """Commit callback for a DragSession on this project's bar."""

        async def commit(mode: DragMode, span: DateSpan) -> Optional[Project]:
            if DragMode(mode) == DragMode.MOVE:
                return await self.move_bar(project_id, span.start)
            return await self.resize_bar(project_id, span.start, span.end)

        return commit
