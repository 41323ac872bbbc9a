"""Task collection: global manual order and subtasks."""

import asyncio
import logging
from typing import Any, Dict, List, Sequence

from planbox.engine.task_box import order_sort_key
from planbox.models.task import Task
from planbox.store.collection import OptimisticCollection

logger = logging.getLogger(__name__)


def global_order(tasks: Sequence[Task], task_ids: Sequence[str]) -> List[Task]:
    """Splice a reordered run of top-level tasks back into the global order.

    Tasks ranked before the lowest reordered task stay in front, tasks ranked
    after the highest stay behind, and the reordered ids take the middle in
    the given sequence. Untouched tasks ranked inside that span follow the
    reordered block.
    """
    main = sorted(
        (t for t in tasks if t.parent_task_id is None and t.deleted_at is None),
        key=order_sort_key,
    )
    by_id = {t.id: t for t in main}
    wanted = [by_id[task_id] for task_id in dict.fromkeys(task_ids) if task_id in by_id]
    if not wanted:
        return []
    wanted_ids = {t.id for t in wanted}
    low = min(t.order for t in wanted)
    high = max(t.order for t in wanted)
    others = [t for t in main if t.id not in wanted_ids]
    before = [t for t in others if t.order < low]
    inside = [t for t in others if low <= t.order <= high]
    after = [t for t in others if t.order > high]
    return before + wanted + inside + after


class TaskCollection(OptimisticCollection[Task]):
    """Tasks, kept in display order (order, then creation time)."""

    kind = "task"

    def __init__(self, resource: Any):
        super().__init__(resource, Task, sort_key=order_sort_key)

    def subtasks(self, parent_id: str) -> List[Task]:
        return sorted(
            (t for t in self._items if t.parent_task_id == parent_id and t.deleted_at is None),
            key=order_sort_key,
        )

    def active_ids(self) -> set:
        return {t.id for t in self._items if t.deleted_at is None}

    async def _save_orders(self, orders: Dict[str, int]) -> None:
        await asyncio.gather(
            *(self._call(self.resource.update, task_id, {"order": order}) for task_id, order in orders.items())
        )

    async def reorder(self, task_ids: Sequence[str]) -> List[Task]:
        """Give top-level tasks consecutive global orders following ``task_ids``.

        The new orders are applied locally first. Only tasks whose order
        changed are saved; if a save fails the collection is re-fetched.

        Returns:
            Top-level tasks in their new order (empty if no id matched)

        Raises:
            PlanboxError: If a persistence call fails (after the resync)
        """
        final = global_order(self._items, task_ids)
        if not final:
            logger.warning(f"None of {len(task_ids)} reordered ids matched a top-level task")
            return []
        orders = {t.id: index for index, t in enumerate(final) if t.order != index}
        self._set_items([
            t.model_copy(update={"order": orders[t.id]}) if t.id in orders else t
            for t in self._items
        ])
        if not orders:
            return [self.get(t.id) for t in final]

        try:
            await self._save_orders(orders)
        except Exception as e:
            self._record_failure("reorder", None, e)
            await self.resync()
            raise
        logger.debug(f"Reordered {len(orders)} tasks")
        return [self.get(t.id) for t in final]

    async def reorder_subtasks(self, parent_id: str, subtask_ids: Sequence[str]) -> List[Task]:
        """Set subtask order to their position in ``subtask_ids``.

        Saves run one after another; on failure the pre-reorder tasks are
        restored and the error re-raised.
        """
        snapshot = self.items
        positions = {task_id: index for index, task_id in enumerate(subtask_ids)}
        self._set_items([
            t.model_copy(update={"order": positions[t.id]})
            if t.id in positions and t.parent_task_id == parent_id else t
            for t in self._items
        ])
        try:
            for subtask in self.subtasks(parent_id):
                if subtask.id in positions:
                    await self._call(self.resource.update, subtask.id, {"order": positions[subtask.id]})
        except Exception as e:
            self._items = snapshot
            self._record_failure("reorder subtasks of", parent_id, e)
            raise
        return self.subtasks(parent_id)
