"""Kanban board classification for planbox.

Partitions tasks into the three fixed columns and validates drops between
them. backlog and planned are both shown in the todo column.
"""

import logging
from collections import OrderedDict
from enum import Enum
from typing import Dict, List, Optional, Sequence

from planbox.models.task import Task, TaskStatus

logger = logging.getLogger(__name__)


class BoardColumn(str, Enum):
    """Board column ids."""
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


COLUMN_TITLES = {
    BoardColumn.TODO: "To Do",
    BoardColumn.IN_PROGRESS: "In Progress",
    BoardColumn.COMPLETED: "Completed",
}

# Status each column writes when a task is dropped on it
_COLUMN_STATUS = {
    BoardColumn.TODO: TaskStatus.TODO,
    BoardColumn.IN_PROGRESS: TaskStatus.IN_PROGRESS,
    BoardColumn.COMPLETED: TaskStatus.COMPLETED,
}


def column_for_status(status: str) -> BoardColumn:
    """Normalize a task status to its column."""
    status = TaskStatus(status)
    if status in (TaskStatus.TODO, TaskStatus.BACKLOG, TaskStatus.PLANNED):
        return BoardColumn.TODO
    if status == TaskStatus.IN_PROGRESS:
        return BoardColumn.IN_PROGRESS
    return BoardColumn.COMPLETED


def partition_board(tasks: Sequence[Task]) -> "OrderedDict[BoardColumn, List[Task]]":
    """Split already-filtered tasks into columns, keeping input order within each."""
    columns: "OrderedDict[BoardColumn, List[Task]]" = OrderedDict((column, []) for column in BoardColumn)
    for task in tasks:
        columns[column_for_status(task.status)].append(task)
    return columns


def column_counts(tasks: Sequence[Task]) -> Dict[str, int]:
    return {column.value: len(items) for column, items in partition_board(tasks).items()}


def resolve_transition(task: Task, destination: str) -> Optional[TaskStatus]:
    """Status to write when ``task`` is dropped on ``destination``.

    Returns:
        The new status, or None when the drop is a no-op (unknown column, or
        the column's status is already the task's status)
    """
    try:
        column = BoardColumn(destination)
    except ValueError:
        logger.debug(f"Ignoring drop of task {task.id} on unknown column {destination!r}")
        return None
    new_status = _COLUMN_STATUS[column]
    if task.status == new_status:
        return None
    return new_status


async def apply_board_transition(store, task: Task, destination: str) -> Optional[Task]:
    """Persist a board drop through the store's optimistic task update.

    Args:
        store: PlannerStore (or anything with an async ``update_task``)
        task: Dropped task
        destination: Column id the task was dropped on

    Returns:
        The updated task, or None when no call was issued
    """
    new_status = resolve_transition(task, destination)
    if new_status is None:
        return None
    return await store.update_task(task.id, {"status": new_status.value})
