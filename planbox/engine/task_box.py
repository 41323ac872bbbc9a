"""Task box resolution for planbox.

A task's "box" is the set of calendar days it is considered active on. Once a
task has at least one qualifying segment the segments alone decide; before
that the task sits in the box of its planned_date.
"""

from datetime import date
from typing import Dict, List, Mapping, Sequence, Set

from planbox.models.constants import BOX_SEGMENT_SOURCES
from planbox.models.task import Task, TaskStatus
from planbox.models.time_segment import TimeSegment
from planbox.util.calendar_math import DayLike, parse_day

SegmentsByTask = Mapping[str, Sequence[TimeSegment]]


def is_qualifying_segment(segment: TimeSegment) -> bool:
    """Segments created in-app or from a task, and not soft-deleted."""
    return segment.deleted_at is None and segment.source in BOX_SEGMENT_SOURCES


def box_dates(task: Task, segments_by_task: SegmentsByTask) -> Set[date]:
    """Get the calendar days (boxes) a task belongs to.

    Status and parent filtering is the caller's job; this only looks at
    segments and planned_date.

    Args:
        task: Task to resolve
        segments_by_task: Map of task ID to its segments

    Returns:
        Distinct start days of the qualifying segments, else {planned_date},
        else an empty set
    """
    segments = [s for s in segments_by_task.get(task.id, ()) if is_qualifying_segment(s)]
    if segments:
        return {s.start_day for s in segments}
    if task.planned_date is not None:
        return {task.planned_date}
    return set()


def box_day_keys(task: Task, segments_by_task: SegmentsByTask) -> Set[str]:
    """Same as box_dates, formatted as YYYY-MM-DD strings."""
    return {d.isoformat() for d in box_dates(task, segments_by_task)}


def is_open_top_level(task: Task) -> bool:
    """True for tasks shown on date-indexed views: not completed, not a subtask, not deleted."""
    return (
        task.status != TaskStatus.COMPLETED
        and task.parent_task_id is None
        and task.deleted_at is None
    )


def order_sort_key(task: Task) -> tuple:
    """Manual order first, creation time as the tie-breaker."""
    created = task.created_at.timestamp() if task.created_at else 0.0
    return (task.order, created)


def group_tasks_by_date(tasks: Sequence[Task], segments_by_task: SegmentsByTask) -> Dict[str, List[Task]]:
    """Index tasks by the day keys of their boxes.

    Subtasks and deleted tasks are left out. A task appears once in every box
    it belongs to.
    """
    grouped: Dict[str, List[Task]] = {}
    for task in tasks:
        if task.parent_task_id is not None or task.deleted_at is not None:
            continue
        for key in sorted(box_day_keys(task, segments_by_task)):
            grouped.setdefault(key, []).append(task)
    return grouped


def dates_with_tasks(tasks: Sequence[Task], segments_by_task: SegmentsByTask) -> List[date]:
    """Days holding at least one open top-level task, ascending."""
    days: Set[date] = set()
    for task in tasks:
        if is_open_top_level(task):
            days.update(box_dates(task, segments_by_task))
    return sorted(days)


def tasks_for_day(tasks: Sequence[Task], segments_by_task: SegmentsByTask, day: DayLike) -> List[Task]:
    """Open top-level tasks whose box contains ``day``, in display order."""
    target = parse_day(day)
    matches = [
        task for task in tasks
        if is_open_top_level(task) and target in box_dates(task, segments_by_task)
    ]
    return sorted(matches, key=order_sort_key)

