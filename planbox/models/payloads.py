"""Create-request factory for planbox.

Centralizes the defaults applied when creating tasks and segments so every
caller sends the backend the same shape.
"""

from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional

from planbox.models.constants import (
    DEFAULT_SEGMENT_MINUTES,
    DEFAULT_SEGMENT_SOURCE,
    DEFAULT_SEGMENT_STATUS,
    DEFAULT_TASK_PRIORITY,
    DEFAULT_TASK_STATUS,
    UNTITLED,
)
from planbox.models.task import Task
from planbox.models.time_segment import minutes_between
from planbox.util.calendar_math import day_key


def create_task_defaults() -> Dict[str, Any]:
    """Get default task values as a dictionary."""
    return {
        "status": DEFAULT_TASK_STATUS.value,
        "priority": DEFAULT_TASK_PRIORITY.value,
        "description": None,
        "deadline": None,
        "estimated_minutes": None,
        "project_id": None,
        "parent_task_id": None,
        "tags": [],
    }


def build_task_payload(
    title: str,
    planned_date: date,
    description: Optional[str] = None,
    status: Optional[str] = None,
    priority: Optional[str] = None,
    deadline: Optional[date] = None,
    estimated_minutes: Optional[int] = None,
    project_id: Optional[str] = None,
    parent_task_id: Optional[str] = None,
    tags: Optional[List[str]] = None,
) -> Dict[str, Any]:
    """Build a POST /tasks body with defaults applied.

    A new task always lands in the box of the day it was created for, so
    ``planned_date`` is required.

    Raises:
        ValueError: If the title is blank or estimated_minutes is negative
    """
    if not title or not title.strip():
        raise ValueError("Task title is required")
    if estimated_minutes is not None and estimated_minutes < 0:
        raise ValueError("estimated_minutes must be >= 0")

    payload = create_task_defaults()
    payload.update({
        "title": title.strip(),
        "planned_date": day_key(planned_date),
    })
    if description is not None:
        payload["description"] = description
    if status is not None:
        payload["status"] = status
    if priority is not None:
        payload["priority"] = priority
    if deadline is not None:
        payload["deadline"] = day_key(deadline)
    if estimated_minutes is not None:
        payload["estimated_minutes"] = estimated_minutes
    if project_id is not None:
        payload["project_id"] = project_id
    if parent_task_id is not None:
        payload["parent_task_id"] = parent_task_id
    if tags is not None:
        payload["tags"] = list(dict.fromkeys(tags))
    return payload


def build_segment_payload(
    task_id: str,
    start_time: datetime,
    end_time: datetime,
    title: str,
    order: int = 1,
    title_is_custom: bool = False,
    status: Optional[str] = None,
    source: Optional[str] = None,
    **extra: Any,
) -> Dict[str, Any]:
    """Build a POST /time-segments body.

    ``duration`` and ``date`` are derived from the start/end pair.

    Raises:
        ValueError: If end_time is not after start_time
    """
    if end_time <= start_time:
        raise ValueError("end_time must be after start_time")
    payload: Dict[str, Any] = {
        "task_id": task_id,
        "title": title,
        "title_is_custom": title_is_custom,
        "date": day_key(start_time),
        "start_time": start_time.isoformat(),
        "end_time": end_time.isoformat(),
        "duration": minutes_between(start_time, end_time),
        "status": status or DEFAULT_SEGMENT_STATUS.value,
        "order": order,
        "source": source or DEFAULT_SEGMENT_SOURCE.value,
    }
    payload.update(extra)
    return payload


def build_drop_segment_payload(
    task_id: str,
    start_time: datetime,
    task: Optional[Task] = None,
    order: int = 1,
) -> Dict[str, Any]:
    """Segment created by dropping a task on the timeline: one hour, user-created."""
    return build_segment_payload(
        task_id=task_id,
        start_time=start_time,
        end_time=start_time + timedelta(minutes=DEFAULT_SEGMENT_MINUTES),
        title=task.title if task else UNTITLED,
        order=order,
    )
