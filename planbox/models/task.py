"""Task data model for planbox."""

from datetime import date, datetime
from typing import List, Optional
from enum import Enum
from pydantic import BaseModel, Field, field_validator

from planbox.util.calendar_math import parse_day


class TaskStatus(str, Enum):
    """Task status enumeration."""
    TODO = "todo"
    BACKLOG = "backlog"
    PLANNED = "planned"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class Priority(str, Enum):
    """Priority levels shared by tasks and projects."""
    URGENT = "urgent"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Task(BaseModel):
    """Canonical Task model."""

    id: str = Field(..., description="Unique task identifier")
    user_id: Optional[str] = Field(None, description="User ID who owns this task")
    title: str = Field(..., description="Task title")
    description: Optional[str] = Field(None, description="Task description")
    status: TaskStatus = Field(TaskStatus.TODO, description="Task status")
    priority: Priority = Field(Priority.MEDIUM, description="Task priority")
    planned_date: Optional[date] = Field(None, description="Day the user plans to work on the task (the default box)")
    deadline: Optional[date] = Field(None, description="Actual due date, may differ from planned_date")
    estimated_minutes: Optional[int] = Field(None, ge=0, description="Estimated effort in minutes")
    scheduled_time: Optional[int] = Field(None, ge=0, description="Minutes covered by time segments")
    project_id: Optional[str] = Field(None, description="Owning project")
    parent_task_id: Optional[str] = Field(None, description="Parent task for subtasks")
    tags: List[str] = Field(default_factory=list, description="Custom tags")
    order: int = Field(0, description="Global manual display rank (lower = earlier)")
    created_at: Optional[datetime] = Field(None, description="Task creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Task last update timestamp")
    completed_at: Optional[datetime] = Field(None, description="Completion timestamp")
    deleted_at: Optional[datetime] = Field(None, description="Soft-delete timestamp (null if active)")

    @field_validator("planned_date", "deadline", mode="before")
    @classmethod
    def _calendar_day(cls, v):
        if v is None or v == "":
            return None
        return parse_day(v)

    @field_validator("tags", mode="before")
    @classmethod
    def _distinct_tags(cls, v):
        if v is None:
            return []
        # Deduplicate but preserve order
        seen = set()
        out: List[str] = []
        for tag in v:
            if tag not in seen:
                seen.add(tag)
                out.append(tag)
        return out

    @field_validator("order", mode="before")
    @classmethod
    def _order_default(cls, v):
        return 0 if v is None else v

    @property
    def is_subtask(self) -> bool:
        return self.parent_task_id is not None

    class Config:
        """Pydantic configuration."""
        use_enum_values = True
