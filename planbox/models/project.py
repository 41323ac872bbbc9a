"""Project data model for planbox."""

from datetime import date, datetime
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator, model_validator

from planbox.models.task import Priority
from planbox.util.calendar_math import parse_day


class ProjectStatus(str, Enum):
    """Project status enumeration."""
    NOT_STARTED = "not-started"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    ON_HOLD = "on-hold"


class Project(BaseModel):
    """A project drawn as a bar on the monthly Gantt chart."""

    id: str = Field(..., description="Unique project identifier")
    user_id: Optional[str] = Field(None, description="User ID who owns this project")
    name: str = Field(..., description="Project name")
    description: Optional[str] = None
    start_date: date = Field(..., description="First day of the project bar")
    deadline: date = Field(..., description="Last day of the project bar")
    priority: Priority = Field(Priority.MEDIUM, description="Project priority")
    status: ProjectStatus = Field(ProjectStatus.NOT_STARTED, description="Project status")
    color: Optional[str] = Field(None, description="Hex color")
    order: int = Field(0, description="Manual display rank (lower = higher on the list)")
    tags: Optional[List[str]] = None
    notes: Optional[str] = None
    progress: Optional[int] = Field(None, ge=0, le=100, description="Completion percentage")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("start_date", "deadline", mode="before")
    @classmethod
    def _calendar_day(cls, v):
        return parse_day(v)

    @field_validator("order", mode="before")
    @classmethod
    def _order_default(cls, v):
        return 0 if v is None else v

    @model_validator(mode="after")
    def _check_dates(self):
        if self.deadline < self.start_date:
            raise ValueError("deadline must be >= start_date")
        return self

    @property
    def duration_days(self) -> int:
        return (self.deadline - self.start_date).days

    class Config:
        """Pydantic configuration."""
        use_enum_values = True
