"""TimeSegment data model for planbox."""

import datetime as dt
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator, model_validator

from planbox.util.calendar_math import parse_day


class SegmentStatus(str, Enum):
    """Segment status enumeration."""
    PLANNED = "planned"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class SegmentSource(str, Enum):
    """Where a segment came from."""
    APP = "app"  # Created by the user on a timeline
    GOOGLE = "google"  # Synced from Google Calendar
    TASK = "task"  # Created from a task


class TimeSegment(BaseModel):
    """A block of time spent (or planned) on a task."""

    id: str = Field(..., description="Unique segment identifier")
    user_id: Optional[str] = Field(None, description="User ID who owns this segment")
    task_id: str = Field(..., description="Task this segment works on (weak reference)")
    title: str = Field("", description="Display title, defaults to the task title")
    title_is_custom: bool = Field(False, description="Whether the title was overridden by the user")
    date: Optional[dt.date] = Field(None, description="Calendar day of the segment (defaults to the start_time day)")
    start_time: dt.datetime = Field(..., description="Segment start")
    end_time: dt.datetime = Field(..., description="Segment end")
    duration: Optional[int] = Field(None, description="Minutes between start_time and end_time")
    status: SegmentStatus = Field(SegmentStatus.PLANNED, description="Segment status")
    description: Optional[str] = None
    notes: Optional[str] = Field(None, description="Session-specific notes")
    color: Optional[str] = None
    tags: Optional[List[str]] = None
    order: int = Field(1, description="Session number within the task and day")
    google_calendar_event_id: Optional[str] = None
    source: SegmentSource = Field(SegmentSource.APP, description="Origin of the segment")
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None
    deleted_at: Optional[dt.datetime] = Field(None, description="Soft-delete timestamp (null if active)")

    @field_validator("date", mode="before")
    @classmethod
    def _calendar_day(cls, v):
        if v is None or v == "":
            return None
        return parse_day(v)

    @field_validator("start_time", "end_time", "deleted_at", mode="after")
    @classmethod
    def _assume_utc(cls, v):
        # Naive times are read as UTC so every segment compares with every other
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=dt.timezone.utc)
        return v

    @field_validator("order", mode="before")
    @classmethod
    def _order_default(cls, v):
        return 1 if v is None else v

    @model_validator(mode="after")
    def _derive_fields(self):
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        if self.duration is None:
            self.duration = minutes_between(self.start_time, self.end_time)
        if self.date is None:
            self.date = self.start_time.date()
        return self

    @property
    def start_day(self) -> dt.date:
        """Calendar day of start_time; this is what places the segment on a day."""
        return self.start_time.date()

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    class Config:
        """Pydantic configuration."""
        use_enum_values = True


def minutes_between(start: dt.datetime, end: dt.datetime) -> int:
    """Whole minutes from start to end (truncated)."""
    return int((end - start).total_seconds() // 60)
