# backend/app/models/task.py

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TaskStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    FOLLOW_UP = "follow-up"
    # only ever set by the overdue monitor
    MISSING = "missing"


def ensure_aware_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    naive datetimes are treated as UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TaskInDB(BaseModel):
    """
    Full shape of a document in the MongoDB 'tasks' collection.
    """
    id: str = Field(..., alias="_id")  # Mongo '_id' exposed as 'id'
    user_id: str
    description: str
    status: TaskStatus = TaskStatus.ACTIVE
    deadline: Optional[datetime] = None
    # last time a "task missed" notification went out; None = never
    last_missing_notification: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utcnow)

    # written by AI prioritization, opaque to the overdue monitor
    priority: Optional[int] = None
    scheduled_time: Optional[str] = None
    reason: Optional[str] = None

    model_config = ConfigDict(
        populate_by_name=True,
        from_attributes=True,
    )

    @field_validator("id", mode="before")
    @classmethod
    def stringify_object_id(cls, v):
        return str(v) if v is not None else v

    @field_validator("deadline", "last_missing_notification", "created_at")
    @classmethod
    def normalize_datetime(cls, v):
        return ensure_aware_utc(v)

    @classmethod
    def from_mongo(cls, doc: dict) -> "TaskInDB":
        return cls(**doc)
