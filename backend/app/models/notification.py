# backend/app/models/notification.py

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.task import utcnow


class NotificationSeverity(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class NotificationInDB(BaseModel):
    """
    A document in the 'notifications' collection (the user's in-app feed).
    """
    id: str = Field(..., alias="_id")
    user_id: str
    event: str
    title: str
    description: str
    severity: NotificationSeverity = NotificationSeverity.INFO
    task_id: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    read: bool = False

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    @field_validator("id", mode="before")
    @classmethod
    def stringify_object_id(cls, v):
        return str(v) if v is not None else v
