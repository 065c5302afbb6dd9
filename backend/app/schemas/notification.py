# backend/app/schemas/notification.py

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

from app.models.notification import NotificationSeverity


def _strip_and_reject_blank(v: str, field_name: str) -> str:
    if not isinstance(v, str):
        return v
    stripped = v.strip()
    if stripped == "":
        raise ValueError(f"{field_name} must not be blank")
    return stripped


class NotificationPayload(BaseModel):
    """
    What a dispatcher delivers: {title, description, severity}.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str
    description: str
    severity: NotificationSeverity = NotificationSeverity.INFO
    task_id: Optional[str] = None


class NotificationCreate(NotificationPayload):
    """
    [Request] POST /notifications
    """
    event: str

    @field_validator("event", "title")
    @classmethod
    def validate_required_text(cls, v: str, info) -> str:
        return _strip_and_reject_blank(v, info.field_name)


class NotificationRead(BaseModel):
    id: str
    user_id: str
    event: str
    title: str
    description: str
    severity: NotificationSeverity
    task_id: Optional[str] = None
    created_at: datetime
    read: bool

    model_config = {
        "from_attributes": True
    }
