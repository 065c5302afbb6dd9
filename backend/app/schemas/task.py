# backend/app/schemas/task.py

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

from app.models.task import TaskStatus


# -------------------------
# shared validators
# -------------------------
def _strip_and_reject_blank(v: str, field_name: str) -> str:
    if v is None:
        return v
    if not isinstance(v, str):
        return v
    stripped = v.strip()
    if stripped == "":
        raise ValueError(f"{field_name} must not be blank")
    return stripped


def _reject_missing_status(v: Optional[TaskStatus]) -> Optional[TaskStatus]:
    # 'missing' belongs to the overdue monitor; users may only move a task out of it
    if v == TaskStatus.MISSING:
        raise ValueError("status 'missing' is set automatically when a deadline passes")
    return v


# --- Request schemas ---
class TaskCreate(BaseModel):
    """
    [Request] POST /tasks
    user_id comes from the auth token, not from the body.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    description: str
    deadline: Optional[datetime] = None
    status: TaskStatus = TaskStatus.ACTIVE

    @field_validator("description")
    @classmethod
    def validate_description(cls, v: str) -> str:
        return _strip_and_reject_blank(v, "description")

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: TaskStatus) -> TaskStatus:
        return _reject_missing_status(v)


class TaskUpdate(BaseModel):
    """
    [Request] PATCH /tasks/{task_id}
    Only fields present in the body are written. An explicit null deadline clears it.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    deadline: Optional[datetime] = None

    @field_validator("description")
    @classmethod
    def validate_description(cls, v: Optional[str]) -> Optional[str]:
        return _strip_and_reject_blank(v, "description")

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: Optional[TaskStatus]) -> Optional[TaskStatus]:
        return _reject_missing_status(v)

    def to_update_fields(self) -> dict:
        fields = self.model_dump(exclude_unset=True)
        # description/status can't be cleared, only deadline can
        for key in ("description", "status"):
            if key in fields and fields[key] is None:
                fields.pop(key)
        if "status" in fields:
            fields["status"] = TaskStatus(fields["status"]).value
        return fields


# --- Response schemas ---
class TaskRead(BaseModel):
    id: str
    user_id: str
    description: str
    status: TaskStatus
    deadline: Optional[datetime] = None
    last_missing_notification: Optional[datetime] = None
    created_at: datetime
    priority: Optional[int] = None
    scheduled_time: Optional[str] = None
    reason: Optional[str] = None

    model_config = {
        "from_attributes": True
    }
