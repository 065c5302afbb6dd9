# backend/app/schemas/overdue.py

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, field_validator


class OverdueCheckRequest(BaseModel):
    """
    [Request] POST /check-overdue
    Sent by the client timer or by an external cron job.
    """
    user_id: Optional[str] = None

    @field_validator("user_id", mode="before")
    @classmethod
    def strip_to_none(cls, v):
        if v is None:
            return None
        if not isinstance(v, str):
            return v
        s = v.strip()
        return s or None


class OverdueTaskRead(BaseModel):
    id: str
    description: str
    deadline: Optional[datetime] = None


class OverdueCheckResponse(BaseModel):
    """
    [Response] POST /check-overdue
    overdue_count counts tasks actually moved to 'missing' in this scan.
    """
    success: bool = True
    overdue_count: int
    overdue_tasks: List[OverdueTaskRead]
    qualified_count: int
    failed_count: int
    skipped_count: int
    notified_count: int
    checked_at: datetime
