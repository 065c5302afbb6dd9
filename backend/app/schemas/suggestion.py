# backend/app/schemas/suggestion.py
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from app.schemas.task import TaskRead


# --- LLM response_schema models ---
class PrioritizedTask(BaseModel):
    id: str = Field(description="Identifier of the task exactly as given in the input")
    priority: int = Field(description="Priority of the task, 1 being the highest")
    scheduled_time: Optional[str] = Field(
        default=None, description="Suggested time to do the task (ISO format), in the future"
    )
    reason: str = Field(description="Short explanation of the assigned priority and schedule")


class PrioritizationResult(BaseModel):
    prioritized_tasks: List[PrioritizedTask] = Field(
        description="Tasks with assigned priorities and suggested schedule times"
    )


class AISuggestion(BaseModel):
    description: str = Field(description="Clear, actionable task description")
    priority: int = Field(ge=1, le=10, description="1-10, 10 is most urgent")
    estimated_duration: int = Field(description="Estimated duration in minutes")
    deadline: datetime = Field(description="Reasonable deadline (ISO date string)")
    reason: str = Field(description="Why this task is suggested")
    scheduled_time: Optional[str] = Field(
        default=None, description="When to do it: HH:MM, 'flexible' or 'now'"
    )


class SuggestionList(BaseModel):
    suggestions: List[AISuggestion]


# --- API response schemas ---
class SuggestionsResponse(BaseModel):
    """
    [Response] POST /ai/suggestions
    fallback=True when the model call failed and canned suggestions were returned.
    """
    success: bool = True
    suggestions: List[AISuggestion]
    current_date: datetime
    fallback: bool = False


class PrioritizeResponse(BaseModel):
    """
    [Response] POST /ai/prioritize
    """
    success: bool = True
    prioritized_count: int
    tasks: List[TaskRead]


# --- API request schemas ---
class AIRequest(BaseModel):
    """
    [Request] POST /ai/suggestions, POST /ai/prioritize
    current_date carries the client's local time (with its UTC offset) so
    time-of-day rules use the user's clock, not the server's.
    """
    current_date: Optional[datetime] = None
    user_behavior_profile: Optional[str] = None
