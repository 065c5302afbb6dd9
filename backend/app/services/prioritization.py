# backend/app/services/prioritization.py
"""
AI task prioritization and suggestions (Gemini), plus the rule-based
helpers used for ordering and for fallback suggestions when the model
is unavailable.
"""

from datetime import datetime, timedelta
from typing import List, Optional, Sequence

from google import genai

from app.core.config import settings
from app.core.logging_config import get_logger
from app.models.task import TaskInDB, TaskStatus, ensure_aware_utc
from app.schemas.suggestion import AISuggestion, PrioritizationResult, SuggestionList

logger = get_logger(__name__)

MAX_SUGGESTIONS = 5
STALE_TASK_AGE = timedelta(days=7)
DEFAULT_BEHAVIOR_PROFILE = (
    "User tends to procrastinate on complex tasks. Prefers to tackle smaller items in the morning."
)


# ---------------------------------------------------------
# ordering
# ---------------------------------------------------------
def _sort_key(task: TaskInDB):
    if task.priority is not None:
        return (0, task.priority)
    created = ensure_aware_utc(task.created_at)
    return (1, -created.timestamp())


def sort_tasks(tasks: Sequence[TaskInDB]) -> List[TaskInDB]:
    """
    Prioritized tasks first (1 = highest), then the rest newest first.
    sorted() is stable, so full ties keep their input order.
    """
    return sorted(tasks, key=_sort_key)


# ---------------------------------------------------------
# rule-based helpers
# ---------------------------------------------------------
def get_overdue_tasks(tasks: Sequence[TaskInDB], now: datetime) -> List[TaskInDB]:
    now = ensure_aware_utc(now)
    return [
        t for t in tasks
        if t.status != TaskStatus.COMPLETED and t.deadline is not None and now > ensure_aware_utc(t.deadline)
    ]


def calculate_time_priority(task: TaskInDB, now: datetime) -> int:
    """
    10 = due within the hour ... 6 = due within 3 days; otherwise the
    task's own priority, or 5.
    """
    if task.deadline is None:
        return task.priority or 5

    time_left = ensure_aware_utc(task.deadline) - ensure_aware_utc(now)
    if time_left < timedelta(hours=1):
        return 10
    if time_left < timedelta(hours=4):
        return 9
    if time_left < timedelta(hours=12):
        return 8
    if time_left < timedelta(hours=24):
        return 7
    if time_left < timedelta(days=3):
        return 6
    return task.priority or 5


def _mentions(tasks: Sequence[TaskInDB], *words: str) -> bool:
    return any(w in t.description.lower() for t in tasks for w in words)


def generate_smart_suggestions(tasks: Sequence[TaskInDB], now: datetime) -> List[AISuggestion]:
    suggestions = []
    hour = now.hour

    if hour < 12 and not _mentions(tasks, "morning", "breakfast"):
        suggestions.append(AISuggestion(
            description="Review today's goals and priorities",
            priority=8,
            estimated_duration=10,
            deadline=now + timedelta(hours=2),
            reason="Morning planning helps set the day's direction",
            scheduled_time="09:00",
        ))

    if 17 <= hour < 21 and not _mentions(tasks, "review", "summary"):
        suggestions.append(AISuggestion(
            description="End-of-day task review and planning for tomorrow",
            priority=7,
            estimated_duration=15,
            deadline=now + timedelta(hours=3),
            reason="Daily reflection improves productivity",
            scheduled_time="20:00",
        ))

    stale = [
        t for t in tasks
        if t.status != TaskStatus.COMPLETED
        and ensure_aware_utc(now) - ensure_aware_utc(t.created_at) > STALE_TASK_AGE
    ]
    if stale:
        suggestions.append(AISuggestion(
            description=f"Review {len(stale)} old task(s) - complete or postpone",
            priority=6,
            estimated_duration=5 * len(stale),
            deadline=now + timedelta(hours=24),
            reason="Stale tasks clutter your list and reduce focus",
            scheduled_time="flexible",
        ))

    return suggestions


def generate_fallback_suggestions(now: datetime) -> List[AISuggestion]:
    suggestions = [AISuggestion(
        description="Take a 5-minute break and stretch",
        priority=5,
        estimated_duration=5,
        deadline=now + timedelta(minutes=30),
        reason="Regular breaks improve focus and prevent burnout",
        scheduled_time="flexible",
    )]

    if now.hour < 12:
        suggestions.append(AISuggestion(
            description="Review and organize your task list for today",
            priority=8,
            estimated_duration=10,
            deadline=now + timedelta(hours=1),
            reason="Morning organization helps prioritize effectively",
            scheduled_time="09:30",
        ))

    suggestions.append(AISuggestion(
        description="Drink a glass of water",
        priority=4,
        estimated_duration=2,
        deadline=now + timedelta(minutes=15),
        reason="Staying hydrated improves concentration",
        scheduled_time="now",
    ))
    return suggestions


# ---------------------------------------------------------
# prompts
# ---------------------------------------------------------
def _format_deadline(task: TaskInDB) -> str:
    if task.deadline is None:
        return "No deadline"
    return f"Deadline: {task.deadline.isoformat()}"


def build_prioritization_prompt(tasks: Sequence[TaskInDB], now: datetime, behavior_profile: str) -> str:
    task_lines = "\n".join(
        f"- ID: {t.id}\n  Description: {t.description}\n  Status: {t.status.value}\n  {_format_deadline(t)}"
        for t in tasks
    )
    return f"""
    You are an AI assistant designed to prioritize and schedule tasks for users with ADHD.

    Current Date and Time: {now.isoformat()}
    Use it as the reference point: every suggested scheduled_time must be in the future.

    For each task below, assign a priority (1 being highest), a suggested schedule time
    and a short reason. Return every task id exactly as given.

    [Tasks]
    {task_lines}

    [User Behavior Profile]
    {behavior_profile}
    """


def build_suggestions_prompt(tasks: Sequence[TaskInDB], now: datetime) -> str:
    task_lines = "\n".join(
        f"{i}. {t.description} (Status: {t.status.value}, {_format_deadline(t)})"
        for i, t in enumerate(tasks, start=1)
    ) or "(none)"
    return f"""
    Current Date and Time: {now.strftime("%A, %B %d, %Y %H:%M")}

    Existing Incomplete Tasks:
    {task_lines}

    Based on the current time and existing tasks, suggest 3-5 new tasks that would be helpful.
    For each suggestion provide a clear actionable description, a priority (1-10, 10 is most
    urgent), an estimated duration in minutes, a reasonable deadline (ISO date string), a brief
    reason, and a suggested time to do it (HH:MM or "flexible").

    Consider:
    - Time of day (morning, afternoon, evening routines)
    - Overdue tasks that need attention
    - Balance between urgent and important
    - ADHD-friendly task breakdown (smaller, manageable chunks)
    - Time pressure based on deadlines
    """


# ---------------------------------------------------------
# Gemini client
# ---------------------------------------------------------
class TaskPrioritizer:

    def __init__(self, client=None, model: Optional[str] = None):
        self._client = client
        self.model = model or settings.GEMINI_MODEL

    @property
    def client(self):
        if self._client is None:
            self._client = genai.Client(api_key=settings.GEMINI_API_KEY)
        return self._client

    async def _generate(self, prompt: str, schema):
        response = await self.client.aio.models.generate_content(
            model=self.model,
            contents=prompt,
            config={
                "response_mime_type": "application/json",
                "response_schema": schema,
            },
        )
        if response.parsed is None:
            raise ValueError("Model returned no parsable output")
        return response.parsed

    async def prioritize(
        self,
        tasks: Sequence[TaskInDB],
        now: datetime,
        behavior_profile: Optional[str] = None,
    ) -> PrioritizationResult:
        prompt = build_prioritization_prompt(tasks, now, behavior_profile or DEFAULT_BEHAVIOR_PROFILE)
        return await self._generate(prompt, PrioritizationResult)

    async def suggest(self, tasks: Sequence[TaskInDB], now: datetime) -> List[AISuggestion]:
        result: SuggestionList = await self._generate(build_suggestions_prompt(tasks, now), SuggestionList)
        return result.suggestions[:MAX_SUGGESTIONS]


async def apply_priorities(store, user_id: str, tasks: Sequence[TaskInDB], result: PrioritizationResult) -> int:
    """
    Write the model's priorities onto the user's tasks. Open tasks the
    model left out get their previous priority cleared. Ids the model
    invented are ignored. Returns the number of tasks prioritized.
    """
    by_id = {p.id: p for p in result.prioritized_tasks}
    applied = 0

    for task in tasks:
        if task.status == TaskStatus.COMPLETED:
            continue
        ranked = by_id.get(task.id)
        if ranked is not None:
            fields = {
                "priority": ranked.priority,
                "scheduled_time": ranked.scheduled_time,
                "reason": ranked.reason,
            }
            applied += 1
        else:
            fields = {"priority": None, "scheduled_time": None, "reason": None}
        await store.update_task_fields(user_id, task.id, fields)

    logger.info("priorities_applied", user_id=user_id, prioritized=applied, total=len(tasks))
    return applied
