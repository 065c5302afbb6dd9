# backend/app/api/endpoints/web/ai.py
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from app.api.deps import get_current_user_id, get_prioritizer, get_task_store
from app.core.logging_config import get_logger
from app.crud.tasks import TaskStore
from app.models.task import utcnow
from app.schemas.suggestion import AIRequest, PrioritizeResponse, SuggestionsResponse
from app.schemas.task import TaskRead
from app.services.prioritization import (
    TaskPrioritizer,
    apply_priorities,
    generate_fallback_suggestions,
    generate_smart_suggestions,
    sort_tasks,
)

router = APIRouter(prefix="/ai", tags=["AI"])

logger = get_logger(__name__)


@router.post("/prioritize", response_model=PrioritizeResponse)
async def prioritize_tasks(
    payload: Optional[AIRequest] = None,
    user_id: str = Depends(get_current_user_id),
    store: TaskStore = Depends(get_task_store),
    prioritizer: TaskPrioritizer = Depends(get_prioritizer),
):
    """
    Ask the model to rank the user's open tasks and store the result on them.
    """
    payload = payload or AIRequest()
    now = payload.current_date or utcnow()

    tasks = await store.list_tasks(user_id, exclude_completed=True)
    if not tasks:
        return PrioritizeResponse(prioritized_count=0, tasks=[])

    try:
        result = await prioritizer.prioritize(tasks, now, payload.user_behavior_profile)
    except Exception as e:
        logger.error("ai_prioritization_failed", user_id=user_id, error=str(e))
        raise HTTPException(status_code=500, detail="Could not prioritize tasks at this time")

    applied = await apply_priorities(store, user_id, tasks, result)

    refreshed = await store.list_tasks(user_id, exclude_completed=True)
    return PrioritizeResponse(
        prioritized_count=applied,
        tasks=[TaskRead.model_validate(t.model_dump(by_alias=False)) for t in sort_tasks(refreshed)],
    )


@router.post("/suggestions", response_model=SuggestionsResponse)
async def suggest_tasks(
    payload: Optional[AIRequest] = None,
    user_id: str = Depends(get_current_user_id),
    store: TaskStore = Depends(get_task_store),
    prioritizer: TaskPrioritizer = Depends(get_prioritizer),
):
    """
    New task ideas for the user. Falls back to canned suggestions when the model fails.
    """
    payload = payload or AIRequest()
    now = payload.current_date or utcnow()

    tasks = await store.list_tasks(user_id, exclude_completed=True)

    try:
        suggestions = await prioritizer.suggest(tasks, now)
    except Exception as e:
        logger.warning("ai_suggestions_fallback", user_id=user_id, error=str(e))
        return SuggestionsResponse(
            suggestions=generate_fallback_suggestions(now),
            current_date=now,
            fallback=True,
        )

    if not suggestions:
        suggestions = generate_smart_suggestions(tasks, now)

    return SuggestionsResponse(suggestions=suggestions, current_date=now)
