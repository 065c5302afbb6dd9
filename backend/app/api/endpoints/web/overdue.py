# backend/app/api/endpoints/web/overdue.py
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, status

from app.api.deps import get_optional_user_id, get_overdue_monitor
from app.core.config import settings
from app.core.logging_config import get_logger
from app.crud.tasks import TaskStoreError
from app.schemas.overdue import OverdueCheckRequest, OverdueCheckResponse, OverdueTaskRead
from app.services.overdue_monitor import OverdueMonitor

router = APIRouter(tags=["Overdue"])

logger = get_logger(__name__)


def authorize_trigger(user_id: str, x_api_key: Optional[str], token_user_id: Optional[str]) -> None:
    """
    A caller may scan user_id when it holds the trigger key (cron) or a bearer
    token for that same user. Anonymous calls are only accepted in development
    with no key configured.
    """
    expected_key = settings.OVERDUE_TRIGGER_KEY
    if expected_key and x_api_key == expected_key:
        return

    if token_user_id is not None:
        if token_user_id != user_id:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not allowed to check this user")
        return

    if expected_key or settings.is_production:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")


@router.post("/check-overdue", response_model=OverdueCheckResponse)
async def check_overdue(
    payload: OverdueCheckRequest,
    x_api_key: Optional[str] = Header(default=None),
    token_user_id: Optional[str] = Depends(get_optional_user_id),
    monitor: OverdueMonitor = Depends(get_overdue_monitor),
):
    """
    [Trigger] scan one user's tasks for missed deadlines.
    Partial failures (one task's update) are reported in failed_count;
    only a failed task read turns into an error response.
    """
    if not payload.user_id:
        raise HTTPException(status_code=400, detail="User ID required")

    authorize_trigger(payload.user_id, x_api_key, token_user_id)

    try:
        result = await monitor.scan_for_overdue(payload.user_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except TaskStoreError as e:
        logger.error("check_overdue_failed", user_id=payload.user_id, error=str(e))
        raise HTTPException(status_code=500, detail="Failed to check overdue tasks")

    return OverdueCheckResponse(
        overdue_count=result.overdue_count,
        overdue_tasks=[
            OverdueTaskRead(id=t.id, description=t.description, deadline=t.deadline)
            for t in result.overdue_tasks
        ],
        qualified_count=result.qualified_count,
        failed_count=result.failed_count,
        skipped_count=result.skipped_count,
        notified_count=result.notified_count,
        checked_at=result.checked_at,
    )
