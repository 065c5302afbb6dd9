# backend/app/api/deps.py
from datetime import timedelta
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from motor.motor_asyncio import AsyncIOMotorDatabase

from app.core.config import settings
from app.core.security import decode_access_token
from app.crud.notifications import NotificationStore
from app.crud.tasks import TaskStore
from app.db.mongo import get_db
from app.services.notifier import MongoNotificationDispatcher
from app.services.overdue_monitor import OverdueMonitor
from app.services.prioritization import TaskPrioritizer

# tokens are issued by the sign-in flow on the client; this only verifies them
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token")
oauth2_scheme_optional = OAuth2PasswordBearer(tokenUrl="/auth/token", auto_error=False)


async def get_current_user_id(token: str = Depends(oauth2_scheme)) -> str:
    """
    Validates the JWT and returns its user_id (sub).
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = decode_access_token(token)
        user_id = payload.get("sub")

        if not user_id:
            raise credentials_exception

        return user_id

    except JWTError:
        raise credentials_exception


async def get_optional_user_id(token: Optional[str] = Depends(oauth2_scheme_optional)) -> Optional[str]:
    """
    Like get_current_user_id, but None when no bearer token was sent.
    A token that is present but invalid is still rejected.
    """
    if not token:
        return None
    return await get_current_user_id(token)


def get_task_store(db: AsyncIOMotorDatabase = Depends(get_db)) -> TaskStore:
    return TaskStore(db)


def get_notification_store(db: AsyncIOMotorDatabase = Depends(get_db)) -> NotificationStore:
    return NotificationStore(db)


def get_dispatcher(db: AsyncIOMotorDatabase = Depends(get_db)) -> MongoNotificationDispatcher:
    return MongoNotificationDispatcher(db)


def get_overdue_monitor(
    store: TaskStore = Depends(get_task_store),
    dispatcher: MongoNotificationDispatcher = Depends(get_dispatcher),
) -> OverdueMonitor:
    return OverdueMonitor(
        store,
        dispatcher,
        debounce_interval=timedelta(minutes=settings.OVERDUE_DEBOUNCE_MINUTES),
    )


def get_prioritizer(request: Request) -> TaskPrioritizer:
    # one Gemini client per app, created on first use
    prioritizer = getattr(request.app.state, "prioritizer", None)
    if prioritizer is None:
        prioritizer = TaskPrioritizer()
        request.app.state.prioritizer = prioritizer
    return prioritizer
