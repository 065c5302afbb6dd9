# backend/app/api/endpoints/web/notifications.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.api.deps import get_current_user_id, get_dispatcher, get_notification_store
from app.crud.notifications import NotificationStore
from app.schemas.notification import NotificationCreate, NotificationPayload, NotificationRead
from app.services.notifier import MongoNotificationDispatcher

router = APIRouter(prefix="/notifications", tags=["Notifications"])


def _to_read(notification) -> NotificationRead:
    return NotificationRead.model_validate(notification.model_dump(by_alias=False))


@router.get("", response_model=List[NotificationRead])
async def read_notifications(
    unread_only: bool = False,
    limit: int = Query(50, ge=1, le=200),
    user_id: str = Depends(get_current_user_id),
    store: NotificationStore = Depends(get_notification_store),
):
    notifications = await store.list_notifications(user_id, unread_only=unread_only, limit=limit)
    return [_to_read(n) for n in notifications]


@router.post("", status_code=status.HTTP_201_CREATED)
async def send_notification(
    payload: NotificationCreate,
    user_id: str = Depends(get_current_user_id),
    dispatcher: MongoNotificationDispatcher = Depends(get_dispatcher),
):
    """
    Push a notification to the caller's own feed.
    """
    notification_id = await dispatcher.notify(
        user_id,
        payload.event,
        NotificationPayload(
            title=payload.title,
            description=payload.description,
            severity=payload.severity,
            task_id=payload.task_id,
        ),
    )
    return {"success": True, "notification_id": notification_id}


@router.post("/{notification_id}/read", response_model=NotificationRead)
async def mark_notification_read(
    notification_id: str,
    user_id: str = Depends(get_current_user_id),
    store: NotificationStore = Depends(get_notification_store),
):
    notification = await store.mark_read(user_id, notification_id)
    if notification is None:
        raise HTTPException(status_code=404, detail="Notification not found")
    return _to_read(notification)
