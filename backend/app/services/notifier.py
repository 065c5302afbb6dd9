# backend/app/services/notifier.py
from motor.motor_asyncio import AsyncIOMotorDatabase

from app.core.logging_config import get_logger
from app.crud.notifications import NotificationStore
from app.schemas.notification import NotificationPayload

logger = get_logger(__name__)


class MongoNotificationDispatcher:
    """
    Delivers a notification by appending it to the user's feed in MongoDB.
    Clients poll GET /notifications. Errors are raised to the caller,
    which decides whether they are fatal (the overdue monitor only logs them).
    """

    def __init__(self, db: AsyncIOMotorDatabase):
        self.store = NotificationStore(db)

    async def notify(self, user_id: str, event: str, payload: NotificationPayload) -> str:
        saved = await self.store.create_notification(user_id, event, payload)
        logger.info(
            "notification_dispatched",
            user_id=user_id,
            notification_event=event,
            notification_id=saved.id,
        )
        return saved.id
