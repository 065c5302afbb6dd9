# backend/app/crud/notifications.py
from typing import List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from fastapi import HTTPException
from motor.motor_asyncio import AsyncIOMotorDatabase

from app.models.notification import NotificationInDB
from app.models.task import utcnow
from app.schemas.notification import NotificationPayload


def _safe_object_id(notification_id: str) -> ObjectId:
    try:
        return ObjectId(notification_id)
    except (InvalidId, TypeError):
        raise HTTPException(status_code=400, detail="Invalid notification_id")


class NotificationStore:
    """
    Access to the 'notifications' collection (per-user in-app feed).
    """

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db

    @property
    def collection(self):
        return self.db["notifications"]

    # CREATE
    async def create_notification(self, user_id: str, event: str, payload: NotificationPayload) -> NotificationInDB:
        doc = {
            "user_id": user_id,
            "event": event,
            "title": payload.title,
            "description": payload.description,
            "severity": payload.severity.value,
            "task_id": payload.task_id,
            "created_at": utcnow(),
            "read": False,
        }
        result = await self.collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        return NotificationInDB(**doc)

    # READ ALL
    async def list_notifications(
        self,
        user_id: str,
        unread_only: bool = False,
        limit: int = 50,
    ) -> List[NotificationInDB]:
        query = {"user_id": user_id}
        if unread_only:
            query["read"] = False

        safe_limit = max(1, min(limit, 200))
        cursor = self.collection.find(query).sort("created_at", -1).limit(safe_limit)
        docs = await cursor.to_list(length=safe_limit)
        return [NotificationInDB(**d) for d in docs]

    # UPDATE
    async def mark_read(self, user_id: str, notification_id: str) -> Optional[NotificationInDB]:
        oid = _safe_object_id(notification_id)
        result = await self.collection.update_one(
            {"_id": oid, "user_id": user_id},
            {"$set": {"read": True}},
        )
        if result.matched_count == 0:
            return None
        doc = await self.collection.find_one({"_id": oid})
        return NotificationInDB(**doc) if doc else None
