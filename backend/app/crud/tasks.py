# backend/app/crud/tasks.py
from datetime import datetime
from typing import Any, Dict, List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from fastapi import HTTPException
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from app.models.task import TaskInDB, TaskStatus, ensure_aware_utc, utcnow
from app.schemas.task import TaskCreate, TaskUpdate


class TaskStoreError(Exception):
    """
    A MongoDB read or write on the tasks collection failed.
    """


def _safe_object_id(task_id: str) -> ObjectId:
    if isinstance(task_id, ObjectId):
        return task_id
    if isinstance(task_id, str):
        task_id = task_id.strip()
    try:
        return ObjectId(task_id)
    except (InvalidId, TypeError):
        raise HTTPException(status_code=400, detail="Invalid task_id")


def _build_update(fields: Dict[str, Any]) -> Dict[str, Any]:
    """
    Field-level update: None values are $unset, everything else is $set.
    Never replaces the whole document.
    """
    to_set = {}
    to_unset = {}
    for key, value in fields.items():
        if key in ("_id", "id", "user_id"):
            continue
        if value is None:
            to_unset[key] = ""
            continue
        if isinstance(value, datetime):
            value = ensure_aware_utc(value)
        elif isinstance(value, TaskStatus):
            value = value.value
        to_set[key] = value

    update = {}
    if to_set:
        update["$set"] = to_set
    if to_unset:
        update["$unset"] = to_unset
    return update


class TaskStore:
    """
    Access to the 'tasks' collection. Every query is scoped to one user.
    """

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db

    @property
    def collection(self):
        return self.db["tasks"]

    # CREATE
    async def create_task(self, user_id: str, task_data: TaskCreate) -> TaskInDB:
        new_task = {
            "user_id": user_id,
            "description": task_data.description,
            "status": task_data.status.value,
            "created_at": utcnow(),
        }
        if task_data.deadline is not None:
            new_task["deadline"] = ensure_aware_utc(task_data.deadline)

        result = await self.collection.insert_one(new_task)
        saved = await self.collection.find_one({"_id": result.inserted_id})
        if not saved:
            raise HTTPException(status_code=500, detail="Failed to create task")
        return TaskInDB.from_mongo(saved)

    # READ ALL
    async def list_tasks(
        self,
        user_id: str,
        exclude_completed: bool = False,
        status: Optional[TaskStatus] = None,
    ) -> List[TaskInDB]:
        query: Dict[str, Any] = {"user_id": user_id}
        if status is not None:
            query["status"] = TaskStatus(status).value
        elif exclude_completed:
            query["status"] = {"$ne": TaskStatus.COMPLETED.value}

        try:
            cursor = self.collection.find(query)
            return [TaskInDB.from_mongo(doc) async for doc in cursor]
        except PyMongoError as e:
            raise TaskStoreError(f"Failed to list tasks for user {user_id}: {e}") from e

    # READ ONE
    async def get_task(self, user_id: str, task_id: str) -> Optional[TaskInDB]:
        doc = await self.collection.find_one({"_id": _safe_object_id(task_id), "user_id": user_id})
        return TaskInDB.from_mongo(doc) if doc else None

    # UPDATE (partial fields)
    async def update_task_fields(
        self,
        user_id: str,
        task_id: str,
        fields: Dict[str, Any],
        expected: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """
        Merge `fields` into one task document.

        `expected` adds conditions to the filter (optimistic write), either plain
        values or Mongo operators such as {"$ne": ...}. The update only lands
        if those fields still match what the caller read.
        Returns False when no document matched (deleted, or lost the race).
        """
        update = _build_update(fields)
        if not update:
            return True

        query: Dict[str, Any] = {"_id": _safe_object_id(task_id), "user_id": user_id}
        for key, value in (expected or {}).items():
            query[key] = ensure_aware_utc(value) if isinstance(value, datetime) else value

        try:
            result = await self.collection.update_one(query, update)
        except PyMongoError as e:
            raise TaskStoreError(f"Failed to update task {task_id}: {e}") from e
        return result.matched_count == 1

    async def update_task(self, user_id: str, task_id: str, task_data: TaskUpdate) -> Optional[TaskInDB]:
        fields = task_data.to_update_fields()
        if fields:
            matched = await self.update_task_fields(user_id, task_id, fields)
            if not matched:
                return None
        return await self.get_task(user_id, task_id)

    # DELETE
    async def delete_task(self, user_id: str, task_id: str) -> bool:
        result = await self.collection.delete_one({"_id": _safe_object_id(task_id), "user_id": user_id})
        return result.deleted_count == 1

    async def list_user_ids_with_open_deadlines(self) -> List[str]:
        """
        Users owning at least one non-completed task with a deadline.
        Used by the scheduler tick to decide whom to scan.
        """
        try:
            user_ids = await self.collection.distinct(
                "user_id",
                {"status": {"$ne": TaskStatus.COMPLETED.value}, "deadline": {"$ne": None}},
            )
        except PyMongoError as e:
            raise TaskStoreError(f"Failed to list users with deadlines: {e}") from e
        return sorted(str(u) for u in user_ids if u)
