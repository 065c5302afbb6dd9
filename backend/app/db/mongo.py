# backend/app/db/mongo.py
from fastapi import FastAPI, HTTPException, Request
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from app.core.config import settings
from app.core.logging_config import get_logger

logger = get_logger(__name__)


async def connect_to_mongo(app: FastAPI) -> AsyncIOMotorDatabase:
    """
    Open the Motor client and keep it on app.state (no module-level handle).
    tz_aware=True so deadlines come back as UTC-aware datetimes.
    """
    client = AsyncIOMotorClient(settings.MONGO_URI, tz_aware=True)
    db = client[settings.MONGO_DB_NAME]

    app.state.mongo_client = client
    app.state.db = db

    await db["tasks"].create_index([("user_id", 1), ("status", 1)])
    await db["notifications"].create_index([("user_id", 1), ("created_at", -1)])

    logger.info("mongo_connected", db=settings.MONGO_DB_NAME)
    return db


async def close_mongo_connection(app: FastAPI) -> None:
    client = getattr(app.state, "mongo_client", None)
    if client:
        client.close()
        app.state.mongo_client = None
        app.state.db = None
        logger.info("mongo_closed")


def get_db(request: Request) -> AsyncIOMotorDatabase:
    db = getattr(request.app.state, "db", None)
    if db is None:
        raise HTTPException(status_code=500, detail="Database connection failed")
    return db
