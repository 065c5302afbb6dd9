# backend/app/api/endpoints/health.py

from fastapi import APIRouter, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from app.db.mongo import get_db

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check(db: AsyncIOMotorDatabase = Depends(get_db)):
    """
    Liveness + MongoDB reachability, for the load balancer / uptime monitor.
    """
    mongo_ok = False
    mongo_error = None

    try:
        await db.command("ping")
        mongo_ok = True
    except Exception as e:
        mongo_error = str(e)

    return {
        "status": "ok" if mongo_ok else "degraded",
        "mongo": mongo_ok,
        "mongo_error": mongo_error,
    }
