# main.py
from contextlib import asynccontextmanager
from datetime import timedelta

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.endpoints import health
from app.api.endpoints.web import ai, notifications, overdue, tasks
from app.core.config import settings
from app.core.logging_config import get_logger, setup_logging
from app.crud.tasks import TaskStore
from app.db.mongo import close_mongo_connection, connect_to_mongo
from app.services.notifier import MongoNotificationDispatcher
from app.services.overdue_monitor import OverdueMonitor
from app.services.scheduler import OverdueScanScheduler

load_dotenv()
setup_logging()
logger = get_logger(__name__)


# [Lifespan] DB connection + overdue scan scheduler
@asynccontextmanager
async def lifespan(app: FastAPI):
    db = await connect_to_mongo(app)

    scheduler = None
    if settings.OVERDUE_SCAN_ENABLED:
        store = TaskStore(db)
        monitor = OverdueMonitor(
            store,
            MongoNotificationDispatcher(db),
            debounce_interval=timedelta(minutes=settings.OVERDUE_DEBOUNCE_MINUTES),
        )
        scheduler = OverdueScanScheduler(
            store,
            monitor,
            interval_minutes=settings.OVERDUE_SCAN_INTERVAL_MINUTES,
        )
        scheduler.start()

    logger.info("startup", environment=settings.ENVIRONMENT)
    yield

    if scheduler is not None:
        scheduler.shutdown()
    await close_mongo_connection(app)


app = FastAPI(title="FocusFlow Backend", lifespan=lifespan)

# CORS: the Next.js / PWA frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def read_root():
    return {"message": "Backend is running!"}


app.include_router(health.router)
app.include_router(tasks.router)
app.include_router(overdue.router)
app.include_router(notifications.router)
app.include_router(ai.router)
