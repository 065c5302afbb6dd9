# backend/app/services/scheduler.py
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from app.core.logging_config import get_logger
from app.crud.tasks import TaskStore
from app.services.overdue_monitor import OverdueMonitor

logger = get_logger(__name__)

JOB_ID = "overdue-scan"


class OverdueScanScheduler:
    """
    Server-side replacement for the client polling timer: every
    `interval_minutes` the tick scans each user that still has open,
    deadlined tasks. The monitor itself knows nothing about timing.
    """

    def __init__(
        self,
        store: TaskStore,
        monitor: OverdueMonitor,
        interval_minutes: int = 10,
        scheduler: Optional[AsyncIOScheduler] = None,
    ):
        self.store = store
        self.monitor = monitor
        self.interval_minutes = interval_minutes
        self.scheduler = scheduler or AsyncIOScheduler()

    def start(self) -> None:
        # coalesce + max_instances=1: a slow tick is never stacked with the next one
        self.scheduler.add_job(
            self.tick,
            "interval",
            minutes=self.interval_minutes,
            id=JOB_ID,
            replace_existing=True,
            coalesce=True,
            max_instances=1,
        )
        self.scheduler.start()
        logger.info("overdue_scheduler_started", interval_minutes=self.interval_minutes)

    def shutdown(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("overdue_scheduler_stopped")

    async def tick(self) -> int:
        """
        Returns how many tasks were moved to 'missing' across all users.
        """
        user_ids = await self.store.list_user_ids_with_open_deadlines()

        transitioned = 0
        for user_id in user_ids:
            try:
                result = await self.monitor.scan_for_overdue(user_id)
            except Exception as e:
                logger.error("overdue_scan_failed", user_id=user_id, error=str(e))
                continue
            transitioned += result.overdue_count

        logger.info("overdue_tick", users=len(user_ids), transitioned=transitioned)
        return transitioned
