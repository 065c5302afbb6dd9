# backend/app/services/overdue_monitor.py
"""
Overdue task monitor.

One call to scan_for_overdue() is a single pass over a snapshot of the
user's tasks: find the ones whose deadline passed and that were not
notified within the debounce interval, flip them to 'missing', then send
one "task missed" notification per task that was actually updated.

Debounce state lives only in the persisted task (last_missing_notification),
never in process memory. Each update is conditional on the value that was
read, so of two overlapping scans only one notifies.
"""

import asyncio
import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Iterable, List, Optional

from app.core.logging_config import get_logger
from app.models.notification import NotificationSeverity
from app.models.task import TaskInDB, TaskStatus, ensure_aware_utc, utcnow
from app.schemas.notification import NotificationPayload

logger = get_logger(__name__)

TASK_MISSED_EVENT = "task-missed"
DEFAULT_DEBOUNCE_INTERVAL = timedelta(minutes=30)


@dataclass
class ScanResult:
    checked_at: datetime
    overdue_tasks: List[TaskInDB] = field(default_factory=list)
    qualified_count: int = 0
    failed_count: int = 0
    skipped_count: int = 0
    notified_count: int = 0

    @property
    def overdue_count(self) -> int:
        return len(self.overdue_tasks)


def hours_overdue(deadline: datetime, now: datetime) -> int:
    elapsed = ensure_aware_utc(now) - ensure_aware_utc(deadline)
    return math.floor(elapsed.total_seconds() / 3600)


def build_missed_notification(task: TaskInDB, now: datetime) -> NotificationPayload:
    return NotificationPayload(
        title="Task Missed!",
        description=f'"{task.description}" was due {hours_overdue(task.deadline, now)}h ago',
        severity=NotificationSeverity.WARNING,
        task_id=task.id,
    )


def is_due_for_notification(
    task: TaskInDB,
    now: datetime,
    debounce_interval: timedelta = DEFAULT_DEBOUNCE_INTERVAL,
) -> bool:
    if task.status == TaskStatus.COMPLETED:
        return False
    if task.deadline is None:
        return False

    now = ensure_aware_utc(now)
    if not now > ensure_aware_utc(task.deadline):
        return False

    last = task.last_missing_notification
    if last is None:
        return True
    return now - ensure_aware_utc(last) > debounce_interval


def find_qualifying(
    tasks: Iterable[TaskInDB],
    now: datetime,
    debounce_interval: timedelta = DEFAULT_DEBOUNCE_INTERVAL,
) -> List[TaskInDB]:
    return [t for t in tasks if is_due_for_notification(t, now, debounce_interval)]


class OverdueMonitor:

    def __init__(self, store, dispatcher, debounce_interval: timedelta = DEFAULT_DEBOUNCE_INTERVAL):
        self.store = store
        self.dispatcher = dispatcher
        self.debounce_interval = debounce_interval

    async def scan_for_overdue(self, user_id: str, now: Optional[datetime] = None) -> ScanResult:
        """
        Raises ValueError for a blank user_id and lets a failed task read
        propagate (nothing has been written at that point). Everything after
        the read is isolated per task.
        """
        if not isinstance(user_id, str) or not user_id.strip():
            raise ValueError("user_id is required")
        user_id = user_id.strip()
        now = ensure_aware_utc(now) if now is not None else utcnow()

        tasks = await self.store.list_tasks(user_id, exclude_completed=True)
        qualifying = find_qualifying(tasks, now, self.debounce_interval)
        result = ScanResult(checked_at=now, qualified_count=len(qualifying))

        if not qualifying:
            return result

        outcomes = await asyncio.gather(
            *(self._mark_missing(user_id, task, now) for task in qualifying),
            return_exceptions=True,
        )

        for task, outcome in zip(qualifying, outcomes):
            if isinstance(outcome, BaseException):
                result.failed_count += 1
                logger.error(
                    "overdue_update_failed",
                    user_id=user_id,
                    task_id=task.id,
                    error=str(outcome),
                )
            elif not outcome:
                # another scan got there first, or the task was deleted meanwhile
                result.skipped_count += 1
                logger.info("overdue_update_skipped", user_id=user_id, task_id=task.id)
            else:
                result.overdue_tasks.append(
                    task.model_copy(update={
                        "status": TaskStatus.MISSING,
                        "last_missing_notification": now,
                    })
                )

        for task in result.overdue_tasks:
            try:
                await self.dispatcher.notify(user_id, TASK_MISSED_EVENT, build_missed_notification(task, now))
                result.notified_count += 1
            except Exception as e:
                logger.error(
                    "overdue_notification_failed",
                    user_id=user_id,
                    task_id=task.id,
                    error=str(e),
                )

        logger.info(
            "overdue_scan_complete",
            user_id=user_id,
            qualified=result.qualified_count,
            transitioned=result.overdue_count,
            failed=result.failed_count,
            skipped=result.skipped_count,
            notified=result.notified_count,
        )
        return result

    async def _mark_missing(self, user_id: str, task: TaskInDB, now: datetime) -> bool:
        return await self.store.update_task_fields(
            user_id,
            task.id,
            {"status": TaskStatus.MISSING.value, "last_missing_notification": now},
            expected={
                "last_missing_notification": task.last_missing_notification,
                # a task completed after the read must keep its status
                "status": {"$ne": TaskStatus.COMPLETED.value},
            },
        )
