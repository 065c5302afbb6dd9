"""Tests for app/services/scheduler.py

The scheduler only decides *whom* to scan; the monitor decides what to do.
"""

from datetime import timedelta
from unittest.mock import MagicMock

import pytest

from app.services.overdue_monitor import OverdueMonitor
from app.services.scheduler import JOB_ID, OverdueScanScheduler


class TestSchedulerTick:

    @pytest.mark.asyncio
    async def test_tick_scans_every_user_with_deadlines(
        self, task_store, monitor, dispatcher, make_task, raw_task, now
    ):
        a = make_task(user_id="a", deadline=now - timedelta(hours=1))
        b = make_task(user_id="b", deadline=now - timedelta(hours=1))
        make_task(user_id="c")

        transitioned = await OverdueScanScheduler(task_store, monitor).tick()

        assert transitioned == 2
        assert raw_task(a)["status"] == "missing"
        assert raw_task(b)["status"] == "missing"
        assert sorted(s["user_id"] for s in dispatcher.sent) == ["a", "b"]

    @pytest.mark.asyncio
    async def test_one_failing_user_does_not_stop_the_tick(self, task_store, dispatcher, make_task, now):
        make_task(user_id="a", deadline=now - timedelta(hours=1))
        make_task(user_id="b", deadline=now - timedelta(hours=1))

        class FlakyMonitor(OverdueMonitor):
            async def scan_for_overdue(self, user_id, now=None):
                if user_id == "a":
                    raise RuntimeError("boom")
                return await super().scan_for_overdue(user_id, now)

        transitioned = await OverdueScanScheduler(task_store, FlakyMonitor(task_store, dispatcher)).tick()

        assert transitioned == 1
        assert [s["user_id"] for s in dispatcher.sent] == ["b"]


class TestSchedulerLifecycle:

    def test_start_registers_single_interval_job(self, task_store, monitor):
        fake_scheduler = MagicMock()
        fake_scheduler.running = True

        scheduler = OverdueScanScheduler(task_store, monitor, interval_minutes=15, scheduler=fake_scheduler)
        scheduler.start()
        scheduler.shutdown()

        _, kwargs = fake_scheduler.add_job.call_args
        assert fake_scheduler.add_job.call_args.args[1] == "interval"
        assert kwargs["minutes"] == 15
        assert kwargs["id"] == JOB_ID
        assert kwargs["max_instances"] == 1
        fake_scheduler.start.assert_called_once()
        fake_scheduler.shutdown.assert_called_once_with(wait=False)
