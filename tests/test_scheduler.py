"""Tests for the daily sync scheduler."""

import asyncio
from datetime import datetime, timedelta, timezone

from core.payroll import LOCAL_TZ
from services.scheduler import DAILY_JOB_ID, STARTUP_JOB_ID, SyncScheduler
from services.sync import SyncResult


class GatedRunner:
    """Sync runner that blocks until released."""

    def __init__(self):
        self.release = asyncio.Event()
        self.started = asyncio.Event()
        self.triggers: list[str] = []

    async def __call__(self, trigger: str) -> SyncResult:
        self.triggers.append(trigger)
        self.started.set()
        await self.release.wait()
        return SyncResult(success=True, created=1)


async def ok_runner(trigger):
    return SyncResult(success=True)


class TestDailyTrigger:

    def test_later_today(self):
        now = datetime(2024, 3, 15, 19, 0, tzinfo=LOCAL_TZ)
        fire = SyncScheduler(hour=20, minute=0).daily_trigger().get_next_fire_time(None, now)
        assert fire == datetime(2024, 3, 15, 20, 0, tzinfo=LOCAL_TZ)

    def test_already_passed_rolls_to_tomorrow(self):
        now = datetime(2024, 3, 15, 21, 0, tzinfo=LOCAL_TZ)
        fire = SyncScheduler(hour=20, minute=0).daily_trigger().get_next_fire_time(None, now)
        assert fire == datetime(2024, 3, 16, 20, 0, tzinfo=LOCAL_TZ)

    def test_utc_clock_converted_to_local(self):
        # 10:00 UTC is 19:00 local, so the run is 11:00 UTC
        now = datetime(2024, 3, 15, 10, 0, tzinfo=timezone.utc)
        fire = SyncScheduler(hour=20, minute=0).daily_trigger().get_next_fire_time(None, now)
        assert fire == datetime(2024, 3, 15, 11, 0, tzinfo=timezone.utc)
        assert fire.utcoffset() == timedelta(hours=9)

    def test_fired_run_moves_to_next_day(self):
        trigger = SyncScheduler(hour=20, minute=0).daily_trigger()
        fired = datetime(2024, 3, 15, 20, 0, tzinfo=LOCAL_TZ)
        for now in (fired, fired + timedelta(milliseconds=1), fired + timedelta(minutes=5)):
            assert trigger.get_next_fire_time(fired, now) == fired + timedelta(days=1)


class TestRunOnce:

    def test_returns_result(self):
        async def runner(trigger):
            return SyncResult(success=True, created=2)

        result = asyncio.run(SyncScheduler(runner=runner).run_once("api"))
        assert result.created == 2

    def test_overlapping_trigger_skipped(self):
        async def scenario():
            runner = GatedRunner()
            scheduler = SyncScheduler(runner=runner)

            first = asyncio.create_task(scheduler.run_once("scheduled"))
            await runner.started.wait()
            assert scheduler.is_running is True

            skipped = await scheduler.run_once("api")

            runner.release.set()
            completed = await first
            return runner, scheduler, skipped, completed

        runner, scheduler, skipped, completed = asyncio.run(scenario())
        assert skipped is None
        assert completed.success is True
        assert runner.triggers == ["scheduled"]
        assert scheduler.is_running is False

    def test_failed_result_returned(self):
        async def runner(trigger):
            return SyncResult(success=False, error="Calendar API error: 503 Service Unavailable")

        result = asyncio.run(SyncScheduler(runner=runner).run_once("api"))
        assert result.success is False

    def test_crashing_run_is_contained(self):
        async def runner(trigger):
            raise RuntimeError("disk full")

        scheduler = SyncScheduler(runner=runner)
        asyncio.run(scheduler._run_logged("scheduled"))
        assert scheduler.is_running is False


class TestLifecycle:

    def test_daily_job_registered(self):
        async def scenario():
            scheduler = SyncScheduler(runner=ok_runner, hour=6, minute=30, run_on_startup=False)
            scheduler.start()
            job = scheduler.get_job(DAILY_JOB_ID)
            startup_job = scheduler.get_job(STARTUP_JOB_ID)
            await scheduler.stop()
            return job, startup_job, scheduler

        job, startup_job, scheduler = asyncio.run(scenario())
        assert job.max_instances == 1
        assert job.coalesce is True
        assert job.args == ("scheduled",)
        assert str(job.trigger.fields[5]) == "6"  # hour
        assert str(job.trigger.fields[6]) == "30"  # minute
        assert startup_job is None
        assert scheduler.started is False

    def test_startup_run_then_stop(self):
        async def scenario():
            triggers = []
            ran = asyncio.Event()

            async def runner(trigger):
                triggers.append(trigger)
                ran.set()
                return SyncResult(success=True)

            scheduler = SyncScheduler(runner=runner, run_on_startup=True)
            scheduler.start()
            await asyncio.wait_for(ran.wait(), timeout=5)
            await scheduler.stop()
            return triggers

        assert asyncio.run(scenario()) == ["startup"]

    def test_no_startup_run_when_disabled(self):
        async def scenario():
            triggers = []

            async def runner(trigger):
                triggers.append(trigger)
                return SyncResult(success=True)

            scheduler = SyncScheduler(runner=runner, run_on_startup=False)
            scheduler.start()
            await asyncio.sleep(0.05)
            await scheduler.stop()
            return triggers

        assert asyncio.run(scenario()) == []

    def test_start_twice_keeps_one_timer(self):
        async def scenario():
            scheduler = SyncScheduler(runner=ok_runner, run_on_startup=False)
            scheduler.start()
            first = scheduler._scheduler
            scheduler.start()
            same = scheduler._scheduler is first
            await scheduler.stop()
            return same

        assert asyncio.run(scenario()) is True

    def test_stop_without_start(self):
        asyncio.run(SyncScheduler().stop())
