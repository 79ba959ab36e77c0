"""Tests for the cron scheduler."""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

import harvestbot.scheduler as scheduler_module
from harvestbot.scheduler import Scheduler, _calculate_next_run


class TestCalculateNextRun:
    """Tests for _calculate_next_run helper function."""

    def test_every_three_hours_in_lagos(self):
        """10:30 UTC is 11:30 in Lagos (UTC+1); next 3h tick is 12:00 local."""
        from_time = datetime(2026, 3, 1, 10, 30, tzinfo=timezone.utc)
        next_run = _calculate_next_run("0 */3 * * *", "Africa/Lagos", from_time=from_time)

        assert next_run is not None
        assert next_run.tzinfo is not None
        assert (next_run.hour, next_run.minute) == (12, 0)
        assert next_run.astimezone(timezone.utc) == datetime(2026, 3, 1, 11, 0, tzinfo=timezone.utc)

    def test_utc_default(self):
        from_time = datetime(2026, 3, 1, 10, 30, tzinfo=timezone.utc)
        next_run = _calculate_next_run("0 */3 * * *", from_time=from_time)
        assert next_run == datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)

    def test_always_in_the_future(self):
        now = datetime.now(timezone.utc)
        next_run = _calculate_next_run("* * * * *", "UTC", from_time=now)
        assert 0 < (next_run - now).total_seconds() <= 60

    def test_invalid_cron(self):
        assert _calculate_next_run("not a cron", "UTC") is None

    def test_invalid_timezone(self):
        assert _calculate_next_run("0 */3 * * *", "Mars/Olympus_Mons") is None


class TestScheduler:
    def test_invalid_schedule_rejected(self):
        async def job():
            pass

        with pytest.raises(ValueError):
            Scheduler("every now and then", "UTC", job)
        with pytest.raises(ValueError):
            Scheduler("0 */3 * * *", "Nowhere/Town", job)

    @pytest.mark.asyncio
    async def test_overlapping_runs_execute_concurrently(self):
        release = asyncio.Event()
        started = []

        async def job():
            started.append(len(started))
            await release.wait()

        scheduler = Scheduler("0 */3 * * *", "UTC", job)
        first = scheduler.fire()
        await asyncio.sleep(0)
        second = scheduler.fire()
        await asyncio.sleep(0)

        assert started == [0, 1]
        assert scheduler.active_runs == 2

        release.set()
        await asyncio.gather(first, second)
        assert scheduler.active_runs == 0

    @pytest.mark.asyncio
    async def test_job_failure_is_contained(self, caplog):
        async def job():
            raise RuntimeError("digest exploded")

        scheduler = Scheduler("0 */3 * * *", "UTC", job, name="digest")
        await scheduler.fire()

        assert "digest exploded" in caplog.text

    @pytest.mark.asyncio
    async def test_start_and_stop(self):
        async def job():
            pass

        scheduler = Scheduler("0 */3 * * *", "UTC", job)
        await scheduler.start()
        await asyncio.sleep(0)
        assert scheduler.next_run is not None
        assert scheduler.next_run > datetime.now(timezone.utc)

        await scheduler.stop()
        assert scheduler._task.done()

    @pytest.mark.asyncio
    async def test_stop_cancels_inflight_run(self):
        async def job():
            await asyncio.sleep(10)

        scheduler = Scheduler("0 */3 * * *", "UTC", job)
        run = scheduler.fire()
        await asyncio.sleep(0)
        await scheduler.stop()

        assert run.cancelled()
        assert scheduler.active_runs == 0

    @pytest.mark.asyncio
    async def test_loop_fires_when_due(self, monkeypatch):
        calls = []

        async def job():
            calls.append(datetime.now(timezone.utc))

        scheduler = Scheduler("0 */3 * * *", "UTC", job)
        monkeypatch.setattr(
            scheduler_module,
            "_calculate_next_run",
            lambda *args, **kwargs: datetime.now(timezone.utc) + timedelta(milliseconds=50),
        )

        await scheduler.start()
        await asyncio.sleep(0.3)
        await scheduler.stop()

        assert len(calls) == 1
