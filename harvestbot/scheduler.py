"""Scheduler — recurring cron job on the asyncio loop.

Runs as a background task alongside the Telegram bot. Sleeps until the next
cron tick (evaluated in a named timezone), then launches the job as its own
task. A run that overruns the next tick does not delay it: the next run
starts on schedule and the overlap is logged.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional
from zoneinfo import ZoneInfo

from croniter import croniter

logger = logging.getLogger("harvestbot.scheduler")


def _calculate_next_run(
    cron_expr: str,
    tz_name: str = "UTC",
    from_time: Optional[datetime] = None,
) -> Optional[datetime]:
    """Calculate the next run time for a cron expression.

    Args:
        cron_expr: Cron expression (e.g., "0 */3 * * *" for every 3 hours)
        tz_name: IANA timezone the expression is evaluated in
        from_time: Calculate from this time (default: now)

    Returns:
        Next run datetime (timezone-aware, in `tz_name`) or None if the
        expression or timezone is invalid
    """
    try:
        tz = ZoneInfo(tz_name)
    except Exception as e:
        logger.error(f"Invalid timezone '{tz_name}': {e}")
        return None

    now = (from_time or datetime.now(timezone.utc)).astimezone(tz)
    try:
        return croniter(cron_expr, now).get_next(datetime)
    except Exception as e:
        logger.error(f"Invalid cron expression '{cron_expr}': {e}")
        return None


class Scheduler:
    """Background cron scheduler.

    Usage:
        scheduler = Scheduler("0 */3 * * *", "Africa/Lagos", job=my_coroutine_fn)
        await scheduler.start()
        # ... later ...
        await scheduler.stop()
    """

    def __init__(
        self,
        cron_expr: str,
        tz_name: str,
        job: Callable[[], Awaitable[object]],
        name: str = "job",
    ):
        if _calculate_next_run(cron_expr, tz_name) is None:
            raise ValueError(f"Invalid schedule: '{cron_expr}' in {tz_name}")
        self.cron_expr = cron_expr
        self.tz_name = tz_name
        self.name = name
        self._job = job
        self._running = False
        self._task: Optional[asyncio.Task] = None
        self._runs: set[asyncio.Task] = set()
        self.next_run: Optional[datetime] = None

    @property
    def active_runs(self) -> int:
        return len(self._runs)

    async def start(self):
        """Start the scheduler background task."""
        if self._running:
            logger.warning("Scheduler already running")
            return

        self._running = True
        self._task = asyncio.create_task(self._run_loop())
        logger.info(f"Scheduler started: '{self.name}' at '{self.cron_expr}' ({self.tz_name})")

    async def stop(self):
        """Stop the scheduler and cancel any in-flight run."""
        self._running = False
        tasks = [t for t in (self._task, *self._runs) if t]
        for task in tasks:
            task.cancel()
        for task in tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._runs.clear()
        logger.info("Scheduler stopped")

    async def _run_loop(self):
        """Main scheduler loop."""
        while self._running:
            self.next_run = _calculate_next_run(self.cron_expr, self.tz_name)
            if self.next_run is None:
                logger.error(f"Cannot compute next run for '{self.name}', scheduler exiting")
                return

            wait = (self.next_run - datetime.now(timezone.utc)).total_seconds()
            logger.info(f"[{self.name}] next run at {self.next_run.isoformat()} ({int(wait)}s)")
            await asyncio.sleep(max(wait, 0))
            self.fire()

            # croniter resolves to whole minutes; don't fire twice in the same one
            await asyncio.sleep(1)

    def fire(self) -> asyncio.Task:
        """Launch one run of the job without waiting for it."""
        if self._runs:
            logger.warning(f"[{self.name}] previous run still in progress ({len(self._runs)} active)")
        task = asyncio.create_task(self._execute())
        self._runs.add(task)
        task.add_done_callback(self._runs.discard)
        return task

    async def _execute(self):
        logger.info(f"Executing scheduled job: {self.name}")
        try:
            await self._job()
        except Exception as e:
            logger.error(f"Error executing scheduled job {self.name}: {e}", exc_info=True)
