# weekly report scheduler — background asyncio task started with the app
# sleeps until the configured weekday/time (utc), then generates a weekly
# report for every user. users are processed one at a time and a failure for
# one user is logged and never stops the rest of the pass.

import asyncio
import contextlib
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from moodwell.config import settings
from moodwell.services.content_generator import ContentGenerator
from moodwell.services.db import Database
from moodwell.services.report_service import generate_weekly

logger = logging.getLogger(__name__)


def next_run_after(now: datetime, weekday: int, hour: int, minute: int) -> datetime:
    """next occurrence of weekday (monday=0) at hour:minute strictly after now"""
    candidate = now.replace(hour=hour, minute=minute, second=0, microsecond=0)
    candidate += timedelta(days=(weekday - now.weekday()) % 7)
    if candidate <= now:
        candidate += timedelta(days=7)
    return candidate


async def run_scheduled_pass(
    db: Database,
    generator: ContentGenerator,
    now: Optional[datetime] = None,
) -> dict:
    """generate weekly reports for all users, returns per-pass counters"""
    now = now or datetime.now(timezone.utc)
    users = await db.users.find({}, {"_id": 1}).to_list(length=None)

    summary = {"processed": 0, "generated": 0, "skipped": 0, "failed": 0}
    logger.info(f"Starting weekly report pass for {len(users)} users")

    for user in users:
        user_id = str(user["_id"])
        summary["processed"] += 1
        try:
            report = await generate_weekly(db, generator, user_id, now=now)
        except Exception as e:
            summary["failed"] += 1
            logger.error(f"Weekly report failed for user {user_id}: {e}")
            continue

        if report is None:
            summary["skipped"] += 1
        else:
            summary["generated"] += 1

    logger.info(
        f"Weekly report pass finished: {summary['generated']} generated, "
        f"{summary['skipped']} skipped, {summary['failed']} failed"
    )
    return summary


class WeeklyReportScheduler:
    """owns the background loop that fires run_scheduled_pass once a week"""

    def __init__(
        self,
        db: Database,
        generator: ContentGenerator,
        weekday: int = settings.WEEKLY_REPORT_WEEKDAY,
        hour: int = settings.WEEKLY_REPORT_HOUR,
        minute: int = settings.WEEKLY_REPORT_MINUTE,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.db = db
        self.generator = generator
        self.weekday = weekday
        self.hour = hour
        self.minute = minute
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self):
        if self.running:
            return
        self._task = asyncio.create_task(self._run_loop(), name="weekly-report-scheduler")
        logger.info("Weekly report scheduler started")

    async def stop(self):
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("Weekly report scheduler stopped")

    async def _run_loop(self):
        last_run: Optional[datetime] = None
        while True:
            now = self.clock()
            # a slot that already fired is never picked again
            after = max(now, last_run) if last_run else now
            next_run = next_run_after(after, self.weekday, self.hour, self.minute)
            logger.info(f"Next weekly report pass at {next_run.isoformat()}")

            # asyncio.sleep follows the monotonic clock, wait until the wall clock agrees
            while now < next_run:
                await asyncio.sleep((next_run - now).total_seconds())
                now = self.clock()
            last_run = next_run

            try:
                await run_scheduled_pass(self.db, self.generator)
            except Exception as e:
                # listing users failed, try again next week
                logger.error(f"Weekly report pass aborted: {e}")
