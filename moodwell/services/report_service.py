# report pipeline — aggregation -> generation -> persistence
# shared by the on-demand route and the weekly scheduler

import logging
import time
from datetime import datetime, timedelta, timezone
from typing import Optional

from moodwell.config import settings
from moodwell.errors import InsufficientDataError
from moodwell.services.aggregator import aggregate
from moodwell.services.content_generator import ContentGenerator
from moodwell.services.db import Database
from moodwell.services.report_store import ON_DEMAND, ReportStore

logger = logging.getLogger(__name__)


def report_window(period: str, now: datetime) -> tuple[datetime, datetime]:
    """weekly: trailing 7 days. monthly: from the first day of the previous month."""
    if period == "monthly":
        year, month = (now.year - 1, 12) if now.month == 1 else (now.year, now.month - 1)
        start = now.replace(year=year, month=month, day=1, hour=0, minute=0, second=0, microsecond=0)
        return start, now
    return now - timedelta(days=7), now


async def generate_on_demand(
    db: Database,
    generator: ContentGenerator,
    user_id: str,
    period: str = "weekly",
    now: Optional[datetime] = None,
) -> dict:
    """user-triggered report, quota limited, needs one mood entry or day rating"""
    now = now or datetime.now(timezone.utc)
    store = ReportStore(db)

    # fail before spending a model call
    await store.ensure_quota(user_id, now)

    period_start, period_end = report_window(period, now)
    started = time.perf_counter()
    stats = await aggregate(db, user_id, period_start, period_end)

    if stats.total_mood_entries < 1 and stats.total_ratings < 1:
        raise InsufficientDataError(ON_DEMAND, required=1, found=0)

    result = await generator.generate_with_metadata(stats, period)
    generation_time_ms = int((time.perf_counter() - started) * 1000)

    return await store.create_report(
        user_id,
        ON_DEMAND,
        period_start,
        period_end,
        result.content,
        stats,
        result,
        generation_time_ms=generation_time_ms,
        period=period,
        now=now,
    )


async def generate_weekly(
    db: Database,
    generator: ContentGenerator,
    user_id: str,
    now: Optional[datetime] = None,
) -> Optional[dict]:
    """scheduled weekly report. returns None when the week has too few mood entries."""
    now = now or datetime.now(timezone.utc)
    period_start, period_end = report_window("weekly", now)

    started = time.perf_counter()
    stats = await aggregate(db, user_id, period_start, period_end)

    if stats.total_mood_entries < settings.WEEKLY_MIN_MOOD_ENTRIES:
        logger.info(
            f"Skipping weekly report for user {user_id}: "
            f"{stats.total_mood_entries} mood entries (need {settings.WEEKLY_MIN_MOOD_ENTRIES})"
        )
        return None

    result = await generator.generate_with_metadata(stats, "weekly")
    generation_time_ms = int((time.perf_counter() - started) * 1000)

    return await ReportStore(db).create_report(
        user_id,
        "weekly",
        period_start,
        period_end,
        result.content,
        stats,
        result,
        generation_time_ms=generation_time_ms,
        period="weekly",
        now=now,
    )
