# data aggregator — reduces a user's mood entries, day ratings and victories
# over a date window into the statistics bundle fed to the report generator
#
# the three range queries run concurrently; the reduction is pure so the same
# documents always produce the same AggregatedStats

import asyncio
import logging
from collections import Counter
from datetime import datetime, timezone
from fractions import Fraction

from moodwell.models.report import AggregatedStats
from moodwell.services.db import Database

logger = logging.getLogger(__name__)

UNKNOWN = "unknown"
DEFAULT_INTENSITY = 5
TREND_MIN_ENTRIES = 4
TREND_DEADBAND = 0.5
MAX_RECENT_NOTES = 5
MAX_RECENT_VICTORIES = 3

DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]
MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]


def _as_utc(value: datetime) -> datetime:
    """mongo may hand back naive datetimes, they are always utc"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _weekday_index(value: datetime) -> int:
    """sunday=0 .. saturday=6"""
    return (_as_utc(value).weekday() + 1) % 7


def _intensity(entry: dict) -> int:
    return entry.get("intensity") or DEFAULT_INTENSITY


def _average(values: list) -> float:
    if not values:
        return 0.0
    return round(sum(values) / len(values), 1)


def _most_common(counts: dict[str, int]) -> str:
    """highest count wins, ties go to the label seen first (most recent entry)"""
    if not counts:
        return UNKNOWN
    return max(counts, key=counts.get)


def format_day(value: datetime) -> str:
    """human readable day, e.g. 'Sunday, 12 October'"""
    value = _as_utc(value)
    return f"{DAY_NAMES[_weekday_index(value)]}, {value.day} {MONTH_NAMES[value.month - 1]}"


def classify_trend(intensities: list[int]) -> str:
    """compare the earlier half of the window to the later half.

    expects intensities oldest first. with an odd count the middle entry
    belongs to the earlier half. differences inside the deadband are stable.
    """
    if len(intensities) < TREND_MIN_ENTRIES:
        return "stable"

    split = (len(intensities) + 1) // 2
    earlier = intensities[:split]
    later = intensities[split:]
    # exact means, a difference of exactly the deadband must stay stable
    earlier_avg = sum(Fraction(v) for v in earlier) / len(earlier)
    later_avg = sum(Fraction(v) for v in later) / len(later)
    deadband = Fraction(TREND_DEADBAND)

    if later_avg - earlier_avg > deadband:
        return "improving"
    if later_avg - earlier_avg < -deadband:
        return "declining"
    return "stable"


def compute_stats(
    mood_entries: list[dict],
    day_ratings: list[dict],
    victories: list[dict],
) -> AggregatedStats:
    """reduce raw documents (each list newest first) to AggregatedStats"""

    # mood statistics
    mood_counts: dict[str, int] = {}
    reason_counts: dict[str, int] = {}
    weekday_values: list[list[int]] = [[] for _ in range(7)]

    for entry in mood_entries:
        emotion = entry.get("emotion", UNKNOWN)
        mood_counts[emotion] = mood_counts.get(emotion, 0) + 1

        reason = entry.get("reason")
        if reason:
            reason_counts[reason] = reason_counts.get(reason, 0) + 1

        created_at = entry.get("created_at")
        if created_at is not None:
            weekday_values[_weekday_index(created_at)].append(_intensity(entry))

    intensities = [_intensity(e) for e in mood_entries]
    trend = classify_trend(list(reversed(intensities)))

    # day ratings — stable sort keeps the most recent day first among ties
    ratings = [r.get("rating", 0) for r in day_ratings]
    ranked = sorted(day_ratings, key=lambda r: r.get("rating", 0), reverse=True)
    best_day = format_day(ranked[0]["date"]) if ranked else None
    worst_day = format_day(ranked[-1]["date"]) if ranked else None

    # victories
    victories_by_category = dict(Counter(v.get("type") or "general" for v in victories))

    recent_notes = [e.get("note") for e in mood_entries[:MAX_RECENT_NOTES]]
    recent_victories = [v.get("text") for v in victories[:MAX_RECENT_VICTORIES]]

    return AggregatedStats(
        total_mood_entries=len(mood_entries),
        average_intensity=_average(intensities),
        mood_distribution=mood_counts,
        reason_distribution=reason_counts,
        most_common_mood=_most_common(mood_counts),
        most_common_reason=_most_common(reason_counts),
        mood_trend=trend,
        total_ratings=len(day_ratings),
        average_rating=_average(ratings),
        best_day=best_day,
        worst_day=worst_day,
        total_victories=len(victories),
        victories_by_category=victories_by_category,
        weekday_averages=[_average(values) for values in weekday_values],
        weekday_counts=[len(values) for values in weekday_values],
        recent_notes=[n for n in recent_notes if n],
        recent_victories=[v for v in recent_victories if v],
    )


async def aggregate(
    db: Database,
    user_id: str,
    period_start: datetime,
    period_end: datetime,
) -> AggregatedStats:
    """fetch the three record kinds for the window (bounds inclusive) and reduce them"""
    window = {"$gte": period_start, "$lte": period_end}

    mood_entries, day_ratings, victories = await asyncio.gather(
        db.mood_entries.find({"user_id": user_id, "created_at": window})
        .sort("created_at", -1)
        .to_list(length=None),
        db.day_ratings.find({"user_id": user_id, "date": window})
        .sort("date", -1)
        .to_list(length=None),
        db.victories.find({"user_id": user_id, "created_at": window})
        .sort("created_at", -1)
        .to_list(length=None),
    )

    stats = compute_stats(mood_entries, day_ratings, victories)
    logger.info(
        f"Aggregated data for user {user_id}: {stats.total_mood_entries} moods, "
        f"{stats.total_ratings} ratings, {stats.total_victories} victories"
    )
    return stats
