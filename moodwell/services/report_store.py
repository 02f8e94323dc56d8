# report store — persistence and lifecycle of generated reports
# every read and write is scoped to the owning user; a report that belongs
# to someone else looks exactly like one that does not exist
#
# the on-demand quota is a count-then-insert without a transaction. two
# simultaneous requests from the same user can both pass the check, we accept
# that rather than serialising report generation per user.

import logging
import math
from datetime import datetime, timezone
from typing import Optional

from bson import ObjectId
from bson.errors import InvalidId

from moodwell.config import settings
from moodwell.errors import InsufficientDataError, QuotaExceededError, ReportNotFoundError
from moodwell.models.report import AggregatedStats, GenerationResult, ReportContent
from moodwell.services.db import Database

logger = logging.getLogger(__name__)

ON_DEMAND = "on-demand"

# fields left out of list views
LIST_PROJECTION = {"stats": 0}


def _parse_id(report_id: str) -> ObjectId:
    try:
        return ObjectId(report_id)
    except (InvalidId, TypeError):
        raise ReportNotFoundError()


def start_of_day(now: datetime) -> datetime:
    return now.astimezone(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)


class ReportStore:
    """owner-scoped crud over the ai_reports collection"""

    def __init__(self, db: Database, daily_limit: Optional[int] = None):
        self.db = db
        self.daily_limit = settings.ON_DEMAND_DAILY_LIMIT if daily_limit is None else daily_limit

    async def count_on_demand_today(self, user_id: str, now: Optional[datetime] = None) -> int:
        now = now or datetime.now(timezone.utc)
        return await self.db.ai_reports.count_documents({
            "user_id": user_id,
            "kind": ON_DEMAND,
            "created_at": {"$gte": start_of_day(now)},
        })

    async def ensure_quota(self, user_id: str, now: Optional[datetime] = None):
        """raise QuotaExceededError once the user hit today's on-demand limit"""
        count = await self.count_on_demand_today(user_id, now)
        if count >= self.daily_limit:
            logger.info(f"On-demand quota reached for user {user_id} ({count}/{self.daily_limit})")
            raise QuotaExceededError(self.daily_limit)

    async def create_report(
        self,
        user_id: str,
        kind: str,
        period_start: datetime,
        period_end: datetime,
        content: ReportContent,
        stats: AggregatedStats,
        meta: GenerationResult,
        generation_time_ms: int = 0,
        period: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> dict:
        """persist a generated report. on-demand reports count against the daily quota."""
        now = now or datetime.now(timezone.utc)

        if kind == ON_DEMAND:
            await self.ensure_quota(user_id, now)

        if stats.total_mood_entries < 1 and stats.total_ratings < 1:
            raise InsufficientDataError(kind, required=1, found=0)

        doc = {
            "user_id": user_id,
            "kind": kind,
            "period": period or ("monthly" if kind == "monthly" else "weekly"),
            "period_start": period_start,
            "period_end": period_end,
            "content": content.model_dump(),
            "stats": stats.model_dump(),
            "ai_model": meta.model,
            "ai_enabled": meta.ai_generated,
            "generation_time_ms": generation_time_ms,
            "viewed": False,
            "viewed_at": None,
            "feedback": None,
            "created_at": now,
        }
        result = await self.db.ai_reports.insert_one(doc)
        doc["_id"] = result.inserted_id
        logger.info(f"Report created: {result.inserted_id} ({kind}) for user {user_id} using {meta.model}")
        return doc

    async def list_reports(
        self,
        user_id: str,
        kind: Optional[str] = None,
        page: int = 1,
        page_size: int = 10,
    ) -> dict:
        """newest first, stats snapshot elided"""
        query = {"user_id": user_id}
        if kind:
            query["kind"] = kind

        cursor = (
            self.db.ai_reports.find(query, LIST_PROJECTION)
            .sort("created_at", -1)
            .skip((page - 1) * page_size)
            .limit(page_size)
        )
        reports = await cursor.to_list(length=page_size)
        total = await self.db.ai_reports.count_documents(query)

        return {
            "reports": reports,
            "total": total,
            "page": page,
            "pages": math.ceil(total / page_size) if page_size else 0,
        }

    async def get_latest(self, user_id: str) -> Optional[dict]:
        cursor = self.db.ai_reports.find({"user_id": user_id}).sort("created_at", -1).limit(1)
        docs = await cursor.to_list(length=1)
        return docs[0] if docs else None

    async def get_by_id(self, user_id: str, report_id: str) -> dict:
        doc = await self.db.ai_reports.find_one({"_id": _parse_id(report_id), "user_id": user_id})
        if not doc:
            raise ReportNotFoundError()
        return doc

    async def mark_viewed(self, user_id: str, report_id: str, now: Optional[datetime] = None) -> dict:
        """set viewed/viewed_at on the first call only"""
        oid = _parse_id(report_id)
        now = now or datetime.now(timezone.utc)
        await self.db.ai_reports.update_one(
            {"_id": oid, "user_id": user_id, "viewed": False},
            {"$set": {"viewed": True, "viewed_at": now}},
        )
        return await self.get_by_id(user_id, report_id)

    async def submit_feedback(
        self,
        user_id: str,
        report_id: str,
        helpful: bool,
        comment: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> dict:
        """replace any earlier feedback on the report"""
        oid = _parse_id(report_id)
        now = now or datetime.now(timezone.utc)
        result = await self.db.ai_reports.update_one(
            {"_id": oid, "user_id": user_id},
            {"$set": {"feedback": {
                "helpful": helpful,
                "comment": comment or "",
                "submitted_at": now,
            }}},
        )
        if result.matched_count == 0:
            raise ReportNotFoundError()
        logger.info(f"Feedback recorded for report {report_id} (helpful={helpful})")
        return await self.get_by_id(user_id, report_id)

    async def delete_report(self, user_id: str, report_id: str):
        result = await self.db.ai_reports.delete_one({"_id": _parse_id(report_id), "user_id": user_id})
        if result.deleted_count == 0:
            raise ReportNotFoundError()
        logger.info(f"Report deleted: {report_id} for user {user_id}")
