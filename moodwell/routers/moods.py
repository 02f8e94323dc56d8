# moods router — daily mood check-ins
# one entry per user per calendar day, a second check-in the same day overwrites the first

import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from moodwell.models.mood import MoodCreate, MoodEntryResponse
from moodwell.services.db import Database, get_db
from moodwell.dependencies import get_current_user

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/moods", tags=["moods"])


def day_start(day: date) -> datetime:
    """utc midnight of a calendar day"""
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def checkin_timestamp(day: date, now: datetime) -> datetime:
    """now for today's check-in, midday for a back-filled day"""
    if day == now.date():
        return now
    return day_start(day) + timedelta(hours=12)


def _doc_to_mood(doc: dict) -> MoodEntryResponse:
    """convert a mongodb mood entry document to response model"""
    return MoodEntryResponse(
        id=str(doc.get("_id", "")),
        userId=doc.get("user_id", ""),
        emotion=doc.get("emotion", ""),
        reason=doc.get("reason"),
        intensity=doc.get("intensity"),
        note=doc.get("note") or "",
        date=doc["date"],
        createdAt=doc["created_at"],
    )


@router.post("", response_model=MoodEntryResponse, status_code=status.HTTP_201_CREATED)
async def log_mood(
    body: MoodCreate,
    current_user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    """record today's (or a given day's) mood, replacing an earlier check-in for that day"""
    now = datetime.now(timezone.utc)
    day = body.entry_date or now.date()
    query = {"user_id": current_user["id"], "date": day_start(day)}

    fields = {
        "emotion": body.emotion,
        "reason": body.reason,
        "intensity": body.intensity,
        "created_at": checkin_timestamp(day, now),
    }
    update = {"$set": fields}
    if body.note is not None:
        fields["note"] = body.note
    else:
        update["$setOnInsert"] = {"note": ""}

    await db.mood_entries.update_one(query, update, upsert=True)
    doc = await db.mood_entries.find_one(query)
    logger.info(f"Mood logged for user {current_user['id']} on {day.isoformat()}: {body.emotion}")
    return _doc_to_mood(doc)


@router.get("", response_model=list[MoodEntryResponse])
async def list_moods(
    date_from: Optional[date] = Query(None, alias="from"),
    date_to: Optional[date] = Query(None, alias="to"),
    limit: int = Query(31, ge=1, le=366),
    current_user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    """the user's check-ins, newest first"""
    query = {"user_id": current_user["id"]}
    if date_from or date_to:
        query["date"] = {}
        if date_from:
            query["date"]["$gte"] = day_start(date_from)
        if date_to:
            query["date"]["$lte"] = day_start(date_to)

    cursor = db.mood_entries.find(query).sort("date", -1).limit(limit)
    return [_doc_to_mood(doc) async for doc in cursor]
