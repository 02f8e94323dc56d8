# ratings router — 1-5 self-rating of a day, unique per user and date

import logging
from datetime import date, datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from moodwell.models.mood import DayRatingCreate, DayRatingResponse
from moodwell.routers.moods import day_start
from moodwell.services.db import Database, get_db
from moodwell.dependencies import get_current_user

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/ratings", tags=["ratings"])


def _doc_to_rating(doc: dict) -> DayRatingResponse:
    return DayRatingResponse(
        id=str(doc.get("_id", "")),
        userId=doc.get("user_id", ""),
        rating=doc.get("rating", 0),
        note=doc.get("note"),
        date=doc["date"],
        createdAt=doc["created_at"],
    )


@router.post("", response_model=DayRatingResponse, status_code=status.HTTP_201_CREATED)
async def rate_day(
    body: DayRatingCreate,
    current_user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    """rate today (or a given day); rating the same day again replaces the rating"""
    now = datetime.now(timezone.utc)
    day = body.entry_date or now.date()
    query = {"user_id": current_user["id"], "date": day_start(day)}

    await db.day_ratings.update_one(
        query,
        {
            "$set": {"rating": body.rating, "note": body.note},
            "$setOnInsert": {"created_at": now},
        },
        upsert=True,
    )
    doc = await db.day_ratings.find_one(query)
    logger.info(f"Day rated for user {current_user['id']} on {day.isoformat()}: {body.rating}")
    return _doc_to_rating(doc)


@router.get("/today", response_model=Optional[DayRatingResponse])
async def get_today_rating(
    current_user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    today = day_start(datetime.now(timezone.utc).date())
    doc = await db.day_ratings.find_one({"user_id": current_user["id"], "date": today})
    return _doc_to_rating(doc) if doc else None


@router.get("", response_model=list[DayRatingResponse])
async def list_ratings(
    date_from: Optional[date] = Query(None, alias="from"),
    date_to: Optional[date] = Query(None, alias="to"),
    limit: int = Query(30, ge=1, le=366),
    current_user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    """ratings with optional date range, newest first"""
    query = {"user_id": current_user["id"]}
    if date_from or date_to:
        query["date"] = {}
        if date_from:
            query["date"]["$gte"] = day_start(date_from)
        if date_to:
            query["date"]["$lte"] = day_start(date_to)

    cursor = db.day_ratings.find(query).sort("date", -1).limit(limit)
    return [_doc_to_rating(doc) async for doc in cursor]
