# victories router — append-only log of small wins

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from moodwell.models.mood import VictoryCreate, VictoryResponse
from moodwell.services.db import Database, get_db
from moodwell.dependencies import get_current_user

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/victories", tags=["victories"])


def _doc_to_victory(doc: dict) -> VictoryResponse:
    return VictoryResponse(
        id=str(doc.get("_id", "")),
        userId=doc.get("user_id", ""),
        text=doc.get("text", ""),
        type=doc.get("type") or "general",
        date=doc.get("date", ""),
        createdAt=doc["created_at"],
    )


@router.post("", response_model=VictoryResponse, status_code=status.HTTP_201_CREATED)
async def add_victory(
    body: VictoryCreate,
    current_user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    now = datetime.now(timezone.utc)
    doc = {
        "user_id": current_user["id"],
        "text": body.text,
        "type": body.type or "general",
        "date": body.date or now.date().isoformat(),
        "created_at": now,
    }
    await db.victories.insert_one(doc)
    logger.info(f"Victory logged for user {current_user['id']} ({doc['type']})")
    return _doc_to_victory(doc)


@router.get("", response_model=list[VictoryResponse])
async def list_victories(
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = Query(None, ge=2000, le=2100),
    current_user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    """victories for a month (both month and year given) or all of them, newest first"""
    query = {"user_id": current_user["id"]}
    if month and year:
        query["date"] = {"$regex": f"^{year}-{month:02d}"}

    cursor = db.victories.find(query).sort("created_at", -1)
    return [_doc_to_victory(doc) async for doc in cursor]
