# mood tracking models — check-ins, day ratings and small victories
# these are the raw time-series the report aggregator reads

from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, Field


class MoodCreate(BaseModel):
    """payload for a daily mood check-in (upserted per calendar day)"""
    emotion: str = Field(..., min_length=1, max_length=40, description="emotion label, e.g. happy, stressed, sad")
    reason: Optional[str] = Field(None, max_length=100, description="what caused the emotion")
    intensity: Optional[int] = Field(None, ge=1, le=10, description="intensity 1-10, 5 when omitted")
    note: Optional[str] = Field(None, max_length=2000)
    entry_date: Optional[date] = Field(None, alias="date", description="calendar day, defaults to today (utc)")

    model_config = {"populate_by_name": True}


class MoodEntryResponse(BaseModel):
    id: str
    user_id: str = Field(..., alias="userId")
    emotion: str
    reason: Optional[str] = None
    intensity: Optional[int] = None
    note: str = ""
    date: datetime
    created_at: datetime = Field(..., alias="createdAt")

    model_config = {"populate_by_name": True}


class DayRatingCreate(BaseModel):
    """payload for rating a day, one rating per user per day"""
    rating: int = Field(..., ge=1, le=5, description="day rating 1-5")
    note: Optional[str] = Field(None, max_length=200)
    entry_date: Optional[date] = Field(None, alias="date", description="calendar day, defaults to today (utc)")

    model_config = {"populate_by_name": True}


class DayRatingResponse(BaseModel):
    id: str
    user_id: str = Field(..., alias="userId")
    rating: int
    note: Optional[str] = None
    date: datetime
    created_at: datetime = Field(..., alias="createdAt")

    model_config = {"populate_by_name": True}


class VictoryCreate(BaseModel):
    """a small win the user wants to remember"""
    text: str = Field(..., min_length=1, max_length=500)
    type: str = Field("general", max_length=40, description="category: general, meditation, walk, ...")
    date: Optional[str] = Field(None, pattern=r"^\d{4}-\d{2}-\d{2}$", description="YYYY-MM-DD, defaults to today")


class VictoryResponse(BaseModel):
    id: str
    user_id: str = Field(..., alias="userId")
    text: str
    type: str = "general"
    date: str
    created_at: datetime = Field(..., alias="createdAt")

    model_config = {"populate_by_name": True}
