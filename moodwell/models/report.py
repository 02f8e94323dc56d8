# report models — aggregated statistics, generated content and report responses
# AggregatedStats is derived per request and only persisted as a snapshot inside a report

from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field

ReportKind = Literal["weekly", "monthly", "on-demand"]
ReportPeriod = Literal["weekly", "monthly"]
PatternCategory = Literal["positive", "neutral", "concern"]
MoodTrend = Literal["improving", "declining", "stable"]


class AggregatedStats(BaseModel):
    """one user's mood data reduced over a date window"""
    # mood entries
    total_mood_entries: int = Field(0, alias="totalMoodEntries")
    average_intensity: float = Field(0.0, alias="averageIntensity")
    mood_distribution: dict[str, int] = Field(default_factory=dict, alias="moodDistribution")
    reason_distribution: dict[str, int] = Field(default_factory=dict, alias="reasonDistribution")
    most_common_mood: str = Field("unknown", alias="mostCommonMood")
    most_common_reason: str = Field("unknown", alias="mostCommonReason")
    mood_trend: MoodTrend = Field("stable", alias="moodTrend")

    # day ratings
    total_ratings: int = Field(0, alias="totalRatings")
    average_rating: float = Field(0.0, alias="averageRating")
    best_day: Optional[str] = Field(None, alias="bestDay")
    worst_day: Optional[str] = Field(None, alias="worstDay")

    # victories
    total_victories: int = Field(0, alias="totalVictories")
    victories_by_category: dict[str, int] = Field(default_factory=dict, alias="victoriesByCategory")

    # sunday=0 .. saturday=6
    weekday_averages: list[float] = Field(default_factory=lambda: [0.0] * 7, alias="weekdayAverages")
    weekday_counts: list[int] = Field(default_factory=lambda: [0] * 7, alias="weekdayCounts")

    # bounded context for generation
    recent_notes: list[str] = Field(default_factory=list, alias="recentNotes")
    recent_victories: list[str] = Field(default_factory=list, alias="recentVictories")

    model_config = {"populate_by_name": True}


class PatternItem(BaseModel):
    title: str = ""
    description: str = ""
    category: PatternCategory = "neutral"


class SuggestionItem(BaseModel):
    title: str = ""
    description: str = ""
    category: str = "growth"


class ReportContent(BaseModel):
    """the user-facing body of a report"""
    summary: str = ""
    patterns: list[PatternItem] = Field(default_factory=list)
    strengths: list[str] = Field(default_factory=list)
    suggestions: list[SuggestionItem] = Field(default_factory=list)
    affirmation: str = ""


class GenerationResult(BaseModel):
    """content plus which strategy actually produced it"""
    content: ReportContent
    model: str
    ai_generated: bool = False


class FeedbackCreate(BaseModel):
    helpful: bool
    comment: Optional[str] = Field(None, max_length=1000)


class FeedbackResponse(BaseModel):
    helpful: Optional[bool] = None
    comment: str = ""
    submitted_at: Optional[datetime] = Field(None, alias="submittedAt")

    model_config = {"populate_by_name": True}


class GenerateReportRequest(BaseModel):
    """on-demand generation — period picks the window, the report is stored as on-demand"""
    period: ReportPeriod = "weekly"


class ReportResponse(BaseModel):
    id: str
    user_id: str = Field(..., alias="userId")
    kind: ReportKind
    period: ReportPeriod = "weekly"
    period_start: datetime = Field(..., alias="periodStart")
    period_end: datetime = Field(..., alias="periodEnd")
    content: ReportContent
    stats: Optional[AggregatedStats] = None
    ai_model: str = Field("template", alias="aiModel")
    ai_enabled: bool = Field(False, alias="aiEnabled")
    generation_time_ms: int = Field(0, alias="generationTimeMs")
    viewed: bool = False
    viewed_at: Optional[datetime] = Field(None, alias="viewedAt")
    feedback: Optional[FeedbackResponse] = None
    created_at: datetime = Field(..., alias="createdAt")

    model_config = {"populate_by_name": True}


class ReportListResponse(BaseModel):
    reports: list[ReportResponse] = Field(default_factory=list)
    total: int = 0
    page: int = 1
    pages: int = 0


class GenerationStatusResponse(BaseModel):
    ai_enabled: bool = Field(..., alias="aiEnabled")
    model: str
    message: str

    model_config = {"populate_by_name": True}
