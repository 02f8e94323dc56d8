# ai reports router — on-demand generation and the report lifecycle
# reports are strictly private: another user's report answers 404, same as a missing one

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from moodwell.errors import InsufficientDataError, QuotaExceededError, ReportNotFoundError
from moodwell.models.report import (
    FeedbackCreate,
    GenerateReportRequest,
    GenerationStatusResponse,
    ReportListResponse,
    ReportResponse,
)
from moodwell.services.content_generator import ContentGenerator
from moodwell.services.db import Database, get_db
from moodwell.services.report_service import generate_on_demand
from moodwell.services.report_store import ReportStore
from moodwell.dependencies import get_current_user, get_generator

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/ai-reports", tags=["ai-reports"])


def _doc_to_report(doc: dict) -> ReportResponse:
    """convert a mongodb ai_reports document to response model"""
    feedback = doc.get("feedback")
    return ReportResponse(
        id=str(doc.get("_id", "")),
        userId=doc.get("user_id", ""),
        kind=doc.get("kind", "on-demand"),
        period=doc.get("period", "weekly"),
        periodStart=doc["period_start"],
        periodEnd=doc["period_end"],
        content=doc.get("content") or {},
        stats=doc.get("stats"),
        aiModel=doc.get("ai_model", "template"),
        aiEnabled=doc.get("ai_enabled", False),
        generationTimeMs=doc.get("generation_time_ms", 0),
        viewed=doc.get("viewed", False),
        viewedAt=doc.get("viewed_at"),
        feedback=(
            {
                "helpful": feedback.get("helpful"),
                "comment": feedback.get("comment") or "",
                "submittedAt": feedback.get("submitted_at"),
            }
            if feedback else None
        ),
        createdAt=doc["created_at"],
    )


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Report not found")


@router.get("", response_model=ReportListResponse)
async def list_reports(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    kind: Optional[str] = Query(None, alias="type", pattern="^(weekly|monthly|on-demand)$"),
    current_user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    """paginated reports, newest first (stats snapshot omitted)"""
    result = await ReportStore(db).list_reports(current_user["id"], kind=kind, page=page, page_size=limit)
    return ReportListResponse(
        reports=[_doc_to_report(doc) for doc in result["reports"]],
        total=result["total"],
        page=result["page"],
        pages=result["pages"],
    )


@router.get("/latest", response_model=Optional[ReportResponse])
async def get_latest_report(
    current_user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    doc = await ReportStore(db).get_latest(current_user["id"])
    return _doc_to_report(doc) if doc else None


@router.get("/status", response_model=GenerationStatusResponse)
async def generation_status(
    current_user: dict = Depends(get_current_user),
    generator: ContentGenerator = Depends(get_generator),
):
    """whether reports are written by the language model or by templates"""
    enabled = generator.is_generation_enabled()
    return GenerationStatusResponse(
        aiEnabled=enabled,
        model=generator.model_name,
        message=(
            "AI report generation is active"
            if enabled else "Reports are generated from templates (no API key configured)"
        ),
    )


@router.get("/{report_id}", response_model=ReportResponse)
async def get_report(
    report_id: str,
    current_user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    """fetch a report and mark it viewed on first read"""
    try:
        doc = await ReportStore(db).mark_viewed(current_user["id"], report_id)
    except ReportNotFoundError:
        raise _not_found()
    return _doc_to_report(doc)


@router.post("/generate", response_model=ReportResponse, status_code=status.HTTP_201_CREATED)
async def generate_report(
    body: Optional[GenerateReportRequest] = None,
    current_user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
    generator: ContentGenerator = Depends(get_generator),
):
    """generate an on-demand report for the last week or month"""
    period = body.period if body else "weekly"
    try:
        doc = await generate_on_demand(db, generator, current_user["id"], period=period)
    except QuotaExceededError as e:
        raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail=str(e))
    except InsufficientDataError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You need at least one mood entry or day rating to generate a report.",
        )
    return _doc_to_report(doc)


@router.post("/{report_id}/feedback")
async def submit_feedback(
    report_id: str,
    body: FeedbackCreate,
    current_user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    try:
        await ReportStore(db).submit_feedback(current_user["id"], report_id, body.helpful, body.comment)
    except ReportNotFoundError:
        raise _not_found()
    return {"success": True}


@router.delete("/{report_id}")
async def delete_report(
    report_id: str,
    current_user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    try:
        await ReportStore(db).delete_report(current_user["id"], report_id)
    except ReportNotFoundError:
        raise _not_found()
    return {"success": True}
