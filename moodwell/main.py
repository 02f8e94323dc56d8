# moodwell backend api
# fastapi app with async mongodb, jwt auth, gemini/template mood reports and a weekly report scheduler

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from moodwell.config import settings
from moodwell.services.db import db
from moodwell.services.content_generator import get_content_generator
from moodwell.services.scheduler import WeeklyReportScheduler
from moodwell.routers import moods, ratings, victories, reports

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """startup: connect to mongodb, pick the report strategy, start the scheduler.
    shutdown: stop the scheduler and close the connection."""
    logger.info("Starting Moodwell backend...")
    await db.connect()

    scheduler = None
    if settings.SCHEDULER_ENABLED:
        scheduler = WeeklyReportScheduler(db, get_content_generator())
        scheduler.start()

    logger.info("Moodwell backend ready")
    yield
    logger.info("Shutting down Moodwell backend...")
    if scheduler is not None:
        await scheduler.stop()
    await db.close()


app = FastAPI(
    title="Moodwell API",
    description="Backend API for Moodwell — mood tracking, day ratings, small victories and weekly reports",
    version="0.1.0",
    lifespan=lifespan,
)

# cors — allow frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL, "http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# register routers
app.include_router(moods.router)
app.include_router(ratings.router)
app.include_router(victories.router)
app.include_router(reports.router)


@app.get("/health")
async def health_check():
    """basic health check endpoint"""
    return {"status": "ok", "service": "moodwell-api"}
