# backend configuration
# loads env vars for mongodb, jwt, gemini, report generation and the weekly scheduler

import os
from pathlib import Path
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

# load .env from project root
load_dotenv(Path(__file__).parent.parent / ".env")


class Settings(BaseSettings):
    # mongodb
    MONGODB_URI: str = os.getenv("MONGODB_URI", "")
    MONGODB_DATABASE: str = os.getenv("MONGODB_DATABASE", "moodwell_db")

    # jwt auth (tokens are issued by the auth service, we only verify them)
    JWT_SECRET: str = os.getenv("JWT_SECRET", "moodwell-dev-secret-change-in-production")
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # gemini (report generation). empty key = template-only mode
    GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")
    GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
    GENERATION_TEMPERATURE: float = 0.7
    GENERATION_MAX_TOKENS: int = 2000
    GENERATION_TIMEOUT_SECONDS: float = 30.0

    # report limits
    ON_DEMAND_DAILY_LIMIT: int = 3
    WEEKLY_MIN_MOOD_ENTRIES: int = 3

    # weekly scheduler (utc, python weekday: monday=0 .. sunday=6)
    SCHEDULER_ENABLED: bool = True
    WEEKLY_REPORT_WEEKDAY: int = 6
    WEEKLY_REPORT_HOUR: int = 20
    WEEKLY_REPORT_MINUTE: int = 0

    # cors
    FRONTEND_URL: str = os.getenv("FRONTEND_URL", "http://localhost:3000")

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
