# async mongodb client for the backend api
# uses motor for non-blocking operations

import logging
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from moodwell.config import settings

logger = logging.getLogger(__name__)


class Database:
    """async mongodb connection manager"""

    def __init__(self):
        self.client: Optional[AsyncIOMotorClient] = None
        self.db: Optional[AsyncIOMotorDatabase] = None

    async def connect(self):
        """establish connection to mongodb"""
        if self.client is not None:
            return

        logger.info(f"Connecting to MongoDB database: {settings.MONGODB_DATABASE}")
        self.client = AsyncIOMotorClient(settings.MONGODB_URI, tz_aware=True)
        self.db = self.client[settings.MONGODB_DATABASE]

        # verify connection
        await self.client.admin.command("ping")
        await self.ensure_indexes()
        logger.info("MongoDB connection established")

    async def ensure_indexes(self):
        """one mood entry and one rating per user per day, reports listed newest first"""
        await self.mood_entries.create_index([("user_id", 1), ("date", 1)], unique=True)
        await self.mood_entries.create_index([("user_id", 1), ("created_at", -1)])
        await self.day_ratings.create_index([("user_id", 1), ("date", 1)], unique=True)
        await self.victories.create_index([("user_id", 1), ("created_at", -1)])
        await self.ai_reports.create_index([("user_id", 1), ("kind", 1), ("created_at", -1)])

    async def close(self):
        """close mongodb connection"""
        if self.client:
            self.client.close()
            self.client = None
            self.db = None
            logger.info("MongoDB connection closed")

    # collection accessors

    @property
    def users(self):
        return self.db["users"]

    @property
    def mood_entries(self):
        return self.db["mood_entries"]

    @property
    def day_ratings(self):
        return self.db["day_ratings"]

    @property
    def victories(self):
        return self.db["victories"]

    @property
    def ai_reports(self):
        return self.db["ai_reports"]


# singleton instance
db = Database()


async def get_db() -> Database:
    """dependency injection for database access"""
    return db
