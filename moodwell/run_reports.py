# manual trigger for the weekly report pass
# same code path as the scheduler, useful after downtime or for testing
# run: python -m moodwell.run_reports

import asyncio
import logging

from moodwell.services.db import db
from moodwell.services.content_generator import get_content_generator
from moodwell.services.scheduler import run_scheduled_pass

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)


async def run():
    """connect, run one weekly pass for every user, disconnect"""
    await db.connect()
    try:
        summary = await run_scheduled_pass(db, get_content_generator())
        logger.info(f"Manual weekly pass complete: {summary}")
    finally:
        await db.close()


if __name__ == "__main__":
    asyncio.run(run())
