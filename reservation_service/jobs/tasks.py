"""Background job tasks"""

import asyncio
import structlog

from reservation_service.jobs.celery_app import celery_app
from reservation_service.jobs.reaper import ExpiryReaper

logger = structlog.get_logger()


def run_async(coro):
    """Helper to run async functions in sync context"""
    return asyncio.run(coro)


@celery_app.task(name="expire_pending_reservations")
def expire_pending_reservations() -> int:
    """Cancel PENDING reservations older than the configured TTL"""
    logger.info("Expiring pending reservations")

    async def _expire():
        from reservation_service.database import engine

        try:
            return await ExpiryReaper().run_once()
        finally:
            # Pooled connections are bound to this task's event loop
            await engine.dispose()

    return run_async(_expire())
