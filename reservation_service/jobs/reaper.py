"""Expiry reaper: cancels PENDING reservations nobody acted on in time"""

import asyncio
from datetime import datetime, timedelta
from typing import Callable, Optional

import structlog

from reservation_service.config import settings
from reservation_service.database import SessionLocal, utcnow
from reservation_service.services.store import ReservationStore

logger = structlog.get_logger()


class ExpiryReaper:
    """
    Periodic sweep with an explicit start/stop lifecycle. Each sweep is one
    conditional bulk UPDATE, so a reservation confirmed or rejected since the
    last read is never touched. Expiry does not promote the waitlist.

    Run a single active reaper per deployment: either in the API process
    (settings.reaper_enabled) or through the Celery beat task.
    """

    def __init__(
        self,
        session_factory=None,
        ttl_minutes: Optional[int] = None,
        interval_seconds: Optional[float] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.session_factory = session_factory or SessionLocal
        self.ttl_minutes = ttl_minutes if ttl_minutes is not None else settings.pending_ttl_minutes
        self.interval_seconds = (
            interval_seconds if interval_seconds is not None else settings.reaper_interval_seconds
        )
        self.clock = clock
        self._task: Optional[asyncio.Task] = None
        self._stopping: Optional[asyncio.Event] = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self, now: Optional[datetime] = None) -> int:
        """Cancel PENDING reservations created before now - ttl; returns how many"""
        cutoff = (now or self.clock()) - timedelta(minutes=self.ttl_minutes)

        async with self.session_factory() as db:
            count = await ReservationStore(db).expire_pending(cutoff)
            await db.commit()

        if count > 0:
            logger.info(
                "Auto-cancelled expired pending reservations",
                count=count,
                ttl_minutes=self.ttl_minutes,
            )
        return count

    def start(self) -> None:
        if self.is_running:
            return
        self._stopping = asyncio.Event()
        self._task = asyncio.create_task(self._loop())
        logger.info("Expiry reaper started", interval_seconds=self.interval_seconds)

    async def stop(self) -> None:
        if not self.is_running:
            return
        self._stopping.set()
        await self._task
        self._task = None
        logger.info("Expiry reaper stopped")

    async def _loop(self) -> None:
        while not self._stopping.is_set():
            try:
                await self.run_once()
            except Exception as e:
                logger.error("Expiry sweep failed", error=str(e))

            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=self.interval_seconds)
            except asyncio.TimeoutError:
                pass
