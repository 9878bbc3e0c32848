"""Per-table exclusive leases held across the table-assignment check and commit"""

import asyncio
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import Dict, Tuple

import structlog
from redis.asyncio import Redis
from redis.exceptions import LockError

from reservation_service.config import settings

logger = structlog.get_logger()


class LeaseTimeout(Exception):
    """The table lease could not be acquired in time"""


class TableLeases(ABC):
    """Exclusive access to one (restaurant, table) pair at a time"""

    @abstractmethod
    def hold(self, restaurant_id: str, table_id: str, timeout: float):
        """Async context manager; raises LeaseTimeout if not acquired within timeout"""
        pass


class MemoryTableLeases(TableLeases):
    """asyncio locks; exclusive within one process only"""

    def __init__(self):
        self._locks: Dict[Tuple[str, str], asyncio.Lock] = {}

    @asynccontextmanager
    async def hold(self, restaurant_id: str, table_id: str, timeout: float):
        lock = self._locks.setdefault((restaurant_id, table_id), asyncio.Lock())
        acquired = False

        async def acquire():
            nonlocal acquired
            await lock.acquire()
            acquired = True

        try:
            await asyncio.wait_for(acquire(), timeout=timeout)
        except (asyncio.TimeoutError, asyncio.CancelledError) as e:
            # wait_for may time out after the lock was already taken
            if acquired:
                lock.release()
            if isinstance(e, asyncio.CancelledError):
                raise
            raise LeaseTimeout(f"table {table_id} is busy")
        try:
            yield
        finally:
            lock.release()


class RedisTableLeases(TableLeases):
    """Redis locks with a TTL, shared by every API instance"""

    def __init__(self, redis_url: str, ttl_seconds: int):
        self.client = Redis.from_url(redis_url, decode_responses=True)
        self.ttl_seconds = ttl_seconds

    @asynccontextmanager
    async def hold(self, restaurant_id: str, table_id: str, timeout: float):
        lock = self.client.lock(
            f"table-lease:{restaurant_id}:{table_id}",
            timeout=self.ttl_seconds,
            blocking_timeout=timeout,
        )
        if not await lock.acquire():
            raise LeaseTimeout(f"table {table_id} is busy")
        try:
            yield
        finally:
            try:
                await lock.release()
            except LockError:
                # TTL ran out before release; the commit already finished or failed
                logger.warning("Table lease expired before release", table_id=table_id)

    async def ping(self) -> bool:
        return await self.client.ping()


@lru_cache()
def get_table_leases() -> TableLeases:
    """Process-wide lease registry chosen by settings.table_lease_backend"""
    if settings.table_lease_backend == "redis":
        return RedisTableLeases(settings.redis_url, settings.table_lease_ttl_seconds)
    return MemoryTableLeases()
