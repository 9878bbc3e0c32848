"""HTTP clients for the table, identity and restaurant services"""

from typing import Dict, List, Optional, Sequence

import httpx
import structlog
from pydantic import TypeAdapter, ValidationError

from reservation_service.config import settings
from reservation_service.directory.base import (
    DirectoryError,
    TableDirectory,
    UserDirectory,
    RestaurantDirectory,
)
from reservation_service.schemas.directory import TableInfo, UserPublic, RestaurantInfo

logger = structlog.get_logger()

_tables = TypeAdapter(List[TableInfo])
_users = TypeAdapter(List[UserPublic])
_restaurants = TypeAdapter(List[RestaurantInfo])


class HttpDirectory:
    """Shared request handling for the collaborator clients"""

    def __init__(
        self,
        base_url: str,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.headers = headers or {}
        self.timeout = timeout or settings.directory_timeout_seconds
        self.transport = transport

    async def _request(self, method: str, path: str, adapter: TypeAdapter, **kwargs):
        url = f"{self.base_url}{path}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.request(method, url, headers=self.headers, **kwargs)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as e:
            raise DirectoryError(f"{method} {url} failed: {e}") from e
        except ValueError as e:
            raise DirectoryError(f"{method} {url} returned invalid JSON") from e

        try:
            return adapter.validate_python(data or [])
        except ValidationError as e:
            raise DirectoryError(f"{method} {url} returned an unexpected payload") from e


class HttpTableDirectory(HttpDirectory, TableDirectory):
    """GET /tables?restaurantId="""

    async def list(self, restaurant_id: str) -> List[TableInfo]:
        return await self._request(
            "GET", "/tables", _tables, params={"restaurantId": restaurant_id}
        )


class HttpUserDirectory(HttpDirectory, UserDirectory):
    """POST /users/public-by-ids"""

    async def lookup(self, ids: Sequence[str]) -> List[UserPublic]:
        if not ids:
            return []
        return await self._request(
            "POST", "/users/public-by-ids", _users, json={"ids": list(ids)}
        )


class HttpRestaurantDirectory(HttpDirectory, RestaurantDirectory):
    """GET /restaurants"""

    async def list(self) -> List[RestaurantInfo]:
        return await self._request("GET", "/restaurants", _restaurants)
