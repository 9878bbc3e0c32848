"""Read-only ports onto the collaborator services"""

from abc import ABC, abstractmethod
from typing import List, Sequence

from reservation_service.schemas.directory import TableInfo, UserPublic, RestaurantInfo


class DirectoryError(Exception):
    """A collaborator could not be reached or answered badly"""


class TableDirectory(ABC):
    """Tables of a restaurant"""

    @abstractmethod
    async def list(self, restaurant_id: str) -> List[TableInfo]:
        pass


class UserDirectory(ABC):
    """Public customer records"""

    @abstractmethod
    async def lookup(self, ids: Sequence[str]) -> List[UserPublic]:
        pass


class RestaurantDirectory(ABC):
    """Restaurant records"""

    @abstractmethod
    async def list(self) -> List[RestaurantInfo]:
        pass
