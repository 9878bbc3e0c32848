"""Collaborator directories (tables, users, restaurants)"""

from reservation_service.directory.base import (
    DirectoryError,
    TableDirectory,
    UserDirectory,
    RestaurantDirectory,
)
from reservation_service.directory.http import (
    HttpTableDirectory,
    HttpUserDirectory,
    HttpRestaurantDirectory,
)

__all__ = [
    "DirectoryError",
    "TableDirectory",
    "UserDirectory",
    "RestaurantDirectory",
    "HttpTableDirectory",
    "HttpUserDirectory",
    "HttpRestaurantDirectory",
]
