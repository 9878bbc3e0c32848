"""Records returned by the collaborator services"""

from typing import List, Optional
from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class DirectoryModel(BaseModel):
    """camelCase on the wire, like the upstream services"""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        extra = "ignore"


class TableInfo(DirectoryModel):
    """Physical table (table service)"""
    id: str
    restaurant_id: str
    table_number: str
    capacity: int
    is_active: bool = True


class UserPublic(DirectoryModel):
    """Public customer record (identity service)"""
    id: str
    full_name: Optional[str] = None
    email: Optional[str] = None
    phone_number: Optional[str] = None


class RestaurantInfo(DirectoryModel):
    """Restaurant record (restaurant service)"""
    id: str
    name: str
    address: Optional[str] = None
    phone: Optional[str] = None
    is_active: Optional[bool] = None
    open_time: Optional[str] = None
    close_time: Optional[str] = None
    open_days: List[str] = []
