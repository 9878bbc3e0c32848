"""Authentication schemas"""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel


class TokenPayload(BaseModel):
    """JWT access token payload, as issued by the identity service"""
    sub: str  # User ID
    email: Optional[str] = None
    roles: List[str] = []
    restaurantId: Optional[str] = None  # Staff restaurant assignment
    exp: datetime


class CurrentUser(BaseModel):
    """Authenticated caller"""
    user_id: str
    email: Optional[str] = None
    roles: List[str] = []
    restaurant_id: Optional[str] = None

    def has_role(self, *roles: str) -> bool:
        return any(role in self.roles for role in roles)
