"""Bearer token authentication and role checks"""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pydantic import ValidationError

from reservation_service.config import settings
from reservation_service.schemas.auth import CurrentUser, TokenPayload

# Tokens are issued by the identity service; this service only verifies them
bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
) -> CurrentUser:
    """Get current authenticated user from token"""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if credentials is None:
        raise credentials_exception

    try:
        payload = jwt.decode(
            credentials.credentials,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
        token = TokenPayload(**payload)
    except (JWTError, ValidationError):
        raise credentials_exception

    return CurrentUser(
        user_id=token.sub,
        email=token.email,
        roles=token.roles,
        restaurant_id=token.restaurantId,
    )


def require_role(*roles: str):
    """Dependency factory for role-based access control"""
    async def role_checker(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if not current_user.has_role(*roles):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return current_user
    return role_checker
