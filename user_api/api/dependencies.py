"""FastAPI dependencies for authentication and authorization."""

from typing import Optional
from uuid import UUID

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from user_api.exceptions import ForbiddenError, UnauthenticatedError
from user_api.models.user import User
from user_api.services.user_service import UserService

# auto_error=False so a missing or non-Bearer header reaches get_current_user
# and is reported as 401 rather than FastAPI's default 403.
bearer_scheme = HTTPBearer(auto_error=False)


def get_user_service() -> UserService:
    """Get a UserService bound to the configured repository."""
    return UserService()


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    user_service: UserService = Depends(get_user_service),
) -> User:
    """Extract and validate the current user from a JWT Bearer token.

    Args:
        credentials: Bearer token from Authorization header, if well formed

    Returns:
        Authenticated, active User

    Raises:
        UnauthenticatedError: If no token is given, the token is invalid or
            expired, or the user is missing or inactive
    """
    if credentials is None:
        raise UnauthenticatedError("No token provided")

    return await user_service.authenticate(credentials.credentials)


def ensure_account_owner(identity: User, target_id: str) -> None:
    """Allow only the account's own identity through.

    Raises:
        ForbiddenError: If the target id is not the authenticated user's id
    """
    try:
        same = UUID(target_id) == identity.id
    except ValueError:
        same = False

    if not same:
        raise ForbiddenError("You can only modify your own account")


async def require_account_owner(
    user_id: str,
    current_user: User = Depends(get_current_user),
) -> User:
    """Require the authenticated user to own the account in the path.

    Returns:
        The authenticated User
    """
    ensure_account_owner(current_user, user_id)
    return current_user
