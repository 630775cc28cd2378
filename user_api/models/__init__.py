"""Models package exports."""

from user_api.models.auth import (
    AuthResponse,
    CreateUserRequest,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    TokenCheckResponse,
    UpdateUserRequest,
)
from user_api.models.user import DEFAULT_ROLES, User

__all__ = [
    "AuthResponse",
    "CreateUserRequest",
    "DEFAULT_ROLES",
    "LoginRequest",
    "MessageResponse",
    "RegisterRequest",
    "TokenCheckResponse",
    "UpdateUserRequest",
    "User",
]
