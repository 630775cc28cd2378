"""Services package exports."""

from user_api.services.auth_service import AuthService
from user_api.services.logging_service import configure_logging, get_logger
from user_api.services.user_service import AuthResult, UserService

__all__ = [
    "AuthResult",
    "AuthService",
    "UserService",
    "configure_logging",
    "get_logger",
]
