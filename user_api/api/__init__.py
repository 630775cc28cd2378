"""API package exports."""

from user_api.api.health import router as health_router
from user_api.api.middleware import CorrelationIdMiddleware
from user_api.api.users import router as users_router

__all__ = ["CorrelationIdMiddleware", "health_router", "users_router"]
