"""User persistence backends."""

from functools import lru_cache

from user_api.config import get_settings
from user_api.repositories.base import UPDATABLE_FIELDS, UserRepository
from user_api.repositories.in_memory import InMemoryUserRepository
from user_api.repositories.user_repository import PostgresUserRepository


@lru_cache
def get_user_repository() -> UserRepository:
    """Get the process-wide repository for the configured storage backend."""
    if get_settings().storage_backend == "memory":
        return InMemoryUserRepository()
    return PostgresUserRepository()


__all__ = [
    "InMemoryUserRepository",
    "PostgresUserRepository",
    "UPDATABLE_FIELDS",
    "UserRepository",
    "get_user_repository",
]
