"""Repository contract consumed by the account service."""

from typing import Any, Optional, Protocol
from uuid import UUID

from user_api.models.user import User

# Columns an update may touch. Anything else in an update dict is a bug.
UPDATABLE_FIELDS = frozenset(
    {
        "email",
        "name",
        "last_name",
        "password_hash",
        "company",
        "profile_image",
        "position",
        "is_active",
        "roles",
    }
)


def parse_user_id(user_id: UUID | str) -> Optional[UUID]:
    """Coerce an opaque id to a UUID; ids that are not UUIDs never resolve."""
    if isinstance(user_id, UUID):
        return user_id
    try:
        return UUID(str(user_id))
    except ValueError:
        return None


class UserRepository(Protocol):
    """Persistence boundary for user accounts.

    Lookups return ``None`` when nothing matches. ``insert`` and
    ``update_by_id`` raise ``DuplicateKeyError`` on an e-mail collision;
    other backing-store failures raise ``RepositoryError``.
    """

    async def insert(
        self,
        *,
        email: str,
        name: str,
        password_hash: str,
        last_name: Optional[str] = None,
        company: Optional[str] = None,
        profile_image: Optional[str] = None,
        position: Optional[str] = None,
    ) -> User: ...

    async def get_by_id(self, user_id: UUID | str) -> Optional[User]: ...

    async def get_by_email(self, email: str) -> Optional[tuple[User, str]]: ...

    async def update_by_id(
        self, user_id: UUID | str, fields: dict[str, Any]
    ) -> Optional[User]: ...

    async def delete_by_id(self, user_id: UUID | str) -> Optional[User]: ...

    async def list_all(self) -> list[User]: ...
