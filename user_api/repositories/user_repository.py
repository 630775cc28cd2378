"""PostgreSQL user repository backed by the shared asyncpg pool."""

from datetime import datetime, timezone
from typing import Any, Optional
from uuid import UUID, uuid4

import asyncpg
import structlog

from user_api.database import get_pool
from user_api.exceptions import DuplicateKeyError, RepositoryError
from user_api.models.user import DEFAULT_ROLES, User
from user_api.repositories.base import UPDATABLE_FIELDS, parse_user_id

logger = structlog.get_logger(__name__)

# InterfaceError covers client-side failures such as a closing pool
_STORE_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError)

_USER_COLUMNS = (
    "id, email, name, last_name, is_active, roles, company, profile_image, "
    "position, created_at, updated_at"
)


def _row_to_user(row) -> User:
    return User(
        id=row["id"],
        email=row["email"],
        name=row["name"],
        last_name=row["last_name"],
        is_active=row["is_active"],
        roles=list(row["roles"]),
        company=row["company"],
        profile_image=row["profile_image"],
        position=row["position"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class PostgresUserRepository:
    """User CRUD against the ``users`` table.

    E-mail uniqueness is enforced by the ``users_email_lower_idx`` unique
    index, so concurrent inserts of the same address cannot both succeed.
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
    ) -> User:
        """Insert a new user row.

        Returns:
            Created User model

        Raises:
            DuplicateKeyError: If the e-mail is already registered
            RepositoryError: On any other database failure
        """
        user_id = uuid4()
        now = datetime.now(timezone.utc)

        pool = await get_pool()

        try:
            async with pool.acquire() as conn:
                await conn.execute(
                    """
                    INSERT INTO users (id, email, name, last_name, password_hash, is_active, roles,
                                       company, profile_image, position, created_at, updated_at)
                    VALUES ($1, $2, $3, $4, $5, TRUE, $6, $7, $8, $9, $10, $11)
                    """,
                    user_id,
                    email,
                    name,
                    last_name,
                    password_hash,
                    list(DEFAULT_ROLES),
                    company,
                    profile_image,
                    position,
                    now,
                    now,
                )
        except asyncpg.UniqueViolationError:
            raise DuplicateKeyError("email", email)
        except _STORE_ERRORS as e:
            raise RepositoryError(str(e)) from e

        logger.info("user_row_inserted", user_id=str(user_id))

        return User(
            id=user_id,
            email=email,
            name=name,
            last_name=last_name,
            is_active=True,
            roles=list(DEFAULT_ROLES),
            company=company,
            profile_image=profile_image,
            position=position,
            created_at=now,
            updated_at=now,
        )

    async def get_by_id(self, user_id: UUID | str) -> Optional[User]:
        """Get a user by id, or None if absent or not a UUID."""
        uid = parse_user_id(user_id)
        if uid is None:
            return None

        row = await self._fetchrow(
            f"SELECT {_USER_COLUMNS} FROM users WHERE id = $1",
            uid,
        )
        return _row_to_user(row) if row is not None else None

    async def get_by_email(self, email: str) -> Optional[tuple[User, str]]:
        """Get a user by e-mail (case-insensitive).

        Returns:
            Tuple of (User, password_hash) or None if not found
        """
        row = await self._fetchrow(
            f"SELECT {_USER_COLUMNS}, password_hash FROM users WHERE LOWER(email) = LOWER($1)",
            email,
        )
        if row is None:
            return None
        return _row_to_user(row), row["password_hash"]

    async def update_by_id(
        self, user_id: UUID | str, fields: dict[str, Any]
    ) -> Optional[User]:
        """Apply a partial update.

        Args:
            user_id: Id of the user to update
            fields: Column name to new value; keys must be in UPDATABLE_FIELDS

        Returns:
            Updated User model, or None if user not found

        Raises:
            DuplicateKeyError: If the new e-mail belongs to another user
        """
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update fields: {sorted(unknown)}")

        uid = parse_user_id(user_id)
        if uid is None:
            return None

        if not fields:
            return await self.get_by_id(uid)

        set_clauses = []
        params: list[Any] = []
        for idx, (column, value) in enumerate(fields.items(), start=1):
            set_clauses.append(f"{column} = ${idx}")
            params.append(value)

        params.append(datetime.now(timezone.utc))
        set_clauses.append(f"updated_at = ${len(params)}")
        params.append(uid)

        query = f"""
            UPDATE users
            SET {', '.join(set_clauses)}
            WHERE id = ${len(params)}
            RETURNING {_USER_COLUMNS}
        """

        try:
            row = await self._fetchrow(query, *params)
        except DuplicateKeyError:
            raise DuplicateKeyError("email", fields.get("email", ""))

        if row is None:
            return None

        logger.info(
            "user_row_updated",
            user_id=str(uid),
            fields_updated=sorted(fields),
        )
        return _row_to_user(row)

    async def delete_by_id(self, user_id: UUID | str) -> Optional[User]:
        """Hard-delete a user.

        Returns:
            The deleted User, or None if not found
        """
        uid = parse_user_id(user_id)
        if uid is None:
            return None

        row = await self._fetchrow(
            f"DELETE FROM users WHERE id = $1 RETURNING {_USER_COLUMNS}",
            uid,
        )
        if row is None:
            return None

        logger.info("user_row_deleted", user_id=str(uid))
        return _row_to_user(row)

    async def list_all(self) -> list[User]:
        """Return all users ordered by creation date."""
        pool = await get_pool()

        try:
            async with pool.acquire() as conn:
                rows = await conn.fetch(
                    f"SELECT {_USER_COLUMNS} FROM users ORDER BY created_at ASC, id ASC"
                )
        except _STORE_ERRORS as e:
            raise RepositoryError(str(e)) from e

        return [_row_to_user(row) for row in rows]

    async def _fetchrow(self, query: str, *params):
        pool = await get_pool()

        try:
            async with pool.acquire() as conn:
                return await conn.fetchrow(query, *params)
        except asyncpg.UniqueViolationError as e:
            raise DuplicateKeyError("email", str(e)) from e
        except _STORE_ERRORS as e:
            raise RepositoryError(str(e)) from e
