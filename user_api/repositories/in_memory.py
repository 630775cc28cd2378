"""Process-local user repository for tests and local development."""

import asyncio
from datetime import datetime, timezone
from typing import Any, Optional
from uuid import UUID, uuid4

from user_api.exceptions import DuplicateKeyError
from user_api.models.user import DEFAULT_ROLES, User
from user_api.repositories.base import UPDATABLE_FIELDS, parse_user_id


class InMemoryUserRepository:
    """Dict-backed repository with the same semantics as the Postgres one.

    A single asyncio lock makes the e-mail uniqueness check and the write one
    atomic step, mirroring the unique index in the database.
    """

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._users: dict[UUID, User] = {}
        self._hashes: dict[UUID, str] = {}

    def _email_taken(self, email: str, exclude: Optional[UUID] = None) -> bool:
        wanted = email.lower()
        return any(
            u.email.lower() == wanted and u.id != exclude for u in self._users.values()
        )

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
        async with self._lock:
            if self._email_taken(email):
                raise DuplicateKeyError("email", email)

            now = datetime.now(timezone.utc)
            user = User(
                id=uuid4(),
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
            self._users[user.id] = user
            self._hashes[user.id] = password_hash
            return user.model_copy(deep=True)

    async def get_by_id(self, user_id: UUID | str) -> Optional[User]:
        uid = parse_user_id(user_id)
        user = self._users.get(uid) if uid is not None else None
        return user.model_copy(deep=True) if user is not None else None

    async def get_by_email(self, email: str) -> Optional[tuple[User, str]]:
        wanted = email.lower()
        for user in self._users.values():
            if user.email.lower() == wanted:
                return user.model_copy(deep=True), self._hashes[user.id]
        return None

    async def update_by_id(
        self, user_id: UUID | str, fields: dict[str, Any]
    ) -> Optional[User]:
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update fields: {sorted(unknown)}")

        uid = parse_user_id(user_id)
        async with self._lock:
            current = self._users.get(uid) if uid is not None else None
            if current is None:
                return None
            if not fields:
                return current.model_copy(deep=True)

            if "email" in fields and self._email_taken(fields["email"], exclude=uid):
                raise DuplicateKeyError("email", fields["email"])

            changes = dict(fields)
            password_hash = changes.pop("password_hash", None)
            if password_hash is not None:
                self._hashes[uid] = password_hash

            updated = current.model_copy(
                update={**changes, "updated_at": datetime.now(timezone.utc)},
                deep=True,
            )
            self._users[uid] = updated
            return updated.model_copy(deep=True)

    async def delete_by_id(self, user_id: UUID | str) -> Optional[User]:
        uid = parse_user_id(user_id)
        async with self._lock:
            if uid is None or uid not in self._users:
                return None
            self._hashes.pop(uid, None)
            return self._users.pop(uid)

    async def list_all(self) -> list[User]:
        users = sorted(self._users.values(), key=lambda u: (u.created_at, str(u.id)))
        return [u.model_copy(deep=True) for u in users]
