"""Account management: creation, login, lookups and the auth gate core."""

from dataclasses import dataclass
from typing import Optional
from uuid import UUID

import structlog

from user_api.exceptions import (
    DuplicateAccountError,
    DuplicateKeyError,
    InternalFailureError,
    InvalidCredentialsError,
    RepositoryError,
    TokenError,
    UnauthenticatedError,
    UserNotFoundError,
)
from user_api.models.auth import (
    CreateUserRequest,
    RegisterRequest,
    UpdateUserRequest,
)
from user_api.models.user import User
from user_api.repositories import get_user_repository
from user_api.repositories.base import UserRepository
from user_api.services.auth_service import AuthService

logger = structlog.get_logger(__name__)

# Checked against when the e-mail is unknown so both login failure paths
# pay for one bcrypt comparison.
_dummy_hash: Optional[str] = None


@dataclass
class AuthResult:
    """An account and a token issued for it."""

    user: User
    token: str


class UserService:
    """Service for account CRUD and authentication."""

    def __init__(
        self,
        repository: Optional[UserRepository] = None,
        auth_service: Optional[AuthService] = None,
    ):
        self.repository = repository if repository is not None else get_user_repository()
        self.auth_service = auth_service or AuthService()

    async def create(self, request: CreateUserRequest | RegisterRequest) -> User:
        """Create a new account with a hashed password.

        Args:
            request: Validated account fields including the plain-text password

        Returns:
            Created User model (never carries the password)

        Raises:
            DuplicateAccountError: If the e-mail is already registered
            InternalFailureError: If the repository fails unexpectedly
        """
        password_hash = self.auth_service.hash_password(request.password)
        fields = request.model_dump(exclude={"password"})

        try:
            user = await self.repository.insert(password_hash=password_hash, **fields)
        except DuplicateKeyError:
            logger.info("user_create_duplicate", email=request.email)
            raise DuplicateAccountError(f"{request.email} already exists")
        except RepositoryError as e:
            logger.error("user_create_failed", email=request.email, error=str(e))
            raise InternalFailureError()

        logger.info("user_created", user_id=str(user.id), email=user.email)
        return user

    async def register(self, request: RegisterRequest) -> AuthResult:
        """Create an account and authenticate it in one step."""
        user = await self.create(request)
        return AuthResult(user=user, token=self.auth_service.create_access_token(str(user.id)))

    async def login(self, email: str, password: str) -> AuthResult:
        """Check credentials and issue a token.

        Unknown e-mail and wrong password fail identically.

        Raises:
            InvalidCredentialsError: If the credentials do not match an account
        """
        result = await self._call(self.repository.get_by_email(email))

        if result is None:
            self.auth_service.verify_password(password, self._get_dummy_hash())
            logger.warning("login_failed", reason="unknown_email")
            raise InvalidCredentialsError()

        user, password_hash = result

        if not self.auth_service.verify_password(password, password_hash):
            logger.warning("login_failed", reason="bad_password", user_id=str(user.id))
            raise InvalidCredentialsError()

        logger.info("user_logged_in", user_id=str(user.id))
        return AuthResult(user=user, token=self.auth_service.create_access_token(str(user.id)))

    def refresh_token(self, user: User) -> AuthResult:
        """Issue a new token for an already authenticated account."""
        return AuthResult(user=user, token=self.auth_service.create_access_token(str(user.id)))

    async def find_by_id(self, user_id: UUID | str) -> User:
        """Get an account by id.

        Raises:
            UserNotFoundError: If no account has this id
        """
        user = await self._call(self.repository.get_by_id(user_id))
        if user is None:
            raise UserNotFoundError()
        return user

    async def list_all(self) -> list[User]:
        """Return every account, oldest first."""
        return await self._call(self.repository.list_all())

    async def update(self, user_id: UUID | str, request: UpdateUserRequest) -> str:
        """Merge the explicitly set fields into an existing account.

        Returns:
            Confirmation message naming the user

        Raises:
            UserNotFoundError: If no account has this id
            DuplicateAccountError: If the new e-mail belongs to another account
        """
        changes = request.changes()
        password = changes.pop("password", None)
        if password is not None:
            changes["password_hash"] = self.auth_service.hash_password(password)

        try:
            user = await self._call(self.repository.update_by_id(user_id, changes))
        except DuplicateKeyError:
            raise DuplicateAccountError(f"{changes.get('email')} already exists")

        if user is None:
            raise UserNotFoundError()

        logger.info(
            "user_updated",
            user_id=str(user.id),
            fields_updated=sorted(changes),
        )
        return f"User {user.name} updated"

    async def remove(self, user_id: UUID | str) -> str:
        """Delete an account.

        Returns:
            Confirmation message naming the user

        Raises:
            UserNotFoundError: If no account has this id
        """
        user = await self._call(self.repository.delete_by_id(user_id))
        if user is None:
            raise UserNotFoundError()

        logger.info("user_deleted", user_id=str(user.id))
        return f"User {user.name} deleted"

    async def authenticate(self, token: str) -> User:
        """Resolve a bearer token to an active account.

        Raises:
            UnauthenticatedError: If the token does not verify, or its
                subject no longer exists or is inactive
        """
        try:
            payload = self.auth_service.validate_access_token(token)
        except TokenError as e:
            logger.info("token_rejected", reason=type(e).__name__)
            raise UnauthenticatedError("Invalid or expired token")

        user = await self._call(self.repository.get_by_id(str(payload["id"])))

        if user is None:
            raise UnauthenticatedError("User does not exist")

        if not user.is_active:
            raise UnauthenticatedError("User is not active")

        return user

    def _get_dummy_hash(self) -> str:
        global _dummy_hash
        if _dummy_hash is None:
            _dummy_hash = self.auth_service.hash_password("not-a-real-password")
        return _dummy_hash

    async def _call(self, awaitable):
        """Await a repository call, mapping store failures to InternalFailureError."""
        try:
            return await awaitable
        except RepositoryError as e:
            if isinstance(e, DuplicateKeyError):
                raise
            logger.error("repository_call_failed", error=str(e))
            raise InternalFailureError()
