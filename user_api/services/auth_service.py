"""Authentication service for JWT tokens and password hashing."""

from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
import structlog

from user_api.config import get_settings
from user_api.exceptions import (
    TokenExpiredError,
    TokenInvalidError,
    TokenMalformedError,
)
from user_api.models.auth import PASSWORD_MAX_BYTES

logger = structlog.get_logger(__name__)

# Constants
JWT_ALGORITHM = "HS256"
REQUIRED_CLAIMS = ("id", "iat", "exp")


class AuthService:
    """Password hashing and stateless access token issue/verification.

    The signing secret and token lifetime come from the process settings
    unless passed in explicitly.
    """

    def __init__(
        self,
        secret: Optional[str] = None,
        expire_minutes: Optional[int] = None,
    ):
        settings = get_settings()
        self.secret = secret if secret is not None else settings.jwt_secret
        self.expire_minutes = (
            expire_minutes if expire_minutes is not None else settings.jwt_expire_minutes
        )

    def hash_password(self, password: str) -> str:
        """Hash a password using bcrypt.

        Args:
            password: Plain-text password to hash

        Returns:
            Bcrypt hash string

        Raises:
            ValueError: If the password is longer than bcrypt accepts
        """
        encoded = password.encode("utf-8")
        if len(encoded) > PASSWORD_MAX_BYTES:
            raise ValueError(f"Password exceeds {PASSWORD_MAX_BYTES} bytes")

        salt = bcrypt.gensalt()
        hashed = bcrypt.hashpw(encoded, salt)
        return hashed.decode("utf-8")

    def verify_password(self, password: str, password_hash: str) -> bool:
        """Verify a password against a bcrypt hash.

        A stored hash that is not a valid bcrypt string never matches, and
        neither does a password too long to have been hashed.

        Args:
            password: Plain-text password to check
            password_hash: Bcrypt hash to verify against

        Returns:
            True if the password matches, False otherwise
        """
        encoded = password.encode("utf-8")
        if len(encoded) > PASSWORD_MAX_BYTES:
            return False

        try:
            return bcrypt.checkpw(encoded, password_hash.encode("utf-8"))
        except ValueError:
            logger.warning("malformed_password_hash")
            return False

    def create_access_token(self, user_id: str) -> str:
        """Create a signed JWT access token.

        Args:
            user_id: User id as string (placed in the 'id' claim)

        Returns:
            Encoded JWT string
        """
        now = datetime.now(timezone.utc)
        payload = {
            "id": user_id,
            "iat": now,
            "exp": now + timedelta(minutes=self.expire_minutes),
        }
        token = jwt.encode(payload, self.secret, algorithm=JWT_ALGORITHM)
        logger.debug(
            "access_token_created",
            user_id=user_id,
            expires_minutes=self.expire_minutes,
        )
        return token

    def validate_access_token(self, token: str) -> dict:
        """Decode and validate a JWT access token.

        Args:
            token: Encoded JWT string

        Returns:
            Decoded payload dict with id, iat, exp

        Raises:
            TokenExpiredError: If the token is past its expiry
            TokenInvalidError: If the signature or claims do not check out
            TokenMalformedError: If the token cannot be parsed
        """
        try:
            return jwt.decode(
                token,
                self.secret,
                algorithms=[JWT_ALGORITHM],
                options={"require": list(REQUIRED_CLAIMS)},
            )
        except jwt.ExpiredSignatureError:
            raise TokenExpiredError("Access token has expired")
        # InvalidSignatureError subclasses DecodeError, so it must come first
        except jwt.InvalidSignatureError as e:
            raise TokenInvalidError(f"Invalid access token: {e}")
        except jwt.DecodeError as e:
            raise TokenMalformedError(f"Malformed access token: {e}")
        except jwt.InvalidTokenError as e:
            raise TokenInvalidError(f"Invalid access token: {e}")
