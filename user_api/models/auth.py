"""Account request and response models with validation."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from user_api.models.user import User

PASSWORD_MIN_LENGTH = 6

# bcrypt only hashes the first 72 bytes and newer releases reject longer input
PASSWORD_MAX_BYTES = 72


def _check_password(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    if not v.strip():
        raise ValueError("Password cannot be empty or whitespace only")
    if len(v.encode("utf-8")) > PASSWORD_MAX_BYTES:
        raise ValueError(f"Password cannot be longer than {PASSWORD_MAX_BYTES} bytes")
    return v


class _CamelModel(BaseModel):
    """Accepts both camelCase (wire) and snake_case field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LoginRequest(_CamelModel):
    """Login credentials.

    Attributes:
        email: Account e-mail address
        password: Plain-text password (min 6 chars)
    """

    email: EmailStr
    password: str = Field(..., min_length=PASSWORD_MIN_LENGTH)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """E-mail addresses are compared case-insensitively."""
        return v.lower()


class RegisterRequest(_CamelModel):
    """Self-service registration request.

    Attributes:
        email: Unique e-mail address
        name: Display name
        last_name: Family name
        password: Plain-text password (min 6 chars)
    """

    email: EmailStr
    name: str = Field(..., min_length=1, max_length=255)
    last_name: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=PASSWORD_MIN_LENGTH)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """E-mail addresses are compared case-insensitively."""
        return v.lower()

    @field_validator("password")
    @classmethod
    def password_not_empty(cls, v: str) -> str:
        """Ensure password is not blank and fits in a bcrypt hash."""
        return _check_password(v)


class CreateUserRequest(RegisterRequest):
    """Account creation request with the optional profile fields."""

    company: Optional[str] = Field(default=None, max_length=255)
    profile_image: Optional[str] = None
    position: Optional[str] = Field(default=None, max_length=255)


class UpdateUserRequest(_CamelModel):
    """Partial update of an account.

    All fields are optional; only fields present in the request body are
    applied. Active flag and roles are not editable here.
    """

    email: Optional[EmailStr] = None
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    last_name: Optional[str] = Field(default=None, max_length=255)
    password: Optional[str] = Field(default=None, min_length=PASSWORD_MIN_LENGTH)
    company: Optional[str] = Field(default=None, max_length=255)
    profile_image: Optional[str] = None
    position: Optional[str] = Field(default=None, max_length=255)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: Optional[str]) -> Optional[str]:
        return v.lower() if v is not None else v

    @field_validator("password")
    @classmethod
    def password_not_empty(cls, v: Optional[str]) -> Optional[str]:
        """Same password rules as registration, when provided."""
        return _check_password(v)

    @field_validator("email", "name")
    @classmethod
    def not_null(cls, v):
        """Required account fields may be changed but not cleared."""
        if v is None:
            raise ValueError("Field cannot be null")
        return v

    def changes(self) -> dict:
        """Fields explicitly set by the client, keyed by field name."""
        return self.model_dump(exclude_unset=True)


class AuthResponse(_CamelModel):
    """An account together with a freshly issued access token."""

    user: User
    token: str


class TokenCheckResponse(AuthResponse):
    """Result of a token check: the token was valid and has been renewed."""

    status: str = "valid"


class MessageResponse(BaseModel):
    """Human-readable confirmation of a mutation."""

    message: str
