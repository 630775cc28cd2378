"""Unit tests for request/response models."""

from datetime import datetime, timezone
from uuid import uuid4

import pytest
from pydantic import ValidationError

from user_api.models.auth import (
    PASSWORD_MAX_BYTES,
    AuthResponse,
    CreateUserRequest,
    LoginRequest,
    UpdateUserRequest,
)
from user_api.models.user import User


class TestCreateUserRequest:
    """Validation rules for account creation."""

    def test_accepts_camel_and_snake_case(self):
        camel = CreateUserRequest(
            email="A@Example.com", name="Ada", lastName="Lovelace", password="secret1",
            profileImage="ada.png",
        )
        snake = CreateUserRequest(
            email="a@example.com", name="Ada", last_name="Lovelace", password="secret1",
            profile_image="ada.png",
        )

        assert camel == snake
        assert camel.email == "a@example.com"

    @pytest.mark.parametrize(
        "overrides",
        [
            {"email": "nope"},
            {"password": "12345"},
            {"password": "       "},
            {"name": ""},
            {"password": "x" * 73},
            {"password": "\u00e9" * 40},
        ],
    )
    def test_rejects_invalid(self, overrides):
        fields = {"email": "a@example.com", "name": "Ada", "lastName": "L", "password": "secret1"}
        fields.update(overrides)

        with pytest.raises(ValidationError):
            CreateUserRequest(**fields)

    def test_password_at_bcrypt_limit_accepted(self):
        request = CreateUserRequest(
            email="a@example.com", name="Ada", lastName="L", password="x" * PASSWORD_MAX_BYTES
        )

        assert len(request.password) == PASSWORD_MAX_BYTES


class TestUpdateUserRequest:
    """Partial update semantics."""

    def test_changes_only_include_set_fields(self):
        patch = UpdateUserRequest(position="Lead", lastName="Byron")

        assert patch.changes() == {"position": "Lead", "last_name": "Byron"}

    def test_empty_patch(self):
        assert UpdateUserRequest().changes() == {}

    def test_explicit_null_optional_field_is_kept(self):
        assert UpdateUserRequest(company=None).changes() == {"company": None}

    @pytest.mark.parametrize("field", ["email", "name"])
    def test_required_fields_cannot_be_cleared(self, field):
        with pytest.raises(ValidationError):
            UpdateUserRequest(**{field: None})

    def test_password_longer_than_bcrypt_limit_rejected(self):
        with pytest.raises(ValidationError, match="72 bytes"):
            UpdateUserRequest(password="x" * 80)

    def test_cannot_set_active_or_roles(self):
        patch = UpdateUserRequest(isActive=False, roles=["admin"])

        assert patch.changes() == {}


class TestSerialization:
    """Wire format of responses."""

    def test_user_serializes_camel_case_without_password(self):
        now = datetime.now(timezone.utc)
        user = User(id=uuid4(), email="a@example.com", name="Ada", created_at=now, updated_at=now)

        body = AuthResponse(user=user, token="t").model_dump(by_alias=True, mode="json")

        assert set(body) == {"user", "token"}
        assert "lastName" in body["user"]
        assert "isActive" in body["user"]
        assert not any("password" in key.lower() for key in body["user"])

    def test_login_request_lowercases_email(self):
        assert LoginRequest(email="ADA@EXAMPLE.COM", password="secret1").email == "ada@example.com"
