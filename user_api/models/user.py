"""User account model."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

DEFAULT_ROLES = ("user",)


class User(BaseModel):
    """A registered account.

    Deliberately has no password field: the hash is only ever handed out by
    the repository as a separate value, so serializing a ``User`` can never
    leak it.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: UUID
    email: str
    name: str
    last_name: Optional[str] = None
    is_active: bool = True
    roles: list[str] = Field(default_factory=lambda: list(DEFAULT_ROLES))
    company: Optional[str] = None
    profile_image: Optional[str] = None
    position: Optional[str] = None
    created_at: datetime
    updated_at: datetime
