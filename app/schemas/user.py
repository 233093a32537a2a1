from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_serializer

from app.models.user import User
from app.schemas.saved_business import saved_business_to_dict


class RegisterRequest(BaseModel):
    """Request for POST /auth/register. Fields are validated in the router for friendly 400s."""
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class UserRead(BaseModel):
    """Public user profile; password hash is never included."""
    id: UUID
    name: str
    email: str
    is_guest: bool = Field(default=False, serialization_alias="isGuest")
    created_at: Optional[datetime] = Field(default=None, serialization_alias="createdAt")
    saved_businesses: list[dict[str, Any]] = Field(default_factory=list, serialization_alias="savedBusinesses")

    @field_serializer("id")
    def _serialize_id(self, value: UUID) -> str:
        return str(value)

    @classmethod
    def from_user(cls, user: User) -> "UserRead":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            is_guest=bool(user.is_guest),
            created_at=user.created_at,
            saved_businesses=[saved_business_to_dict(row) for row in user.saved_businesses],
        )


class AuthResponse(BaseModel):
    """Response for register and login."""
    user: UserRead
    token: str


class ProfileResponse(BaseModel):
    user: UserRead
