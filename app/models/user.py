"""Pydantic models for dashboard user accounts stored in MongoDB."""

import uuid
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field


def normalize_email(email: str) -> str:
    """Canonical form used for storage and lookup."""
    return email.strip().lower()


class User(BaseModel):
    """User document with bcrypt password hash."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), alias="_id")
    email: str = Field(..., description="Lowercased, trimmed email address")
    password_hash: str = Field(
        ..., alias="passwordHash", description="bcrypt hash of the password"
    )
    name: str | None = Field(default=None, description="Optional display name")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        alias="createdAt",
        description="When the account was created",
    )

    def public(self) -> "UserPublic":
        """Representation safe to return over HTTP."""
        return UserPublic(
            id=self.id, email=self.email, name=self.name, created_at=self.created_at
        )


class UserPublic(BaseModel):
    """User as returned by the auth endpoints."""

    id: str
    email: str
    name: str | None = None
    created_at: datetime
