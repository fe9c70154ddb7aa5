"""Pydantic model for API keys and their usage counters."""

import uuid
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_RATE_LIMIT = 100


class ApiKey(BaseModel):
    """API key document.

    Stored with camelCase field names and ``_id``; rendered over HTTP with the
    snake_case field names (``model_dump()`` without ``by_alias``).
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), alias="_id")
    user_id: str = Field(..., alias="userId", description="Owning user ID")
    name: str = Field(..., min_length=1, description="Label chosen by the owner")
    key: str = Field(..., min_length=1, description="Opaque secret key value")
    usage: int = Field(default=0, ge=0, description="Admitted requests so far")
    rate_limit: int = Field(
        default=DEFAULT_RATE_LIMIT,
        gt=0,
        alias="rateLimit",
        description="Maximum number of admitted requests",
    )
    last_used: datetime | None = Field(
        default=None, alias="lastUsed", description="Time of the last admission"
    )
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        alias="createdAt",
        description="When the key was issued",
    )
    updated_at: datetime | None = Field(
        default=None, alias="updatedAt", description="Last name/key edit"
    )

    @field_validator("usage", mode="before")
    @classmethod
    def default_null_usage(cls, value):
        return 0 if value is None else value

    @field_validator("rate_limit", mode="before")
    @classmethod
    def default_unset_rate_limit(cls, value):
        # Records written without a ceiling store null or 0
        return DEFAULT_RATE_LIMIT if value is None or value == 0 else value
