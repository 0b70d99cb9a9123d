"""API token management schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from app.schemas.common import APIModel


class ApiTokenCreateRequest(BaseModel):
    """Issue another token for the calling member."""

    name: str = Field(min_length=1, max_length=255)


class ApiTokenResponse(APIModel):
    """Stored token metadata; the plaintext is never returned again."""

    id: UUID
    name: str
    member_id: UUID
    created_at: datetime
    revoked_at: datetime | None = None
