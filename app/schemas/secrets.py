"""Secret request and response schemas.

Envelope fields are validated for shape only. The service cannot and does not
check that they decrypt.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from app.schemas.common import APIModel
from app.services.access import ExpirationOption, SecretState
from app.services.audit import AccessAction

MAX_CIPHERTEXT_LENGTH = 65_536

IV_PATTERN = r"^[A-Za-z0-9+/]{16}$"
SALT_PATTERN = r"^[A-Za-z0-9+/]{22}==$"
KEY_HASH_PATTERN = r"^[A-Za-z0-9+/]{43}=$"
CIPHERTEXT_PATTERN = r"^[A-Za-z0-9+/]+={0,2}$"


class EnvelopePayload(APIModel):
    """Client-produced AES-GCM envelope."""

    ciphertext: str = Field(
        min_length=1, max_length=MAX_CIPHERTEXT_LENGTH, pattern=CIPHERTEXT_PATTERN
    )
    iv: str = Field(pattern=IV_PATTERN)
    salt: str | None = Field(default=None, pattern=SALT_PATTERN)
    key_hash: str = Field(pattern=KEY_HASH_PATTERN)


class SecretCreateRequest(BaseModel):
    """Store a new encrypted secret."""

    name: str = Field(min_length=1, max_length=255)
    envelope: EnvelopePayload
    expiration: ExpirationOption = ExpirationOption.NEVER
    max_views: int | None = Field(default=None, gt=0)
    burn_on_read: bool = False


class SecretUpdateRequest(BaseModel):
    """Change a secret's name, envelope or access policy.

    Omitted fields are left unchanged; an explicit ``max_views: null`` removes
    the cap.
    """

    name: str | None = Field(default=None, min_length=1, max_length=255)
    envelope: EnvelopePayload | None = None
    expiration: ExpirationOption | None = None
    max_views: int | None = Field(default=None, gt=0)
    burn_on_read: bool | None = None


class SecretResponse(APIModel):
    """Secret metadata. Never includes ciphertext."""

    id: UUID
    org_id: UUID
    name: str
    created_by: str
    view_count: int
    max_views: int | None
    expires_at: datetime | None
    burn_on_read: bool
    requires_password: bool
    state: SecretState
    created_at: datetime
    updated_at: datetime


class PublicSecretResponse(APIModel):
    """What a link holder needs before consuming a view."""

    id: UUID
    salt: str | None
    requires_password: bool
    burn_on_read: bool
    expires_at: datetime | None
    max_views: int | None
    view_count: int


class SecretViewRequest(BaseModel):
    """Consume one view, proving possession of the key by its hash."""

    key_hash: str = Field(pattern=KEY_HASH_PATTERN)


class SecretViewResponse(APIModel):
    """Envelope returned after a granted view."""

    id: UUID
    name: str
    envelope: EnvelopePayload
    view_count: int
    max_views: int | None
    expires_at: datetime | None
    burn_on_read: bool


class AccessLogResponse(APIModel):
    """Secret access event."""

    id: UUID
    secret_id: UUID | None
    action: AccessAction
    user_id: str | None
    ip_address: str | None
    user_agent: str | None
    accessed_at: datetime


class SecretDeletedResponse(APIModel):
    """Confirmation of an explicit delete."""

    id: UUID
    state: SecretState
    deleted_at: datetime | None
