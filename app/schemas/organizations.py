"""Organization, membership and bootstrap schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from app.schemas.common import APIModel, IssuedTokenResponse
from app.services.rbac import Role
from app.services.tiers import Tier


class BootstrapRequest(BaseModel):
    """Create an organization with its owner and first API token."""

    organization_name: str = Field(min_length=1, max_length=255)
    owner_user_id: str = Field(min_length=1, max_length=255)
    token_name: str = Field(default="default", min_length=1, max_length=255)
    tier: Tier | None = None


class BootstrapResponse(BaseModel):
    """Bootstrap response payload."""

    organization_id: UUID
    member_id: UUID
    tier: Tier
    api_token: IssuedTokenResponse


class OrganizationCreateRequest(BaseModel):
    """Create another organization owned by the caller."""

    name: str = Field(min_length=1, max_length=255)
    token_name: str = Field(default="default", min_length=1, max_length=255)


class CapabilitiesResponse(APIModel):
    """Tier capability set."""

    burn_on_read: bool
    max_organizations: int | None
    max_views_default: int | None
    max_teams: int | None
    audit_log_days: int | None
    sso: bool
    ip_allowlisting: bool
    secret_recovery: bool


class OrganizationResponse(APIModel):
    """Organization with its tier capabilities."""

    id: UUID
    name: str
    tier: Tier
    capabilities: CapabilitiesResponse
    created_at: datetime


class OrganizationCreateResponse(BaseModel):
    """New organization and the caller's token for it."""

    organization: OrganizationResponse
    api_token: IssuedTokenResponse


class MemberInviteRequest(BaseModel):
    """Add a user to the caller's organization."""

    user_id: str = Field(min_length=1, max_length=255)
    role: Role = Role.MEMBER
    token_name: str | None = Field(default=None, min_length=1, max_length=255)


class MemberResponse(APIModel):
    """Organization member."""

    id: UUID
    user_id: str
    role: Role
    created_at: datetime


class MemberInviteResponse(BaseModel):
    """Invited member and their API token."""

    member: MemberResponse
    api_token: IssuedTokenResponse


class RoleUpdateRequest(BaseModel):
    """Change a member's role."""

    role: Role
