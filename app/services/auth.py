"""Authentication dependencies."""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_session
from app.models.organization import Organization, OrganizationMember
from app.models.token import ApiToken
from app.services.rbac import Role
from app.services.security import lookup_hash, verify_token
from app.services.tiers import Tier

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True, slots=True)
class MemberContext:
    """Authenticated caller.

    Attributes
    ----------
    token : ApiToken
        Token row used for the request.
    member : OrganizationMember
        Member the token belongs to.
    organization : Organization
        Member's organization.
    """

    token: ApiToken
    member: OrganizationMember
    organization: Organization

    @property
    def role(self) -> Role:
        """Return the member's role."""
        return Role(self.member.role)

    @property
    def tier(self) -> Tier:
        """Return the organization's subscription tier."""
        return Tier(self.organization.tier)

    @property
    def user_id(self) -> str:
        """Return the external user identifier."""
        return self.member.user_id


async def require_member(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: AsyncSession = Depends(get_session),
) -> MemberContext:
    """Authenticate a member API token.

    Parameters
    ----------
    credentials : HTTPAuthorizationCredentials | None
        Parsed bearer token.
    session : AsyncSession
        Active database session.

    Returns
    -------
    MemberContext
        Token, member and organization rows.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing token",
        )
    context = await _match_token(session, credentials.credentials)
    if context is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API token",
        )
    return context


async def _match_token(session: AsyncSession, raw_token: str) -> MemberContext | None:
    """Match a raw token against hashed rows.

    Parameters
    ----------
    session : AsyncSession
        Active database session.
    raw_token : str
        Raw bearer token.

    Returns
    -------
    MemberContext | None
        Caller context if a live token matches.
    """
    result = await session.execute(
        select(ApiToken, OrganizationMember, Organization)
        .join(OrganizationMember, OrganizationMember.id == ApiToken.member_id)
        .join(Organization, Organization.id == ApiToken.org_id)
        .where(
            ApiToken.token_lookup == lookup_hash(raw_token),
            ApiToken.revoked_at.is_(None),
        )
    )
    for token, member, organization in result.all():
        if verify_token(raw_token, token.token_hash):
            return MemberContext(token=token, member=member, organization=organization)
    return None
