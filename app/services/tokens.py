"""Member API token lifecycle."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.organization import OrganizationMember
from app.models.token import ApiToken
from app.services.auth import MemberContext
from app.services.rbac import can_perform, has_higher_or_equal_role
from app.services.security import generate_plaintext_token, hash_token, lookup_hash

logger = logging.getLogger(__name__)


async def issue_token(
    session: AsyncSession, *, member: OrganizationMember, name: str
) -> tuple[ApiToken, str]:
    """Create a token for ``member``.

    Parameters
    ----------
    session : AsyncSession
        Active database session.
    member : OrganizationMember
        Member the token authenticates as.
    name : str
        Label, unique inside the organization.

    Returns
    -------
    tuple[ApiToken, str]
        Stored token row and the plaintext, which is never persisted.
    """
    existing = await session.execute(
        select(ApiToken.id).where(
            ApiToken.org_id == member.org_id,
            ApiToken.name == name,
        )
    )
    if existing.scalar_one_or_none() is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="API token name already exists",
        )
    plaintext = generate_plaintext_token()
    token = ApiToken(
        org_id=member.org_id,
        member_id=member.id,
        name=name,
        token_hash=hash_token(plaintext),
        token_lookup=lookup_hash(plaintext),
    )
    session.add(token)
    await session.flush()
    logger.info("Issued API token %s for member %s", token.id, member.id)
    return token, plaintext


async def list_tokens(
    session: AsyncSession, *, context: MemberContext, limit: int, offset: int
) -> list[ApiToken]:
    """List tokens the caller may see.

    Members see their own tokens. Roles that manage members see every token
    in the organization.
    """
    query = select(ApiToken).where(ApiToken.org_id == context.organization.id)
    if not can_perform(context.role, "can_manage_members"):
        query = query.where(ApiToken.member_id == context.member.id)
    result = await session.execute(
        query.order_by(ApiToken.created_at.desc(), ApiToken.id.desc())
        .limit(limit)
        .offset(offset)
    )
    return list(result.scalars().all())


async def revoke_token(
    session: AsyncSession,
    *,
    context: MemberContext,
    token_id: UUID,
    now: datetime | None = None,
) -> ApiToken:
    """Revoke a token so it no longer authenticates.

    Parameters
    ----------
    session : AsyncSession
        Active database session.
    context : MemberContext
        Acting member.
    token_id : UUID
        Token to revoke.
    now : datetime | None, default=None
        Revocation time.

    Returns
    -------
    ApiToken
        Revoked token row.
    """
    result = await session.execute(
        select(ApiToken, OrganizationMember)
        .join(OrganizationMember, OrganizationMember.id == ApiToken.member_id)
        .where(
            ApiToken.id == token_id,
            ApiToken.org_id == context.organization.id,
        )
    )
    row = result.one_or_none()
    if row is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="API token not found",
        )
    token, owner = row
    if owner.id != context.member.id and not (
        can_perform(context.role, "can_manage_members")
        and has_higher_or_equal_role(context.role, owner.role)
    ):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have permission to revoke this token",
        )
    if token.revoked_at is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="API token already revoked",
        )
    token.revoked_at = now or datetime.now(timezone.utc)
    await session.flush()
    logger.info("Revoked API token %s", token.id)
    return token
