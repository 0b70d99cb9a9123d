"""Organization and membership operations."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.organization import Organization, OrganizationMember
from app.models.token import ApiToken
from app.services.auth import MemberContext
from app.services.rbac import Role, can_assign_role, can_change_role, can_perform
from app.services.tiers import Tier, validate_usage
from app.services.tokens import issue_token

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class IssuedMember:
    """Member row plus the token handed out for it."""

    member: OrganizationMember
    token: ApiToken
    plaintext_token: str


async def create_organization(
    session: AsyncSession,
    *,
    name: str,
    owner_user_id: str,
    tier: Tier,
    token_name: str,
) -> tuple[Organization, IssuedMember]:
    """Create an organization with its owner and first token.

    Parameters
    ----------
    session : AsyncSession
        Active database session.
    name : str
        Unique organization name.
    owner_user_id : str
        External user id of the owner.
    tier : Tier
        Subscription tier.
    token_name : str
        Label of the owner's token.

    Returns
    -------
    tuple[Organization, IssuedMember]
        New organization and its owner.
    """
    existing = await session.execute(
        select(Organization.id).where(Organization.name == name)
    )
    if existing.scalar_one_or_none() is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Organization name already exists",
        )
    organization = Organization(name=name, tier=Tier(tier).value)
    session.add(organization)
    await session.flush()

    owner = await _add_member(
        session,
        organization=organization,
        user_id=owner_user_id,
        role=Role.OWNER,
        token_name=token_name,
    )
    logger.info("Created organization %s on tier %s", organization.id, organization.tier)
    return organization, owner


async def create_owned_organization(
    session: AsyncSession, *, context: MemberContext, name: str, token_name: str
) -> tuple[Organization, IssuedMember]:
    """Create another organization owned by the caller.

    The caller's current tier caps how many organizations they may own.
    """
    owned = await count_owned_organizations(session, context.user_id)
    validation = validate_usage(context.tier, "organizations", owned + 1)
    if not validation.valid:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=validation.message,
        )
    return await create_organization(
        session,
        name=name,
        owner_user_id=context.user_id,
        tier=context.tier,
        token_name=token_name,
    )


async def count_owned_organizations(session: AsyncSession, user_id: str) -> int:
    """Return how many organizations ``user_id`` owns."""
    result = await session.execute(
        select(func.count(OrganizationMember.id)).where(
            OrganizationMember.user_id == user_id,
            OrganizationMember.role == Role.OWNER.value,
        )
    )
    return result.scalar_one()


async def invite_member(
    session: AsyncSession,
    *,
    context: MemberContext,
    user_id: str,
    role: Role,
    token_name: str | None,
) -> IssuedMember:
    """Add a user to the caller's organization.

    Parameters
    ----------
    session : AsyncSession
        Active database session.
    context : MemberContext
        Inviting member.
    user_id : str
        External user id to add.
    role : Role
        Role to grant.
    token_name : str | None
        Token label, defaults to the user id.

    Returns
    -------
    IssuedMember
        New member and their token.
    """
    if not can_perform(context.role, "can_invite"):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have permission to invite members",
        )
    if not can_assign_role(context.role, role):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"You cannot assign the {Role(role).value} role",
        )
    existing = await session.execute(
        select(OrganizationMember.id).where(
            OrganizationMember.org_id == context.organization.id,
            OrganizationMember.user_id == user_id,
        )
    )
    if existing.scalar_one_or_none() is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="User is already a member",
        )
    return await _add_member(
        session,
        organization=context.organization,
        user_id=user_id,
        role=role,
        token_name=token_name or user_id,
    )


async def list_members(
    session: AsyncSession, *, context: MemberContext, limit: int, offset: int
) -> list[OrganizationMember]:
    """List members of the caller's organization."""
    result = await session.execute(
        select(OrganizationMember)
        .where(OrganizationMember.org_id == context.organization.id)
        .order_by(OrganizationMember.created_at.asc(), OrganizationMember.id.asc())
        .limit(limit)
        .offset(offset)
    )
    return list(result.scalars().all())


async def change_member_role(
    session: AsyncSession, *, context: MemberContext, member_id: UUID, role: Role
) -> OrganizationMember:
    """Move a member to a new role.

    Parameters
    ----------
    session : AsyncSession
        Active database session.
    context : MemberContext
        Acting member.
    member_id : UUID
        Member to change.
    role : Role
        Requested role.

    Returns
    -------
    OrganizationMember
        Updated member row.
    """
    result = await session.execute(
        select(OrganizationMember).where(
            OrganizationMember.id == member_id,
            OrganizationMember.org_id == context.organization.id,
        )
    )
    member = result.scalar_one_or_none()
    if member is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Member not found",
        )
    if not can_change_role(context.role, member.role, role):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"You cannot change this member to {Role(role).value}",
        )
    member.role = Role(role).value
    await session.flush()
    logger.info("Member %s is now %s", member.id, member.role)
    return member


async def _add_member(
    session: AsyncSession,
    *,
    organization: Organization,
    user_id: str,
    role: Role,
    token_name: str,
) -> IssuedMember:
    member = OrganizationMember(
        org_id=organization.id, user_id=user_id, role=Role(role).value
    )
    session.add(member)
    await session.flush()
    token, plaintext = await issue_token(session, member=member, name=token_name)
    return IssuedMember(member=member, token=token, plaintext_token=plaintext)
