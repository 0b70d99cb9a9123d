"""Organization and membership routes."""

from dataclasses import asdict
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_session
from app.models.organization import Organization
from app.routers.dependencies import commit_session
from app.schemas.common import ERROR_RESPONSES, IssuedTokenResponse
from app.schemas.organizations import (
    CapabilitiesResponse,
    MemberInviteRequest,
    MemberInviteResponse,
    MemberResponse,
    OrganizationCreateRequest,
    OrganizationCreateResponse,
    OrganizationResponse,
    RoleUpdateRequest,
)
from app.services.auth import MemberContext, require_member
from app.services.organizations import (
    IssuedMember,
    change_member_role,
    create_owned_organization,
    invite_member,
    list_members,
)
from app.services.tiers import capabilities_for

router = APIRouter(
    prefix="/v1/organizations", tags=["organizations"], responses=ERROR_RESPONSES
)


@router.post("", response_model=OrganizationCreateResponse)
async def create_organization_route(
    payload: OrganizationCreateRequest,
    context: MemberContext = Depends(require_member),
    session: AsyncSession = Depends(get_session),
) -> OrganizationCreateResponse:
    """Create another organization owned by the caller."""
    organization, owner = await create_owned_organization(
        session,
        context=context,
        name=payload.name,
        token_name=payload.token_name,
    )
    await commit_session(session)
    return OrganizationCreateResponse(
        organization=_organization_response(organization),
        api_token=_token_response(owner),
    )


@router.get("/current", response_model=OrganizationResponse)
async def get_current_organization(
    context: MemberContext = Depends(require_member),
) -> OrganizationResponse:
    """Return the caller's organization and tier capabilities."""
    return _organization_response(context.organization)


@router.post("/members", response_model=MemberInviteResponse)
async def invite_member_route(
    payload: MemberInviteRequest,
    context: MemberContext = Depends(require_member),
    session: AsyncSession = Depends(get_session),
) -> MemberInviteResponse:
    """Add a member and return their API token once."""
    issued = await invite_member(
        session,
        context=context,
        user_id=payload.user_id,
        role=payload.role,
        token_name=payload.token_name,
    )
    await commit_session(session)
    return MemberInviteResponse(
        member=MemberResponse.model_validate(issued.member),
        api_token=_token_response(issued),
    )


@router.get("/members", response_model=list[MemberResponse])
async def list_members_route(
    context: MemberContext = Depends(require_member),
    session: AsyncSession = Depends(get_session),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
) -> list[MemberResponse]:
    """List organization members."""
    members = await list_members(session, context=context, limit=limit, offset=offset)
    return [MemberResponse.model_validate(row) for row in members]


@router.patch("/members/{member_id}", response_model=MemberResponse)
async def update_member_role(
    member_id: UUID,
    payload: RoleUpdateRequest,
    context: MemberContext = Depends(require_member),
    session: AsyncSession = Depends(get_session),
) -> MemberResponse:
    """Change a member's role."""
    member = await change_member_role(
        session, context=context, member_id=member_id, role=payload.role
    )
    await commit_session(session)
    return MemberResponse.model_validate(member)


def _organization_response(organization: Organization) -> OrganizationResponse:
    """Build an organization payload with its capability set."""
    return OrganizationResponse(
        id=organization.id,
        name=organization.name,
        tier=organization.tier,
        capabilities=CapabilitiesResponse(**asdict(capabilities_for(organization.tier))),
        created_at=organization.created_at,
    )


def _token_response(issued: IssuedMember) -> IssuedTokenResponse:
    """Expose a freshly issued token."""
    return IssuedTokenResponse(
        id=issued.token.id,
        name=issued.token.name,
        member_id=issued.member.id,
        token=issued.plaintext_token,
    )
