"""Bootstrap routes."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.database import get_session
from app.routers.dependencies import commit_session
from app.schemas.common import IssuedTokenResponse
from app.schemas.organizations import BootstrapRequest, BootstrapResponse
from app.services.organizations import create_organization
from app.services.tiers import Tier

router = APIRouter(prefix="/v1", tags=["bootstrap"])


@router.post("/bootstrap", response_model=BootstrapResponse)
async def bootstrap(
    payload: BootstrapRequest,
    session: AsyncSession = Depends(get_session),
) -> BootstrapResponse:
    """Create an organization, its owner and the owner's API token.

    Parameters
    ----------
    payload : BootstrapRequest
        Bootstrap request.
    session : AsyncSession
        Active database session.

    Returns
    -------
    BootstrapResponse
        Created organization and owner token.
    """
    settings = get_settings()
    if not settings.bootstrap_enabled:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Bootstrap disabled",
        )
    tier = payload.tier or Tier(settings.default_tier)
    organization, owner = await create_organization(
        session,
        name=payload.organization_name,
        owner_user_id=payload.owner_user_id,
        tier=tier,
        token_name=payload.token_name,
    )
    await commit_session(session)
    return BootstrapResponse(
        organization_id=organization.id,
        member_id=owner.member.id,
        tier=tier,
        api_token=IssuedTokenResponse(
            id=owner.token.id,
            name=owner.token.name,
            member_id=owner.member.id,
            token=owner.plaintext_token,
        ),
    )
