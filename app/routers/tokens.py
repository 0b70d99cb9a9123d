"""API token management routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_session
from app.routers.dependencies import commit_session
from app.schemas.common import ERROR_RESPONSES, IssuedTokenResponse
from app.schemas.tokens import ApiTokenCreateRequest, ApiTokenResponse
from app.services.auth import MemberContext, require_member
from app.services.tokens import issue_token, list_tokens, revoke_token

router = APIRouter(prefix="/v1/tokens", tags=["tokens"], responses=ERROR_RESPONSES)


@router.post("", response_model=IssuedTokenResponse)
async def create_token_route(
    payload: ApiTokenCreateRequest,
    context: MemberContext = Depends(require_member),
    session: AsyncSession = Depends(get_session),
) -> IssuedTokenResponse:
    """Issue a token for the caller and return its plaintext once."""
    token, plaintext = await issue_token(
        session, member=context.member, name=payload.name
    )
    await commit_session(session)
    return IssuedTokenResponse(
        id=token.id, name=token.name, member_id=token.member_id, token=plaintext
    )


@router.get("", response_model=list[ApiTokenResponse])
async def list_tokens_route(
    context: MemberContext = Depends(require_member),
    session: AsyncSession = Depends(get_session),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
) -> list[ApiTokenResponse]:
    """List tokens visible to the caller."""
    tokens = await list_tokens(session, context=context, limit=limit, offset=offset)
    return [ApiTokenResponse.model_validate(row) for row in tokens]


@router.get("/current", response_model=ApiTokenResponse)
async def get_current_token(
    context: MemberContext = Depends(require_member),
) -> ApiTokenResponse:
    """Return the token used to authenticate this request."""
    return ApiTokenResponse.model_validate(context.token)


@router.delete("/{token_id}", response_model=ApiTokenResponse)
async def revoke_token_route(
    token_id: UUID,
    context: MemberContext = Depends(require_member),
    session: AsyncSession = Depends(get_session),
) -> ApiTokenResponse:
    """Revoke a token.

    Parameters
    ----------
    token_id : UUID
        Token identifier.
    context : MemberContext
        Authenticated member.
    session : AsyncSession
        Active database session.

    Returns
    -------
    ApiTokenResponse
        Token metadata with ``revoked_at`` set.
    """
    token = await revoke_token(session, context=context, token_id=token_id)
    await commit_session(session)
    return ApiTokenResponse.model_validate(token)
