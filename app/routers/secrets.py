"""Authenticated secret management routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_session
from app.routers.dependencies import commit_session
from app.schemas.common import ERROR_RESPONSES
from app.schemas.secrets import (
    AccessLogResponse,
    SecretCreateRequest,
    SecretDeletedResponse,
    SecretResponse,
    SecretUpdateRequest,
)
from app.services.audit import list_access_logs
from app.services.auth import MemberContext, require_member
from app.services.request_metadata import extract_request_metadata
from app.services.secrets import (
    create_secret,
    delete_secret,
    get_secret_for_member,
    list_secrets,
    update_secret,
)

router = APIRouter(prefix="/v1/secrets", tags=["secrets"], responses=ERROR_RESPONSES)


@router.post("", response_model=SecretResponse)
async def create_secret_route(
    payload: SecretCreateRequest,
    request: Request,
    context: MemberContext = Depends(require_member),
    session: AsyncSession = Depends(get_session),
) -> SecretResponse:
    """Store a client-encrypted secret.

    Parameters
    ----------
    payload : SecretCreateRequest
        Envelope and access policy.
    request : Request
        Incoming request, used for the access log.
    context : MemberContext
        Authenticated member.
    session : AsyncSession
        Active database session.

    Returns
    -------
    SecretResponse
        Stored secret metadata.
    """
    secret = await create_secret(
        session,
        context=context,
        payload=payload,
        metadata=extract_request_metadata(request),
    )
    await commit_session(session)
    return SecretResponse.model_validate(secret)


@router.get("", response_model=list[SecretResponse])
async def list_secrets_route(
    context: MemberContext = Depends(require_member),
    session: AsyncSession = Depends(get_session),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
) -> list[SecretResponse]:
    """List live secrets in the caller's organization."""
    secrets = await list_secrets(session, context=context, limit=limit, offset=offset)
    return [SecretResponse.model_validate(row) for row in secrets]


@router.get("/{secret_id}", response_model=SecretResponse)
async def get_secret_route(
    secret_id: UUID,
    context: MemberContext = Depends(require_member),
    session: AsyncSession = Depends(get_session),
) -> SecretResponse:
    """Return secret metadata."""
    secret = await get_secret_for_member(session, context=context, secret_id=secret_id)
    return SecretResponse.model_validate(secret)


@router.patch("/{secret_id}", response_model=SecretResponse)
async def update_secret_route(
    secret_id: UUID,
    payload: SecretUpdateRequest,
    request: Request,
    context: MemberContext = Depends(require_member),
    session: AsyncSession = Depends(get_session),
) -> SecretResponse:
    """Edit a secret's name, envelope or access policy."""
    secret = await update_secret(
        session,
        context=context,
        secret_id=secret_id,
        payload=payload,
        metadata=extract_request_metadata(request),
    )
    await commit_session(session)
    return SecretResponse.model_validate(secret)


@router.delete("/{secret_id}", response_model=SecretDeletedResponse)
async def delete_secret_route(
    secret_id: UUID,
    request: Request,
    context: MemberContext = Depends(require_member),
    session: AsyncSession = Depends(get_session),
) -> SecretDeletedResponse:
    """Delete a secret."""
    secret = await delete_secret(
        session,
        context=context,
        secret_id=secret_id,
        metadata=extract_request_metadata(request),
    )
    await commit_session(session)
    return SecretDeletedResponse.model_validate(secret)


@router.get("/{secret_id}/access-logs", response_model=list[AccessLogResponse])
async def list_access_logs_route(
    secret_id: UUID,
    context: MemberContext = Depends(require_member),
    session: AsyncSession = Depends(get_session),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
) -> list[AccessLogResponse]:
    """List access events for a secret within the tier's retention window.

    Parameters
    ----------
    secret_id : UUID
        Secret identifier.
    context : MemberContext
        Authenticated member.
    session : AsyncSession
        Active database session.
    limit : int
        Page size.
    offset : int
        Page offset.

    Returns
    -------
    list[AccessLogResponse]
        Newest-first access events.
    """
    await get_secret_for_member(
        session, context=context, secret_id=secret_id, include_deleted=True
    )
    events = await list_access_logs(
        session,
        organization=context.organization,
        secret_id=secret_id,
        limit=limit,
        offset=offset,
    )
    return [AccessLogResponse.model_validate(row) for row in events]
