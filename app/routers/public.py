"""Routes used by share-link holders. No API token is required."""

from uuid import UUID

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_session
from app.routers.dependencies import commit_session, raise_if_denied
from app.schemas.common import ERROR_RESPONSES
from app.schemas.secrets import (
    EnvelopePayload,
    PublicSecretResponse,
    SecretViewRequest,
    SecretViewResponse,
)
from app.services.request_metadata import extract_request_metadata
from app.services.secrets import get_public_secret, view_secret

router = APIRouter(
    prefix="/v1/public/secrets", tags=["public"], responses=ERROR_RESPONSES
)


@router.get("/{secret_id}", response_model=PublicSecretResponse)
async def get_public_secret_route(
    secret_id: UUID,
    session: AsyncSession = Depends(get_session),
) -> PublicSecretResponse:
    """Return what a viewer needs before consuming a view.

    Parameters
    ----------
    secret_id : UUID
        Secret identifier.
    session : AsyncSession
        Active database session.

    Returns
    -------
    PublicSecretResponse
        Salt and access policy. Never the ciphertext.
    """
    outcome = await get_public_secret(session, secret_id)
    raise_if_denied(outcome.decision)
    return PublicSecretResponse.model_validate(outcome.secret)


@router.post("/{secret_id}/view", response_model=SecretViewResponse)
async def view_secret_route(
    secret_id: UUID,
    payload: SecretViewRequest,
    request: Request,
    session: AsyncSession = Depends(get_session),
) -> SecretViewResponse:
    """Consume one view and return the envelope.

    Parameters
    ----------
    secret_id : UUID
        Secret identifier.
    payload : SecretViewRequest
        Hash of the viewer's key.
    request : Request
        Incoming request, used for the access log.
    session : AsyncSession
        Active database session.

    Returns
    -------
    SecretViewResponse
        Envelope to decrypt client-side.
    """
    outcome = await view_secret(
        session,
        secret_id,
        key_hash=payload.key_hash,
        metadata=extract_request_metadata(request),
    )
    # Denials close the secret, so persist before answering.
    await commit_session(session)
    raise_if_denied(outcome.decision)

    secret = outcome.secret
    return SecretViewResponse(
        id=secret.id,
        name=secret.name,
        envelope=EnvelopePayload.model_validate(secret),
        view_count=secret.view_count,
        max_views=secret.max_views,
        expires_at=secret.expires_at,
        burn_on_read=secret.burn_on_read,
    )
