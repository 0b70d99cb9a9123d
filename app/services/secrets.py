"""Secret lifecycle and view transitions."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.models.secret import Secret
from app.schemas.secrets import SecretCreateRequest, SecretUpdateRequest
from app.services.access import (
    GRANTED,
    NOT_FOUND_REASON,
    AccessDecision,
    SecretState,
    calculate_expiration,
    evaluate_access,
    next_state_after_grant,
    reason_for_state,
)
from app.services.audit import AccessAction, log_access
from app.services.auth import MemberContext
from app.services.rbac import can_perform
from app.services.request_metadata import RequestMetadata
from app.services.security import key_hashes_match
from app.services.tiers import Tier, validate_usage

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ViewOutcome:
    """Secret row and the decision taken for one access attempt."""

    secret: Secret
    decision: AccessDecision

    @property
    def granted(self) -> bool:
        """Return whether the view was granted."""
        return self.decision.can_view


async def create_secret(
    session: AsyncSession,
    *,
    context: MemberContext,
    payload: SecretCreateRequest,
    metadata: RequestMetadata | None = None,
    now: datetime | None = None,
) -> Secret:
    """Store a client-encrypted secret.

    Parameters
    ----------
    session : AsyncSession
        Active database session.
    context : MemberContext
        Authenticated creator.
    payload : SecretCreateRequest
        Envelope and access policy.
    metadata : RequestMetadata | None, default=None
        Creator IP and user agent.
    now : datetime | None, default=None
        Creation time used for the expiration calculation.

    Returns
    -------
    Secret
        Persisted secret row.
    """
    now = now or datetime.now(timezone.utc)
    enforce_tier_usage(context.tier, "burn_on_read", payload.burn_on_read)
    enforce_tier_usage(context.tier, "max_views", payload.max_views)

    envelope = payload.envelope
    secret = Secret(
        org_id=context.organization.id,
        created_by=context.user_id,
        name=payload.name,
        ciphertext=envelope.ciphertext,
        iv=envelope.iv,
        salt=envelope.salt,
        key_hash=envelope.key_hash,
        view_count=0,
        max_views=payload.max_views,
        expires_at=calculate_expiration(payload.expiration, now=now),
        burn_on_read=payload.burn_on_read,
        deleted=False,
        state=SecretState.ACTIVE.value,
    )
    session.add(secret)
    await session.flush()
    await log_access(
        session,
        secret=secret,
        action=AccessAction.SHARE,
        metadata=metadata,
        user_id=context.user_id,
    )
    logger.info("Created secret %s in org %s", secret.id, secret.org_id)
    return secret


async def list_secrets(
    session: AsyncSession, *, context: MemberContext, limit: int, offset: int
) -> list[Secret]:
    """List live secrets in the caller's organization, newest first."""
    result = await session.execute(
        select(Secret)
        .where(
            Secret.org_id == context.organization.id,
            Secret.deleted.is_(False),
        )
        .order_by(Secret.created_at.desc(), Secret.id.desc())
        .limit(limit)
        .offset(offset)
    )
    return list(result.scalars().all())


async def get_secret_for_member(
    session: AsyncSession,
    *,
    context: MemberContext,
    secret_id: UUID,
    include_deleted: bool = False,
) -> Secret:
    """Return a secret from the caller's organization.

    Parameters
    ----------
    session : AsyncSession
        Active database session.
    context : MemberContext
        Authenticated caller.
    secret_id : UUID
        Secret identifier.
    include_deleted : bool, default=False
        Also match soft-deleted rows, so closed secrets keep their history.

    Returns
    -------
    Secret
        Matching secret row.
    """
    query = select(Secret).where(
        Secret.id == secret_id,
        Secret.org_id == context.organization.id,
    )
    if not include_deleted:
        query = query.where(Secret.deleted.is_(False))
    result = await session.execute(query)
    secret = result.scalar_one_or_none()
    if secret is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=NOT_FOUND_REASON,
        )
    return secret


async def update_secret(
    session: AsyncSession,
    *,
    context: MemberContext,
    secret_id: UUID,
    payload: SecretUpdateRequest,
    metadata: RequestMetadata | None = None,
    now: datetime | None = None,
) -> Secret:
    """Apply an owner or admin edit to a secret.

    View counters are never reset by an edit.

    Parameters
    ----------
    session : AsyncSession
        Active database session.
    context : MemberContext
        Authenticated caller.
    secret_id : UUID
        Secret identifier.
    payload : SecretUpdateRequest
        Requested changes.
    metadata : RequestMetadata | None, default=None
        Caller IP and user agent.
    now : datetime | None, default=None
        Time used for a new expiration.

    Returns
    -------
    Secret
        Updated secret row.
    """
    now = now or datetime.now(timezone.utc)
    secret = await get_secret_for_member(session, context=context, secret_id=secret_id)
    _ensure_permission(context, secret, "can_edit", "edit")

    fields = payload.model_fields_set
    if payload.burn_on_read is not None:
        enforce_tier_usage(context.tier, "burn_on_read", payload.burn_on_read)
        secret.burn_on_read = payload.burn_on_read
    if "max_views" in fields:
        enforce_tier_usage(context.tier, "max_views", payload.max_views)
        secret.max_views = payload.max_views
    if payload.expiration is not None:
        secret.expires_at = calculate_expiration(payload.expiration, now=now)
    if payload.name is not None:
        secret.name = payload.name
    if payload.envelope is not None:
        secret.ciphertext = payload.envelope.ciphertext
        secret.iv = payload.envelope.iv
        secret.salt = payload.envelope.salt
        secret.key_hash = payload.envelope.key_hash

    await session.flush()
    await log_access(
        session,
        secret=secret,
        action=AccessAction.EDIT,
        metadata=metadata,
        user_id=context.user_id,
    )
    return secret


async def delete_secret(
    session: AsyncSession,
    *,
    context: MemberContext,
    secret_id: UUID,
    metadata: RequestMetadata | None = None,
    now: datetime | None = None,
) -> Secret:
    """Mark a secret deleted on behalf of its owner or an admin."""
    now = now or datetime.now(timezone.utc)
    secret = await get_secret_for_member(session, context=context, secret_id=secret_id)
    _ensure_permission(context, secret, "can_delete", "delete")
    _close_secret(secret, SecretState.DELETED, now)
    await session.flush()
    await log_access(
        session,
        secret=secret,
        action=AccessAction.DELETE,
        metadata=metadata,
        user_id=context.user_id,
    )
    logger.info("Secret %s deleted by %s", secret.id, context.user_id)
    return secret


async def get_public_secret(
    session: AsyncSession, secret_id: UUID, *, now: datetime | None = None
) -> ViewOutcome:
    """Look up a secret for a link holder without consuming a view.

    Parameters
    ----------
    session : AsyncSession
        Active database session.
    secret_id : UUID
        Secret identifier.
    now : datetime | None, default=None
        Current time.

    Returns
    -------
    ViewOutcome
        Secret and the decision a view would currently get.
    """
    now = now or datetime.now(timezone.utc)
    secret = await _load_viewable_secret(session, secret_id)
    return ViewOutcome(secret=secret, decision=_decide(secret, now))


async def view_secret(
    session: AsyncSession,
    secret_id: UUID,
    *,
    key_hash: str,
    metadata: RequestMetadata | None = None,
    now: datetime | None = None,
) -> ViewOutcome:
    """Consume one view of a secret.

    The decision is taken on the row as read, then applied with a conditional
    update that only succeeds while ``view_count`` still holds the value the
    decision saw. A concurrent viewer that got there first makes the update
    match zero rows and the attempt is re-evaluated from a fresh read.

    Parameters
    ----------
    session : AsyncSession
        Active database session.
    secret_id : UUID
        Secret identifier.
    key_hash : str
        Viewer's digest of the key, compared with the stored key hash.
    metadata : RequestMetadata | None, default=None
        Viewer IP and user agent.
    now : datetime | None, default=None
        Current time.

    Returns
    -------
    ViewOutcome
        Updated secret and the decision. Denials are persisted lazily and
        returned, not raised.
    """
    now = now or datetime.now(timezone.utc)
    attempts = get_settings().view_retry_attempts
    for _ in range(attempts):
        secret = await _load_viewable_secret(session, secret_id)
        if not key_hashes_match(key_hash, secret.key_hash):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid encryption key",
            )

        decision = _decide(secret, now)
        if not decision.can_view:
            _close_secret(secret, decision.state, now)
            await session.flush()
            await log_access(
                session, secret=secret, action=AccessAction.VIEW, metadata=metadata
            )
            logger.info("Secret %s closed: %s", secret.id, decision.state.value)
            return ViewOutcome(secret=secret, decision=decision)

        values: dict[str, object] = {"view_count": Secret.view_count + 1}
        next_state = next_state_after_grant(secret.burn_on_read)
        if next_state.terminal:
            values.update(deleted=True, state=next_state.value, deleted_at=now)
        result = await session.execute(
            update(Secret)
            .where(
                Secret.id == secret.id,
                Secret.deleted.is_(False),
                Secret.view_count == secret.view_count,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 1:
            await session.refresh(secret)
            await log_access(
                session, secret=secret, action=AccessAction.VIEW, metadata=metadata
            )
            logger.info(
                "Granted view %s of secret %s", secret.view_count, secret.id
            )
            return ViewOutcome(secret=secret, decision=GRANTED)
        logger.debug("Concurrent view of secret %s, re-evaluating", secret.id)

    raise HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail="Secret is being viewed concurrently, retry the request",
    )


def enforce_tier_usage(tier: Tier, feature: str, value: object) -> None:
    """Reject a feature choice the tier does not allow.

    Parameters
    ----------
    tier : Tier
        Organization tier.
    feature : str
        Tier-gated feature name.
    value : object
        Requested value.

    Returns
    -------
    None
        Raises 403 with the tier message on violation.
    """
    validation = validate_usage(tier, feature, value)
    if not validation.valid:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=validation.message,
        )


async def _load_viewable_secret(session: AsyncSession, secret_id: UUID) -> Secret:
    """Read a secret fresh from the database.

    Explicitly deleted and unknown secrets are 404. Secrets closed by the
    access rules answer 410 with the reason they closed.
    """
    result = await session.execute(
        select(Secret)
        .where(Secret.id == secret_id)
        .execution_options(populate_existing=True)
    )
    secret = result.scalar_one_or_none()
    if secret is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=NOT_FOUND_REASON,
        )
    if secret.deleted:
        state = SecretState(secret.state)
        if state in (SecretState.ACTIVE, SecretState.DELETED):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=NOT_FOUND_REASON,
            )
        raise HTTPException(
            status_code=status.HTTP_410_GONE,
            detail=reason_for_state(state),
        )
    return secret


def _decide(secret: Secret, now: datetime) -> AccessDecision:
    return evaluate_access(
        secret.view_count,
        secret.max_views,
        secret.expires_at,
        secret.burn_on_read,
        secret.view_count > 0,
        now=now,
    )


def _close_secret(secret: Secret, state: SecretState, now: datetime) -> None:
    if secret.deleted:
        return
    secret.deleted = True
    secret.state = state.value
    secret.deleted_at = now


def _ensure_permission(
    context: MemberContext, secret: Secret, action: str, verb: str
) -> None:
    is_owner = secret.created_by == context.user_id
    if not can_perform(context.role, action, is_resource_owner=is_owner):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"You do not have permission to {verb} this secret",
        )
