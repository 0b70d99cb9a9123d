"""Secret access logging."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from enum import Enum
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.audit import SecretAccessLog
from app.models.organization import Organization
from app.models.secret import Secret
from app.services.request_metadata import RequestMetadata
from app.services.tiers import audit_retention_cutoff

logger = logging.getLogger(__name__)


class AccessAction(str, Enum):
    """Kind of access recorded for a secret."""

    VIEW = "view"
    EDIT = "edit"
    DELETE = "delete"
    SHARE = "share"


async def log_access(
    session: AsyncSession,
    *,
    secret: Secret,
    action: AccessAction,
    metadata: RequestMetadata | None = None,
    user_id: str | None = None,
) -> SecretAccessLog:
    """Append an access event for ``secret``.

    Call this after the state transition it records has been applied in the
    same transaction.

    Parameters
    ----------
    session : AsyncSession
        Active database session.
    secret : Secret
        Secret that was accessed.
    action : AccessAction
        Event action.
    metadata : RequestMetadata | None, default=None
        Actor IP and user agent.
    user_id : str | None, default=None
        Acting user, ``None`` for anonymous link views.

    Returns
    -------
    SecretAccessLog
        Persisted event.
    """
    metadata = metadata or RequestMetadata()
    event = SecretAccessLog(
        org_id=secret.org_id,
        secret_id=secret.id,
        secret_name=secret.name,
        secret_owner_id=secret.created_by,
        user_id=user_id,
        action=AccessAction(action).value,
        ip_address=metadata.ip_address,
        user_agent=metadata.user_agent,
        accessed_at=datetime.now(timezone.utc),
    )
    session.add(event)
    await session.flush()
    return event


async def list_access_logs(
    session: AsyncSession,
    *,
    organization: Organization,
    secret_id: UUID,
    limit: int,
    offset: int,
    now: datetime | None = None,
) -> list[SecretAccessLog]:
    """List access events visible under the organization's tier.

    Parameters
    ----------
    session : AsyncSession
        Active database session.
    organization : Organization
        Organization that owns the secret.
    secret_id : UUID
        Secret identifier.
    limit : int
        Page size.
    offset : int
        Page offset.
    now : datetime | None, default=None
        Current time.

    Returns
    -------
    list[SecretAccessLog]
        Newest-first events inside the retention window.
    """
    now = now or datetime.now(timezone.utc)
    query = select(SecretAccessLog).where(
        SecretAccessLog.org_id == organization.id,
        SecretAccessLog.secret_id == secret_id,
    )
    cutoff = audit_retention_cutoff(organization.tier, now)
    if cutoff is not None:
        query = query.where(SecretAccessLog.accessed_at >= cutoff)
    result = await session.execute(
        query.order_by(SecretAccessLog.accessed_at.desc(), SecretAccessLog.id.desc())
        .limit(limit)
        .offset(offset)
    )
    return list(result.scalars().all())


async def prune_access_logs(
    session: AsyncSession, *, now: datetime | None = None
) -> int:
    """Delete access events older than each organization's retention window.

    Parameters
    ----------
    session : AsyncSession
        Active database session.
    now : datetime | None, default=None
        Current time.

    Returns
    -------
    int
        Number of deleted events.
    """
    now = now or datetime.now(timezone.utc)
    result = await session.execute(select(Organization.id, Organization.tier))
    removed = 0
    for org_id, tier in result.all():
        cutoff = audit_retention_cutoff(tier, now)
        if cutoff is None:
            continue
        outcome = await session.execute(
            delete(SecretAccessLog).where(
                SecretAccessLog.org_id == org_id,
                SecretAccessLog.accessed_at < cutoff,
            )
        )
        if outcome.rowcount:
            logger.info(
                "Pruned %s access events for org %s (tier %s)",
                outcome.rowcount,
                org_id,
                tier,
            )
            removed += outcome.rowcount
    await session.flush()
    return removed
