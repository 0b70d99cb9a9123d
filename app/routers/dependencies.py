"""Shared router helpers."""

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.services.access import AccessDecision


async def commit_session(session: AsyncSession) -> None:
    """Commit the current transaction.

    Parameters
    ----------
    session : AsyncSession
        Active database session.

    Returns
    -------
    None
        Commits current transaction.
    """
    await session.commit()


def raise_if_denied(decision: AccessDecision) -> None:
    """Turn an access denial into a 410 carrying its reason.

    Parameters
    ----------
    decision : AccessDecision
        Decision from the access rules.

    Returns
    -------
    None
        Raises when the secret cannot be viewed.
    """
    if not decision.can_view:
        raise HTTPException(
            status_code=status.HTTP_410_GONE,
            detail=decision.reason,
        )
