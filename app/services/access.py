"""Secret access decisions.

Everything here is pure: callers pass the counters they read and the current
time, and persist the resulting state themselves.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum


class SecretState(str, Enum):
    """Lifecycle state of a secret."""

    ACTIVE = "active"
    EXPIRED = "expired"
    VIEW_LIMIT_REACHED = "view_limit_reached"
    BURNED = "burned"
    DELETED = "deleted"

    @property
    def terminal(self) -> bool:
        """Return whether the secret can never be viewed again."""
        return self is not SecretState.ACTIVE


EXPIRED_REASON = "Secret has expired"
VIEW_LIMIT_REASON = "Maximum view limit reached"
BURNED_REASON = "Secret was deleted after first view"
NOT_FOUND_REASON = "Secret not found"

_STATE_REASONS = {
    SecretState.EXPIRED: EXPIRED_REASON,
    SecretState.VIEW_LIMIT_REACHED: VIEW_LIMIT_REASON,
    SecretState.BURNED: BURNED_REASON,
    SecretState.DELETED: NOT_FOUND_REASON,
}


@dataclass(frozen=True, slots=True)
class AccessDecision:
    """Result of evaluating one access attempt.

    Attributes
    ----------
    can_view : bool
        Whether the secret may be revealed.
    state : SecretState
        State the secret is in for this attempt.
    reason : str | None
        Fixed denial message when ``can_view`` is false.
    """

    can_view: bool
    state: SecretState
    reason: str | None = None


GRANTED = AccessDecision(can_view=True, state=SecretState.ACTIVE)


class ExpirationOption(str, Enum):
    """Relative expiration choices offered at creation."""

    ONE_HOUR = "1h"
    ONE_DAY = "1d"
    SEVEN_DAYS = "7d"
    THIRTY_DAYS = "30d"
    NEVER = "never"


_EXPIRATION_DELTAS = {
    ExpirationOption.ONE_HOUR: timedelta(hours=1),
    ExpirationOption.ONE_DAY: timedelta(days=1),
    ExpirationOption.SEVEN_DAYS: timedelta(days=7),
    ExpirationOption.THIRTY_DAYS: timedelta(days=30),
}


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes read back from SQLite."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def is_expired(expires_at: datetime | None, now: datetime) -> bool:
    """Return whether ``now`` is at or past ``expires_at``."""
    if expires_at is None:
        return False
    return as_utc(now) >= as_utc(expires_at)


def has_reached_view_limit(view_count: int, max_views: int | None) -> bool:
    """Return whether ``view_count`` has used up ``max_views``.

    A ``max_views`` of ``None`` or ``0`` is unbounded.
    """
    if not max_views:
        return False
    return view_count >= max_views


def evaluate_access(
    view_count: int,
    max_views: int | None,
    expires_at: datetime | None,
    burn_on_read: bool,
    already_viewed: bool,
    *,
    now: datetime,
) -> AccessDecision:
    """Decide whether a secret may be viewed.

    Checks run in a fixed order and the first match wins: expiration, view
    limit, then burn-on-read.

    Parameters
    ----------
    view_count : int
        Successful views so far.
    max_views : int | None
        View cap, ``None`` for unbounded.
    expires_at : datetime | None
        Absolute expiry, ``None`` for never.
    burn_on_read : bool
        Whether the secret allows only one view.
    already_viewed : bool
        Whether a view has already been granted.
    now : datetime
        Current time.

    Returns
    -------
    AccessDecision
        Grant, or denial with its fixed reason.
    """
    if is_expired(expires_at, now):
        return _denied(SecretState.EXPIRED)
    if has_reached_view_limit(view_count, max_views):
        return _denied(SecretState.VIEW_LIMIT_REACHED)
    if burn_on_read and already_viewed:
        return _denied(SecretState.BURNED)
    return GRANTED


def next_state_after_grant(burn_on_read: bool) -> SecretState:
    """Return the state to persist alongside a granted view.

    Burn-on-read secrets close immediately. A secret that reaches
    ``max_views`` stays active until the next access evaluates it.
    """
    if burn_on_read:
        return SecretState.BURNED
    return SecretState.ACTIVE


def reason_for_state(state: SecretState | str) -> str | None:
    """Return the user-facing message for a terminal state."""
    return _STATE_REASONS.get(SecretState(state))


def calculate_expiration(
    option: ExpirationOption | str | None, *, now: datetime
) -> datetime | None:
    """Turn a relative expiration option into an absolute timestamp.

    Parameters
    ----------
    option : ExpirationOption | str | None
        Relative option. ``None`` and ``"never"`` mean no expiry.
    now : datetime
        Creation time.

    Returns
    -------
    datetime | None
        Absolute expiry to store with the secret.
    """
    if option is None:
        return None
    option = ExpirationOption(option)
    if option is ExpirationOption.NEVER:
        return None
    return as_utc(now) + _EXPIRATION_DELTAS[option]


def _denied(state: SecretState) -> AccessDecision:
    return AccessDecision(can_view=False, state=state, reason=_STATE_REASONS[state])
