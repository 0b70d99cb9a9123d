"""Subscription tier capabilities and usage validation."""

from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import datetime, timedelta
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping


class Tier(str, Enum):
    """Subscription tier attached to an organization."""

    FREE = "free"
    PRO_TEAM = "pro_team"
    BUSINESS = "business"

    @property
    def label(self) -> str:
        """Return the display name used in user-facing messages."""
        return _TIER_LABELS[self]


_TIER_LABELS = {
    Tier.FREE: "Free",
    Tier.PRO_TEAM: "Pro Team",
    Tier.BUSINESS: "Business",
}


@dataclass(frozen=True, slots=True)
class CapabilitySet:
    """Features and numeric ceilings granted by a tier.

    Numeric ceilings of ``None`` are unbounded.

    Attributes
    ----------
    burn_on_read : bool
        Whether secrets may self-destruct after one view.
    max_organizations : int | None
        Organizations a user may own.
    max_views_default : int | None
        Highest ``max_views`` a secret may request.
    max_teams : int | None
        Teams per organization.
    audit_log_days : int | None
        Days of access-log retention. ``None`` keeps events permanently.
    sso : bool
        Organization SSO.
    ip_allowlisting : bool
        Organization IP allowlists.
    secret_recovery : bool
        Trash-bin recovery of deleted secrets.
    """

    burn_on_read: bool
    max_organizations: int | None
    max_views_default: int | None
    max_teams: int | None
    audit_log_days: int | None
    sso: bool
    ip_allowlisting: bool
    secret_recovery: bool


TIER_CAPABILITIES: Mapping[Tier, CapabilitySet] = MappingProxyType(
    {
        Tier.FREE: CapabilitySet(
            burn_on_read=False,
            max_organizations=1,
            max_views_default=10,
            max_teams=0,
            audit_log_days=1,
            sso=False,
            ip_allowlisting=False,
            secret_recovery=False,
        ),
        Tier.PRO_TEAM: CapabilitySet(
            burn_on_read=True,
            max_organizations=None,
            max_views_default=None,
            max_teams=None,
            audit_log_days=30,
            sso=False,
            ip_allowlisting=False,
            secret_recovery=False,
        ),
        Tier.BUSINESS: CapabilitySet(
            burn_on_read=True,
            max_organizations=None,
            max_views_default=None,
            max_teams=None,
            audit_log_days=None,
            sso=True,
            ip_allowlisting=True,
            secret_recovery=True,
        ),
    }
)

if set(TIER_CAPABILITIES) != set(Tier):
    raise RuntimeError("every tier needs a capability set")

BOOLEAN_CAPABILITIES = frozenset(
    field.name for field in fields(CapabilitySet) if field.type in ("bool", bool)
)
NUMERIC_LIMITS = frozenset(
    field.name for field in fields(CapabilitySet)
) - BOOLEAN_CAPABILITIES


@dataclass(frozen=True, slots=True)
class UsageValidation:
    """Outcome of a tier usage check.

    Attributes
    ----------
    valid : bool
        Whether the request fits the tier.
    message : str | None
        User-facing reason when ``valid`` is false.
    """

    valid: bool
    message: str | None = None


VALID_USAGE = UsageValidation(valid=True)


def capabilities_for(tier: Tier | str) -> CapabilitySet:
    """Return the capability set for ``tier``.

    Parameters
    ----------
    tier : Tier | str
        Tier or its stored string value.

    Returns
    -------
    CapabilitySet
        Capabilities granted by the tier.
    """
    return TIER_CAPABILITIES[Tier(tier)]


def is_enabled(tier: Tier | str, capability: str) -> bool:
    """Return whether ``capability`` is available on ``tier``.

    Numeric limits count as available when unbounded or above zero.

    Parameters
    ----------
    tier : Tier | str
        Subscription tier.
    capability : str
        Capability field name, e.g. ``"sso"`` or ``"max_teams"``.

    Returns
    -------
    bool
        Whether the tier has the capability.
    """
    value = _capability_value(tier, capability)
    if isinstance(value, bool):
        return value
    if value is None:
        return True
    return value > 0


def ceiling_for(tier: Tier | str, limit: str) -> int | None:
    """Return the numeric ceiling for ``limit`` on ``tier``.

    Parameters
    ----------
    tier : Tier | str
        Subscription tier.
    limit : str
        Numeric limit name, e.g. ``"max_views_default"``.

    Returns
    -------
    int | None
        Ceiling, or ``None`` when unbounded.
    """
    if limit not in NUMERIC_LIMITS:
        raise ValueError(f"Unknown tier limit: {limit}")
    return _capability_value(tier, limit)


def validate_usage(
    tier: Tier | str, feature: str, requested_value: Any = None
) -> UsageValidation:
    """Check a requested feature value against the tier.

    Parameters
    ----------
    tier : Tier | str
        Subscription tier of the organization.
    feature : str
        One of ``burn_on_read``, ``max_views``, ``organizations``, ``teams``.
        Other features are not tier-gated.
    requested_value : Any, default=None
        Value the caller wants to persist.

    Returns
    -------
    UsageValidation
        Validation outcome with a fixed message on rejection.
    """
    tier = Tier(tier)
    capabilities = TIER_CAPABILITIES[tier]
    if not requested_value:
        return VALID_USAGE

    if feature == "burn_on_read":
        if not capabilities.burn_on_read:
            return UsageValidation(
                valid=False,
                message=(
                    "Burn-on-read is only available for "
                    f"{_tiers_with('burn_on_read')} tiers"
                ),
            )
    elif feature == "max_views":
        ceiling = capabilities.max_views_default
        if ceiling is not None and requested_value > ceiling:
            return UsageValidation(
                valid=False,
                message=f"{tier.label} tier is limited to {ceiling} views per secret",
            )
    elif feature == "organizations":
        ceiling = capabilities.max_organizations
        if ceiling is not None and requested_value > ceiling:
            noun = "personal workspace" if ceiling == 1 else "organizations"
            return UsageValidation(
                valid=False,
                message=f"{tier.label} tier is limited to {ceiling} {noun}",
            )
    elif feature == "teams":
        ceiling = capabilities.max_teams
        if ceiling is not None and requested_value > ceiling:
            if ceiling == 0:
                message = f"Teams are only available for {_tiers_with('max_teams')} tiers"
            else:
                message = f"{tier.label} tier is limited to {ceiling} teams"
            return UsageValidation(valid=False, message=message)
    return VALID_USAGE


def audit_retention_cutoff(tier: Tier | str, now: datetime) -> datetime | None:
    """Return the oldest access-event time visible on ``tier``.

    Parameters
    ----------
    tier : Tier | str
        Subscription tier.
    now : datetime
        Current time.

    Returns
    -------
    datetime | None
        Cutoff timestamp, or ``None`` for permanent retention.
    """
    days = capabilities_for(tier).audit_log_days
    if days is None:
        return None
    return now - timedelta(days=days)


def _capability_value(tier: Tier | str, name: str) -> Any:
    if name not in BOOLEAN_CAPABILITIES and name not in NUMERIC_LIMITS:
        raise ValueError(f"Unknown tier capability: {name}")
    return getattr(capabilities_for(tier), name)


def _tiers_with(capability: str) -> str:
    labels = [tier.label for tier in Tier if is_enabled(tier, capability)]
    return " and ".join(labels)
