"""SDK response types."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any
from uuid import UUID


@dataclass(frozen=True, slots=True)
class SecretInfo:
    """Secret metadata as listed by the service.

    Attributes
    ----------
    secret_id : UUID
        Secret identifier.
    name : str
        Display name.
    created_by : str
        Creator's user id.
    view_count : int
        Views consumed so far.
    max_views : int | None
        View ceiling, ``None`` when unbounded.
    expires_at : datetime | None
        Expiry timestamp, ``None`` for never.
    burn_on_read : bool
        Whether the first view destroys the secret.
    requires_password : bool
        Whether viewers need a password.
    state : str
        Lifecycle state.
    created_at : datetime
        Creation timestamp.
    """

    secret_id: UUID
    name: str
    created_by: str
    view_count: int
    max_views: int | None
    expires_at: datetime | None
    burn_on_read: bool
    requires_password: bool
    state: str
    created_at: datetime

    @property
    def views_remaining(self) -> int | None:
        """Return views left before the limit, ``None`` when unbounded."""
        if self.max_views is None:
            return None
        return max(0, self.max_views - self.view_count)

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "SecretInfo":
        """Build from a ``SecretResponse`` payload."""
        return cls(
            secret_id=UUID(data["id"]),
            name=data["name"],
            created_by=data["created_by"],
            view_count=data["view_count"],
            max_views=data["max_views"],
            expires_at=parse_optional_datetime(data["expires_at"]),
            burn_on_read=data["burn_on_read"],
            requires_password=data["requires_password"],
            state=data["state"],
            created_at=parse_datetime(data["created_at"]),
        )


@dataclass(frozen=True, slots=True)
class CreatedSecret:
    """Result of sharing a secret.

    Attributes
    ----------
    info : SecretInfo
        Stored metadata.
    share_url : str
        Link to hand to the recipient. Carries the key in its fragment unless
        the secret is password protected.
    encryption_key : str | None
        Hex key, ``None`` in password mode.
    """

    info: SecretInfo
    share_url: str
    encryption_key: str | None = field(default=None, repr=False)

    @property
    def secret_id(self) -> UUID:
        """Expose the secret identifier."""
        return self.info.secret_id


@dataclass(frozen=True, slots=True)
class RevealedSecret:
    """Decrypted secret returned by a granted view.

    Attributes
    ----------
    secret_id : UUID
        Secret identifier.
    name : str
        Display name.
    plaintext : str
        Decrypted text.
    view_count : int
        Views consumed including this one.
    max_views : int | None
        View ceiling.
    expires_at : datetime | None
        Expiry timestamp.
    burn_on_read : bool
        Whether this view destroyed the secret.
    """

    secret_id: UUID
    name: str
    plaintext: str = field(repr=False)
    view_count: int
    max_views: int | None
    expires_at: datetime | None
    burn_on_read: bool

    @property
    def ttl_remaining_seconds(self) -> int | None:
        """Return seconds until expiry, clamped at zero.

        Returns
        -------
        int | None
            Remaining lifetime, ``None`` for secrets that never expire.
        """
        if self.expires_at is None:
            return None
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        now = datetime.now(timezone.utc)
        return max(0, int((expires_at - now).total_seconds()))


@dataclass(frozen=True, slots=True)
class AccessEvent:
    """Secret access log entry.

    Attributes
    ----------
    event_id : UUID
        Event identifier.
    action : str
        ``view``, ``edit``, ``delete`` or ``share``.
    user_id : str | None
        Acting user, ``None`` for anonymous link views.
    ip_address : str | None
        Client IP.
    user_agent : str | None
        Client user agent.
    accessed_at : datetime
        Event timestamp.
    """

    event_id: UUID
    action: str
    user_id: str | None
    ip_address: str | None
    user_agent: str | None
    accessed_at: datetime


def parse_datetime(value: str) -> datetime:
    """Parse an ISO datetime string.

    Parameters
    ----------
    value : str
        ISO-formatted datetime string.

    Returns
    -------
    datetime
        Parsed datetime.
    """
    normalized = value.replace("Z", "+00:00")
    return datetime.fromisoformat(normalized)


def parse_optional_datetime(value: str | None) -> datetime | None:
    """Parse an ISO datetime string that may be null."""
    return parse_datetime(value) if value is not None else None
