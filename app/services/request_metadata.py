"""Client IP and user-agent extraction for access events."""

from __future__ import annotations

from dataclasses import dataclass

from starlette.requests import Request

IP_HEADER_CANDIDATES = (
    "cf-connecting-ip",
    "true-client-ip",
    "x-real-ip",
    "x-forwarded-for",
    "forwarded",
)


@dataclass(frozen=True, slots=True)
class RequestMetadata:
    """Actor details recorded with an access event."""

    ip_address: str | None = None
    user_agent: str | None = None


def extract_request_metadata(request: Request | None = None) -> RequestMetadata:
    """Read the client IP and user agent from a request.

    Proxy and CDN headers win over the socket peer address.

    Parameters
    ----------
    request : Request | None, default=None
        Incoming request, if any.

    Returns
    -------
    RequestMetadata
        Extracted metadata. Both fields are ``None`` without a request.
    """
    if request is None:
        return RequestMetadata()

    ip_address = None
    for header in IP_HEADER_CANDIDATES:
        ip_address = _normalize_forwarded(request.headers.get(header))
        if ip_address:
            break
    if not ip_address and request.client is not None:
        ip_address = request.client.host

    return RequestMetadata(
        ip_address=ip_address,
        user_agent=request.headers.get("user-agent"),
    )


def _normalize_forwarded(value: str | None) -> str | None:
    if not value:
        return None
    first_entry = value.split(",")[0].strip()
    # Forwarded header attributes follow the first semicolon.
    first_entry = first_entry.split(";")[0].strip()
    if not first_entry:
        return None
    if first_entry.lower().startswith("for="):
        return first_entry[4:].strip().strip('"') or None
    return first_entry
