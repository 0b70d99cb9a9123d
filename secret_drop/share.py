"""Share-link encoding.

The key travels only in the URL fragment, which browsers and HTTP clients do
not send to the server.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from urllib.parse import urlsplit
from uuid import UUID

from secret_drop.crypto.keys import Key
from secret_drop.exceptions import InvalidInput

SHARE_PATH_PREFIX = "/s/"


@dataclass(frozen=True, slots=True)
class ShareLink:
    """Parsed share link.

    Attributes
    ----------
    base_url : str
        Origin the link points at.
    secret_id : UUID
        Secret identifier.
    key : Key | None
        Key from the fragment, ``None`` for password-protected links.
    """

    base_url: str
    secret_id: UUID
    key: Key | None = field(default=None, repr=False)


def build_share_url(base_url: str, secret_id: UUID | str, key: Key | None = None) -> str:
    """Build the link handed to a recipient.

    Parameters
    ----------
    base_url : str
        Public origin of the service.
    secret_id : UUID | str
        Secret identifier.
    key : Key | None, default=None
        Random-mode key. Password-derived keys are never embedded.

    Returns
    -------
    str
        ``{base_url}/s/{secret_id}`` with ``#{hex key}`` when a key is embedded.
    """
    url = f"{base_url.rstrip('/')}{SHARE_PATH_PREFIX}{secret_id}"
    if key is None or key.password_derived:
        return url
    return f"{url}#{key.to_hex()}"


def parse_share_url(url: str) -> ShareLink:
    """Split a share link into origin, secret id and key.

    Parameters
    ----------
    url : str
        Link produced by ``build_share_url``.

    Returns
    -------
    ShareLink
        Parsed link.
    """
    parts = urlsplit(url)
    if not parts.scheme or not parts.netloc:
        raise InvalidInput("Share link must be an absolute URL")
    prefix, marker, tail = parts.path.rpartition(SHARE_PATH_PREFIX)
    if not marker:
        raise InvalidInput("Share link does not point at a secret")
    try:
        secret_id = UUID(tail.strip("/"))
    except ValueError as exc:
        raise InvalidInput("Share link has an invalid secret id") from exc
    key = Key.from_hex(parts.fragment) if parts.fragment else None
    return ShareLink(
        base_url=f"{parts.scheme}://{parts.netloc}{prefix}",
        secret_id=secret_id,
        key=key,
    )
