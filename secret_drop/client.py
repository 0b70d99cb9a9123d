"""Synchronous Python SDK client."""

from __future__ import annotations

import logging
import os
from time import sleep
from typing import Any
from uuid import UUID

import httpx

from secret_drop.crypto.envelope import Envelope, EnvelopeCodec, key_for_salt
from secret_drop.crypto.keys import CryptoProvider, Key, derive_random_key, hash_key
from secret_drop.exceptions import (
    InvalidInput,
    SecretDropAPIError,
    SecretDropAuthError,
    SecretDropConflictError,
    SecretDropForbiddenError,
    SecretDropGoneError,
    SecretDropNotFoundError,
    SecretDropRateLimitError,
    SecretDropValidationError,
)
from secret_drop.share import build_share_url
from secret_drop.types import (
    AccessEvent,
    CreatedSecret,
    RevealedSecret,
    SecretInfo,
    parse_datetime,
    parse_optional_datetime,
)

logger = logging.getLogger(__name__)


class SecretDropClient:
    """Client for the SecretDrop API.

    All encryption happens in this process. The service only ever receives
    envelopes and key hashes.

    Parameters
    ----------
    base_url : str
        SecretDrop service base URL.
    api_token : str | None, default=None
        Member bearer token. Viewing a shared secret does not need one.
    timeout : float, default=10.0
        Request timeout in seconds.
    max_retries : int, default=2
        Number of retries for transient errors.
    transport : httpx.BaseTransport | None, default=None
        Optional transport for tests or advanced usage.
    provider : CryptoProvider | None, default=None
        Randomness source for keys, IVs and salts.
    """

    def __init__(
        self,
        *,
        base_url: str,
        api_token: str | None = None,
        timeout: float = 10.0,
        max_retries: int = 2,
        transport: httpx.BaseTransport | None = None,
        provider: CryptoProvider | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_token = api_token
        self.timeout = timeout
        self.max_retries = max_retries
        self.provider = provider
        self._codec = EnvelopeCodec(provider)
        headers = {}
        if api_token:
            headers["Authorization"] = f"Bearer {api_token}"
        self._client = httpx.Client(
            base_url=self.base_url,
            headers=headers,
            timeout=self.timeout,
            transport=transport,
        )

    @classmethod
    def from_env(cls) -> "SecretDropClient":
        """Build a client from environment variables.

        Expected variables
        ------------------
        SECRET_DROP_BASE_URL
            Service base URL. Defaults to ``http://127.0.0.1:8000``.
        SECRET_DROP_API_TOKEN
            Optional member bearer token.

        Returns
        -------
        SecretDropClient
            Configured SDK client.
        """
        base_url = os.environ.get("SECRET_DROP_BASE_URL", "http://127.0.0.1:8000")
        api_token = os.environ.get("SECRET_DROP_API_TOKEN") or None
        return cls(base_url=base_url, api_token=api_token)

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    def create_secret(
        self,
        plaintext: str,
        *,
        name: str,
        password: str | None = None,
        expiration: str = "never",
        max_views: int | None = None,
        burn_on_read: bool = False,
    ) -> CreatedSecret:
        """Encrypt ``plaintext`` locally and store the envelope.

        Parameters
        ----------
        plaintext : str
            Secret text.
        name : str
            Display name.
        password : str | None, default=None
            Protect with a password instead of a link-embedded key.
        expiration : str, default="never"
            One of ``1h``, ``1d``, ``7d``, ``30d`` or ``never``.
        max_views : int | None, default=None
            View ceiling.
        burn_on_read : bool, default=False
            Destroy the secret after its first view.

        Returns
        -------
        CreatedSecret
            Stored metadata, share link and hex key.
        """
        self._require_token()
        if password is not None:
            envelope = self._codec.encrypt_with_password(plaintext, password)
            key = None
        else:
            key = derive_random_key(self.provider)
            envelope = self._codec.encrypt(plaintext, key)

        payload: dict[str, Any] = {
            "name": name,
            "envelope": envelope.to_dict(),
            "expiration": expiration,
            "burn_on_read": burn_on_read,
        }
        if max_views is not None:
            payload["max_views"] = max_views
        response = self._request("POST", "/v1/secrets", json=payload)
        info = SecretInfo.from_payload(response.json())
        logger.debug("Stored secret %s", info.secret_id)
        return CreatedSecret(
            info=info,
            share_url=build_share_url(self.base_url, info.secret_id, key),
            encryption_key=key.to_hex() if key is not None else None,
        )

    def view_secret(
        self,
        secret_id: UUID | str,
        *,
        key: Key | str | None = None,
        password: str | None = None,
    ) -> RevealedSecret:
        """Consume one view and decrypt the secret locally.

        Parameters
        ----------
        secret_id : UUID | str
            Secret identifier.
        key : Key | str | None, default=None
            Key from the share link, as a ``Key`` or hex string.
        password : str | None, default=None
            Password for password-protected secrets.

        Returns
        -------
        RevealedSecret
            Decrypted secret.
        """
        if isinstance(key, str):
            key = Key.from_hex(key)
        metadata = self._request("GET", f"/v1/public/secrets/{secret_id}").json()

        if metadata["requires_password"]:
            if password is None:
                raise InvalidInput("This secret is protected by a password")
            key = key_for_salt(metadata["salt"], password)
        elif key is None:
            raise InvalidInput("An encryption key is required to view this secret")

        response = self._request(
            "POST",
            f"/v1/public/secrets/{secret_id}/view",
            json={"key_hash": hash_key(key)},
        )
        data = response.json()
        envelope = Envelope.from_dict(data["envelope"])
        return RevealedSecret(
            secret_id=UUID(data["id"]),
            name=data["name"],
            plaintext=self._codec.decrypt(envelope, key),
            view_count=data["view_count"],
            max_views=data["max_views"],
            expires_at=parse_optional_datetime(data["expires_at"]),
            burn_on_read=data["burn_on_read"],
        )

    def list_secrets(self, *, limit: int = 50, offset: int = 0) -> list[SecretInfo]:
        """List live secrets in the caller's organization.

        Parameters
        ----------
        limit : int, default=50
            Page size.
        offset : int, default=0
            Page offset.

        Returns
        -------
        list[SecretInfo]
            Secret metadata, newest first.
        """
        self._require_token()
        response = self._request(
            "GET",
            "/v1/secrets",
            params={"limit": limit, "offset": offset},
        )
        return [SecretInfo.from_payload(item) for item in response.json()]

    def delete_secret(self, secret_id: UUID | str) -> None:
        """Delete a secret."""
        self._require_token()
        self._request("DELETE", f"/v1/secrets/{secret_id}")

    def list_access_logs(
        self, secret_id: UUID | str, *, limit: int = 50, offset: int = 0
    ) -> list[AccessEvent]:
        """List access events for a secret.

        Parameters
        ----------
        secret_id : UUID | str
            Secret identifier.
        limit : int, default=50
            Page size.
        offset : int, default=0
            Page offset.

        Returns
        -------
        list[AccessEvent]
            Events inside the organization's retention window.
        """
        self._require_token()
        response = self._request(
            "GET",
            f"/v1/secrets/{secret_id}/access-logs",
            params={"limit": limit, "offset": offset},
        )
        return [
            AccessEvent(
                event_id=UUID(item["id"]),
                action=item["action"],
                user_id=item["user_id"],
                ip_address=item["ip_address"],
                user_agent=item["user_agent"],
                accessed_at=parse_datetime(item["accessed_at"]),
            )
            for item in response.json()
        ]

    def _require_token(self) -> None:
        if not self.api_token:
            raise SecretDropValidationError(
                "SECRET_DROP_API_TOKEN is required for this operation"
            )

    def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Send an HTTP request with light retry logic.

        Parameters
        ----------
        method : str
            HTTP method.
        path : str
            Relative request path.
        **kwargs : Any
            Additional request arguments.

        Returns
        -------
        httpx.Response
            Successful response.
        """
        attempts = self.max_retries + 1
        last_exception: Exception | None = None
        for attempt in range(attempts):
            try:
                response = self._client.request(method, path, **kwargs)
            except httpx.HTTPError as exc:
                last_exception = exc
                if attempt < self.max_retries:
                    sleep(0.1 * (attempt + 1))
                    continue
                raise SecretDropAPIError(str(exc)) from exc

            if response.status_code < 400:
                return response
            if _is_transient_response(response) and attempt < self.max_retries:
                logger.debug(
                    "Retrying %s %s after status %s", method, path, response.status_code
                )
                sleep(0.1 * (attempt + 1))
                continue
            raise _exception_for_response(response)

        if last_exception is not None:
            raise SecretDropAPIError(str(last_exception)) from last_exception
        raise SecretDropAPIError("Request failed")

    def __enter__(self) -> "SecretDropClient":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        _ = (exc_type, exc_value, traceback)
        self.close()


def _is_transient_response(response: httpx.Response) -> bool:
    """Return whether a response is worth retrying."""
    return response.status_code in {429, 502, 503, 504}


_STATUS_ERRORS: dict[int, type[SecretDropAPIError]] = {
    400: SecretDropValidationError,
    401: SecretDropAuthError,
    403: SecretDropForbiddenError,
    404: SecretDropNotFoundError,
    409: SecretDropConflictError,
    410: SecretDropGoneError,
    422: SecretDropValidationError,
    429: SecretDropRateLimitError,
}


def _exception_for_response(response: httpx.Response) -> SecretDropAPIError:
    """Map an error response to a typed SDK exception.

    Parameters
    ----------
    response : httpx.Response
        HTTP response.

    Returns
    -------
    SecretDropAPIError
        Typed SDK error.
    """
    try:
        data = response.json()
    except ValueError:
        data = {}
    detail = data.get("detail") if isinstance(data, dict) else None
    if not isinstance(detail, str):
        detail = None
    message = detail or f"SecretDrop request failed with status {response.status_code}"
    error_class = _STATUS_ERRORS.get(response.status_code, SecretDropAPIError)
    return error_class(message, status_code=response.status_code)
