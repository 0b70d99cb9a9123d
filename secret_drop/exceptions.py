"""SDK exception types."""

from __future__ import annotations


class SecretDropError(Exception):
    """Base SDK error."""


class InvalidInput(SecretDropError):
    """Key derivation or envelope parameters were malformed."""


class DecryptionFailed(SecretDropError):
    """Authenticated decryption did not verify.

    The message is deliberately the same for a wrong key, a wrong password and
    corrupted ciphertext.
    """

    def __init__(self, message: str = "Unable to decrypt secret") -> None:
        super().__init__(message)


class SecretDropAPIError(SecretDropError):
    """API request failed.

    Parameters
    ----------
    message : str
        Error message.
    status_code : int | None, default=None
        HTTP status code if available.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class SecretDropAuthError(SecretDropAPIError):
    """Authentication failed or the encryption key was rejected."""


class SecretDropForbiddenError(SecretDropAPIError):
    """Role or subscription tier does not allow the request."""


class SecretDropValidationError(SecretDropAPIError):
    """Request payload validation failed."""


class SecretDropNotFoundError(SecretDropAPIError):
    """Requested resource was not found."""


class SecretDropConflictError(SecretDropAPIError):
    """Request conflicted with current server state."""


class SecretDropGoneError(SecretDropAPIError):
    """Secret can no longer be viewed (expired, view limit, burned)."""


class SecretDropRateLimitError(SecretDropAPIError):
    """Caller hit a rate limit."""
