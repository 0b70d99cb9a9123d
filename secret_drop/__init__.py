"""Python SDK for the SecretDrop service."""

from secret_drop.client import SecretDropClient
from secret_drop.exceptions import (
    DecryptionFailed,
    InvalidInput,
    SecretDropAPIError,
    SecretDropAuthError,
    SecretDropConflictError,
    SecretDropError,
    SecretDropForbiddenError,
    SecretDropGoneError,
    SecretDropNotFoundError,
    SecretDropRateLimitError,
    SecretDropValidationError,
)
from secret_drop.share import ShareLink, build_share_url, parse_share_url
from secret_drop.types import AccessEvent, CreatedSecret, RevealedSecret, SecretInfo

__all__ = [
    "AccessEvent",
    "CreatedSecret",
    "DecryptionFailed",
    "InvalidInput",
    "RevealedSecret",
    "SecretDropAPIError",
    "SecretDropAuthError",
    "SecretDropClient",
    "SecretDropConflictError",
    "SecretDropError",
    "SecretDropForbiddenError",
    "SecretDropGoneError",
    "SecretDropNotFoundError",
    "SecretDropRateLimitError",
    "SecretDropValidationError",
    "SecretInfo",
    "ShareLink",
    "build_share_url",
    "parse_share_url",
]
