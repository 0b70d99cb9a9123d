"""Token and digest helpers."""

import hashlib
import hmac
from secrets import token_urlsafe

from argon2 import PasswordHasher
from argon2.exceptions import VerificationError

password_hasher = PasswordHasher()

TOKEN_PREFIX = "sdt"


def generate_plaintext_token(prefix: str = TOKEN_PREFIX) -> str:
    """Generate a member API token.

    Parameters
    ----------
    prefix : str, default="sdt"
        Human-readable token prefix.

    Returns
    -------
    str
        New opaque token, shown to the caller once.
    """
    return f"{prefix}_{token_urlsafe(24)}"


def lookup_hash(token: str) -> str:
    """Compute the indexed SHA-256 digest used to find a token row.

    Parameters
    ----------
    token : str
        Raw token.

    Returns
    -------
    str
        Hex-encoded SHA-256 digest.
    """
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def hash_token(token: str) -> str:
    """Hash a token for storage with Argon2."""
    return password_hasher.hash(token)


def verify_token(token: str, token_hash: str) -> bool:
    """Verify a token against its Argon2 hash.

    Parameters
    ----------
    token : str
        Raw token.
    token_hash : str
        Stored token hash.

    Returns
    -------
    bool
        Whether the token matches.
    """
    try:
        return password_hasher.verify(token_hash, token)
    except VerificationError:
        return False


def key_hashes_match(supplied: str, stored: str) -> bool:
    """Compare envelope key hashes in constant time."""
    return hmac.compare_digest(supplied.encode("utf-8"), stored.encode("utf-8"))
