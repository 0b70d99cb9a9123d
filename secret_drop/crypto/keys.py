"""Client-side key derivation."""

from __future__ import annotations

import base64
import hashlib
import os
from dataclasses import dataclass, field

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from secret_drop.exceptions import InvalidInput

KEY_LENGTH = 32  # AES-256
SALT_LENGTH = 16
PBKDF2_ITERATIONS = 150_000


class CryptoProvider:
    """Source of cryptographic randomness.

    Key and envelope helpers take the provider explicitly so tests can swap in
    deterministic bytes.
    """

    def random_bytes(self, length: int) -> bytes:
        """Return ``length`` random bytes.

        Parameters
        ----------
        length : int
            Number of bytes to produce.

        Returns
        -------
        bytes
            Random bytes from the operating system CSPRNG.
        """
        return os.urandom(length)


default_provider = CryptoProvider()


@dataclass(frozen=True, slots=True)
class Key:
    """Raw symmetric key held by the client.

    Attributes
    ----------
    material : bytes
        32 raw key bytes. Never persisted server-side.
    salt : bytes | None
        PBKDF2 salt when the key was derived from a password.
    """

    material: bytes = field(repr=False)
    salt: bytes | None = None

    def __post_init__(self) -> None:
        if len(self.material) != KEY_LENGTH:
            raise InvalidInput(f"Key must be {KEY_LENGTH} bytes")
        if self.salt is not None and len(self.salt) != SALT_LENGTH:
            raise InvalidInput(f"Salt must be {SALT_LENGTH} bytes")

    @property
    def password_derived(self) -> bool:
        """Return whether the key came from a password."""
        return self.salt is not None

    def to_hex(self) -> str:
        """Encode the key for a share-link fragment.

        Returns
        -------
        str
            Lowercase hex string of the key material.
        """
        return self.material.hex()

    @classmethod
    def from_hex(cls, value: str) -> "Key":
        """Decode a key from its share-link encoding.

        Parameters
        ----------
        value : str
            Hex-encoded key material.

        Returns
        -------
        Key
            Random-mode key.
        """
        try:
            material = bytes.fromhex(value.strip())
        except ValueError as exc:
            raise InvalidInput("Encryption key is not valid hex") from exc
        return cls(material=material)


def generate_salt(provider: CryptoProvider | None = None) -> bytes:
    """Generate a fresh PBKDF2 salt."""
    return (provider or default_provider).random_bytes(SALT_LENGTH)


def derive_random_key(provider: CryptoProvider | None = None) -> Key:
    """Generate a random 256-bit key for link-embedded sharing.

    Parameters
    ----------
    provider : CryptoProvider | None, default=None
        Randomness source. Defaults to the OS CSPRNG.

    Returns
    -------
    Key
        Key without salt.
    """
    return Key(material=(provider or default_provider).random_bytes(KEY_LENGTH))


def derive_password_key(password: str, salt: bytes) -> Key:
    """Stretch a password into a 256-bit key with PBKDF2-HMAC-SHA256.

    Parameters
    ----------
    password : str
        User-supplied password.
    salt : bytes
        16-byte salt stored alongside the envelope.

    Returns
    -------
    Key
        Deterministic key for ``(password, salt)``.
    """
    if not password:
        raise InvalidInput("Password is required for password-protected secrets")
    if len(salt) != SALT_LENGTH:
        raise InvalidInput(f"Salt must be {SALT_LENGTH} bytes")
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_LENGTH,
        salt=salt,
        iterations=PBKDF2_ITERATIONS,
    )
    return Key(material=kdf.derive(password.encode("utf-8")), salt=salt)


def hash_key(key: Key) -> str:
    """Return the base64 SHA-256 digest stored as the envelope key hash."""
    digest = hashlib.sha256(key.material).digest()
    return base64.b64encode(digest).decode("ascii")
