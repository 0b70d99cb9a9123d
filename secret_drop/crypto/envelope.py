"""AES-256-GCM envelope codec.

An envelope is everything the service stores for a secret: ciphertext, IV,
optional PBKDF2 salt and a digest of the key. The key itself stays with the
client.
"""

from __future__ import annotations

import base64
import binascii
import hmac
from dataclasses import dataclass
from typing import Any

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from secret_drop.crypto.keys import (
    SALT_LENGTH,
    CryptoProvider,
    Key,
    default_provider,
    derive_password_key,
    generate_salt,
    hash_key,
)
from secret_drop.exceptions import DecryptionFailed, InvalidInput

NONCE_SIZE = 12  # 96-bit GCM nonce


@dataclass(frozen=True, slots=True)
class Envelope:
    """Stored ciphertext bundle.

    Attributes
    ----------
    ciphertext : str
        Base64 ciphertext including the GCM tag.
    iv : str
        Base64 12-byte nonce.
    salt : str | None
        Base64 16-byte PBKDF2 salt for password-derived keys.
    key_hash : str
        Base64 SHA-256 digest of the raw key.
    """

    ciphertext: str
    iv: str
    salt: str | None
    key_hash: str

    @property
    def requires_password(self) -> bool:
        """Return whether the key must be derived from a password."""
        return self.salt is not None

    def to_dict(self) -> dict[str, str | None]:
        """Return the wire representation.

        Returns
        -------
        dict[str, str | None]
            Envelope fields keyed by their API names.
        """
        return {
            "ciphertext": self.ciphertext,
            "iv": self.iv,
            "salt": self.salt,
            "key_hash": self.key_hash,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Envelope":
        """Build an envelope from an API payload.

        Parameters
        ----------
        data : dict[str, Any]
            Mapping with ``ciphertext``, ``iv``, ``salt`` and ``key_hash``.

        Returns
        -------
        Envelope
            Parsed envelope.
        """
        try:
            return cls(
                ciphertext=data["ciphertext"],
                iv=data["iv"],
                salt=data.get("salt"),
                key_hash=data["key_hash"],
            )
        except KeyError as exc:
            raise InvalidInput(f"Envelope is missing {exc.args[0]}") from exc


class EnvelopeCodec:
    """Encrypt and decrypt envelopes.

    Parameters
    ----------
    provider : CryptoProvider | None, default=None
        Randomness source for IVs and salts.
    """

    def __init__(self, provider: CryptoProvider | None = None) -> None:
        self.provider = provider or default_provider

    def encrypt(self, plaintext: str, key: Key) -> Envelope:
        """Encrypt plaintext under ``key`` with a fresh IV.

        Parameters
        ----------
        plaintext : str
            Secret text, encoded as UTF-8.
        key : Key
            Random or password-derived key.

        Returns
        -------
        Envelope
            Storable envelope. Never contains the key.
        """
        iv = self.provider.random_bytes(NONCE_SIZE)
        ciphertext = AESGCM(key.material).encrypt(iv, plaintext.encode("utf-8"), None)
        return Envelope(
            ciphertext=_b64encode(ciphertext),
            iv=_b64encode(iv),
            salt=_b64encode(key.salt) if key.salt is not None else None,
            key_hash=hash_key(key),
        )

    def encrypt_with_password(self, plaintext: str, password: str) -> Envelope:
        """Encrypt under a key stretched from ``password`` and a fresh salt."""
        key = derive_password_key(password, generate_salt(self.provider))
        return self.encrypt(plaintext, key)

    def decrypt(self, envelope: Envelope, key: Key) -> str:
        """Decrypt an envelope.

        Parameters
        ----------
        envelope : Envelope
            Stored envelope.
        key : Key
            Key supplied by the caller.

        Returns
        -------
        str
            Plaintext.

        Raises
        ------
        DecryptionFailed
            For any authentication or decoding failure.
        """
        try:
            iv = _b64decode(envelope.iv)
            ciphertext = _b64decode(envelope.ciphertext)
            if len(iv) != NONCE_SIZE:
                raise DecryptionFailed()
            plaintext = AESGCM(key.material).decrypt(iv, ciphertext, None)
            return plaintext.decode("utf-8")
        except (InvalidTag, ValueError, binascii.Error) as exc:
            raise DecryptionFailed() from exc

    def decrypt_with_password(self, envelope: Envelope, password: str) -> str:
        """Re-derive the key from ``password`` and decrypt."""
        return self.decrypt(envelope, key_for_password(envelope, password))

    @staticmethod
    def verify_key(envelope: Envelope, key: Key) -> bool:
        """Return whether ``key`` matches the envelope key hash."""
        return hmac.compare_digest(hash_key(key), envelope.key_hash)


def key_for_password(envelope: Envelope, password: str) -> Key:
    """Derive the key for a password-protected envelope.

    Parameters
    ----------
    envelope : Envelope
        Envelope carrying the PBKDF2 salt.
    password : str
        Viewer-supplied password.

    Returns
    -------
    Key
        Derived key.
    """
    if envelope.salt is None:
        raise InvalidInput("Envelope was not encrypted with a password")
    return key_for_salt(envelope.salt, password)


def key_for_salt(salt_b64: str, password: str) -> Key:
    """Derive a password key from a base64 salt published by the service."""
    try:
        salt = _b64decode(salt_b64)
    except (ValueError, binascii.Error) as exc:
        raise InvalidInput("Envelope salt is not valid base64") from exc
    if len(salt) != SALT_LENGTH:
        raise InvalidInput(f"Salt must be {SALT_LENGTH} bytes")
    return derive_password_key(password, salt)


_default_codec = EnvelopeCodec()


def encrypt(plaintext: str, key: Key) -> Envelope:
    """Encrypt with the default codec."""
    return _default_codec.encrypt(plaintext, key)


def decrypt(envelope: Envelope, key: Key) -> str:
    """Decrypt with the default codec."""
    return _default_codec.decrypt(envelope, key)


def _b64encode(value: bytes) -> str:
    return base64.b64encode(value).decode("ascii")


def _b64decode(value: str) -> bytes:
    return base64.b64decode(value.encode("ascii"), validate=True)
