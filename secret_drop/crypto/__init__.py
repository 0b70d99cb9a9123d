"""Client-side encryption primitives."""

from secret_drop.crypto.envelope import (
    Envelope,
    EnvelopeCodec,
    decrypt,
    encrypt,
    key_for_password,
    key_for_salt,
)
from secret_drop.crypto.keys import (
    PBKDF2_ITERATIONS,
    CryptoProvider,
    Key,
    derive_password_key,
    derive_random_key,
    generate_salt,
    hash_key,
)

__all__ = [
    "PBKDF2_ITERATIONS",
    "CryptoProvider",
    "Envelope",
    "EnvelopeCodec",
    "Key",
    "decrypt",
    "derive_password_key",
    "derive_random_key",
    "encrypt",
    "generate_salt",
    "hash_key",
    "key_for_password",
    "key_for_salt",
]
