"""
Signers and verifiers built on the cryptography package
"""

from .ed25519 import (
    Ed25519Signer,
    Ed25519Verifier,
    ED25519_ALGORITHM,
)

from .hmac_sha256 import (
    HmacSha256Signer,
    HmacSha256Verifier,
    HMAC_SHA256_ALGORITHM,
)

__all__ = [
    'Ed25519Signer',
    'Ed25519Verifier',
    'ED25519_ALGORITHM',
    'HmacSha256Signer',
    'HmacSha256Verifier',
    'HMAC_SHA256_ALGORITHM',
]
