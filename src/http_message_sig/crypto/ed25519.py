"""
Ed25519 signer and verifier for HTTP message signatures

Thin adapters around the cryptography package's Ed25519 primitives, exposing
the Signer and Verifier interfaces used by the signature header builder.
"""

import logging
from typing import Union

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey, Ed25519PublicKey

from ..exceptions import ValidationError
from ..types import SignatureParameters, Signer, Verifier

logger = logging.getLogger(__name__)

ED25519_ALGORITHM = "ed25519"

# Constants for Ed25519 key operations
ED25519_PRIVATE_KEY_LENGTH = 32
ED25519_PUBLIC_KEY_LENGTH = 32
ED25519_SIGNATURE_LENGTH = 64


def _load_private_key(private_key: Union[bytes, Ed25519PrivateKey]) -> Ed25519PrivateKey:
    if isinstance(private_key, Ed25519PrivateKey):
        return private_key
    
    if not isinstance(private_key, bytes):
        raise ValidationError("Private key must be bytes", "INVALID_PRIVATE_KEY_TYPE")
    
    if len(private_key) != ED25519_PRIVATE_KEY_LENGTH:
        raise ValidationError(
            f"Private key must be exactly {ED25519_PRIVATE_KEY_LENGTH} bytes",
            "INVALID_PRIVATE_KEY_LENGTH"
        )
    
    return Ed25519PrivateKey.from_private_bytes(private_key)


def _load_public_key(public_key: Union[bytes, Ed25519PublicKey]) -> Ed25519PublicKey:
    if isinstance(public_key, Ed25519PublicKey):
        return public_key
    
    if not isinstance(public_key, bytes):
        raise ValidationError("Public key must be bytes", "INVALID_PUBLIC_KEY_TYPE")
    
    if len(public_key) != ED25519_PUBLIC_KEY_LENGTH:
        raise ValidationError(
            f"Public key must be exactly {ED25519_PUBLIC_KEY_LENGTH} bytes",
            "INVALID_PUBLIC_KEY_LENGTH"
        )
    
    return Ed25519PublicKey.from_public_bytes(public_key)


class Ed25519Signer(Signer):
    """
    Signs signature bases with an Ed25519 private key.
    
    Attributes:
        keyid: Key identifier emitted in the keyid parameter
        alg: Always "ed25519"
    """
    
    alg = ED25519_ALGORITHM
    
    def __init__(self, private_key: Union[bytes, Ed25519PrivateKey], keyid: str):
        """
        Initialize the signer.
        
        Args:
            private_key: Raw 32-byte private key or a cryptography key object
            keyid: Key identifier
            
        Raises:
            ValidationError: If the private key is malformed
        """
        self._private_key = _load_private_key(private_key)
        self.keyid = keyid
    
    @classmethod
    def generate(cls, keyid: str) -> 'Ed25519Signer':
        """Create a signer with a freshly generated key."""
        return cls(Ed25519PrivateKey.generate(), keyid)
    
    def public_key_bytes(self) -> bytes:
        """Return the raw 32-byte public key."""
        return self._private_key.public_key().public_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PublicFormat.Raw
        )
    
    def verifier(self) -> 'Ed25519Verifier':
        """Return a verifier for this signer's public key."""
        return Ed25519Verifier(self._private_key.public_key())
    
    def sign(self, data: str) -> bytes:
        return self._private_key.sign(data.encode('utf-8'))


class Ed25519Verifier(Verifier):
    """Verifies Ed25519 signatures over signature bases."""
    
    alg = ED25519_ALGORITHM
    
    def __init__(self, public_key: Union[bytes, Ed25519PublicKey]):
        """
        Initialize the verifier.
        
        Args:
            public_key: Raw 32-byte public key or a cryptography key object
            
        Raises:
            ValidationError: If the public key is malformed
        """
        self._public_key = _load_public_key(public_key)
    
    def verify(self, data: str, signature: bytes, parameters: SignatureParameters) -> bool:
        if parameters.alg is not None and parameters.alg != self.alg:
            logger.warning(f"Algorithm mismatch: expected {self.alg}, got {parameters.alg}")
            return False
        
        if len(signature) != ED25519_SIGNATURE_LENGTH:
            return False
        
        try:
            self._public_key.verify(signature, data.encode('utf-8'))
            return True
        except InvalidSignature:
            return False
