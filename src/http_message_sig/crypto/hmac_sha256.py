"""
HMAC-SHA256 signer and verifier for HTTP message signatures
"""

import logging

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.hmac import HMAC

from ..exceptions import ValidationError
from ..types import SignatureParameters, Signer, Verifier

logger = logging.getLogger(__name__)

HMAC_SHA256_ALGORITHM = "hmac-sha256"


def _validate_secret(secret: bytes) -> None:
    if not isinstance(secret, bytes):
        raise ValidationError("HMAC secret must be bytes", "INVALID_SECRET_TYPE")
    
    if not secret:
        raise ValidationError("HMAC secret cannot be empty", "INVALID_SECRET_LENGTH")


class HmacSha256Signer(Signer):
    """
    Signs signature bases with a shared HMAC-SHA256 secret.
    
    Attributes:
        keyid: Key identifier emitted in the keyid parameter
        alg: Always "hmac-sha256"
    """
    
    alg = HMAC_SHA256_ALGORITHM
    
    def __init__(self, secret: bytes, keyid: str):
        _validate_secret(secret)
        self._secret = secret
        self.keyid = keyid
    
    def verifier(self) -> 'HmacSha256Verifier':
        """Return a verifier sharing this signer's secret."""
        return HmacSha256Verifier(self._secret)
    
    def sign(self, data: str) -> bytes:
        mac = HMAC(self._secret, hashes.SHA256())
        mac.update(data.encode('utf-8'))
        return mac.finalize()


class HmacSha256Verifier(Verifier):
    """Verifies HMAC-SHA256 signatures in constant time."""
    
    alg = HMAC_SHA256_ALGORITHM
    
    def __init__(self, secret: bytes):
        _validate_secret(secret)
        self._secret = secret
    
    def verify(self, data: str, signature: bytes, parameters: SignatureParameters) -> bool:
        if parameters.alg is not None and parameters.alg != self.alg:
            logger.warning(f"Algorithm mismatch: expected {self.alg}, got {parameters.alg}")
            return False
        
        mac = HMAC(self._secret, hashes.SHA256())
        mac.update(data.encode('utf-8'))
        try:
            mac.verify(signature)
            return True
        except InvalidSignature:
            return False
