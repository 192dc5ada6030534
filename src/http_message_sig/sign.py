"""
Signature header assembly

This module ties the signature base builder to a caller-supplied signer and
produces the Signature and Signature-Input header values.
"""

import inspect
import logging
from datetime import datetime
from typing import Optional, Sequence, Union

from .exceptions import SigningFailureError, ErrorCodes
from .signature_base import (
    build_signature_base,
    format_signature_header,
    format_signature_input_header,
    validate_key_name,
)
from .types import (
    DEFAULT_KEY_NAME,
    Message,
    SignatureBase,
    SignatureHeaders,
    SignatureParameters,
    Signer,
    TimestampGenerator,
)
from .utils import encode_base64, to_timestamp

logger = logging.getLogger(__name__)

Timestamp = Union[int, datetime]


def prepare_signature_base(
    message: Message,
    signer: Signer,
    components: Optional[Sequence[str]] = None,
    created: Optional[Timestamp] = None,
    expires: Optional[Timestamp] = None,
    nonce: Optional[str] = None,
    tag: Optional[str] = None,
    key: str = DEFAULT_KEY_NAME,
    timestamp_generator: Optional[TimestampGenerator] = None,
    log_signature_base: bool = False
) -> SignatureBase:
    """
    Build the signature base a signer will be asked to sign.
    
    The key id and algorithm are taken from the signer.
    
    Returns:
        SignatureBase: Composed base and Signature-Input value
    """
    validate_key_name(key)
    
    parameters = SignatureParameters(
        created=to_timestamp(created) if created is not None else None,
        expires=to_timestamp(expires) if expires is not None else None,
        nonce=nonce,
        keyid=getattr(signer, "keyid", None),
        alg=getattr(signer, "alg", None),
        tag=tag
    )
    
    return build_signature_base(
        message,
        components,
        parameters,
        timestamp_generator=timestamp_generator,
        log_signature_base=log_signature_base
    )


def assemble_headers(key: str, signature_base: SignatureBase, signature: bytes) -> SignatureHeaders:
    """
    Build the output headers from the signer's result.
    
    Args:
        key: Signature label
        signature_base: Base that was signed
        signature: Raw signature bytes
    
    Returns:
        dict: Signature and Signature-Input header values
    
    Raises:
        SigningFailureError: If the signer did not return bytes
    """
    if not isinstance(signature, (bytes, bytearray, memoryview)):
        raise SigningFailureError(
            f"Signer returned {type(signature).__name__}, expected bytes",
            ErrorCodes.SIGNING_FAILED
        )
    
    return {
        "Signature": format_signature_header(key, encode_base64(signature)),
        "Signature-Input": format_signature_input_header(key, signature_base.signature_input),
    }


def _signing_failure(error: Exception) -> SigningFailureError:
    return SigningFailureError(
        f"Signer failed: {error}",
        ErrorCodes.SIGNING_FAILED,
        {"original_error": str(error)}
    )


async def signature_headers(
    message: Message,
    signer: Signer,
    components: Optional[Sequence[str]] = None,
    created: Optional[Timestamp] = None,
    expires: Optional[Timestamp] = None,
    nonce: Optional[str] = None,
    tag: Optional[str] = None,
    key: str = DEFAULT_KEY_NAME,
    timestamp_generator: Optional[TimestampGenerator] = None,
    log_signature_base: bool = False
) -> SignatureHeaders:
    """
    Sign a request or response and return its signature headers.
    
    The signer may be synchronous or asynchronous; it is called exactly once.
    
    Args:
        message: Request or response to sign
        signer: Signing capability, providing keyid and alg
        components: Covered components; defaults depend on the message type
        created: Creation time; defaults to now
        expires: Optional expiry time
        nonce: Optional nonce
        tag: Optional application tag
        key: Signature label
        timestamp_generator: Clock used when created is not given
        log_signature_base: Log the full signature base at debug level
    
    Returns:
        dict: {"Signature": ..., "Signature-Input": ...}
    
    Raises:
        MissingComponentError: If an explicit component is absent
        InvalidComponentError: If a component does not apply to the message
        SigningFailureError: If the signer fails
    """
    signature_base = prepare_signature_base(
        message, signer, components, created, expires, nonce, tag, key,
        timestamp_generator, log_signature_base
    )
    
    try:
        signature = signer.sign(signature_base.base)
        if inspect.isawaitable(signature):
            signature = await signature
    except SigningFailureError:
        raise
    except Exception as e:
        raise _signing_failure(e) from e
    
    return assemble_headers(key, signature_base, signature)


def signature_headers_sync(
    message: Message,
    signer: Signer,
    components: Optional[Sequence[str]] = None,
    created: Optional[Timestamp] = None,
    expires: Optional[Timestamp] = None,
    nonce: Optional[str] = None,
    tag: Optional[str] = None,
    key: str = DEFAULT_KEY_NAME,
    timestamp_generator: Optional[TimestampGenerator] = None,
    log_signature_base: bool = False
) -> SignatureHeaders:
    """
    Synchronous counterpart of signature_headers for signers that return bytes.
    
    Raises:
        SigningFailureError: If the signer fails or returns an awaitable
    """
    signature_base = prepare_signature_base(
        message, signer, components, created, expires, nonce, tag, key,
        timestamp_generator, log_signature_base
    )
    
    try:
        signature = signer.sign(signature_base.base)
    except SigningFailureError:
        raise
    except Exception as e:
        raise _signing_failure(e) from e
    
    if inspect.isawaitable(signature):
        if inspect.iscoroutine(signature):
            signature.close()
        raise SigningFailureError(
            "Signer is asynchronous; use signature_headers instead",
            ErrorCodes.SIGNING_FAILED
        )
    
    return assemble_headers(key, signature_base, signature)
