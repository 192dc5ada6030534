"""
http-message-sig
HTTP Message Signatures (RFC 9421) signature base construction, signing and verification
"""

from .version import __version__
from .types import (
    HeaderMap,
    RequestLike,
    ResponseLike,
    Message,
    SignatureParameters,
    SignatureBase,
    ParsedSignatureInput,
    Signer,
    Verifier,
    DEFAULT_KEY_NAME,
    PARAMETER_ORDER,
)
from .components import (
    resolve_component,
    component_line,
    default_components,
    DEFAULT_REQUEST_COMPONENTS,
    DEFAULT_RESPONSE_COMPONENTS,
    DERIVED_COMPONENTS,
)
from .signature_base import (
    build_signature_base,
    compose_signature_base,
    serialize_component_list,
    serialize_parameters,
)
from .sign import (
    signature_headers,
    signature_headers_sync,
)
from .verify import (
    parse_signature_input,
    parse_signature,
    verify,
    verify_sync,
)
from .config import SignatureConfig
from .exceptions import (
    HTTPMessageSignatureError,
    MissingComponentError,
    InvalidComponentError,
    SigningFailureError,
    EncodingError,
    ValidationError,
    VerificationError,
    ConfigError,
    ErrorCodes,
)

# Public API exports
__all__ = [
    '__version__',
    # Message model
    'HeaderMap',
    'RequestLike',
    'ResponseLike',
    'Message',
    'SignatureParameters',
    'SignatureBase',
    'ParsedSignatureInput',
    'Signer',
    'Verifier',
    'DEFAULT_KEY_NAME',
    'PARAMETER_ORDER',
    # Component resolution
    'resolve_component',
    'component_line',
    'default_components',
    'DEFAULT_REQUEST_COMPONENTS',
    'DEFAULT_RESPONSE_COMPONENTS',
    'DERIVED_COMPONENTS',
    # Signature base
    'build_signature_base',
    'compose_signature_base',
    'serialize_component_list',
    'serialize_parameters',
    # Signing
    'signature_headers',
    'signature_headers_sync',
    # Verification
    'parse_signature_input',
    'parse_signature',
    'verify',
    'verify_sync',
    # Configuration
    'SignatureConfig',
    # Exceptions
    'HTTPMessageSignatureError',
    'MissingComponentError',
    'InvalidComponentError',
    'SigningFailureError',
    'EncodingError',
    'ValidationError',
    'VerificationError',
    'ConfigError',
    'ErrorCodes',
]
