"""
Signature base construction for HTTP Message Signatures

This module serializes covered components and signature parameters into the
exact string that gets signed, together with the matching Signature-Input
member value. The component list inside Signature-Input is always the same
text as the one inside the @signature-params line.
"""

import logging
from dataclasses import replace
from typing import List, Optional, Sequence

from .components import (
    component_line,
    default_components,
    normalize_component_id,
    resolve_component,
)
from .exceptions import ValidationError, ErrorCodes
from .types import (
    Message,
    RequestLike,
    ResponseLike,
    SignatureBase,
    SignatureParameters,
    TimestampGenerator,
)
from .utils import generate_timestamp, is_sf_key, serialize_sf_string

logger = logging.getLogger(__name__)

SIGNATURE_PARAMS_COMPONENT = "@signature-params"


def serialize_component_list(components: Sequence[str]) -> str:
    """
    Serialize covered components as a structured-field inner list.
    
    Args:
        components: Component identifiers in covered order
    
    Returns:
        str: e.g. ("@method" "@path" "content-type")
    """
    items = " ".join(serialize_sf_string(normalize_component_id(c)) for c in components)
    return f"({items})"


def serialize_parameters(parameters: SignatureParameters) -> str:
    """
    Serialize signature parameters in their fixed order.
    
    Integers are emitted bare, strings double-quoted, unset parameters omitted.
    
    Args:
        parameters: Signature parameters
    
    Returns:
        str: e.g. ;created=1681004344;keyid="test-key";alg="hmac-sha256"
    
    Raises:
        ValidationError: If a parameter has the wrong type or a negative value
    """
    serialized = []
    
    for name, value in parameters.items():
        if name in ("created", "expires"):
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ValidationError(
                    f"Parameter {name} must be a non-negative integer, got {value!r}",
                    ErrorCodes.INVALID_PARAMETER,
                    {"parameter": name}
                )
            serialized.append(f";{name}={value}")
        else:
            serialized.append(f";{name}={serialize_sf_string(value)}")
    
    return "".join(serialized)


def compose_signature_base(
    message: Message,
    components: Sequence[str],
    signature_input: str
) -> str:
    """
    Build the signature base from components and an already serialized
    Signature-Input member value.
    
    Args:
        message: Request or response being signed or verified
        components: Covered component identifiers, in order
        signature_input: Value of the @signature-params line
    
    Returns:
        str: Newline-joined signature base, no trailing newline
    
    Raises:
        MissingComponentError: If a component is absent from the message
        InvalidComponentError: If a component does not apply to the message
    """
    lines = [
        component_line(component, resolve_component(message, component))
        for component in components
    ]
    lines.append(component_line(SIGNATURE_PARAMS_COMPONENT, signature_input))
    
    return "\n".join(lines)


def build_signature_base(
    message: Message,
    components: Optional[Sequence[str]] = None,
    parameters: Optional[SignatureParameters] = None,
    timestamp_generator: Optional[TimestampGenerator] = None,
    log_signature_base: bool = False
) -> SignatureBase:
    """
    Build the signature base and Signature-Input value for a message.
    
    Args:
        message: Request or response to sign
        components: Covered component identifiers; defaults to the message
            type's default list with absent components dropped
        parameters: Signature parameters; created defaults to the current time
        timestamp_generator: Clock used when created is not set
        log_signature_base: Log the full signature base at debug level
    
    Returns:
        SignatureBase: Base string, Signature-Input value and effective inputs
    
    Raises:
        ValidationError: If the message or parameters are malformed
        MissingComponentError: If an explicit component is absent
        InvalidComponentError: If a component does not apply to the message
    """
    if not isinstance(message, (RequestLike, ResponseLike)):
        raise ValidationError(
            f"Message must be RequestLike or ResponseLike, got {type(message).__name__}",
            ErrorCodes.INVALID_MESSAGE
        )
    
    if components is None:
        covered: List[str] = default_components(message)
    else:
        covered = [normalize_component_id(c) for c in components]
    
    parameters = parameters or SignatureParameters()
    if parameters.created is None:
        clock = timestamp_generator or generate_timestamp
        parameters = replace(parameters, created=clock())
    
    signature_input = serialize_component_list(covered) + serialize_parameters(parameters)
    base = compose_signature_base(message, covered, signature_input)
    
    logger.debug(f"Built signature base covering {covered}")
    if log_signature_base:
        logger.debug(f"Signature base:\n{base}")
    
    return SignatureBase(
        base=base,
        signature_input=signature_input,
        components=covered,
        parameters=parameters
    )


def format_signature_input_header(key: str, signature_input: str) -> str:
    """
    Prefix a Signature-Input member value with its label.
    
    Args:
        key: Signature label (e.g., "sig1")
        signature_input: Serialized component list and parameters
    
    Returns:
        str: Signature-Input header value
    """
    validate_key_name(key)
    return f"{key}={signature_input}"


def format_signature_header(key: str, encoded_signature: str) -> str:
    """
    Wrap encoded signature bytes as a structured-field byte sequence.
    
    Args:
        key: Signature label (e.g., "sig1")
        encoded_signature: Base64 signature
    
    Returns:
        str: Signature header value
    """
    validate_key_name(key)
    return f"{key}=:{encoded_signature}:"


def validate_key_name(key: str) -> None:
    """
    Validate a signature label.
    
    Raises:
        ValidationError: If the label is not a structured-field key
    """
    if not is_sf_key(key):
        raise ValidationError(
            f"Invalid signature key name: {key!r}",
            ErrorCodes.INVALID_PARAMETER,
            {"key": repr(key)}
        )
