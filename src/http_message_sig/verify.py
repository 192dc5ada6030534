"""
Signature verification for HTTP Message Signatures

This module parses the Signature-Input and Signature dictionaries carried on
a message, rebuilds the signature base from the transmitted component list
and parameters, and hands it to a caller-supplied verifier.
"""

import inspect
import logging
import re
from typing import Dict, List, Optional, Tuple, Union

from .exceptions import VerificationError, ErrorCodes
from .signature_base import compose_signature_base
from .types import PARAMETER_ORDER, Message, ParsedSignatureInput, SignatureParameters, Verifier
from .utils import decode_base64

logger = logging.getLogger(__name__)

_KEY_RE = re.compile(r'[a-z*][a-z0-9_\-.*]*')
_STRING_RE = re.compile(r'"((?:[^"\\]|\\["\\])*)"')
_INTEGER_RE = re.compile(r'-?[0-9]{1,15}(?![0-9.])')
_TOKEN_RE = re.compile(r"[A-Za-z*][!#$%&'*+\-.^_`|~0-9A-Za-z:/]*")
_BYTES_RE = re.compile(r':([A-Za-z0-9+/=]*):')
_OWS_RE = re.compile(r'[ \t]*')

_INTEGER_PARAMETERS = ("created", "expires")


class _Scanner:
    """Position-tracking reader over a structured field dictionary."""
    
    def __init__(self, text: str, error_code: str):
        self.text = text
        self.pos = 0
        self.error_code = error_code
    
    def fail(self, reason: str) -> VerificationError:
        return VerificationError(
            f"{reason} at position {self.pos}",
            self.error_code,
            {"value": self.text}
        )
    
    def at_end(self) -> bool:
        return self.pos >= len(self.text)
    
    def peek(self) -> str:
        return self.text[self.pos] if not self.at_end() else ""
    
    def skip_ows(self) -> None:
        self.pos = _OWS_RE.match(self.text, self.pos).end()
    
    def expect(self, char: str) -> None:
        if self.peek() != char:
            raise self.fail(f"Expected {char!r}")
        self.pos += 1
    
    def match(self, pattern: "re.Pattern", what: str) -> "re.Match":
        found = pattern.match(self.text, self.pos)
        if not found:
            raise self.fail(f"Expected {what}")
        self.pos = found.end()
        return found
    
    def key(self) -> str:
        return self.match(_KEY_RE, "key").group(0)
    
    def string(self) -> str:
        raw = self.match(_STRING_RE, "string").group(1)
        return re.sub(r'\\(["\\])', r'\1', raw)
    
    def bare_item(self) -> Union[int, str]:
        char = self.peek()
        if char == '"':
            return self.string()
        if char == '-' or char.isdigit():
            return int(self.match(_INTEGER_RE, "integer").group(0))
        if char == ':':
            return self.match(_BYTES_RE, "byte sequence").group(1)
        return self.match(_TOKEN_RE, "token").group(0)
    
    def parameters(self) -> List[Tuple[str, Union[int, str, bool]]]:
        params = []
        while self.peek() == ';':
            self.pos += 1
            self.skip_ows()
            name = self.key()
            value: Union[int, str, bool] = True
            if self.peek() == '=':
                self.pos += 1
                value = self.bare_item()
            params.append((name, value))
        return params
    
    def next_member(self) -> bool:
        """Advance past the separator after a member; False at the end."""
        self.skip_ows()
        if self.at_end():
            return False
        self.expect(',')
        self.skip_ows()
        if self.at_end():
            raise self.fail("Trailing comma")
        return True


def _build_parameters(params: List[Tuple[str, Union[int, str, bool]]], scanner: _Scanner) -> SignatureParameters:
    values: Dict[str, Union[int, str]] = {}
    
    for name, value in params:
        if name not in PARAMETER_ORDER:
            continue
        expected = int if name in _INTEGER_PARAMETERS else str
        if isinstance(value, bool) or not isinstance(value, expected):
            raise scanner.fail(f"Invalid value for parameter {name}")
        values[name] = value
    
    return SignatureParameters(**values)


def parse_signature_input(value: str) -> Dict[str, ParsedSignatureInput]:
    """
    Parse a Signature-Input header value.
    
    Args:
        value: Signature-Input header value, e.g.
            sig1=("@method" "@path");created=1681004344;keyid="test-key"
    
    Returns:
        dict: Parsed members keyed by label, in header order
    
    Raises:
        VerificationError: If the value is not a valid Signature-Input dictionary
    """
    scanner = _Scanner(value or "", ErrorCodes.INVALID_SIGNATURE_INPUT)
    scanner.skip_ows()
    if scanner.at_end():
        raise scanner.fail("Empty Signature-Input")
    
    members: Dict[str, ParsedSignatureInput] = {}
    
    while True:
        label = scanner.key()
        scanner.expect('=')
        start = scanner.pos
        scanner.expect('(')
        
        components = []
        scanner.skip_ows()
        while scanner.peek() != ')':
            if scanner.at_end():
                raise scanner.fail("Unterminated component list")
            component = scanner.string()
            # Lines are rebuilt lowercased, so the transmitted list must be too
            if component != component.lower():
                raise scanner.fail(f"Component identifier must be lowercase: {component!r}")
            components.append(component)
            # Component parameters (e.g. ;sf, ;key) are not supported
            if scanner.peek() == ';':
                raise scanner.fail("Component parameters are not supported")
            if scanner.peek() not in (' ', ')'):
                raise scanner.fail("Expected ' ' or ')'")
            scanner.skip_ows()
        scanner.expect(')')
        
        parameters = _build_parameters(scanner.parameters(), scanner)
        members[label] = ParsedSignatureInput(
            label=label,
            components=components,
            parameters=parameters,
            signature_input=value[start:scanner.pos]
        )
        
        if not scanner.next_member():
            break
    
    return members


def parse_signature(value: str) -> Dict[str, bytes]:
    """
    Parse a Signature header value.
    
    Args:
        value: Signature header value, e.g. sig1=:<base64>:
    
    Returns:
        dict: Raw signature bytes keyed by label
    
    Raises:
        VerificationError: If the value is not a valid Signature dictionary
        EncodingError: If a signature is not valid base64
    """
    scanner = _Scanner(value or "", ErrorCodes.INVALID_SIGNATURE_FORMAT)
    scanner.skip_ows()
    if scanner.at_end():
        raise scanner.fail("Empty Signature")
    
    signatures: Dict[str, bytes] = {}
    
    while True:
        label = scanner.key()
        scanner.expect('=')
        encoded = scanner.match(_BYTES_RE, "byte sequence").group(1)
        scanner.parameters()
        signatures[label] = decode_base64(encoded)
        
        if not scanner.next_member():
            break
    
    return signatures


def _prepare_verification(
    message: Message,
    key: Optional[str]
) -> Tuple[ParsedSignatureInput, bytes, str]:
    signature_input_header = message.headers.get("signature-input")
    signature_header = message.headers.get("signature")
    
    if signature_input_header is None:
        raise VerificationError(
            "Signature-Input header not found",
            ErrorCodes.MISSING_SIGNATURE_INPUT
        )
    
    if signature_header is None:
        raise VerificationError(
            "Signature header not found",
            ErrorCodes.MISSING_SIGNATURE
        )
    
    inputs = parse_signature_input(signature_input_header)
    signatures = parse_signature(signature_header)
    
    label = key if key is not None else next(iter(inputs))
    if label not in inputs or label not in signatures:
        raise VerificationError(
            f"Signature label not found: {label}",
            ErrorCodes.SIGNATURE_LABEL_NOT_FOUND,
            {"label": label, "signature_input_labels": list(inputs), "signature_labels": list(signatures)}
        )
    
    parsed = inputs[label]
    base = compose_signature_base(message, parsed.components, parsed.signature_input)
    
    logger.debug(f"Rebuilt signature base for {label} covering {parsed.components}")
    return parsed, signatures[label], base


def _verification_failed(label: str, error: Optional[Exception] = None) -> VerificationError:
    details = {"label": label}
    if error is not None:
        details["original_error"] = str(error)
    return VerificationError(
        f"Signature verification failed for {label}",
        ErrorCodes.VERIFICATION_FAILED,
        details
    )


async def verify(
    message: Message,
    verifier: Verifier,
    key: Optional[str] = None
) -> ParsedSignatureInput:
    """
    Verify a signature carried on a request or response.
    
    Args:
        message: Message with Signature-Input and Signature headers
        verifier: Verification capability, synchronous or asynchronous
        key: Signature label to check; defaults to the first Signature-Input member
    
    Returns:
        ParsedSignatureInput: The verified signature's components and parameters
    
    Raises:
        VerificationError: If headers are missing or malformed, or verification fails
        MissingComponentError: If a covered component is absent from the message
    """
    parsed, signature, base = _prepare_verification(message, key)
    
    try:
        result = verifier.verify(base, signature, parsed.parameters)
        if inspect.isawaitable(result):
            result = await result
    except VerificationError:
        raise
    except Exception as e:
        raise _verification_failed(parsed.label, e) from e
    
    if not result:
        raise _verification_failed(parsed.label)
    
    return parsed


def verify_sync(
    message: Message,
    verifier: Verifier,
    key: Optional[str] = None
) -> ParsedSignatureInput:
    """
    Synchronous counterpart of verify for verifiers that return a bool.
    
    Raises:
        VerificationError: If verification fails or the verifier is asynchronous
    """
    parsed, signature, base = _prepare_verification(message, key)
    
    try:
        result = verifier.verify(base, signature, parsed.parameters)
    except VerificationError:
        raise
    except Exception as e:
        raise _verification_failed(parsed.label, e) from e
    
    if inspect.isawaitable(result):
        if inspect.iscoroutine(result):
            result.close()
        raise VerificationError(
            "Verifier is asynchronous; use verify instead",
            ErrorCodes.VERIFICATION_FAILED,
            {"label": parsed.label}
        )
    
    if not result:
        raise _verification_failed(parsed.label)
    
    return parsed
