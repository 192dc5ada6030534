"""
Type definitions for HTTP message signatures

This module provides the message model (requests and responses with
case-insensitive headers), signature parameters, the composed signature base,
and the signer/verifier interfaces supplied by callers.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Iterable, Iterator, List, Optional, Tuple, Union

from .exceptions import ValidationError, ErrorCodes
from .utils import normalize_header_name


DEFAULT_KEY_NAME = "sig1"

# Serialization order of signature parameters
PARAMETER_ORDER = ("created", "expires", "nonce", "keyid", "alg", "tag")


class HeaderMap(Mapping):
    """
    Read-only header mapping with case-insensitive lookup.
    
    Header names are stored lowercased in insertion order. Repeated header
    names are combined into a single comma-separated value.
    """
    
    def __init__(self, headers: Union[Mapping, Iterable[Tuple[str, Any]], None] = None):
        self._headers: Dict[str, str] = {}
        
        if headers is None:
            return
        
        items = headers.items() if isinstance(headers, Mapping) else headers
        for entry in items:
            if len(entry) != 2:
                raise ValidationError(
                    "Header entries must be (name, value) pairs",
                    ErrorCodes.INVALID_MESSAGE,
                    {"entry": repr(entry)}
                )
            name, value = entry
            key = normalize_header_name(str(name))
            if key in self._headers:
                self._headers[key] = f"{self._headers[key]}, {value}"
            else:
                self._headers[key] = str(value)
    
    def __getitem__(self, name: str) -> str:
        if not isinstance(name, str):
            raise KeyError(name)
        return self._headers[normalize_header_name(name)]
    
    def __iter__(self) -> Iterator[str]:
        return iter(self._headers)
    
    def __len__(self) -> int:
        return len(self._headers)
    
    def __repr__(self) -> str:
        return f"HeaderMap({self._headers!r})"


@dataclass
class RequestLike:
    """
    Request whose metadata is covered by a signature
    
    Attributes:
        method: HTTP method (GET, POST, etc.)
        url: Complete request URL
        headers: Request headers, looked up case-insensitively
    """
    method: str
    url: str
    headers: HeaderMap = field(default_factory=HeaderMap)
    
    def __post_init__(self):
        """Validate request after initialization"""
        if not isinstance(self.method, str) or not self.method:
            raise ValidationError("Request method cannot be empty", ErrorCodes.INVALID_MESSAGE)
        
        if not isinstance(self.url, str) or not self.url:
            raise ValidationError("Request URL cannot be empty", ErrorCodes.INVALID_URL)
        
        if not isinstance(self.headers, HeaderMap):
            self.headers = HeaderMap(self.headers)


@dataclass
class ResponseLike:
    """
    Response whose metadata is covered by a signature
    
    Attributes:
        status: HTTP status code
        headers: Response headers, looked up case-insensitively
    """
    status: int
    headers: HeaderMap = field(default_factory=HeaderMap)
    
    def __post_init__(self):
        """Validate response after initialization"""
        if isinstance(self.status, bool) or not isinstance(self.status, int):
            raise ValidationError(
                f"Response status must be an integer, got {type(self.status).__name__}",
                ErrorCodes.INVALID_MESSAGE
            )
        
        if not 100 <= self.status <= 999:
            raise ValidationError(
                f"Response status out of range: {self.status}",
                ErrorCodes.INVALID_MESSAGE,
                {"status": self.status}
            )
        
        if not isinstance(self.headers, HeaderMap):
            self.headers = HeaderMap(self.headers)


Message = Union[RequestLike, ResponseLike]


@dataclass(frozen=True)
class SignatureParameters:
    """
    Signature parameters appended to the covered component list
    
    Attributes:
        created: Unix timestamp when the signature was created
        expires: Unix timestamp after which the signature is invalid
        nonce: Unique value chosen by the signer
        keyid: Identifier of the signing key
        alg: Signature algorithm label
        tag: Application-specific tag
    """
    created: Optional[int] = None
    expires: Optional[int] = None
    nonce: Optional[str] = None
    keyid: Optional[str] = None
    alg: Optional[str] = None
    tag: Optional[str] = None
    
    def items(self) -> List[Tuple[str, Union[int, str]]]:
        """Return the parameters that are set, in serialization order."""
        return [
            (name, getattr(self, name))
            for name in PARAMETER_ORDER
            if getattr(self, name) is not None
        ]


@dataclass(frozen=True)
class SignatureBase:
    """
    Composed signature base
    
    Attributes:
        base: Exact string passed to the signer
        signature_input: Serialized component list and parameters, the value of
            the @signature-params line and of Signature-Input without its label
        components: Covered component identifiers, lowercased, in order
        parameters: Parameters used, with created filled in
    """
    base: str
    signature_input: str
    components: List[str]
    parameters: SignatureParameters


@dataclass(frozen=True)
class ParsedSignatureInput:
    """
    One member of a parsed Signature-Input dictionary
    
    Attributes:
        label: Signature label (e.g., "sig1")
        components: Covered component identifiers in transmitted order
        parameters: Recognized signature parameters
        signature_input: Member value exactly as transmitted, without the label
    """
    label: str
    components: List[str]
    parameters: SignatureParameters
    signature_input: str


class Signer(ABC):
    """
    Signing capability supplied by the caller.
    
    Implementations hold their own key material. ``sign`` may return bytes
    directly or an awaitable resolving to bytes.
    """
    
    keyid: Optional[str] = None
    alg: Optional[str] = None
    
    @abstractmethod
    def sign(self, data: str) -> Union[bytes, Awaitable[bytes]]:
        """Sign the signature base and return raw signature bytes."""


class Verifier(ABC):
    """
    Verification capability supplied by the caller.
    
    ``verify`` may return a bool directly or an awaitable resolving to one.
    """
    
    @abstractmethod
    def verify(
        self,
        data: str,
        signature: bytes,
        parameters: SignatureParameters
    ) -> Union[bool, Awaitable[bool]]:
        """Check raw signature bytes against the rebuilt signature base."""


# Type aliases for convenience
TimestampGenerator = Callable[[], int]
SignatureHeaders = Dict[str, str]
