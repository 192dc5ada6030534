"""
Utility functions for HTTP message signatures

This module provides the small helpers the signature base builder relies on:
timestamp handling, URL parsing for derived components, header name
normalization, structured-field string serialization, and the base64 codec
used to package signature bytes.
"""

import re
import time
import base64
import binascii
from datetime import datetime
from typing import Dict, Optional, Union
from urllib.parse import urlsplit, urlunsplit

from .exceptions import EncodingError, ValidationError, ErrorCodes


DEFAULT_PORTS = {
    'http': 80,
    'https': 443,
}

# RFC 8941 sf-key, used for signature labels and parameter names
_SF_KEY_PATTERN = re.compile(r'^[a-z*][a-z0-9_\-.*]*$')

# RFC 8941 sf-string allows printable ASCII only
_SF_STRING_PATTERN = re.compile(r'^[\x20-\x7e]*$')


def generate_timestamp() -> int:
    """
    Generate current Unix timestamp.
    
    Returns:
        int: Current Unix timestamp (seconds since epoch)
    """
    return int(time.time())


def to_timestamp(value: Union[int, datetime]) -> int:
    """
    Convert a creation/expiry value to whole Unix seconds.
    
    Args:
        value: Unix timestamp or timezone-aware datetime
        
    Returns:
        int: Unix timestamp
        
    Raises:
        ValidationError: If the value is not an integer or datetime
    """
    if isinstance(value, datetime):
        return int(value.timestamp())
    
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(
            f"Timestamp must be an integer or datetime, got {type(value).__name__}",
            ErrorCodes.INVALID_PARAMETER,
            {"value": repr(value)}
        )
    
    return value


def normalize_header_name(name: str) -> str:
    """
    Normalize header name to lowercase for consistent processing.
    
    Args:
        name: Header name to normalize
        
    Returns:
        str: Lowercase header name
    """
    return name.lower().strip()


def is_sf_key(value: str) -> bool:
    """Check whether a value is a valid structured-field key (signature label or parameter name)."""
    return isinstance(value, str) and bool(_SF_KEY_PATTERN.match(value))


def serialize_sf_string(value: str) -> str:
    """
    Serialize a value as a structured-field string.
    
    Args:
        value: String to serialize
        
    Returns:
        str: Double-quoted string with backslash and quote escaped
        
    Raises:
        ValidationError: If the value contains characters outside printable ASCII
    """
    if not isinstance(value, str) or not _SF_STRING_PATTERN.match(value):
        raise ValidationError(
            f"Invalid structured field string: {value!r}",
            ErrorCodes.INVALID_PARAMETER,
            {"value": repr(value)}
        )
    
    escaped = value.replace('\\', '\\\\').replace('"', '\\"')
    return f'"{escaped}"'


def parse_url(url: str) -> Dict[str, Optional[str]]:
    """
    Parse URL to extract components needed for signing.
    
    Args:
        url: URL string to parse
        
    Returns:
        dict: Dictionary with parsed URL components:
            - scheme: lowercased scheme
            - authority: lowercased host, with port when not the scheme default
            - path: path component, "/" when empty
            - query: raw query string without "?", or None when the URL has none
            - target_uri: full URL without fragment
            
    Raises:
        ValidationError: If URL format is invalid
    """
    if not isinstance(url, str) or not url:
        raise ValidationError(
            "Request URL cannot be empty",
            ErrorCodes.INVALID_URL,
            {"url": repr(url)}
        )
    
    parsed = urlsplit(url)
    
    if not parsed.scheme or not parsed.netloc:
        raise ValidationError(
            f"Invalid URL format: {url}",
            ErrorCodes.INVALID_URL,
            {"url": url}
        )
    
    scheme = parsed.scheme.lower()
    if scheme not in DEFAULT_PORTS:
        raise ValidationError(
            f"Unsupported URL scheme: {parsed.scheme}",
            ErrorCodes.INVALID_URL,
            {"url": url, "scheme": parsed.scheme}
        )
    
    try:
        port = parsed.port
    except ValueError as e:
        raise ValidationError(
            f"Invalid port in URL: {url}",
            ErrorCodes.INVALID_URL,
            {"url": url, "original_error": str(e)}
        ) from e
    
    host = parsed.hostname or ""
    if ':' in host:
        host = f"[{host}]"
    
    authority = host
    if port is not None and port != DEFAULT_PORTS[scheme]:
        authority = f"{host}:{port}"
    
    # urlsplit cannot tell "/a?" from "/a", so look for the separator itself
    has_query = '?' in url.split('#', 1)[0]
    
    return {
        "scheme": scheme,
        "authority": authority,
        "path": parsed.path or "/",
        "query": parsed.query if has_query else None,
        "target_uri": urlunsplit((parsed.scheme, parsed.netloc, parsed.path, parsed.query, "")) + ("?" if has_query and not parsed.query else ""),
    }


def encode_base64(data: bytes) -> str:
    """
    Encode signature bytes as standard base64.
    
    Args:
        data: Raw signature bytes
        
    Returns:
        str: Base64 text
    """
    return base64.b64encode(bytes(data)).decode('ascii')


def decode_base64(text: str) -> bytes:
    """
    Decode standard base64 text back to bytes.
    
    Args:
        text: Base64 text
        
    Returns:
        bytes: Decoded bytes
        
    Raises:
        EncodingError: If the text is not valid base64
    """
    try:
        return base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as e:
        raise EncodingError(
            f"Invalid base64 value: {e}",
            ErrorCodes.ENCODING_FAILED,
            {"value": text}
        ) from e
