"""
Component resolution for HTTP message signatures

This module resolves component identifiers against a request or response:
derived components (@method, @path, @query, @authority, @status and friends)
are computed from message metadata, everything else is a header lookup.
"""

import logging
from typing import List

from .exceptions import (
    InvalidComponentError,
    MissingComponentError,
    ValidationError,
    ErrorCodes,
)
from .types import Message, RequestLike, ResponseLike
from .utils import parse_url, serialize_sf_string

logger = logging.getLogger(__name__)


# Derived components computed from the request method and target URL
REQUEST_DERIVED_COMPONENTS = frozenset({
    "@method",
    "@target-uri",
    "@authority",
    "@scheme",
    "@request-target",
    "@path",
    "@query",
})

# Derived components computed from the response
RESPONSE_DERIVED_COMPONENTS = frozenset({
    "@status",
})

DERIVED_COMPONENTS = REQUEST_DERIVED_COMPONENTS | RESPONSE_DERIVED_COMPONENTS

DEFAULT_REQUEST_COMPONENTS = (
    "@method",
    "@path",
    "@query",
    "@authority",
    "content-type",
    "digest",
)

DEFAULT_RESPONSE_COMPONENTS = (
    "@status",
    "content-type",
    "digest",
)


def normalize_component_id(component_id: str) -> str:
    """
    Normalize a component identifier to its lowercase form.
    
    Args:
        component_id: Derived component name or header name
    
    Returns:
        str: Lowercased identifier
    
    Raises:
        ValidationError: If the identifier is empty or not a string
    """
    if not isinstance(component_id, str) or not component_id.strip():
        raise ValidationError(
            f"Invalid component identifier: {component_id!r}",
            ErrorCodes.INVALID_COMPONENT,
            {"component": repr(component_id)}
        )
    
    return component_id.lower()


def is_derived_component(component_id: str) -> bool:
    """Check whether an identifier names a derived component."""
    return component_id.startswith("@")


def resolve_component(message: Message, component_id: str) -> str:
    """
    Resolve a component identifier to its canonical value.
    
    Args:
        message: Request or response being signed
        component_id: Component identifier
    
    Returns:
        str: Component value as it appears in the signature base
    
    Raises:
        MissingComponentError: If a header or the query is absent from the message
        InvalidComponentError: If a derived component does not apply to the message
    """
    name = normalize_component_id(component_id)
    
    if is_derived_component(name):
        return _resolve_derived_component(message, name)
    
    return _resolve_header_component(message, name)


def _resolve_derived_component(message: Message, name: str) -> str:
    if name in RESPONSE_DERIVED_COMPONENTS:
        if not isinstance(message, ResponseLike):
            raise InvalidComponentError(
                f"Component {name} is only available on responses",
                name,
                {"message_type": type(message).__name__}
            )
        return str(message.status)
    
    if name not in REQUEST_DERIVED_COMPONENTS:
        raise InvalidComponentError(f"Unsupported derived component: {name}", name)
    
    if not isinstance(message, RequestLike):
        raise InvalidComponentError(
            f"Component {name} is only available on requests",
            name,
            {"message_type": type(message).__name__}
        )
    
    if name == "@method":
        return message.method.upper()
    
    url_parts = parse_url(message.url)
    query = url_parts["query"]
    
    if name == "@query":
        if query is None:
            raise MissingComponentError(
                f"Request URL has no query: {message.url}",
                name,
                {"url": message.url}
            )
        return f"?{query}"
    
    if name == "@request-target":
        return url_parts["path"] if query is None else f"{url_parts['path']}?{query}"
    
    return {
        "@path": url_parts["path"],
        "@authority": url_parts["authority"],
        "@scheme": url_parts["scheme"],
        "@target-uri": url_parts["target_uri"],
    }[name]


def _resolve_header_component(message: Message, name: str) -> str:
    value = message.headers.get(name)
    
    if value is None:
        raise MissingComponentError(
            f"Header not found: {name}",
            name,
            {"available_headers": list(message.headers.keys())}
        )
    
    return value


def has_component(message: Message, component_id: str) -> bool:
    """
    Check whether a component can be resolved against a message.
    
    Args:
        message: Request or response
        component_id: Component identifier
    
    Returns:
        bool: True if resolve_component would succeed
    """
    try:
        resolve_component(message, component_id)
    except (MissingComponentError, InvalidComponentError):
        return False
    return True


def default_components(message: Message) -> List[str]:
    """
    Select the default covered components for a message.
    
    Components from the default list that the message lacks are dropped
    instead of raising.
    
    Args:
        message: Request or response
    
    Returns:
        list: Component identifiers in default order
    """
    if isinstance(message, ResponseLike):
        candidates = DEFAULT_RESPONSE_COMPONENTS
    else:
        candidates = DEFAULT_REQUEST_COMPONENTS
    
    selected = [c for c in candidates if has_component(message, c)]
    
    dropped = [c for c in candidates if c not in selected]
    if dropped:
        logger.debug(f"Dropped absent default components: {dropped}")
    
    return selected


def component_line(component_id: str, value: str) -> str:
    """
    Format one line of the signature base.
    
    Args:
        component_id: Component identifier
        value: Resolved component value, used verbatim
    
    Returns:
        str: Line of the form "<id>": <value>
    """
    return f"{serialize_sf_string(normalize_component_id(component_id))}: {value}"
