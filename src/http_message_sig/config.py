"""
Configuration for HTTP message signing

Provides signing defaults (signature label, default component lists, tag,
expiry window, debug logging) loadable from a dict, JSON, a file, or the
environment.
"""

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from .components import DEFAULT_REQUEST_COMPONENTS, DEFAULT_RESPONSE_COMPONENTS
from .exceptions import ConfigError, ErrorCodes
from .types import DEFAULT_KEY_NAME, Message, ResponseLike, TimestampGenerator
from .utils import generate_timestamp, is_sf_key

ENV_PREFIX = "HTTP_MESSAGE_SIG_"

_TRUE_VALUES = ("1", "true", "yes", "on")


@dataclass
class SignatureConfig:
    """
    Signing defaults
    
    Attributes:
        key_name: Signature label used in both output headers
        request_components: Covered components for requests; None selects the
            built-in default list with absent components dropped
        response_components: Covered components for responses; None as above
        tag: Optional tag parameter
        expires_in: Seconds after created at which signatures expire
        log_signature_base: Log the full signature base at debug level
    """
    key_name: str = DEFAULT_KEY_NAME
    request_components: Optional[List[str]] = None
    response_components: Optional[List[str]] = None
    tag: Optional[str] = None
    expires_in: Optional[int] = None
    log_signature_base: bool = False
    
    def __post_init__(self):
        """Validate configuration"""
        if not is_sf_key(self.key_name):
            raise ConfigError(
                f"Invalid key name: {self.key_name!r}",
                ErrorCodes.CONFIG_INVALID_FORMAT
            )
        
        if self.expires_in is not None:
            if isinstance(self.expires_in, bool) or not isinstance(self.expires_in, int) or self.expires_in <= 0:
                raise ConfigError(
                    f"expires_in must be a positive integer, got {self.expires_in!r}",
                    ErrorCodes.CONFIG_INVALID_FORMAT
                )
        
        for name in ("request_components", "response_components"):
            components = getattr(self, name)
            if components is None:
                continue
            if not isinstance(components, (list, tuple)) or not all(isinstance(c, str) and c for c in components):
                raise ConfigError(
                    f"{name} must be a list of component names",
                    ErrorCodes.CONFIG_INVALID_FORMAT
                )
    
    def components_for(self, message: Message) -> Optional[List[str]]:
        """Return the configured component list for a message, or None for defaults."""
        if isinstance(message, ResponseLike):
            return self.response_components
        return self.request_components
    
    def signature_kwargs(
        self,
        message: Message,
        timestamp_generator: Optional[TimestampGenerator] = None
    ) -> Dict[str, Any]:
        """
        Build keyword arguments for signature_headers from this configuration.
        
        When expires_in is set, created is fixed here so that expires can be
        derived from it.
        
        Args:
            message: Message about to be signed
            timestamp_generator: Clock for created
        
        Returns:
            dict: Keyword arguments for signature_headers / signature_headers_sync
        """
        kwargs: Dict[str, Any] = {
            "components": self.components_for(message),
            "tag": self.tag,
            "key": self.key_name,
            "timestamp_generator": timestamp_generator,
            "log_signature_base": self.log_signature_base,
        }
        
        if self.expires_in is not None:
            created = (timestamp_generator or generate_timestamp)()
            kwargs["created"] = created
            kwargs["expires"] = created + self.expires_in
        
        return kwargs
    
    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'SignatureConfig':
        """Load configuration from a dictionary"""
        try:
            return cls(
                key_name=data.get("key_name", DEFAULT_KEY_NAME),
                request_components=data.get("request_components"),
                response_components=data.get("response_components"),
                tag=data.get("tag"),
                expires_in=data.get("expires_in"),
                log_signature_base=bool(data.get("log_signature_base", False)),
            )
        except (AttributeError, TypeError) as e:
            raise ConfigError(f"Invalid configuration format: {e}", ErrorCodes.CONFIG_INVALID_FORMAT) from e
    
    @classmethod
    def from_json(cls, json_string: str) -> 'SignatureConfig':
        """Load configuration from a JSON string"""
        try:
            data = json.loads(json_string)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Failed to parse configuration JSON: {e}", ErrorCodes.CONFIG_PARSE_ERROR) from e
        
        if not isinstance(data, dict):
            raise ConfigError("Configuration must be a JSON object", ErrorCodes.CONFIG_INVALID_FORMAT)
        
        return cls.from_dict(data)
    
    @classmethod
    def from_file(cls, file_path: Union[str, Path]) -> 'SignatureConfig':
        """Load configuration from a JSON file"""
        try:
            with open(Path(file_path), 'r', encoding='utf-8') as f:
                json_string = f.read()
        except OSError as e:
            raise ConfigError(f"Failed to read configuration file: {e}", ErrorCodes.CONFIG_FILE_ERROR) from e
        
        return cls.from_json(json_string)
    
    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'SignatureConfig':
        """
        Load configuration from environment variables.
        
        Recognized variables (all optional):
            HTTP_MESSAGE_SIG_KEY_NAME
            HTTP_MESSAGE_SIG_REQUEST_COMPONENTS   comma-separated
            HTTP_MESSAGE_SIG_RESPONSE_COMPONENTS  comma-separated
            HTTP_MESSAGE_SIG_TAG
            HTTP_MESSAGE_SIG_EXPIRES_IN           seconds
            HTTP_MESSAGE_SIG_LOG_SIGNATURE_BASE   1/true/yes/on
        """
        env = os.environ if environ is None else environ
        
        def get(name: str) -> Optional[str]:
            value = env.get(ENV_PREFIX + name)
            return value.strip() if value is not None and value.strip() else None
        
        def split(value: Optional[str]) -> Optional[List[str]]:
            if value is None:
                return None
            return [item.strip() for item in value.split(",") if item.strip()]
        
        expires_in = get("EXPIRES_IN")
        if expires_in is not None:
            try:
                expires_in = int(expires_in)
            except ValueError as e:
                raise ConfigError(
                    f"{ENV_PREFIX}EXPIRES_IN must be an integer: {expires_in}",
                    ErrorCodes.CONFIG_INVALID_FORMAT
                ) from e
        
        return cls(
            key_name=get("KEY_NAME") or DEFAULT_KEY_NAME,
            request_components=split(get("REQUEST_COMPONENTS")),
            response_components=split(get("RESPONSE_COMPONENTS")),
            tag=get("TAG"),
            expires_in=expires_in,
            log_signature_base=(get("LOG_SIGNATURE_BASE") or "").lower() in _TRUE_VALUES,
        )
    
    def to_dict(self) -> Dict[str, Any]:
        """Serialize configuration to a dictionary"""
        return {
            "key_name": self.key_name,
            "request_components": self.request_components,
            "response_components": self.response_components,
            "tag": self.tag,
            "expires_in": self.expires_in,
            "log_signature_base": self.log_signature_base,
        }


def builtin_default_components() -> Dict[str, List[str]]:
    """Return the built-in default component lists, for display."""
    return {
        "request": list(DEFAULT_REQUEST_COMPONENTS),
        "response": list(DEFAULT_RESPONSE_COMPONENTS),
    }
