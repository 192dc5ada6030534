"""
Exception classes for http-message-sig
"""

from typing import Optional, Dict, Any


class HTTPMessageSignatureError(Exception):
    """Base exception for all http-message-sig errors"""
    
    def __init__(self, message: str, error_code: str = "UNKNOWN_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}
    
    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (code: {self.error_code}, details: {self.details})"
        return f"{self.message} (code: {self.error_code})"


class MissingComponentError(HTTPMessageSignatureError):
    """Raised when a requested component cannot be found on the message"""
    
    def __init__(self, message: str, component: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorCodes.MISSING_COMPONENT, {"component": component, **(details or {})})
        self.component = component


class InvalidComponentError(HTTPMessageSignatureError):
    """Raised when a component does not apply to the given message type"""
    
    def __init__(self, message: str, component: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorCodes.INVALID_COMPONENT, {"component": component, **(details or {})})
        self.component = component


class SigningFailureError(HTTPMessageSignatureError):
    """Raised when the signing capability rejects or fails to sign"""
    pass


class EncodingError(HTTPMessageSignatureError):
    """Raised when signature bytes cannot be encoded or decoded"""
    pass


class ValidationError(HTTPMessageSignatureError):
    """Raised for malformed messages or signature parameters"""
    pass


class VerificationError(HTTPMessageSignatureError):
    """Raised when a signature cannot be parsed or does not verify"""
    pass


class ConfigError(HTTPMessageSignatureError):
    """Configuration loading and validation error"""
    pass


class ErrorCodes:
    """Standard error codes"""
    
    # Component errors
    MISSING_COMPONENT = "MISSING_COMPONENT"
    INVALID_COMPONENT = "INVALID_COMPONENT"
    
    # Message and parameter errors
    INVALID_MESSAGE = "INVALID_MESSAGE"
    INVALID_URL = "INVALID_URL"
    INVALID_PARAMETER = "INVALID_PARAMETER"
    
    # Signing errors
    SIGNING_FAILED = "SIGNING_FAILED"
    ENCODING_FAILED = "ENCODING_FAILED"
    
    # Verification errors
    MISSING_SIGNATURE = "MISSING_SIGNATURE"
    MISSING_SIGNATURE_INPUT = "MISSING_SIGNATURE_INPUT"
    INVALID_SIGNATURE_INPUT = "INVALID_SIGNATURE_INPUT"
    INVALID_SIGNATURE_FORMAT = "INVALID_SIGNATURE_FORMAT"
    SIGNATURE_LABEL_NOT_FOUND = "SIGNATURE_LABEL_NOT_FOUND"
    VERIFICATION_FAILED = "VERIFICATION_FAILED"
    
    # Configuration errors
    CONFIG_PARSE_ERROR = "PARSE_ERROR"
    CONFIG_INVALID_FORMAT = "INVALID_FORMAT"
    CONFIG_FILE_ERROR = "FILE_ERROR"
