"""
HTTP client integration for message signing

This module connects the signature header builder to the requests library:
an auth hook that signs outgoing prepared requests, a session wrapper that
installs it, and converters for verifying requests responses.
"""

import logging
from typing import Optional

import requests
from requests.auth import AuthBase
from requests.models import PreparedRequest

from .config import SignatureConfig
from .sign import signature_headers_sync
from .types import ParsedSignatureInput, RequestLike, ResponseLike, Signer, TimestampGenerator, Verifier
from .verify import verify_sync

logger = logging.getLogger(__name__)


def request_from_prepared(request: PreparedRequest) -> RequestLike:
    """
    Convert a prepared requests request into a RequestLike.
    
    Args:
        request: Prepared request
    
    Returns:
        RequestLike: Method, URL and headers of the request
    """
    return RequestLike(
        method=request.method,
        url=request.url,
        headers=list(request.headers.items())
    )


def response_from_requests(response: requests.Response) -> ResponseLike:
    """
    Convert a requests response into a ResponseLike.
    
    Args:
        response: Response received from a server
    
    Returns:
        ResponseLike: Status and headers of the response
    """
    return ResponseLike(
        status=response.status_code,
        headers=list(response.headers.items())
    )


class HTTPMessageSignatureAuth(AuthBase):
    """
    requests auth hook adding Signature and Signature-Input headers.
    
    Example:
        session.auth = HTTPMessageSignatureAuth(Ed25519Signer(key, "my-key"))
    """
    
    def __init__(
        self,
        signer: Signer,
        config: Optional[SignatureConfig] = None,
        timestamp_generator: Optional[TimestampGenerator] = None
    ):
        """
        Initialize the auth hook.
        
        Args:
            signer: Synchronous signer
            config: Signing defaults
            timestamp_generator: Clock for the created parameter
        """
        self.signer = signer
        self.config = config or SignatureConfig()
        self.timestamp_generator = timestamp_generator
    
    def __call__(self, request: PreparedRequest) -> PreparedRequest:
        message = request_from_prepared(request)
        
        try:
            headers = signature_headers_sync(
                message,
                self.signer,
                **self.config.signature_kwargs(message, self.timestamp_generator)
            )
        except Exception as e:
            logger.error(f"Request signing failed: {e}")
            raise
        
        request.headers.update(headers)
        logger.debug(f"Signed {request.method} request to {request.url}")
        return request


class SigningSession:
    """
    HTTP session wrapper that signs every outgoing request.
    
    This class wraps a requests.Session and installs HTTPMessageSignatureAuth
    on it. Signing errors propagate to the caller; requests are never sent
    unsigned.
    """
    
    def __init__(
        self,
        signer: Signer,
        config: Optional[SignatureConfig] = None,
        session: Optional[requests.Session] = None,
        timestamp_generator: Optional[TimestampGenerator] = None
    ):
        """
        Initialize signing session.
        
        Args:
            signer: Synchronous signer
            config: Signing defaults
            session: Optional existing requests session to wrap
            timestamp_generator: Clock for the created parameter
        """
        self.session = session or requests.Session()
        self.auth = HTTPMessageSignatureAuth(signer, config, timestamp_generator)
        self.session.auth = self.auth
        logger.info(f"Configured request signing for key ID: {getattr(signer, 'keyid', None)}")
    
    def request(self, method: str, url: str, **kwargs) -> requests.Response:
        """
        Make a signed HTTP request.
        
        Args:
            method: HTTP method
            url: Request URL
            **kwargs: Additional arguments for requests
        
        Returns:
            requests.Response: HTTP response
        """
        return self.session.request(method, url, **kwargs)
    
    def get(self, url: str, **kwargs) -> requests.Response:
        """Make GET request."""
        return self.request('GET', url, **kwargs)
    
    def post(self, url: str, **kwargs) -> requests.Response:
        """Make POST request."""
        return self.request('POST', url, **kwargs)
    
    def put(self, url: str, **kwargs) -> requests.Response:
        """Make PUT request."""
        return self.request('PUT', url, **kwargs)
    
    def delete(self, url: str, **kwargs) -> requests.Response:
        """Make DELETE request."""
        return self.request('DELETE', url, **kwargs)
    
    def patch(self, url: str, **kwargs) -> requests.Response:
        """Make PATCH request."""
        return self.request('PATCH', url, **kwargs)
    
    def close(self) -> None:
        """Close the underlying session."""
        self.session.close()
    
    def __enter__(self) -> 'SigningSession':
        return self
    
    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def verify_response(
    response: requests.Response,
    verifier: Verifier,
    key: Optional[str] = None
) -> ParsedSignatureInput:
    """
    Verify the signature on a requests response.
    
    Args:
        response: Response carrying Signature and Signature-Input headers
        verifier: Synchronous verifier
        key: Signature label; defaults to the first one
    
    Returns:
        ParsedSignatureInput: The verified signature's components and parameters
    
    Raises:
        VerificationError: If verification fails
    """
    return verify_sync(response_from_requests(response), verifier, key)
