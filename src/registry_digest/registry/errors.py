"""
Registry error classes.

Provides a clear taxonomy of errors that can occur while resolving a manifest
digest. HTTP status codes and httpx exceptions are mapped onto this hierarchy
so callers get a consistent error interface regardless of which step failed.
"""
from __future__ import annotations

from typing import Optional


class RegistryError(Exception):
    """
    Base class for all registry errors.

    Every failure surfaced by the fetcher, the token exchange and the
    orchestrator derives from this class.
    """
    pass


class RequestConstructionError(RegistryError):
    """
    A registry or token request could not be built.

    Raised when:
    - The manifest URL is malformed (bad host, bad characters)
    - The challenge realm is not a usable URL
    """
    pass


class TransportError(RegistryError):
    """
    Network or TLS failure while talking to the registry.

    Raised when:
    - DNS resolution, connect or TLS handshake fails
    - The connection drops mid-request
    - A client-level timeout expires
    """
    pass


class AuthenticationError(RegistryError):
    """
    Authentication or authorization error.

    Raised when:
    - HTTP 401 without a Bearer challenge (bad basic credentials)
    - A Bearer challenge is missing its realm or service
    """
    pass


class TokenExchangeError(RegistryError):
    """
    The authorization server did not hand out a usable token.

    Raised when:
    - The token endpoint answers with a non-200 status
    - The token response is not JSON or carries no token
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ManifestFetchError(RegistryError):
    """
    The registry answered the manifest request with an unexpected status.

    Carries the status code and the manifest URL that was queried so the
    message can tell registry-side failures apart from credential problems.
    """

    def __init__(self, message: str, status_code: Optional[int] = None, url: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.url = url


class BodyReadError(RegistryError):
    """Reading a response body failed."""
    pass


class ManifestResolutionError(RegistryError):
    """
    Both manifest media types failed.

    Raised by the orchestrator after the fallback attempt fails; the
    fallback's error is chained as ``__cause__``.
    """
    pass


__all__ = [
    "RegistryError",
    "RequestConstructionError",
    "TransportError",
    "AuthenticationError",
    "TokenExchangeError",
    "ManifestFetchError",
    "BodyReadError",
    "ManifestResolutionError",
]
