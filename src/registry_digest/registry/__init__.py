"""
Registry package - Docker Registry v2 protocol pieces.

Challenge parsing, token exchange, manifest fetching and digest extraction.
The orchestration across media types lives in ``registry_digest.resolve``.
"""
from .errors import (
    AuthenticationError,
    BodyReadError,
    ManifestFetchError,
    ManifestResolutionError,
    RegistryError,
    RequestConstructionError,
    TokenExchangeError,
    TransportError,
)
from .manifest import FetchState, ManifestFetcher

__all__ = [
    "FetchState",
    "ManifestFetcher",
    "RegistryError",
    "RequestConstructionError",
    "TransportError",
    "AuthenticationError",
    "TokenExchangeError",
    "ManifestFetchError",
    "BodyReadError",
    "ManifestResolutionError",
]
