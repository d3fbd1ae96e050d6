"""
Manifest media types and registry constants.

Single source of truth for the Accept values and header names used when
talking to a Docker Registry v2 server.
"""
from __future__ import annotations

# Preferred manifest format
DOCKER_MANIFEST_V2 = "application/vnd.docker.distribution.manifest.v2+json"

# Legacy signed manifest, for registries that reject the v2 Accept value
DOCKER_MANIFEST_V1_SIGNED = "application/vnd.docker.distribution.manifest.v1+prettyjws"

# Headers
DIGEST_HEADER = "Docker-Content-Digest"
AUTHENTICATE_HEADER = "WWW-Authenticate"

# Docker Hub
DEFAULT_REGISTRY = "registry.hub.docker.com"
OFFICIAL_NAMESPACE = "library"
DEFAULT_TAG = "latest"


def manifest_media_type(use_fallback: bool) -> str:
    """Return the Accept value for a manifest request."""
    return DOCKER_MANIFEST_V1_SIGNED if use_fallback else DOCKER_MANIFEST_V2


__all__ = [
    "DOCKER_MANIFEST_V2",
    "DOCKER_MANIFEST_V1_SIGNED",
    "DIGEST_HEADER",
    "AUTHENTICATE_HEADER",
    "DEFAULT_REGISTRY",
    "OFFICIAL_NAMESPACE",
    "DEFAULT_TAG",
    "manifest_media_type",
]
