"""
Image digest resolution.

Normalizes an image reference, looks up credentials for its registry and
asks the manifest fetcher for the digest, first with the v2 manifest media
type and then once more with the legacy v1 type for registries that reject v2.
"""
from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional

import httpx

from .credentials import Credential, CredentialLookup, normalize_registry_address
from .reference import ImageReference, parse_image_reference
from .registry.errors import ManifestResolutionError, RegistryError
from .registry.manifest import ManifestFetcher
from .registry.media_types import DEFAULT_REGISTRY, DEFAULT_TAG, OFFICIAL_NAMESPACE
from .settings import Settings

__all__ = ["normalize_reference", "resolve_digest", "resolve_image_digest"]

logger = logging.getLogger(__name__)


def normalize_reference(ref: ImageReference) -> ImageReference:
    """
    Apply registry defaults to a parsed reference.

    - No registry: use Docker Hub
    - Explicit registry: drop the ``<registry>/`` prefix from the repository
    - Docker Hub and no namespace: ``consul`` becomes ``library/consul``
    - No tag: ``latest``
    """
    registry, repository = ref.registry, ref.repository

    if not registry:
        registry = DEFAULT_REGISTRY
    else:
        repository = repository.replace(f"{registry}/", "", 1)

    if registry == DEFAULT_REGISTRY and "/" not in repository:
        repository = f"{OFFICIAL_NAMESPACE}/{repository}"

    return replace(ref, registry=registry, repository=repository, tag=ref.tag or DEFAULT_TAG)


def resolve_digest(ref: ImageReference, *,
                   credentials: Optional[CredentialLookup] = None,
                   insecure: bool = False,
                   timeout: Optional[float] = None,
                   transport: Optional[httpx.BaseTransport] = None) -> str:
    """
    Resolve the manifest digest of a parsed image reference.

    Args:
        ref: Parsed reference; normalized here
        credentials: Lookup from normalized registry address to Credential;
            None or a missing entry means anonymous access
        insecure: Skip TLS verification for this resolution only
        timeout: HTTP timeout in seconds, None for no timeout
        transport: Custom httpx transport (tests)

    Returns:
        Digest string, ``sha256:...`` or whatever the registry asserts

    Raises:
        ManifestResolutionError: If both the v2 and the v1 attempt fail
    """
    ref = normalize_reference(ref)

    credential = None
    if credentials is not None:
        credential = credentials(normalize_registry_address(ref.registry))
    credential = credential or Credential()
    logger.debug(
        f"Resolving {ref.registry}/{ref.repository}:{ref.tag} "
        f"({'anonymous' if credential.anonymous else 'as ' + credential.username})"
    )

    fetcher = ManifestFetcher(insecure=insecure, timeout=timeout, transport=transport)
    try:
        return fetcher.fetch(ref.registry, ref.repository, ref.tag,
                             credential.username, credential.password, use_fallback=False)
    except RegistryError as e:
        logger.warning(f"v2 manifest request for {ref.repository}:{ref.tag} failed ({e}), retrying with v1 media type")

    try:
        return fetcher.fetch(ref.registry, ref.repository, ref.tag,
                             credential.username, credential.password, use_fallback=True)
    except RegistryError as e:
        raise ManifestResolutionError(
            f"Got an error when attempting to fetch image version from registry: {e}"
        ) from e


def resolve_image_digest(image: str, *,
                         credentials: Optional[CredentialLookup] = None,
                         settings: Optional[Settings] = None,
                         transport: Optional[httpx.BaseTransport] = None) -> str:
    """
    Resolve the digest for an image name like ``alpine`` or ``ghcr.io/org/app:1.0``.

    Raises:
        ValueError: If the image name cannot be parsed
        ManifestResolutionError: If resolution fails
    """
    settings = settings or Settings()
    return resolve_digest(
        parse_image_reference(image),
        credentials=credentials,
        insecure=settings.insecure,
        timeout=settings.http_timeout_s,
        transport=transport,
    )
