"""Derive a manifest digest from a successful registry response."""
from __future__ import annotations

import hashlib
import logging

import httpx

from .errors import BodyReadError
from .media_types import DIGEST_HEADER

__all__ = ["digest_from_response", "sha256_digest"]

logger = logging.getLogger(__name__)


def sha256_digest(payload: bytes) -> str:
    """Format ``payload`` as ``sha256:<64 lowercase hex>``."""
    return f"sha256:{hashlib.sha256(payload).hexdigest()}"


def digest_from_response(response: httpx.Response) -> str:
    """
    Get the manifest digest from a 200 manifest response.

    The registry's own Docker-Content-Digest header wins and is returned
    verbatim without touching the body. Otherwise the full body is read and
    hashed.

    Args:
        response: Manifest response, possibly still streaming

    Returns:
        Digest string

    Raises:
        BodyReadError: If the body cannot be read
    """
    header = response.headers.get(DIGEST_HEADER)
    if header:
        return header

    logger.debug(f"No {DIGEST_HEADER} header in response, hashing manifest body")
    try:
        body = response.read()
    except (httpx.HTTPError, httpx.StreamError) as e:
        raise BodyReadError(f"Error reading registry response body: {e}") from e

    return sha256_digest(body)
