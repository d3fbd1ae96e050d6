"""
Manifest fetcher for the Docker Registry v2 API.

Issues the manifest request for ``registry/repository:tag`` and drives the
registry auth flow until a digest comes back:

    UNAUTHENTICATED --200--------------------------------------> RESOLVED
    UNAUTHENTICATED --401 Bearer--> CHALLENGE_RECEIVED
    CHALLENGE_RECEIVED --token--> TOKEN_ACQUIRED --200---------> RESOLVED

Anything else ends in FAILED with a RegistryError.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Optional, Tuple

import httpx

from .challenge import is_bearer_challenge, parse_auth_header, require_bearer_params
from .digest import digest_from_response
from .errors import (
    AuthenticationError,
    ManifestFetchError,
    RequestConstructionError,
    TransportError,
)
from .media_types import AUTHENTICATE_HEADER, manifest_media_type
from .token import TokenExchange

__all__ = ["FetchState", "ManifestFetcher", "split_registry", "manifest_url"]

logger = logging.getLogger(__name__)

USER_AGENT = "registry-digest/0.1.0"

# Longest slice of an error body quoted in an exception message
_BODY_EXCERPT = 512


class FetchState(str, Enum):
    """Where a manifest fetch is in the auth flow."""
    UNAUTHENTICATED = "unauthenticated"
    CHALLENGE_RECEIVED = "challenge_received"
    TOKEN_ACQUIRED = "token_acquired"
    RESOLVED = "resolved"
    FAILED = "failed"


def split_registry(registry: str) -> Tuple[str, str]:
    """
    Separate the host from any path the registry is mounted under.

    The path has to come after ``/v2/``, so it is returned on its own,
    normalized to end with exactly one ``/`` (or empty).

    Examples:
        >>> split_registry("ghcr.io")
        ('ghcr.io', '')
        >>> split_registry("example.com:8443/mirror")
        ('example.com:8443', 'mirror/')
    """
    host, _, path = registry.partition("/")
    path = path.rstrip("/")
    return host, f"{path}/" if path else ""


def manifest_url(registry: str, repository: str, tag: str) -> str:
    """Build ``https://<host>/v2/<basePath><repository>/manifests/<tag>``."""
    host, base_path = split_registry(registry)
    return f"https://{host}/v2/{base_path}{repository}/manifests/{tag}"


@dataclass
class _FetchAttempt:
    request: httpx.Request
    url: str
    username: str
    password: str
    state: FetchState = FetchState.UNAUTHENTICATED
    challenge: Dict[str, str] = field(default_factory=dict)
    digest: Optional[str] = None


class ManifestFetcher:
    """
    Resolve a manifest digest with one HTTP client per fetch.

    Each call to fetch() opens its own httpx client and closes it before
    returning, so nothing is shared between resolutions. TLS verification is
    only disabled when ``insecure`` is passed explicitly.
    """

    def __init__(self, insecure: bool = False, timeout: Optional[float] = None,
                 transport: Optional[httpx.BaseTransport] = None):
        """
        Initialize the fetcher.

        Args:
            insecure: Skip TLS certificate verification (test registries only)
            timeout: Client timeout in seconds; None means no timeout
            transport: Custom httpx transport, used by tests to fake the registry
        """
        self.insecure = insecure
        self.timeout = timeout
        self.transport = transport

    def _make_client(self) -> httpx.Client:
        return httpx.Client(
            timeout=self.timeout,
            follow_redirects=True,
            verify=not self.insecure,
            transport=self.transport,
            headers={"User-Agent": USER_AGENT},
        )

    def fetch(self, registry: str, repository: str, tag: str,
              username: str = "", password: str = "", use_fallback: bool = False) -> str:
        """
        Fetch the manifest for ``repository:tag`` and return its digest.

        Args:
            registry: Registry host, optionally followed by a base path
            repository: Repository path, e.g. ``library/alpine``
            tag: Tag to resolve
            username: Basic auth user, empty for anonymous
            password: Basic auth password
            use_fallback: Ask for the legacy v1 signed manifest instead of v2

        Returns:
            Manifest digest

        Raises:
            RequestConstructionError: If the manifest or token URL is malformed
            TransportError: On network/TLS failures
            AuthenticationError: On 401 without a usable Bearer challenge
            TokenExchangeError: If the token endpoint refuses or returns garbage
            ManifestFetchError: On any other unexpected status
            BodyReadError: If the manifest body cannot be read
        """
        host, _ = split_registry(registry)
        if not host:
            raise RequestConstructionError(f"Error creating registry request: empty registry host in {registry!r}")

        url = manifest_url(registry, repository, tag)
        media_type = manifest_media_type(use_fallback)
        logger.debug(f"Getting manifest from: {url} (Accept: {media_type})")

        with self._make_client() as client:
            try:
                request = client.build_request("GET", url, headers={"Accept": media_type})
            except httpx.InvalidURL as e:
                raise RequestConstructionError(f"Error creating registry request for {url}: {e}") from e

            attempt = _FetchAttempt(request=request, url=url, username=username, password=password)
            steps: Dict[FetchState, Callable[[httpx.Client, _FetchAttempt], FetchState]] = {
                FetchState.UNAUTHENTICATED: self._request_manifest,
                FetchState.CHALLENGE_RECEIVED: self._acquire_token,
                FetchState.TOKEN_ACQUIRED: self._request_with_token,
            }

            while attempt.state is not FetchState.RESOLVED:
                current = attempt.state
                try:
                    attempt.state = steps[current](client, attempt)
                except Exception:
                    attempt.state = FetchState.FAILED
                    logger.debug(f"Manifest fetch for {url}: {current.value} -> {attempt.state.value}")
                    raise
                logger.debug(f"Manifest fetch for {url}: {current.value} -> {attempt.state.value}")

        return attempt.digest

    def _send(self, client: httpx.Client, request: httpx.Request,
              auth: Optional[Tuple[str, str]] = None) -> httpx.Response:
        try:
            return client.send(request, auth=auth, stream=True)
        except httpx.RequestError as e:
            raise TransportError(f"Error during registry request to {request.url}: {e}") from e

    def _request_manifest(self, client: httpx.Client, attempt: _FetchAttempt) -> FetchState:
        """Plain request, with basic auth when a username is configured."""
        auth = (attempt.username, attempt.password) if attempt.username else None
        response = self._send(client, attempt.request, auth=auth)
        try:
            if response.status_code == httpx.codes.OK:
                attempt.digest = digest_from_response(response)
                return FetchState.RESOLVED

            # Either OAuth is required or the basic auth creds were invalid
            if response.status_code == httpx.codes.UNAUTHORIZED:
                header = response.headers.get(AUTHENTICATE_HEADER, "")
                if is_bearer_challenge(header):
                    attempt.challenge = parse_auth_header(header)
                    return FetchState.CHALLENGE_RECEIVED
                raise AuthenticationError(
                    f"Bad credentials: {response.status_code} {response.reason_phrase}"
                )

            raise ManifestFetchError(
                f"Got bad response from registry after attempting query: {attempt.url} - "
                f"{response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
                url=attempt.url,
            )
        finally:
            response.close()

    def _acquire_token(self, client: httpx.Client, attempt: _FetchAttempt) -> FetchState:
        params = require_bearer_params(attempt.challenge)
        logger.debug(
            f"Bearer challenge from {params['realm']} for service={params['service']} "
            f"scope={params.get('scope', '')}"
        )
        token = TokenExchange(client).exchange(
            params["realm"], params["service"], params.get("scope"),
            attempt.username, attempt.password,
        )
        # Replaces any basic auth header set by the first request
        attempt.request.headers["Authorization"] = f"Bearer {token}"
        return FetchState.TOKEN_ACQUIRED

    def _request_with_token(self, client: httpx.Client, attempt: _FetchAttempt) -> FetchState:
        """Re-issue the original request once with the bearer token."""
        response = self._send(client, attempt.request)
        try:
            if response.status_code == httpx.codes.OK:
                attempt.digest = digest_from_response(response)
                return FetchState.RESOLVED

            raise ManifestFetchError(
                f"Got bad response from registry after attempting query: {attempt.url} - "
                f"{response.status_code} {response.reason_phrase}: {_body_excerpt(response)}",
                status_code=response.status_code,
                url=attempt.url,
            )
        finally:
            response.close()


def _body_excerpt(response: httpx.Response) -> str:
    try:
        body = response.read()
    except (httpx.HTTPError, httpx.StreamError) as e:
        return f"<body unreadable: {e}>"
    return body[:_BODY_EXCERPT].decode("utf-8", errors="replace").strip()
