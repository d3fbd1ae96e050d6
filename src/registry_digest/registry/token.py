"""
Bearer token exchange.

Implements the client side of the Docker Registry token flow: given the
realm/service/scope of a Bearer challenge, ask the authorization server for
a token, optionally presenting basic credentials.
"""
from __future__ import annotations

import logging
from typing import Dict, Optional

import httpx
from pydantic import BaseModel, Field, ValidationError

from .errors import RequestConstructionError, TokenExchangeError, TransportError

__all__ = ["TokenResponse", "TokenExchange"]

logger = logging.getLogger(__name__)


class TokenResponse(BaseModel):
    """Body returned by a registry authorization server."""
    token: Optional[str] = Field(default=None, description="Bearer token")
    access_token: Optional[str] = Field(default=None, description="OAuth2 alias for token")
    expires_in: Optional[float] = Field(default=None, description="Token lifetime in seconds")

    @property
    def bearer(self) -> Optional[str]:
        """The token to present, preferring ``token`` over ``access_token``."""
        return self.token or self.access_token


class TokenExchange:
    """
    Exchange a Bearer challenge for a token.

    Uses the caller's httpx client so the token request shares TLS and
    timeout configuration with the manifest request. There is no retry: the
    fetcher owns the single re-issued manifest request that follows.
    """

    def __init__(self, client: httpx.Client):
        self.client = client

    def exchange(self, realm: str, service: str, scope: Optional[str],
                 username: str = "", password: str = "") -> str:
        """
        Request a token from the authorization server.

        Args:
            realm: Token endpoint URL from the challenge
            service: Service name from the challenge
            scope: Requested scope, omitted from the query when empty
            username: Basic auth user, empty for anonymous
            password: Basic auth password

        Returns:
            Bearer token string

        Raises:
            RequestConstructionError: If realm is not an http(s) URL
            TransportError: If the token endpoint cannot be reached
            TokenExchangeError: On non-200 status, undecodable body or unusable token
        """
        params: Dict[str, str] = {"service": service}
        if scope:
            params["scope"] = scope

        try:
            request = self.client.build_request("GET", realm, params=params)
        except httpx.InvalidURL as e:
            raise RequestConstructionError(f"Error creating token request for realm {realm!r}: {e}") from e
        if request.url.scheme not in ("http", "https"):
            raise RequestConstructionError(f"Error creating token request: unsupported realm {realm!r}")

        auth = (username, password) if username else None
        logger.debug(f"Requesting token from {request.url} ({'basic auth' if auth else 'anonymous'})")

        try:
            response = self.client.send(request, auth=auth)
        except httpx.RequestError as e:
            raise TransportError(f"Error during token request to {realm}: {e}") from e

        if response.status_code != httpx.codes.OK:
            raise TokenExchangeError(
                f"Got bad response from token endpoint {realm}: "
                f"{response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
            )

        try:
            token_response = TokenResponse.model_validate_json(response.content)
        except ValidationError as e:
            raise TokenExchangeError(
                f"Error parsing OAuth token response: {e}", status_code=response.status_code
            ) from e

        token = token_response.bearer
        if not token:
            raise TokenExchangeError(
                "OAuth token response did not contain a token", status_code=response.status_code
            )
        if not token.isascii():
            raise TokenExchangeError(
                "OAuth token response contained a token that is not valid in an HTTP header",
                status_code=response.status_code,
            )
        return token
