"""
WWW-Authenticate challenge parsing.

Decodes the ``Bearer realm="...",service="...",scope="..."`` header a
registry sends along with a 401 into its key/value parameters.
"""
from __future__ import annotations

import re
from typing import Dict

from .errors import AuthenticationError

__all__ = ["parse_auth_header", "is_bearer_challenge", "require_bearer_params"]

BEARER_SCHEME = "Bearer"

# key=value or key="value, with commas"
_PARAM_RE = re.compile(r'\s*([^\s=,]+)\s*=\s*("[^"]*"|[^,]*)')


def is_bearer_challenge(header: str) -> bool:
    """True when the header value starts with the Bearer scheme."""
    return header.startswith(BEARER_SCHEME)


def parse_auth_header(header: str) -> Dict[str, str]:
    """
    Parse key/value pairs from a WWW-Authenticate header.

    The scheme token is split off at the first space; the remainder is a
    comma separated list of ``key="value"`` pairs. Quotes, commas and
    surrounding whitespace are stripped from values. Commas inside a quoted
    value (``scope="repository:a/b:pull,push"``) stay part of the value.

    Args:
        header: Raw header value, e.g. ``Bearer realm="https://auth/token"``

    Returns:
        Mapping of challenge parameter name to value. Required keys are not
        checked here, see require_bearer_params().

    Examples:
        >>> parse_auth_header('Bearer realm="https://a/token",service="reg"')
        {'realm': 'https://a/token', 'service': 'reg'}
    """
    parts = header.strip().split(" ", 1)
    if len(parts) < 2:
        return {}

    params: Dict[str, str] = {}
    for match in _PARAM_RE.finditer(parts[1]):
        key, value = match.group(1), match.group(2)
        params[key] = value.strip('", ')
    return params


def require_bearer_params(params: Dict[str, str]) -> Dict[str, str]:
    """
    Check that a Bearer challenge names a token endpoint.

    ``realm`` and ``service`` must be present and non-empty. ``scope`` is
    optional; registries omit it for catalog-level challenges.

    Raises:
        AuthenticationError: If realm or service is missing
    """
    missing = [key for key in ("realm", "service") if not params.get(key)]
    if missing:
        raise AuthenticationError(
            f"Malformed Bearer challenge from registry, missing {', '.join(missing)}"
        )
    return params
