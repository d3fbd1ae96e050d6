"""
Registry credentials.

Credentials are looked up by normalized registry address through a plain
callable, so the resolver never needs to know where they are stored. The
Docker ``config.json`` store below is the default implementation.
"""
from __future__ import annotations

import base64
import binascii
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Optional

from .registry.media_types import DEFAULT_REGISTRY

__all__ = [
    "Credential",
    "CredentialLookup",
    "normalize_registry_address",
    "static_credentials",
    "DockerConfigCredentials",
]

logger = logging.getLogger(__name__)

# Addresses that all mean Docker Hub
_DOCKER_HUB_ALIASES = {
    "docker.io",
    "index.docker.io",
    "registry-1.docker.io",
    "registry.hub.docker.com",
}


@dataclass(frozen=True)
class Credential:
    """Basic auth credentials. An empty username means anonymous access."""
    username: str = ""
    password: str = ""

    @property
    def anonymous(self) -> bool:
        return not self.username


CredentialLookup = Callable[[str], Optional[Credential]]


def normalize_registry_address(address: str) -> str:
    """
    Reduce a registry address to the ``host[:port]`` key credentials are stored under.

    Scheme and path are dropped, so ``https://index.docker.io/v1/`` and
    ``registry.hub.docker.com`` end up on the same key.

    Examples:
        >>> normalize_registry_address("https://index.docker.io/v1/")
        'registry.hub.docker.com'
        >>> normalize_registry_address("localhost:5000/mirror")
        'localhost:5000'
    """
    address = address.strip()
    for scheme in ("https://", "http://"):
        if address.startswith(scheme):
            address = address[len(scheme):]
            break

    host = address.split("/", 1)[0].lower()
    if host in _DOCKER_HUB_ALIASES:
        return DEFAULT_REGISTRY
    return host


def static_credentials(credentials: Dict[str, Credential]) -> CredentialLookup:
    """Build a lookup over a fixed mapping, normalizing its keys."""
    table = {normalize_registry_address(key): value for key, value in credentials.items()}
    return lambda registry: table.get(normalize_registry_address(registry))


class DockerConfigCredentials:
    """Read registry credentials from a Docker config file."""

    def __init__(self, config_path: Optional[Path] = None):
        self.config_path = config_path or Path.home() / ".docker" / "config.json"
        self._config_cache: Optional[Dict[str, Credential]] = None
        self._config_mtime: Optional[float] = None

    def __call__(self, registry: str) -> Optional[Credential]:
        return self.get_credentials(registry)

    def get_credentials(self, registry: str) -> Optional[Credential]:
        """
        Get credentials for a registry.

        Returns: Credential or None if the config has no entry for it
        """
        auths = self._load_config()
        return auths.get(normalize_registry_address(registry))

    def _load_config(self) -> Dict[str, Credential]:
        """Load and index the config, reusing the cache while mtime is unchanged."""
        if not self.config_path.exists():
            return {}

        try:
            current_mtime = self.config_path.stat().st_mtime
            if self._config_cache is not None and current_mtime == self._config_mtime:
                return self._config_cache

            with open(self.config_path, "r") as f:
                config = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Failed to read Docker config {self.config_path}: {e}")
            return {}

        auths: Dict[str, Credential] = {}
        for address, entry in (config.get("auths") or {}).items():
            credential = _parse_auth_entry(address, entry or {})
            if credential is not None:
                auths[normalize_registry_address(address)] = credential

        self._config_cache = auths
        self._config_mtime = current_mtime
        return auths


def _parse_auth_entry(address: str, entry: dict) -> Optional[Credential]:
    # Handle base64 encoded auth field
    if entry.get("auth"):
        try:
            decoded = base64.b64decode(entry["auth"]).decode()
        except (binascii.Error, UnicodeDecodeError) as e:
            logger.debug(f"Ignoring undecodable auth entry for {address}: {e}")
        else:
            if ":" in decoded:
                username, password = decoded.split(":", 1)
                return Credential(username=username, password=password)

    if "username" in entry and "password" in entry:
        return Credential(username=entry["username"], password=entry["password"])

    return None
