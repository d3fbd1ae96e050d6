"""
registry-digest - resolve container image digests from Docker v2 registries.

Handles anonymous, basic and Bearer-token registry auth and falls back to the
legacy v1 manifest media type for registries without v2 support.
"""
from .credentials import Credential, DockerConfigCredentials, normalize_registry_address, static_credentials
from .reference import ImageReference, parse_image_reference
from .resolve import normalize_reference, resolve_digest, resolve_image_digest
from .settings import Settings, create_settings_from_env

__version__ = "0.1.0"

__all__ = [
    "Credential",
    "DockerConfigCredentials",
    "ImageReference",
    "Settings",
    "create_settings_from_env",
    "normalize_reference",
    "normalize_registry_address",
    "parse_image_reference",
    "resolve_digest",
    "resolve_image_digest",
    "static_credentials",
]
