"""
Settings and configuration for registry-digest.

Centralizes configuration values and provides validation with fail-fast behavior.
Settings are passed explicitly into the resolver; the environment is only read
by create_settings_from_env().
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

__all__ = ["Settings", "create_settings_from_env"]


@dataclass(frozen=True)
class Settings:
    """
    Configuration settings for digest resolution.

    Attributes:
        insecure: Skip TLS certificate verification (integration test registries)
        http_timeout_s: HTTP client timeout in seconds
        docker_config: Docker config.json to read credentials from
            (defaults to ~/.docker/config.json)
    """
    insecure: bool = False
    http_timeout_s: float = 30.0
    docker_config: Optional[Path] = None

    def __post_init__(self):
        """Validate settings on construction."""
        if self.http_timeout_s <= 0:
            raise ValueError(f"http_timeout_s must be positive, got {self.http_timeout_s}")

        if self.docker_config is not None and self.docker_config.is_dir():
            raise ValueError(f"docker_config must be a file, got directory {self.docker_config}")


def create_settings_from_env() -> Settings:
    """
    Load settings from environment variables.

    Environment Variables:
        - REGISTRY_DIGEST_INSECURE (default: false)
        - REGISTRY_DIGEST_HTTP_TIMEOUT (default: 30.0)
        - REGISTRY_DIGEST_DOCKER_CONFIG (optional)
        - TF_ACC: integer >= 1 also enables insecure mode, for acceptance
          test registries with self-signed certificates

    Returns:
        Settings object with validated configuration

    Raises:
        ValueError: If configuration is invalid

    Note:
        Creates a fresh Settings instance every time (no caching).
    """
    def str_to_bool(value: str) -> bool:
        return value.lower() in ('true', '1', 'yes', 'on')

    def get_float(key: str, default: float) -> float:
        value = os.getenv(key)
        return float(value) if value else default

    insecure = str_to_bool(os.getenv("REGISTRY_DIGEST_INSECURE", "false")) or _acceptance_tests_enabled()
    docker_config = os.getenv("REGISTRY_DIGEST_DOCKER_CONFIG")

    return Settings(
        insecure=insecure,
        http_timeout_s=get_float("REGISTRY_DIGEST_HTTP_TIMEOUT", 30.0),
        docker_config=Path(docker_config) if docker_config else None,
    )


def _acceptance_tests_enabled() -> bool:
    value = os.getenv("TF_ACC")
    if value is None:
        return False
    try:
        return int(value) >= 1
    except ValueError:
        return False
