"""
registry-digest CLI

- resolve: Print the manifest digest of an image
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer

from .credentials import DockerConfigCredentials
from .mappers import run_and_exit
from .resolve import resolve_image_digest
from .settings import Settings, create_settings_from_env

app = typer.Typer(name="registry-digest", help="Resolve container image digests from a Docker v2 registry")


@app.callback()
def main() -> None:
    """Resolve container image digests from a Docker v2 registry."""


@app.command()
def resolve(
    image: str = typer.Argument(..., help="Image name, e.g. alpine or ghcr.io/org/app:1.0"),
    insecure: bool = typer.Option(False, "--insecure", help="Skip TLS certificate verification"),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="HTTP timeout in seconds"),
    docker_config: Optional[Path] = typer.Option(None, "--docker-config", help="Docker config.json with registry credentials"),
    verbose: bool = typer.Option(False, "--verbose", help="Show detailed output")
) -> None:
    """Resolve an image name to its manifest digest."""

    def _resolve() -> None:
        if verbose:
            logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

        env_settings = create_settings_from_env()
        settings = Settings(
            insecure=insecure or env_settings.insecure,
            http_timeout_s=timeout if timeout is not None else env_settings.http_timeout_s,
            docker_config=docker_config or env_settings.docker_config,
        )

        digest = resolve_image_digest(
            image,
            credentials=DockerConfigCredentials(settings.docker_config),
            settings=settings,
        )
        typer.echo(digest)

    run_and_exit(_resolve)


if __name__ == "__main__":
    app()
