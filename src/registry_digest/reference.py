"""
Image reference parsing.

Splits a ``[registry/]repository[:tag]`` string into its components. Defaults
(Docker Hub, ``library/``, ``latest``) are applied later by the resolver, so
the parsed reference keeps empty fields where the string had nothing.
"""
from __future__ import annotations

from dataclasses import dataclass

__all__ = ["ImageReference", "parse_image_reference"]


@dataclass(frozen=True)
class ImageReference:
    """
    Components of an image name.

    Attributes:
        registry: Registry host[:port], empty when not given
        repository: Repository path. As parsed this still carries the
            registry prefix; the resolver strips it.
        tag: Tag, empty when not given
    """
    registry: str
    repository: str
    tag: str = ""

    def __str__(self) -> str:
        name = self.repository
        if self.registry and not name.startswith(f"{self.registry}/"):
            name = f"{self.registry}/{name}"
        return f"{name}:{self.tag}" if self.tag else name


def _looks_like_registry(component: str) -> bool:
    return "." in component or ":" in component or component == "localhost"


def parse_image_reference(image: str) -> ImageReference:
    """
    Parse an image name into registry, repository and tag.

    The first path component is taken as the registry when the name has more
    than two components, or when it looks like a host (contains ``.`` or
    ``:``, or is ``localhost``). A ``:tag`` after the registry prefix is split
    off.

    Args:
        image: Image name, e.g. ``alpine``, ``quay.io/org/app:1.2``

    Returns:
        ImageReference

    Raises:
        ValueError: If the name is empty or pins a digest

    Examples:
        >>> parse_image_reference("alpine:3.19")
        ImageReference(registry='', repository='alpine', tag='3.19')
        >>> parse_image_reference("localhost:5000/app")
        ImageReference(registry='localhost:5000', repository='localhost:5000/app', tag='')
    """
    image = image.strip()
    if not image:
        raise ValueError("Image name cannot be empty")

    if "@" in image:
        raise ValueError(f"Digest references are already resolved: {image}")

    registry = ""
    first_slash = image.find("/")
    if image.count("/") > 1 or (first_slash != -1 and _looks_like_registry(image[:first_slash])):
        registry = image[:first_slash]

    if not registry and first_slash == 0:
        raise ValueError(f"Image name cannot start with '/': {image}")

    repository, tag = image, ""
    prefix_length = len(registry)
    tag_index = image.find(":", prefix_length)
    if tag_index != -1:
        repository = image[:tag_index]
        tag = image[tag_index + 1:]

    if not repository or repository.endswith("/"):
        raise ValueError(f"Image name is missing a repository: {image}")

    return ImageReference(registry=registry, repository=repository, tag=tag)
