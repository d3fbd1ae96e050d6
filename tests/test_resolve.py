"""
Tests for image digest resolution.

Covers reference normalization, credential lookup and the v2 -> v1 media
type fallback against FakeRegistry.
"""
from __future__ import annotations

from unittest.mock import Mock, patch

import httpx
import pytest

from registry_digest.credentials import Credential, static_credentials
from registry_digest.reference import ImageReference
from registry_digest.registry.errors import (
    AuthenticationError,
    ManifestFetchError,
    ManifestResolutionError,
    TransportError,
)
from registry_digest.registry.media_types import DOCKER_MANIFEST_V1_SIGNED, DOCKER_MANIFEST_V2
from registry_digest.resolve import normalize_reference, resolve_digest, resolve_image_digest
from registry_digest.settings import Settings

from .registry.fakes import FakeRegistry, basic_header


class TestNormalizeReference:
    """Test registry defaults applied before fetching."""

    @pytest.mark.parametrize("repository", ["alpine", "consul", "my-image"])
    def test_official_image_gets_hub_and_library(self, repository):
        ref = normalize_reference(ImageReference(registry="", repository=repository, tag="1"))

        assert ref.registry == "registry.hub.docker.com"
        assert ref.repository == f"library/{repository}"

    def test_hub_namespace_is_kept(self):
        ref = normalize_reference(ImageReference(registry="", repository="hashicorp/consul"))

        assert ref.registry == "registry.hub.docker.com"
        assert ref.repository == "hashicorp/consul"

    @pytest.mark.parametrize("registry", ["", "quay.io", "localhost:5000"])
    def test_missing_tag_defaults_to_latest(self, registry):
        ref = normalize_reference(ImageReference(registry=registry, repository="org/app"))

        assert ref.tag == "latest"

    def test_explicit_tag_kept(self):
        assert normalize_reference(ImageReference("", "alpine", "3.19")).tag == "3.19"

    def test_registry_prefix_stripped_from_repository(self):
        ref = normalize_reference(ImageReference(registry="quay.io", repository="quay.io/org/app", tag="1"))

        assert ref.registry == "quay.io"
        assert ref.repository == "org/app"

    def test_prefix_stripped_once(self):
        ref = normalize_reference(ImageReference("quay.io", "quay.io/quay.io/app"))

        assert ref.repository == "quay.io/app"

    def test_private_registry_without_namespace_not_prefixed(self):
        ref = normalize_reference(ImageReference(registry="localhost:5000", repository="localhost:5000/app"))

        assert ref.repository == "app"

    def test_explicit_hub_registry_gets_library(self):
        ref = normalize_reference(ImageReference("registry.hub.docker.com", "registry.hub.docker.com/alpine"))

        assert ref.repository == "library/alpine"


class TestResolveDigest:
    """Test resolve_digest / resolve_image_digest end to end."""

    def test_official_image_on_hub(self, hub):
        digest = resolve_image_digest("alpine", transport=hub.transport)

        assert digest == hub.digest_for("library/alpine", "latest")
        assert str(hub.requests[0].url) == "https://registry.hub.docker.com/v2/library/alpine/manifests/latest"

    def test_bearer_registry(self):
        registry = FakeRegistry(host="ghcr.io", auth="bearer", manifests={("org/app", "1.0"): b"{}"})

        digest = resolve_image_digest("ghcr.io/org/app:1.0", transport=registry.transport)

        assert digest == registry.digest_for("org/app", "1.0")
        assert len(registry.token_requests) == 1

    def test_fallback_media_type_success(self):
        """Test v2 failing and v1 succeeding yields the v1 digest."""
        registry = FakeRegistry(host="gcr.io", media_types={DOCKER_MANIFEST_V1_SIGNED},
                                manifests={("proj/app", "latest"): b"signed-manifest"},
                                send_digest_header=False)

        digest = resolve_image_digest("gcr.io/proj/app", transport=registry.transport)

        assert digest == registry.digest_for("proj/app", "latest")
        accepts = [r.headers["Accept"] for r in registry.manifest_requests]
        assert accepts == [DOCKER_MANIFEST_V2, DOCKER_MANIFEST_V1_SIGNED]

    def test_no_fallback_when_primary_succeeds(self, hub):
        resolve_image_digest("alpine", transport=hub.transport)

        assert [r.headers["Accept"] for r in hub.requests] == [DOCKER_MANIFEST_V2]

    def test_both_attempts_fail(self):
        """Test that the fallback's error is surfaced."""
        registry = FakeRegistry(host="quay.io", manifests={})

        with pytest.raises(ManifestResolutionError) as exc_info:
            resolve_image_digest("quay.io/org/missing:1", transport=registry.transport)

        error = exc_info.value
        assert str(error).startswith("Got an error when attempting to fetch image version from registry:")
        assert "https://quay.io/v2/org/missing/manifests/1" in str(error)
        assert isinstance(error.__cause__, ManifestFetchError)
        assert len(registry.manifest_requests) == 2

    def test_fallback_error_is_the_one_surfaced(self):
        """Test that a distinct second failure replaces the first."""
        def handler(request: httpx.Request) -> httpx.Response:
            if request.headers["Accept"] == DOCKER_MANIFEST_V2:
                return httpx.Response(500)
            return httpx.Response(401)

        with pytest.raises(ManifestResolutionError, match="Bad credentials") as exc_info:
            resolve_image_digest("quay.io/org/app", transport=httpx.MockTransport(handler))

        assert isinstance(exc_info.value.__cause__, AuthenticationError)

    def test_transport_failure_triggers_fallback(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request.headers["Accept"])
            if len(calls) == 1:
                raise httpx.ConnectError("reset", request=request)
            return httpx.Response(200, headers={"Docker-Content-Digest": "sha256:v1"})

        digest = resolve_image_digest("quay.io/org/app", transport=httpx.MockTransport(handler))

        assert digest == "sha256:v1"
        assert calls == [DOCKER_MANIFEST_V2, DOCKER_MANIFEST_V1_SIGNED]

    def test_transport_failure_on_both_attempts(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("unreachable", request=request)

        with pytest.raises(ManifestResolutionError, match="unreachable") as exc_info:
            resolve_image_digest("quay.io/org/app", transport=httpx.MockTransport(handler))

        assert isinstance(exc_info.value.__cause__, TransportError)

    def test_token_redirect_loop_triggers_fallback(self):
        """Test that a broken token endpoint on v2 still lets v1 resolve."""
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.host == "auth.example.test":
                return httpx.Response(302, headers={"Location": str(request.url)})
            calls.append(request.headers["Accept"])
            if request.headers["Accept"] == DOCKER_MANIFEST_V2:
                return httpx.Response(401, headers={
                    "WWW-Authenticate": 'Bearer realm="https://auth.example.test/token",service="quay.io"'
                })
            return httpx.Response(200, headers={"Docker-Content-Digest": "sha256:v1"})

        digest = resolve_image_digest("quay.io/org/app", transport=httpx.MockTransport(handler))

        assert digest == "sha256:v1"
        assert calls == [DOCKER_MANIFEST_V2, DOCKER_MANIFEST_V1_SIGNED]

    def test_invalid_image_name_raises_value_error(self, hub):
        with pytest.raises(ValueError):
            resolve_image_digest("", transport=hub.transport)

        assert hub.requests == []


class TestCredentials:
    """Test credential lookup during resolution."""

    def test_lookup_uses_normalized_registry(self, hub):
        lookup = Mock(return_value=None)

        resolve_image_digest("alpine", credentials=lookup, transport=hub.transport)

        lookup.assert_called_once_with("registry.hub.docker.com")

    def test_credentials_applied_as_basic_auth(self):
        registry = FakeRegistry(host="localhost:5000", auth="basic", users={"alice": "s3cret"},
                                manifests={("app", "latest"): b"{}"})
        lookup = static_credentials({"https://localhost:5000": Credential("alice", "s3cret")})

        digest = resolve_image_digest("localhost:5000/app", credentials=lookup, transport=registry.transport)

        assert digest == registry.digest_for("app", "latest")
        assert registry.requests[0].headers["Authorization"] == basic_header("alice", "s3cret")

    def test_missing_entry_means_anonymous(self, hub):
        lookup = static_credentials({"quay.io": Credential("alice", "s3cret")})

        resolve_image_digest("alpine", credentials=lookup, transport=hub.transport)

        assert "Authorization" not in hub.requests[0].headers

    def test_empty_username_is_anonymous(self, hub):
        lookup = static_credentials({"docker.io": Credential("", "ignored")})

        resolve_image_digest("alpine", credentials=lookup, transport=hub.transport)

        assert "Authorization" not in hub.requests[0].headers


class TestSettingsPlumbing:
    """Test that settings reach the fetcher explicitly."""

    def test_insecure_and_timeout_passed_to_fetcher(self):
        with patch("registry_digest.resolve.ManifestFetcher") as fetcher_cls:
            fetcher_cls.return_value.fetch.return_value = "sha256:abc"

            digest = resolve_image_digest("alpine", settings=Settings(insecure=True, http_timeout_s=7.5))

        assert digest == "sha256:abc"
        fetcher_cls.assert_called_once_with(insecure=True, timeout=7.5, transport=None)

    def test_resolve_digest_defaults_to_secure(self):
        with patch("registry_digest.resolve.ManifestFetcher") as fetcher_cls:
            fetcher_cls.return_value.fetch.return_value = "sha256:abc"

            resolve_digest(ImageReference("", "alpine"))

        fetcher_cls.assert_called_once_with(insecure=False, timeout=None, transport=None)
        fetcher_cls.return_value.fetch.assert_called_once_with(
            "registry.hub.docker.com", "library/alpine", "latest", "", "", use_fallback=False
        )
