"""Root pytest configuration for registry-digest tests."""
import pytest

from registry_digest.settings import Settings

from .registry.fakes import FakeRegistry


# Configure pytest markers
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test (requires network)"
    )


# Keep the developer's environment out of the tests
@pytest.fixture(autouse=True)
def test_env(monkeypatch, tmp_path):
    """Clear settings variables and point HOME at an empty directory."""
    for name in ("REGISTRY_DIGEST_INSECURE", "REGISTRY_DIGEST_HTTP_TIMEOUT",
                 "REGISTRY_DIGEST_DOCKER_CONFIG", "TF_ACC"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))


@pytest.fixture
def settings():
    """Standard test settings."""
    return Settings(http_timeout_s=5.0)


@pytest.fixture
def hub():
    """Fake Docker Hub with an anonymous library/alpine:latest."""
    return FakeRegistry()


@pytest.fixture
def docker_config(tmp_path):
    """Write a Docker config.json and return its path."""
    def _write(content: str):
        path = tmp_path / "config.json"
        path.write_text(content)
        return path
    return _write
