"""Pytest configuration and shared fixtures."""

from pathlib import Path

import pytest

from tests.fixtures.fetchers import KNOWN_ENTITIES, FakeFetcher


@pytest.fixture(autouse=True)
def clear_spoilerdown_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep SPOILERDOWN_* variables from the developer's shell out of tests."""
    for name in (
        "SPOILERDOWN_API_URL",
        "SPOILERDOWN_API_TOKEN",
        "SPOILERDOWN_PROGRESS",
        "SPOILERDOWN_LOG_DIR",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def fake_fetcher() -> FakeFetcher:
    """Fetcher that knows a handful of entities."""
    return FakeFetcher(payloads=dict(KNOWN_ENTITIES))
