"""Pytest fixtures for API tests.

Provides a TestClient whose lifespan opens a fresh in-memory database,
plus helpers for swapping the outbound HTTP transport and LLM client.
"""

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from a2a_desk.api.main import app


@pytest.fixture
def client(monkeypatch, tmp_path) -> Generator[TestClient, None, None]:
    """Create a TestClient backed by an in-memory database.

    The working directory is moved to an empty temp dir so no local
    a2a-desk.yaml is picked up.

    Yields:
        TestClient with the lifespan running.
    """
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("DATABASE_URL", "sqlite:///:memory:")
    monkeypatch.delenv("A2A_DESK_CONFIG_PATH", raising=False)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def use_transport(monkeypatch):
    """Route A2A HTTP traffic through the given fake transport."""

    def _use(transport):
        monkeypatch.setattr(app.state, "a2a_transport", transport)
        return transport

    return _use


@pytest.fixture
def use_llm(monkeypatch):
    """Build upstream LLM clients from the given fake."""

    def _use(fake):
        monkeypatch.setattr(app.state, "llm_client_factory", fake.factory)
        return fake

    return _use
