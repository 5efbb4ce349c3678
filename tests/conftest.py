"""Root-level pytest fixtures for all tests.

Provides an in-memory configuration database, the shared handle, and one
store per record kind.
"""

from collections.abc import Generator

import pytest
from sqlalchemy.engine import Engine

from a2a_desk.db.connection import DatabaseHandle, create_db_engine, init_db
from a2a_desk.services.record_store import AgentServerStore, ModelProviderStore


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    """In-memory SQLite engine with all tables created."""
    eng = create_db_engine("sqlite:///:memory:")
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def handle(engine: Engine) -> Generator[DatabaseHandle, None, None]:
    """Database handle over the in-memory engine."""
    h = DatabaseHandle(engine, lock_timeout=1.0)
    yield h
    h.close()


@pytest.fixture
def model_store(handle: DatabaseHandle) -> ModelProviderStore:
    return ModelProviderStore(handle)


@pytest.fixture
def agent_store(handle: DatabaseHandle) -> AgentServerStore:
    return AgentServerStore(handle)
