"""Database module for A2A Desk configuration persistence."""

from a2a_desk.db.connection import (
    DatabaseHandle,
    create_db_engine,
    get_database_url,
    init_db,
)
from a2a_desk.db.models import AgentServer, Base, ModelProvider, utc_now_iso

__all__ = [
    # Models
    "Base",
    "ModelProvider",
    "AgentServer",
    "utc_now_iso",
    # Connection
    "DatabaseHandle",
    "create_db_engine",
    "get_database_url",
    "init_db",
]
