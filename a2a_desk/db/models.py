"""SQLAlchemy ORM models for the A2A Desk configuration database.

Two independent record kinds, each with a surrogate integer key and one
uniqueness-bearing natural key. Uses SQLAlchemy 2.0 style with Mapped and
mapped_column.
"""

from datetime import UTC, datetime

from sqlalchemy import Boolean, Index, Integer, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utc_now_iso() -> str:
    """Generate current UTC timestamp in ISO8601 format."""
    return datetime.now(UTC).isoformat()


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class ModelProvider(Base):
    """LLM completion endpoint credentials.

    Attributes:
        model_key: Unique caller-chosen provider identifier (e.g. 'deepseek').
        enabled: Whether this provider is the active one. At most one row
            should be enabled; the store offers helpers, not a constraint.
        api_url: Completion endpoint base URL.
        api_key: Opaque secret. Never logged.
        created_at: ISO8601 UTC timestamp.
        updated_at: ISO8601 UTC timestamp, service-managed (no ORM onupdate).
    """

    __tablename__ = "tb_setting_model"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    model_key: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    api_url: Mapped[str] = mapped_column(Text, nullable=False)
    api_key: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[str | None] = mapped_column(Text, nullable=True, default=utc_now_iso)
    updated_at: Mapped[str | None] = mapped_column(Text, nullable=True, default=utc_now_iso)

    __table_args__ = (
        Index("idx_setting_model_key", "model_key"),
        Index("idx_setting_model_enabled", "enabled"),
        {"sqlite_autoincrement": True},
    )

    def __repr__(self) -> str:
        return f"<ModelProvider(id={self.id!r}, key={self.model_key!r}, enabled={self.enabled!r})>"


class AgentServer(Base):
    """A2A agent server configuration.

    JSON-bearing columns are TEXT (not SQLAlchemy JSON). They are stored
    verbatim and parsed at use time, so a malformed value never blocks
    reading the row.

    Attributes:
        name: Display name, not unique.
        agent_card_url: Unique URL of the agent card document.
        agent_card_json: Agent card cached from the last fetch.
        custom_header_json: JSON object of extra request headers.
        protocol_data_object_settings: JSON object describing how outbound
            messages are shaped ({"kind": "data", "data": "...{{USER_PROMPT}}..."}).
        enabled: Whether this server is the active one.
    """

    __tablename__ = "tb_setting_a2a_server"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    agent_card_url: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    agent_card_json: Mapped[str | None] = mapped_column(Text, nullable=True)
    custom_header_json: Mapped[str | None] = mapped_column(Text, nullable=True)
    protocol_data_object_settings: Mapped[str | None] = mapped_column(Text, nullable=True)
    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[str | None] = mapped_column(Text, nullable=True, default=utc_now_iso)
    updated_at: Mapped[str | None] = mapped_column(Text, nullable=True, default=utc_now_iso)

    __table_args__ = (
        Index("idx_setting_a2a_server_name", "name"),
        Index("idx_setting_a2a_server_enabled", "enabled"),
        {"sqlite_autoincrement": True},
    )

    def __repr__(self) -> str:
        return (
            f"<AgentServer(id={self.id!r}, name={self.name!r}, "
            f"url={self.agent_card_url!r}, enabled={self.enabled!r})>"
        )
