"""Typed create/patch/read shapes for the two configuration record kinds.

Patch models record presence through pydantic's ``model_fields_set``: a
field the caller never supplied is absent, while an explicit ``None`` on a
nullable column is a request to clear it. ``build_update_assignments`` maps a
patch to column assignments without touching any database, so partial
update logic is testable on its own.
"""

from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, model_validator


class ModelProviderCreate(BaseModel):
    """Parameters for inserting a model provider."""

    model_config = ConfigDict(protected_namespaces=())

    model_key: str
    enabled: bool = False
    api_url: str
    api_key: str


class ModelProviderPatch(BaseModel):
    """Partial update for a model provider. Unset fields stay untouched."""

    model_config = ConfigDict(protected_namespaces=())

    # Columns declared NOT NULL; an explicit None is rejected.
    REQUIRED_COLUMNS: ClassVar[frozenset[str]] = frozenset(
        {"model_key", "enabled", "api_url", "api_key"}
    )
    NATURAL_KEY: ClassVar[str] = "model_key"

    model_key: str | None = None
    enabled: bool | None = None
    api_url: str | None = None
    api_key: str | None = None

    @model_validator(mode="after")
    def required_columns_not_null(self) -> "ModelProviderPatch":
        """Reject explicit None for columns that cannot be cleared."""
        _reject_null_required(self)
        return self


class ModelProviderRecord(BaseModel):
    """Model provider as read from the store."""

    model_config = ConfigDict(from_attributes=True, protected_namespaces=())

    id: int
    model_key: str
    enabled: bool
    api_url: str
    api_key: str
    created_at: str | None = None
    updated_at: str | None = None


class AgentServerCreate(BaseModel):
    """Parameters for inserting an A2A agent server."""

    name: str
    agent_card_url: str
    agent_card_json: str | None = None
    custom_header_json: str | None = None
    protocol_data_object_settings: str | None = None
    enabled: bool = False


class AgentServerPatch(BaseModel):
    """Partial update for an agent server. Unset fields stay untouched."""

    REQUIRED_COLUMNS: ClassVar[frozenset[str]] = frozenset(
        {"name", "agent_card_url", "enabled"}
    )
    NATURAL_KEY: ClassVar[str] = "agent_card_url"

    name: str | None = None
    agent_card_url: str | None = None
    agent_card_json: str | None = None
    custom_header_json: str | None = None
    protocol_data_object_settings: str | None = None
    enabled: bool | None = None

    @model_validator(mode="after")
    def required_columns_not_null(self) -> "AgentServerPatch":
        """Reject explicit None for columns that cannot be cleared."""
        _reject_null_required(self)
        return self


class AgentServerRecord(BaseModel):
    """Agent server as read from the store."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    agent_card_url: str
    agent_card_json: str | None = None
    custom_header_json: str | None = None
    protocol_data_object_settings: str | None = None
    enabled: bool
    created_at: str | None = None
    updated_at: str | None = None


def _reject_null_required(patch: BaseModel) -> None:
    required = type(patch).REQUIRED_COLUMNS
    for name in patch.model_fields_set & required:
        if getattr(patch, name) is None:
            raise ValueError(f"{name} cannot be null")


def build_update_assignments(patch: ModelProviderPatch | AgentServerPatch) -> dict[str, Any]:
    """Map a patch to the column assignments of one UPDATE statement.

    Only fields the caller actually supplied appear, in declaration order.
    The ``updated_at`` touch is not included; the store appends it so an
    empty patch stays a no-op.

    Args:
        patch: Partial record.

    Returns:
        Column name to new value. Empty when nothing was supplied.
    """
    return {
        name: getattr(patch, name)
        for name in type(patch).model_fields
        if name in patch.model_fields_set
    }
