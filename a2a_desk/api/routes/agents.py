"""API routes for A2A agent server configuration.

CRUD plus the single-enabled helpers. All endpoints use the
/api/v1/agents prefix. Lookups by URL or name take a query parameter
since agent card URLs contain slashes.
"""

from fastapi import APIRouter, Depends

from a2a_desk.api.deps import get_agent_store
from a2a_desk.api.envelope import InvokeResponse, invoke
from a2a_desk.services.record_store import AgentServerStore
from a2a_desk.services.record_types import AgentServerCreate, AgentServerPatch

router = APIRouter(prefix="/agents", tags=["agents"])


@router.post("", response_model=InvokeResponse)
def create_agent(
    body: AgentServerCreate,
    store: AgentServerStore = Depends(get_agent_store),
) -> InvokeResponse:
    """Insert an agent server. Data is the new id."""
    return invoke(store.insert, body)


@router.get("", response_model=InvokeResponse)
def list_agents(store: AgentServerStore = Depends(get_agent_store)) -> InvokeResponse:
    return invoke(store.get_all)


@router.get("/enabled", response_model=InvokeResponse)
def list_enabled_agents(store: AgentServerStore = Depends(get_agent_store)) -> InvokeResponse:
    return invoke(store.get_enabled)


@router.get("/by-url", response_model=InvokeResponse)
def get_agent_by_url(
    url: str,
    store: AgentServerStore = Depends(get_agent_store),
) -> InvokeResponse:
    return invoke(store.get_by_url, url)


@router.delete("/by-url", response_model=InvokeResponse)
def delete_agent_by_url(
    url: str,
    store: AgentServerStore = Depends(get_agent_store),
) -> InvokeResponse:
    return invoke(store.delete_by_url, url)


@router.get("/by-name", response_model=InvokeResponse)
def get_agent_by_name(
    name: str,
    store: AgentServerStore = Depends(get_agent_store),
) -> InvokeResponse:
    """First server (lowest id) with this display name, or null."""
    return invoke(store.get_by_name, name)


@router.delete("/by-name", response_model=InvokeResponse)
def delete_agent_by_name(
    name: str,
    store: AgentServerStore = Depends(get_agent_store),
) -> InvokeResponse:
    return invoke(store.delete_by_name, name)


@router.get("/{record_id}", response_model=InvokeResponse)
def get_agent(
    record_id: int,
    store: AgentServerStore = Depends(get_agent_store),
) -> InvokeResponse:
    return invoke(store.get_by_id, record_id)


@router.patch("/{record_id}", response_model=InvokeResponse)
def update_agent(
    record_id: int,
    body: AgentServerPatch,
    store: AgentServerStore = Depends(get_agent_store),
) -> InvokeResponse:
    """Partially update a server. Explicit null clears an optional column."""
    return invoke(store.update, record_id, body)


@router.delete("/{record_id}", response_model=InvokeResponse)
def delete_agent(
    record_id: int,
    store: AgentServerStore = Depends(get_agent_store),
) -> InvokeResponse:
    return invoke(store.delete_by_id, record_id)


@router.post("/{record_id}/toggle", response_model=InvokeResponse)
def toggle_agent(
    record_id: int,
    store: AgentServerStore = Depends(get_agent_store),
) -> InvokeResponse:
    return invoke(store.toggle_enabled, record_id)


@router.post("/{record_id}/disable-others", response_model=InvokeResponse)
def disable_other_agents(
    record_id: int,
    store: AgentServerStore = Depends(get_agent_store),
) -> InvokeResponse:
    return invoke(store.disable_others, record_id)


@router.post("/{record_id}/activate", response_model=InvokeResponse)
def activate_agent(
    record_id: int,
    store: AgentServerStore = Depends(get_agent_store),
) -> InvokeResponse:
    """Enable this server and disable all others in one transaction."""
    return invoke(store.enable_exclusively, record_id)
