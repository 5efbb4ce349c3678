"""API routes for talking to A2A agent servers.

Agent card retrieval, card refresh for a stored server, and message
delivery. All endpoints use the /api/v1/a2a prefix.
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from a2a_desk.api.deps import get_a2a_client
from a2a_desk.api.envelope import InvokeResponse, invoke_async
from a2a_desk.services.a2a_client import A2AClient, A2AMessageParams

router = APIRouter(prefix="/a2a", tags=["a2a"])


class AgentCardRequest(BaseModel):
    """Request schema for fetching an agent card by URL."""
    url: str
    token: str | None = None


class RefreshCardRequest(BaseModel):
    token: str | None = None


@router.post("/agent-card", response_model=InvokeResponse)
async def fetch_agent_card(
    body: AgentCardRequest,
    client: A2AClient = Depends(get_a2a_client),
) -> InvokeResponse:
    """Fetch and parse the agent card at an arbitrary URL."""
    return await invoke_async(client.fetch_agent_card, body.url, body.token)


@router.post("/servers/{server_id}/refresh-card", response_model=InvokeResponse)
async def refresh_agent_card(
    server_id: int,
    body: RefreshCardRequest | None = None,
    client: A2AClient = Depends(get_a2a_client),
) -> InvokeResponse:
    """Re-fetch a stored server's card and cache it on the record."""
    token = body.token if body else None
    return await invoke_async(client.refresh_agent_card, server_id, token)


@router.post("/messages", response_model=InvokeResponse)
async def send_message(
    body: A2AMessageParams,
    client: A2AClient = Depends(get_a2a_client),
) -> InvokeResponse:
    """Send one message/send request. Data is the raw response body."""
    return await invoke_async(client.send_message, body)
