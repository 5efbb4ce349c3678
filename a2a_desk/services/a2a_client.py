"""HTTP client for A2A agent servers.

Sends composed ``message/send`` requests and retrieves agent cards. Errors
surface as TransportError variants so the boundary can report which step
failed: sending, a non-success status, or reading the body.

Store lookups run before any network call and never overlap with it; the
database lock is released before the request is sent. Store calls go through
asyncio.to_thread so a held lock never blocks the event loop.
"""

import asyncio
import logging

import httpx
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from a2a_desk.errors.domain import (
    TransportBodyError,
    TransportRequestError,
    TransportStatusError,
)
from a2a_desk.services.a2a_message import (
    build_request_headers,
    compose_message_request,
    normalize_url,
    resolve_destination_url,
)
from a2a_desk.services.record_store import AgentServerStore
from a2a_desk.services.record_types import AgentServerPatch
from a2a_desk.utils.redaction import sanitize_error_message

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0


class AgentSkill(BaseModel):
    """One skill advertised by an agent card."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    description: str = ""
    tags: list[str] = Field(default_factory=list)
    examples: list[str] = Field(default_factory=list)
    input_modes: list[str] = Field(default_factory=list, alias="inputModes")
    output_modes: list[str] = Field(default_factory=list, alias="outputModes")


class AgentProvider(BaseModel):
    organization: str
    url: str | None = None


class AgentCapabilities(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    streaming: bool = False
    push_notifications: bool = Field(default=False, alias="pushNotifications")
    state_transition_history: bool = Field(default=False, alias="stateTransitionHistory")


class AgentAuthentication(BaseModel):
    schemes: list[str] = Field(default_factory=list)


class AgentCard(BaseModel):
    """Agent card document served by an A2A server.

    Unknown fields are kept so a cached card round-trips unchanged.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    name: str
    description: str = ""
    url: str
    provider: AgentProvider | None = None
    version: str = ""
    documentation_url: str | None = Field(default=None, alias="documentationUrl")
    capabilities: AgentCapabilities = Field(default_factory=AgentCapabilities)
    authentication: AgentAuthentication | None = None
    default_input_modes: list[str] = Field(default_factory=list, alias="defaultInputModes")
    default_output_modes: list[str] = Field(default_factory=list, alias="defaultOutputModes")
    skills: list[AgentSkill] = Field(default_factory=list)


class A2AMessageParams(BaseModel):
    """Caller input for sending one message to a stored agent server."""

    a2a_server_id: int
    a2a_url: str | None = None
    task_id: str
    message_id: str
    header_skill_id: str
    text: str


class A2AClient:
    """Sends A2A messages and fetches agent cards over httpx.

    Args:
        store: Agent server store used to resolve server ids.
        transport: Optional httpx transport. Tests inject a fake here.
        timeout: Per-request timeout in seconds.

    Example:
        client = A2AClient(AgentServerStore(handle))
        body = await client.send_message(A2AMessageParams(
            a2a_server_id=1, task_id="t-1", message_id="m-1",
            header_skill_id="search", text="hello",
        ))
    """

    def __init__(
        self,
        store: AgentServerStore,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self._store = store
        self._transport = transport
        self._timeout = timeout

    def _http(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self._transport, timeout=self._timeout)

    async def _request(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        json_body: dict | None = None,
    ) -> httpx.Response:
        """Send one request and read its body fully.

        Raises:
            TransportRequestError: If the request could not be sent.
            TransportBodyError: If the body could not be read.
        """
        async with self._http() as client:
            try:
                request = client.build_request(method, url, headers=headers, json=json_body)
                response = await client.send(request, stream=True)
            except (httpx.HTTPError, httpx.InvalidURL) as e:
                logger.error("Failed to send %s %s: %s", method, url, e)
                raise TransportRequestError(f"Request failed: {e}", detail=str(e)) from e

            try:
                await response.aread()
            except httpx.HTTPError as e:
                logger.error("Failed to read response body from %s: %s", url, e)
                raise TransportBodyError(
                    f"Failed to read response body: {e}", detail=str(e)
                ) from e
            finally:
                await response.aclose()
        return response

    async def _fetch_card(self, url: str, token: str | None = None) -> tuple[AgentCard, str]:
        full_url = normalize_url(url)
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        response = await self._request("GET", full_url, headers)
        body = response.text
        if not response.is_success:
            logger.error(
                "Agent card request failed with status %d. Body: %s",
                response.status_code, sanitize_error_message(body),
            )
            raise TransportStatusError(response.status_code, body)

        try:
            card = AgentCard.model_validate_json(body)
        except PydanticValidationError as e:
            logger.error("Failed to parse agent card from %s: %s", full_url, e)
            raise TransportBodyError(f"Failed to parse response: {e}", detail=str(e)) from e
        return card, body

    async def fetch_agent_card(self, url: str, token: str | None = None) -> AgentCard:
        """Retrieve and parse the agent card at ``url``.

        Args:
            url: Card URL. A value without a scheme gets ``http://``.
            token: Optional bearer token.

        Raises:
            TransportRequestError: Network failure.
            TransportStatusError: Non-success status; carries the body text.
            TransportBodyError: Body unreadable or not a valid agent card.
        """
        card, _ = await self._fetch_card(url, token)
        logger.info("Fetched agent card '%s' from %s", card.name, url)
        return card

    async def refresh_agent_card(self, server_id: int, token: str | None = None) -> AgentCard:
        """Fetch a stored server's card and cache it on the record.

        Raises:
            NotFoundError: If the server id does not exist.
        """
        server = await asyncio.to_thread(self._store.require, server_id)
        card, body = await self._fetch_card(server.agent_card_url, token)
        await asyncio.to_thread(
            self._store.update, server_id, AgentServerPatch(agent_card_json=body)
        )
        logger.info("Cached agent card for A2A server %d", server_id)
        return card

    async def send_message(self, params: A2AMessageParams) -> str:
        """Send one ``message/send`` request to a stored agent server.

        Returns:
            The raw response body text.

        Raises:
            NotFoundError: Unknown server id, raised before any network call.
            TransportRequestError: Network failure.
            TransportStatusError: Non-success status; carries the body text.
            TransportBodyError: Body unreadable.
        """
        server = await asyncio.to_thread(self._store.require, params.a2a_server_id)

        request = compose_message_request(
            server, params.text, params.message_id, params.task_id
        )
        headers = build_request_headers(server.custom_header_json, params.header_skill_id)
        url = resolve_destination_url(server, params.a2a_url)
        logger.info(
            "Sending A2A message %s (task %s) to %s",
            params.message_id, params.task_id, url,
        )

        response = await self._request("POST", url, headers, request.model_dump())
        if not response.is_success:
            logger.error(
                "A2A request to %s failed with status %d. Body: %s",
                url, response.status_code, sanitize_error_message(response.text),
            )
            raise TransportStatusError(
                response.status_code, response.text, prefix="A2A request"
            )
        return response.text
