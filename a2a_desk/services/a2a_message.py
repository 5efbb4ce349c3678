"""A2A ``message/send`` request composition.

Turns one stored agent server record plus caller text into the JSON-RPC
body, headers and destination URL of an outbound message. Nothing here
touches the network or the database, so every step is testable on its own.

Wire shape:
    {
        "jsonrpc": "2.0",
        "id": <message_id>,
        "method": "message/send",
        "params": {
            "id": <task_id>,
            "message": {"message_id": ..., "kind": "message",
                        "role": "user", "parts": [...]},
            "metadata": {}
        }
    }
"""

import json
import logging
from typing import Annotated, Any, Literal, Union
from urllib.parse import urljoin

from pydantic import BaseModel, Field

from a2a_desk.services.record_types import AgentServerRecord

logger = logging.getLogger(__name__)

USER_PROMPT_PLACEHOLDER = "{{USER_PROMPT}}"
SKILL_HEADER = "X-A2A-Skill-Id"
JSONRPC_VERSION = "2.0"
SEND_METHOD = "message/send"


class TextPart(BaseModel):
    """Plain text payload."""

    kind: Literal["text"] = "text"
    text: str


class DataPart(BaseModel):
    """Serialized structured payload built from a stored template."""

    kind: Literal["data"] = "data"
    data: str


MessagePart = Annotated[Union[TextPart, DataPart], Field(discriminator="kind")]


class A2AMessage(BaseModel):
    """Client-originated message. Role is always ``user``."""

    message_id: str
    kind: Literal["message"] = "message"
    role: Literal["user"] = "user"
    parts: list[MessagePart]


class A2ARequest(BaseModel):
    """Parameters of a ``message/send`` call."""

    id: str
    message: A2AMessage
    metadata: dict[str, Any] = Field(default_factory=dict)


class JSONRPCRequest(BaseModel):
    """JSON-RPC 2.0 request envelope."""

    jsonrpc: Literal["2.0"] = JSONRPC_VERSION
    id: str
    method: str = SEND_METHOD
    params: A2ARequest


def _parse_json_object(raw: str | None) -> dict[str, Any] | None:
    """Parse stored JSON text, returning None unless it is an object."""
    if not raw:
        return None
    try:
        value = json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        return None
    return value if isinstance(value, dict) else None


def build_message_parts(settings_json: str | None, text: str) -> list[TextPart | DataPart]:
    """Choose the payload kind for one outbound message.

    Args:
        settings_json: The server's stored protocol-data-object settings.
        text: Caller-supplied text.

    Returns:
        Exactly one part. A Data part when the settings declare
        ``"kind": "data"``, with every placeholder replaced by ``text``;
        otherwise a Text part carrying ``text`` verbatim.
    """
    settings = _parse_json_object(settings_json)
    if settings is not None and settings.get("kind") == "data":
        template = settings.get("data")
        if not isinstance(template, str):
            template = ""
        return [DataPart(data=template.replace(USER_PROMPT_PLACEHOLDER, text))]
    return [TextPart(text=text)]


def compose_message_request(
    server: AgentServerRecord,
    text: str,
    message_id: str,
    task_id: str,
) -> JSONRPCRequest:
    """Build the JSON-RPC envelope for one message to ``server``.

    The RPC ``id`` carries the message id while ``params.id`` carries the
    task id.
    """
    message = A2AMessage(
        message_id=message_id,
        parts=build_message_parts(server.protocol_data_object_settings, text),
    )
    return JSONRPCRequest(
        id=message_id,
        params=A2ARequest(id=task_id, message=message),
    )


def build_request_headers(custom_header_json: str | None, skill_id: str) -> dict[str, str]:
    """Merge the fixed headers with the server's stored custom headers.

    Custom entries are applied last, so they replace a fixed header of the
    same name, compared case-insensitively. Non-string values and
    unparseable header JSON are skipped.
    """
    headers = {
        "Content-Type": "application/json",
        SKILL_HEADER: skill_id,
    }
    custom = _parse_json_object(custom_header_json)
    if custom_header_json and custom is None:
        logger.warning("Ignoring custom headers: stored value is not a JSON object")
    for key, value in (custom or {}).items():
        if isinstance(value, str):
            for existing in [k for k in headers if k.lower() == key.lower()]:
                del headers[existing]
            headers[key] = value
        else:
            logger.debug("Skipping non-string custom header %s", key)
    return headers


def normalize_url(url: str) -> str:
    """Prefix ``http://`` onto a URL that carries no explicit scheme."""
    if url.startswith("http://") or url.startswith("https://"):
        return url
    return f"http://{url}"


def resolve_destination_url(server: AgentServerRecord, explicit_url: str | None = None) -> str:
    """Pick the URL a message is POSTed to.

    Order: the caller's explicit URL, then the ``url`` of the cached agent
    card (relative values resolved against the card URL), then the stored
    agent card URL itself.
    """
    if explicit_url and explicit_url.strip():
        return normalize_url(explicit_url.strip())

    card_url = normalize_url(server.agent_card_url)
    card = _parse_json_object(server.agent_card_json)
    if card is not None:
        endpoint = card.get("url")
        if isinstance(endpoint, str) and endpoint.strip():
            endpoint = endpoint.strip()
            if endpoint.startswith("/"):
                return urljoin(card_url, endpoint)
            return normalize_url(endpoint)
    return card_url
