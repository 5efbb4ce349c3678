"""FastAPI dependencies shared by the route modules.

Everything is read from ``app.state``, populated by the lifespan in
``a2a_desk.api.main``. Tests override ``get_db_handle`` or set state
attributes (``a2a_transport``, ``llm_client_factory``) directly.
"""

from fastapi import Depends, Request

from a2a_desk.config import AppConfig
from a2a_desk.db.connection import DatabaseHandle
from a2a_desk.services.a2a_client import A2AClient
from a2a_desk.services.chat_stream import ChatService, ChatStreamRelay
from a2a_desk.services.record_store import AgentServerStore, ModelProviderStore
from a2a_desk.services.stream_events import StreamBroadcaster


def get_config(request: Request) -> AppConfig:
    return request.app.state.config


def get_db_handle(request: Request) -> DatabaseHandle:
    """Return the process-wide database handle."""
    return request.app.state.db


def get_broadcaster(request: Request) -> StreamBroadcaster:
    return request.app.state.broadcaster


def get_model_store(handle: DatabaseHandle = Depends(get_db_handle)) -> ModelProviderStore:
    """Dependency injector for ModelProviderStore."""
    return ModelProviderStore(handle)


def get_agent_store(handle: DatabaseHandle = Depends(get_db_handle)) -> AgentServerStore:
    """Dependency injector for AgentServerStore."""
    return AgentServerStore(handle)


def get_a2a_client(
    request: Request,
    store: AgentServerStore = Depends(get_agent_store),
    config: AppConfig = Depends(get_config),
) -> A2AClient:
    """Build an A2AClient on the app's transport (None means real network)."""
    return A2AClient(
        store,
        transport=request.app.state.a2a_transport,
        timeout=config.a2a.request_timeout_seconds,
    )


def get_chat_relay(
    request: Request,
    broadcaster: StreamBroadcaster = Depends(get_broadcaster),
    config: AppConfig = Depends(get_config),
) -> ChatStreamRelay:
    return ChatStreamRelay(
        broadcaster,
        config=config.llm,
        client_factory=request.app.state.llm_client_factory,
    )


def get_chat_service(
    request: Request,
    config: AppConfig = Depends(get_config),
) -> ChatService:
    return ChatService(config=config.llm, client_factory=request.app.state.llm_client_factory)
