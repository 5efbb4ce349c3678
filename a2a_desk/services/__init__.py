"""Service layer for A2A Desk.

Provides the configuration record stores, A2A message composition and
delivery, and the chat streaming relay.
"""

from a2a_desk.services.a2a_client import A2AClient, A2AMessageParams, AgentCard
from a2a_desk.services.chat_stream import (
    ChatCompletionParams,
    ChatService,
    ChatStreamParams,
    ChatStreamRelay,
)
from a2a_desk.services.record_store import AgentServerStore, ModelProviderStore
from a2a_desk.services.stream_events import CHANNEL, StreamBroadcaster, StreamChunk

__all__ = [
    "ModelProviderStore",
    "AgentServerStore",
    "A2AClient",
    "A2AMessageParams",
    "AgentCard",
    "ChatStreamRelay",
    "ChatStreamParams",
    "ChatService",
    "ChatCompletionParams",
    "StreamBroadcaster",
    "StreamChunk",
    "CHANNEL",
]
