"""Chat stream events and the SSE broadcaster that delivers them.

The relay emits StreamChunk events to a StreamEventSink. The production
sink is StreamBroadcaster, which fans every event out to one asyncio.Queue
per connected SSE client on the ``chat_stream_chunk`` channel.
"""

import asyncio
import logging
from typing import Any, Protocol

from pydantic import BaseModel

logger = logging.getLogger(__name__)

CHANNEL = "chat_stream_chunk"


class StreamChunk(BaseModel):
    """One event on the chat stream channel.

    ``content`` is an empty string on status and terminal events.
    """

    content: str = ""
    is_complete: bool = False
    error: str | None = None
    status: str | None = None
    message: str | None = None

    @classmethod
    def started(cls) -> "StreamChunk":
        return cls(status="streaming_started", message="Waiting for response...")

    @classmethod
    def fragment(cls, text: str) -> "StreamChunk":
        return cls(content=text)

    @classmethod
    def completed(cls) -> "StreamChunk":
        return cls(
            is_complete=True,
            status="completed",
            message="Streaming completed successfully",
        )

    @classmethod
    def failed(cls, error: str) -> "StreamChunk":
        return cls(is_complete=True, error=error)


class StreamEventSink(Protocol):
    """Receiver of chat stream events.

    Implementations must accept concurrent emission from several in-flight
    relay calls.
    """

    async def emit(self, chunk: StreamChunk) -> None:
        ...


class StreamBroadcaster:
    """Fan-out sink that bridges stream events to SSE connections.

    Each subscriber gets its own queue, so a slow browser tab never blocks
    the relay or another subscriber. With no subscribers, events are dropped.
    """

    def __init__(self, max_queue_size: int = 1000) -> None:
        """Initialize broadcaster with no subscribers.

        Args:
            max_queue_size: Per-subscriber queue bound. Events for a full
                queue are dropped with a warning.
        """
        self._queues: set[asyncio.Queue[dict[str, Any]]] = set()
        self._max_queue_size = max_queue_size

    def subscribe(self) -> asyncio.Queue[dict[str, Any]]:
        """Create a queue for one SSE client.

        Returns:
            asyncio.Queue receiving ``{"event": ..., "data": ...}`` dicts.
        """
        queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue(maxsize=self._max_queue_size)
        self._queues.add(queue)
        logger.debug("Added chat stream subscriber (total %d)", len(self._queues))
        return queue

    def unsubscribe(self, queue: asyncio.Queue[dict[str, Any]]) -> None:
        """Remove a queue when its client disconnects. No-op if unknown."""
        self._queues.discard(queue)
        logger.debug("Removed chat stream subscriber (total %d)", len(self._queues))

    @property
    def subscriber_count(self) -> int:
        return len(self._queues)

    async def emit(self, chunk: StreamChunk) -> None:
        """Deliver one event to every current subscriber."""
        payload = {"event": CHANNEL, "data": chunk.model_dump()}
        for queue in list(self._queues):
            try:
                queue.put_nowait(payload)
            except asyncio.QueueFull:
                logger.warning("Chat stream subscriber queue full, dropping event")
