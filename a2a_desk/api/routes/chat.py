"""API routes for chat completion and streaming.

POST /chat/stream drives the relay; its events are delivered to every
client connected to GET /chat/stream/events. All endpoints use the
/api/v1 prefix.
"""

import asyncio
import json
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, Depends, Request
from sse_starlette.sse import EventSourceResponse

from a2a_desk.api.deps import get_broadcaster, get_chat_relay, get_chat_service
from a2a_desk.api.envelope import InvokeResponse, invoke_async
from a2a_desk.services.chat_stream import (
    STREAM_COMPLETED_MESSAGE,
    ChatCompletionParams,
    ChatService,
    ChatStreamParams,
    ChatStreamRelay,
)
from a2a_desk.services.stream_events import StreamBroadcaster

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])

PING_INTERVAL_SECONDS = 15.0


@router.post("/completions", response_model=InvokeResponse)
async def chat_completion(
    body: ChatCompletionParams,
    service: ChatService = Depends(get_chat_service),
) -> InvokeResponse:
    """One-shot completion. Data is the reply text."""
    return await invoke_async(service.complete, body)


@router.post("/stream", response_model=InvokeResponse)
async def chat_stream(
    body: ChatStreamParams,
    relay: ChatStreamRelay = Depends(get_chat_relay),
) -> InvokeResponse:
    """Stream one completion to the event channel.

    Returns once the stream reaches a terminal state. On success the
    message is a fixed acknowledgement and data is the accumulated text.
    """
    response = await invoke_async(relay.stream, body)
    if response.ok:
        response.message = STREAM_COMPLETED_MESSAGE
    return response


async def _event_generator(
    request: Request,
    broadcaster: StreamBroadcaster,
    queue: asyncio.Queue,
) -> AsyncGenerator[dict, None]:
    """Generate SSE events from one subscriber queue.

    Sends a ping after 15 seconds without events so idle connections
    survive proxies.
    """
    try:
        while True:
            if await request.is_disconnected():
                break
            try:
                event = await asyncio.wait_for(queue.get(), timeout=PING_INTERVAL_SECONDS)
                yield {"event": event["event"], "data": json.dumps(event["data"])}
            except asyncio.TimeoutError:
                yield {"event": "ping", "data": "{}"}
    finally:
        broadcaster.unsubscribe(queue)


@router.get("/stream/events")
async def stream_events(
    request: Request,
    broadcaster: StreamBroadcaster = Depends(get_broadcaster),
) -> EventSourceResponse:
    """SSE endpoint for ``chat_stream_chunk`` events."""
    queue = broadcaster.subscribe()
    return EventSourceResponse(_event_generator(request, broadcaster, queue))
