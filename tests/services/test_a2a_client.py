"""Tests for the A2A HTTP client against a fake transport."""

import asyncio
import json
import logging
import threading
import time

import httpx
import pytest

from a2a_desk.db.connection import DatabaseHandle
from a2a_desk.errors.domain import (
    NotFoundError,
    TransportBodyError,
    TransportRequestError,
    TransportStatusError,
)
from a2a_desk.services.a2a_client import A2AClient, A2AMessageParams, AgentCard
from a2a_desk.services.record_store import AgentServerStore
from tests.helpers import FakeTransport, make_agent

CARD = {
    "name": "Currency Agent",
    "description": "Converts currencies",
    "url": "http://localhost:10000/",
    "version": "1.0.0",
    "capabilities": {"streaming": True, "pushNotifications": False},
    "defaultInputModes": ["text"],
    "defaultOutputModes": ["text"],
    "skills": [{
        "id": "convert_currency",
        "name": "Currency conversion",
        "tags": ["fx"],
        "inputModes": ["text"],
    }],
    "x-vendor": {"tier": "free"},
}


class _BrokenStream(httpx.AsyncByteStream):
    async def __aiter__(self):
        raise httpx.ReadError("connection reset")
        yield b""  # pragma: no cover


def _params(server_id: int, **overrides) -> A2AMessageParams:
    fields = {
        "a2a_server_id": server_id,
        "task_id": "task-1",
        "message_id": "msg-1",
        "header_skill_id": "convert_currency",
        "text": "100 USD to EUR",
    }
    fields.update(overrides)
    return A2AMessageParams(**fields)


class TestSendMessage:
    """Tests for message/send over the wire."""

    @pytest.mark.asyncio
    async def test_unknown_server_fails_before_network(self, agent_store):
        """A missing server id raises NotFound without sending anything."""
        transport = FakeTransport(lambda request: httpx.Response(200, text="{}"))
        client = A2AClient(agent_store, transport=transport)

        with pytest.raises(NotFoundError):
            await client.send_message(_params(404))
        assert transport.requests == []

    @pytest.mark.asyncio
    async def test_posts_jsonrpc_body_and_headers(self, agent_store):
        server_id = agent_store.insert(make_agent(
            url="localhost:10000/.well-known/agent.json",
            custom_header_json='{"Authorization": "Bearer t", "X-Retries": 3}',
        ))
        transport = FakeTransport(lambda request: httpx.Response(200, text='{"result": "ok"}'))
        client = A2AClient(agent_store, transport=transport)

        body = await client.send_message(_params(server_id))

        assert body == '{"result": "ok"}'
        request = transport.requests[0]
        assert request.method == "POST"
        assert str(request.url) == "http://localhost:10000/.well-known/agent.json"
        assert request.headers["X-A2A-Skill-Id"] == "convert_currency"
        assert request.headers["Authorization"] == "Bearer t"
        assert "X-Retries" not in request.headers
        payload = json.loads(request.content)
        assert payload["id"] == "msg-1"
        assert payload["method"] == "message/send"
        assert payload["params"]["id"] == "task-1"
        assert payload["params"]["message"]["parts"] == [
            {"kind": "text", "text": "100 USD to EUR"}
        ]

    @pytest.mark.asyncio
    async def test_explicit_url_overrides_card(self, agent_store):
        server_id = agent_store.insert(make_agent(agent_card_json=json.dumps(CARD)))
        transport = FakeTransport(lambda request: httpx.Response(200, text="{}"))
        client = A2AClient(agent_store, transport=transport)

        await client.send_message(_params(server_id, a2a_url="agent.internal:8080/rpc"))
        assert str(transport.requests[0].url) == "http://agent.internal:8080/rpc"

    @pytest.mark.asyncio
    async def test_cached_card_url_used(self, agent_store):
        server_id = agent_store.insert(make_agent(agent_card_json=json.dumps(CARD)))
        transport = FakeTransport(lambda request: httpx.Response(200, text="{}"))
        client = A2AClient(agent_store, transport=transport)

        await client.send_message(_params(server_id))
        assert str(transport.requests[0].url) == "http://localhost:10000/"

    @pytest.mark.asyncio
    async def test_data_mode_payload(self, agent_store):
        server_id = agent_store.insert(make_agent(
            protocol_data_object_settings='{"kind":"data","data":"q={{USER_PROMPT}}"}',
        ))
        transport = FakeTransport(lambda request: httpx.Response(200, text="{}"))
        client = A2AClient(agent_store, transport=transport)

        await client.send_message(_params(server_id, text="rates"))
        payload = json.loads(transport.requests[0].content)
        assert payload["params"]["message"]["parts"] == [{"kind": "data", "data": "q=rates"}]

    @pytest.mark.asyncio
    async def test_status_error_carries_body(self, agent_store):
        server_id = agent_store.insert(make_agent())
        transport = FakeTransport(lambda request: httpx.Response(503, text="agent overloaded"))
        client = A2AClient(agent_store, transport=transport)

        with pytest.raises(TransportStatusError) as exc_info:
            await client.send_message(_params(server_id))
        assert exc_info.value.status_code == 503
        assert exc_info.value.body == "agent overloaded"
        assert str(exc_info.value) == "A2A request failed with status 503: agent overloaded"

    @pytest.mark.asyncio
    async def test_status_error_log_is_sanitized(self, agent_store, caplog):
        """The exception keeps the raw body; only the log line is redacted."""
        server_id = agent_store.insert(make_agent())
        transport = FakeTransport(
            lambda request: httpx.Response(401, text="Authorization: Bearer leaked-token")
        )
        client = A2AClient(agent_store, transport=transport)

        with caplog.at_level(logging.ERROR, logger="a2a_desk.services.a2a_client"):
            with pytest.raises(TransportStatusError) as exc_info:
                await client.send_message(_params(server_id))
        assert exc_info.value.body == "Authorization: Bearer leaked-token"
        assert "401" in caplog.text
        assert "leaked-token" not in caplog.text

    @pytest.mark.asyncio
    async def test_connect_error_is_request_error(self, agent_store):
        server_id = agent_store.insert(make_agent())

        def _refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = A2AClient(agent_store, transport=FakeTransport(_refuse))
        with pytest.raises(TransportRequestError, match="Request failed"):
            await client.send_message(_params(server_id))

    @pytest.mark.asyncio
    async def test_body_read_error(self, agent_store):
        server_id = agent_store.insert(make_agent())
        transport = FakeTransport(lambda request: httpx.Response(200, stream=_BrokenStream()))
        client = A2AClient(agent_store, transport=transport)

        with pytest.raises(TransportBodyError, match="Failed to read response body"):
            await client.send_message(_params(server_id))


class TestAgentCard:
    """Tests for agent card retrieval and caching."""

    @pytest.mark.asyncio
    async def test_fetch_parses_card(self, agent_store):
        transport = FakeTransport(lambda request: httpx.Response(200, json=CARD))
        client = A2AClient(agent_store, transport=transport)

        card = await client.fetch_agent_card("localhost:10000/.well-known/agent.json")

        assert isinstance(card, AgentCard)
        assert card.name == "Currency Agent"
        assert card.capabilities.streaming is True
        assert card.skills[0].input_modes == ["text"]
        request = transport.requests[0]
        assert request.method == "GET"
        assert request.headers["Accept"] == "application/json"
        assert "Authorization" not in request.headers

    @pytest.mark.asyncio
    async def test_bearer_token_sent(self, agent_store):
        transport = FakeTransport(lambda request: httpx.Response(200, json=CARD))
        client = A2AClient(agent_store, transport=transport)

        await client.fetch_agent_card("http://a/card", token="abc")
        assert transport.requests[0].headers["Authorization"] == "Bearer abc"

    @pytest.mark.asyncio
    async def test_unparseable_card(self, agent_store):
        transport = FakeTransport(lambda request: httpx.Response(200, text="<html>"))
        client = A2AClient(agent_store, transport=transport)

        with pytest.raises(TransportBodyError, match="Failed to parse response"):
            await client.fetch_agent_card("http://a/card")

    @pytest.mark.asyncio
    async def test_card_status_error(self, agent_store):
        transport = FakeTransport(lambda request: httpx.Response(404, text="no card"))
        client = A2AClient(agent_store, transport=transport)

        with pytest.raises(TransportStatusError) as exc_info:
            await client.fetch_agent_card("http://a/card")
        assert str(exc_info.value) == "Request failed with status 404: no card"

    @pytest.mark.asyncio
    async def test_refresh_caches_raw_card(self, agent_store):
        """The raw body is stored so unknown card fields survive."""
        server_id = agent_store.insert(make_agent(url="http://a/card"))
        raw = json.dumps(CARD)
        transport = FakeTransport(lambda request: httpx.Response(200, text=raw))
        client = A2AClient(agent_store, transport=transport)

        card = await client.refresh_agent_card(server_id)

        assert card.name == "Currency Agent"
        assert str(transport.requests[0].url) == "http://a/card"
        stored = agent_store.get_by_id(server_id)
        assert stored.agent_card_json == raw
        assert json.loads(stored.agent_card_json)["x-vendor"] == {"tier": "free"}

    @pytest.mark.asyncio
    async def test_refresh_unknown_server(self, agent_store):
        transport = FakeTransport(lambda request: httpx.Response(200, json=CARD))
        client = A2AClient(agent_store, transport=transport)

        with pytest.raises(NotFoundError):
            await client.refresh_agent_card(12)
        assert transport.requests == []

    @pytest.mark.asyncio
    async def test_refresh_failure_leaves_cache(self, agent_store):
        server_id = agent_store.insert(make_agent(agent_card_json='{"name": "old"}'))
        transport = FakeTransport(lambda request: httpx.Response(500, text="boom"))
        client = A2AClient(agent_store, transport=transport)

        with pytest.raises(TransportStatusError):
            await client.refresh_agent_card(server_id)
        assert agent_store.get_by_id(server_id).agent_card_json == '{"name": "old"}'

    @pytest.mark.asyncio
    async def test_card_status_log_is_sanitized(self, agent_store, caplog):
        transport = FakeTransport(
            lambda request: httpx.Response(403, text='{"token": "leaked-token"}')
        )
        client = A2AClient(agent_store, transport=transport)

        with caplog.at_level(logging.ERROR, logger="a2a_desk.services.a2a_client"):
            with pytest.raises(TransportStatusError) as exc_info:
                await client.fetch_agent_card("http://a/card")
        assert exc_info.value.body == '{"token": "leaked-token"}'
        assert "leaked-token" not in caplog.text


class TestEventLoopResponsiveness:
    """Store calls wait for the lock off the event loop."""

    @pytest.mark.asyncio
    async def test_held_lock_does_not_stall_loop(self, engine):
        handle = DatabaseHandle(engine, lock_timeout=5.0)
        store = AgentServerStore(handle)
        server_id = store.insert(make_agent())
        transport = FakeTransport(lambda request: httpx.Response(200, text='{"result": "ok"}'))
        client = A2AClient(store, transport=transport)

        acquired = threading.Event()

        def _hold_lock():
            with handle.locked():
                acquired.set()
                time.sleep(1.0)

        holder = threading.Thread(target=_hold_lock)
        holder.start()
        assert acquired.wait(timeout=5.0)

        gaps = []
        done = False

        async def _ticker():
            last = time.monotonic()
            while not done:
                await asyncio.sleep(0.05)
                now = time.monotonic()
                gaps.append(now - last)
                last = now

        ticker = asyncio.create_task(_ticker())
        try:
            body = await client.send_message(_params(server_id))
        finally:
            done = True
            await ticker
            holder.join()
            handle.close()

        assert body == '{"result": "ok"}'
        assert len(gaps) >= 5
        assert max(gaps) < 0.5
