"""Tests for A2A message composition, headers and URL resolution."""

import json

import pytest

from a2a_desk.services.a2a_message import (
    DataPart,
    JSONRPCRequest,
    TextPart,
    build_message_parts,
    build_request_headers,
    compose_message_request,
    normalize_url,
    resolve_destination_url,
)
from a2a_desk.services.record_types import AgentServerRecord


def _server(**overrides) -> AgentServerRecord:
    fields = {
        "id": 1,
        "name": "Currency Agent",
        "agent_card_url": "http://localhost:10000/.well-known/agent.json",
        "enabled": True,
    }
    fields.update(overrides)
    return AgentServerRecord(**fields)


class TestBuildMessageParts:
    """Payload kind selection and placeholder substitution."""

    def test_text_mode_without_settings(self):
        """No settings yields exactly one Text part with the caller text."""
        parts = build_message_parts(None, "hello")
        assert parts == [TextPart(text="hello")]

    def test_data_mode_substitutes_placeholder(self):
        settings = '{"kind":"data","data":"prefix-{{USER_PROMPT}}-suffix"}'
        parts = build_message_parts(settings, "X")
        assert parts == [DataPart(data="prefix-X-suffix")]

    def test_every_occurrence_replaced(self):
        settings = json.dumps({"kind": "data", "data": "{{USER_PROMPT}}|{{USER_PROMPT}}"})
        assert build_message_parts(settings, "q")[0].data == "q|q"

    def test_structured_template_kept_verbatim(self):
        template = json.dumps({"query": "{{USER_PROMPT}}", "top_k": 3})
        settings = json.dumps({"kind": "data", "data": template})
        part = build_message_parts(settings, "rates")[0]
        assert json.loads(part.data) == {"query": "rates", "top_k": 3}

    @pytest.mark.parametrize("settings", [
        "",
        "not json",
        "[1, 2]",
        '"data"',
        '{"kind": "text"}',
        '{"data": "{{USER_PROMPT}}"}',
    ])
    def test_falls_back_to_text(self, settings):
        """Invalid, non-object or non-data settings mean plain text."""
        assert build_message_parts(settings, "hi") == [TextPart(text="hi")]

    @pytest.mark.parametrize("settings", [
        '{"kind": "data"}',
        '{"kind": "data", "data": 42}',
        '{"kind": "data", "data": null}',
    ])
    def test_missing_template_is_empty_data(self, settings):
        assert build_message_parts(settings, "hi") == [DataPart(data="")]

    def test_caller_text_not_reinterpreted(self):
        """Caller text containing the placeholder is substituted once."""
        settings = '{"kind":"data","data":"<{{USER_PROMPT}}>"}'
        assert build_message_parts(settings, "{{USER_PROMPT}}")[0].data == "<{{USER_PROMPT}}>"


class TestComposeMessageRequest:
    """JSON-RPC wire shape."""

    def test_wire_shape_text(self):
        request = compose_message_request(_server(), "hello", "msg-1", "task-9")
        assert request.model_dump() == {
            "jsonrpc": "2.0",
            "id": "msg-1",
            "method": "message/send",
            "params": {
                "id": "task-9",
                "message": {
                    "message_id": "msg-1",
                    "kind": "message",
                    "role": "user",
                    "parts": [{"kind": "text", "text": "hello"}],
                },
                "metadata": {},
            },
        }

    def test_wire_shape_data(self):
        server = _server(protocol_data_object_settings='{"kind":"data","data":"v={{USER_PROMPT}}"}')
        body = compose_message_request(server, "X", "m", "t").model_dump()
        assert body["params"]["message"]["parts"] == [{"kind": "data", "data": "v=X"}]

    def test_rpc_id_is_message_id_not_task_id(self):
        request = compose_message_request(_server(), "x", "message-id", "task-id")
        assert request.id == "message-id"
        assert request.params.id == "task-id"
        assert request.params.message.message_id == "message-id"

    def test_parts_parse_back_by_kind(self):
        """The kind inside each part selects the variant on parse."""
        raw = compose_message_request(
            _server(protocol_data_object_settings='{"kind":"data","data":"d"}'), "x", "m", "t"
        ).model_dump_json()
        parsed = JSONRPCRequest.model_validate_json(raw)
        assert isinstance(parsed.params.message.parts[0], DataPart)


class TestBuildRequestHeaders:
    """Fixed headers plus stored custom headers."""

    def test_fixed_headers(self):
        assert build_request_headers(None, "skill-1") == {
            "Content-Type": "application/json",
            "X-A2A-Skill-Id": "skill-1",
        }

    def test_custom_string_headers_added(self):
        custom = json.dumps({"Authorization": "Bearer abc", "X-Tenant": "acme"})
        headers = build_request_headers(custom, "s")
        assert headers["Authorization"] == "Bearer abc"
        assert headers["X-Tenant"] == "acme"
        assert headers["X-A2A-Skill-Id"] == "s"

    def test_non_string_values_skipped(self):
        custom = json.dumps({"X-Num": 5, "X-Obj": {"a": 1}, "X-None": None, "X-Ok": "yes"})
        headers = build_request_headers(custom, "s")
        assert "X-Num" not in headers
        assert "X-Obj" not in headers
        assert "X-None" not in headers
        assert headers["X-Ok"] == "yes"

    @pytest.mark.parametrize("custom", ["", "{bad", "[]", '"str"'])
    def test_unparseable_custom_headers_ignored(self, custom):
        assert set(build_request_headers(custom, "s")) == {"Content-Type", "X-A2A-Skill-Id"}

    def test_custom_overrides_fixed(self):
        headers = build_request_headers('{"X-A2A-Skill-Id": "forced"}', "s")
        assert headers["X-A2A-Skill-Id"] == "forced"

    def test_override_ignores_case(self):
        headers = build_request_headers('{"content-type": "text/plain"}', "s")
        assert [k for k in headers if k.lower() == "content-type"] == ["content-type"]
        assert headers["content-type"] == "text/plain"
        assert headers["X-A2A-Skill-Id"] == "s"


class TestUrls:
    """Scheme defaulting and destination precedence."""

    @pytest.mark.parametrize("url,expected", [
        ("localhost:10000", "http://localhost:10000"),
        ("http://a.example/x", "http://a.example/x"),
        ("https://a.example/x", "https://a.example/x"),
    ])
    def test_normalize_url(self, url, expected):
        assert normalize_url(url) == expected

    def test_explicit_url_wins(self):
        server = _server(agent_card_json='{"url": "http://card-endpoint/"}')
        assert resolve_destination_url(server, "agent.local:9999") == "http://agent.local:9999"

    def test_cached_card_url_used(self):
        server = _server(agent_card_json=json.dumps({"name": "n", "url": "https://agent/rpc"}))
        assert resolve_destination_url(server) == "https://agent/rpc"

    def test_relative_card_url_resolved_against_card(self):
        server = _server(
            agent_card_url="localhost:10000/.well-known/agent.json",
            agent_card_json='{"url": "/a2a"}',
        )
        assert resolve_destination_url(server) == "http://localhost:10000/a2a"

    def test_falls_back_to_agent_card_url(self):
        server = _server(agent_card_url="localhost:10000", agent_card_json="not json")
        assert resolve_destination_url(server, "  ") == "http://localhost:10000"
