"""
Tests for POST /api/chat: SSE framing, caching and error mapping.
"""

import json

import pytest

from models import ChatTurn
from test_utils import TEST_SYSTEM_PROMPT, rate_limited, unauthorized


def parse_events(body: str):
    """Split an SSE body into decoded data payloads ("[DONE]" kept as-is)."""
    events = []
    for block in body.split("\n\n"):
        if not block:
            continue
        assert block.startswith("data: ")
        data = block[len("data: "):]
        events.append(data if data == "[DONE]" else json.loads(data))
    return events


class TestChatEndpoint:

    @pytest.mark.asyncio
    async def test_streams_fragments_then_done(self, async_client, fake_client):
        fake_client.outcomes = [["Hel", "lo"]]

        response = await async_client.post("/api/chat", json={"message": "Hi"})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")
        assert response.text == 'data: {"content": "Hel"}\n\ndata: {"content": "lo"}\n\ndata: [DONE]\n\n'

    @pytest.mark.asyncio
    async def test_repeat_question_served_from_cache(self, async_client, fake_client):
        fake_client.outcomes = [["Cached", " reply"]]

        await async_client.post("/api/chat", json={"message": "Same question"})
        response = await async_client.post("/api/chat", json={"message": "Same question"})

        assert parse_events(response.text) == [{"content": "Cached reply"}, "[DONE]"]
        assert len(fake_client.calls) == 1

    @pytest.mark.asyncio
    async def test_history_is_limited_to_recent_turns(self, async_client, fake_client):
        history = [
            {"role": "user" if i % 2 == 0 else "assistant", "content": f"turn {i}"}
            for i in range(14)
        ]

        await async_client.post("/api/chat", json={"message": "latest", "chatHistory": history})

        turns = fake_client.calls[0].turns
        assert turns[0] == ChatTurn(role="system", content=TEST_SYSTEM_PROMPT)
        assert [t.content for t in turns[1:-1]] == [f"turn {i}" for i in range(4, 14)]
        assert turns[-1] == ChatTurn(role="user", content="latest")

    @pytest.mark.asyncio
    async def test_empty_message_rejected(self, async_client, fake_client):
        response = await async_client.post("/api/chat", json={"message": "   "})

        assert response.status_code == 400
        body = response.json()
        assert body["type"] == "error"
        assert body["error"]["type"] == "invalid_request_error"
        assert body["error"]["message"] == "Message is required"
        assert fake_client.calls == []

    @pytest.mark.asyncio
    async def test_invalid_json_rejected(self, async_client):
        response = await async_client.post(
            "/api/chat", content=b"{not json", headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 400
        assert response.json()["error"]["type"] == "invalid_request_error"

    @pytest.mark.asyncio
    async def test_invalid_history_role_rejected(self, async_client):
        response = await async_client.post(
            "/api/chat", json={"message": "hi", "chatHistory": [{"role": "robot", "content": "x"}]}
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_missing_api_key_is_503(self, async_client, fake_client):
        fake_client.is_configured = False

        response = await async_client.post("/api/chat", json={"message": "Hi"})

        assert response.status_code == 503
        assert response.json()["error"]["type"] == "configuration_error"
        assert fake_client.calls == []

    @pytest.mark.asyncio
    async def test_invalid_api_key_is_401(self, async_client, fake_client):
        fake_client.outcomes = [unauthorized()]

        response = await async_client.post("/api/chat", json={"message": "Hi"})

        assert response.status_code == 401
        error = response.json()["error"]
        assert error["type"] == "authentication_error"
        assert "GROQ_API_KEY" in error["message"]

    @pytest.mark.asyncio
    async def test_rate_limit_retried_then_streamed(self, async_client, fake_client):
        fake_client.outcomes = [rate_limited(), rate_limited(), ["after retry"]]

        response = await async_client.post("/api/chat", json={"message": "Hi"})

        assert parse_events(response.text) == [{"content": "after retry"}, "[DONE]"]
        assert len(fake_client.calls) == 3

    @pytest.mark.asyncio
    async def test_mid_stream_failure_sends_error_event(self, async_client, fake_client):
        fake_client.outcomes = [["partial", RuntimeError("connection reset")]]

        response = await async_client.post("/api/chat", json={"message": "Hi"})

        assert response.status_code == 200
        events = parse_events(response.text)
        assert events[0] == {"content": "partial"}
        assert events[1]["type"] == "error"
        assert events[1]["error"]["type"] == "api_error"
        assert "[DONE]" not in events

    @pytest.mark.asyncio
    async def test_failed_reply_is_not_cached(self, async_client, fake_client):
        fake_client.outcomes = [unauthorized(), ["second try"]]

        first = await async_client.post("/api/chat", json={"message": "Hi"})
        second = await async_client.post("/api/chat", json={"message": "Hi"})

        assert first.status_code == 401
        assert parse_events(second.text) == [{"content": "second try"}, "[DONE]"]
