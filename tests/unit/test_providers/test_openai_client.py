"""
OpenAI Client Unit Tests
"""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from responses_gateway.common.errors import UpstreamError
from responses_gateway.config import Settings
from responses_gateway.providers.openai_client import OpenAIClient, resolve_base_url
from tests.helpers import chunk, completion, tool_call, tool_call_start

REAL_ASYNC_CLIENT = httpx.AsyncClient


def sse_body(*payloads):
    return "".join(f"data: {payload}\n\n" for payload in payloads).encode("utf-8")


def mock_transport_client(handler):
    """httpx.AsyncClient factory routing every request to handler"""
    return lambda **kwargs: REAL_ASYNC_CLIENT(transport=httpx.MockTransport(handler), **kwargs)


class TestResolveBaseUrl:
    def test_known_provider(self):
        assert resolve_base_url("openai", Settings()) == "https://api.openai.com/v1"
        assert resolve_base_url(" Groq ", Settings()) == "https://api.groq.com/openai/v1"

    def test_fallback_to_settings(self):
        settings = Settings(MODEL_BASE_URL="http://localhost:8080/v1/")
        assert resolve_base_url(None, settings) == "http://localhost:8080/v1"
        assert resolve_base_url("unknown", settings) == "http://localhost:8080/v1"


class TestCreateChatCompletion:
    def setup_method(self):
        self.client = OpenAIClient("https://api.example.com/v1/", "sk-test", timeout=10)

    @pytest.mark.asyncio
    async def test_posts_non_streaming_body(self):
        with patch("httpx.AsyncClient") as mock_client_cls:
            mock_client = AsyncMock()
            mock_client.post.return_value = MagicMock(
                status_code=200,
                json=lambda: completion("Hello!", usage={"prompt_tokens": 3, "completion_tokens": 2, "total_tokens": 5}),
            )
            mock_client_cls.return_value.__aenter__.return_value = mock_client

            result = await self.client.create_chat_completion({"model": "gpt-4o-mini", "messages": []})

        call_args = mock_client.post.call_args
        assert call_args.args[0] == "https://api.example.com/v1/chat/completions"
        assert call_args.kwargs["headers"]["Authorization"] == "Bearer sk-test"
        assert call_args.kwargs["json"]["stream"] is False
        assert result["choices"][0]["message"]["content"] == "Hello!"
        assert result["usage"]["total_tokens"] == 5

    @pytest.mark.asyncio
    async def test_tool_calls_are_kept(self):
        with patch("httpx.AsyncClient") as mock_client_cls:
            mock_client = AsyncMock()
            mock_client.post.return_value = MagicMock(
                status_code=200,
                json=lambda: completion(None, "tool_calls", [tool_call("call_1", "get_weather", '{"city":"Oslo"}')]),
            )
            mock_client_cls.return_value.__aenter__.return_value = mock_client

            result = await self.client.create_chat_completion({"model": "gpt-4o-mini", "messages": []})

        call = result["choices"][0]["message"]["tool_calls"][0]
        assert call["id"] == "call_1"
        assert call["function"] == {"name": "get_weather", "arguments": '{"city":"Oslo"}'}

    @pytest.mark.asyncio
    async def test_provider_error_keeps_status_code(self):
        with patch("httpx.AsyncClient") as mock_client_cls:
            mock_client = AsyncMock()
            mock_client.post.return_value = MagicMock(
                status_code=429,
                content=json.dumps({"error": {"message": "Rate limit reached"}}).encode("utf-8"),
            )
            mock_client_cls.return_value.__aenter__.return_value = mock_client

            with pytest.raises(UpstreamError) as exc_info:
                await self.client.create_chat_completion({"model": "gpt-4o-mini", "messages": []})

        assert exc_info.value.status_code == 429
        assert exc_info.value.message == "Rate limit reached"
        assert exc_info.value.details["body"]["error"]["message"] == "Rate limit reached"

    @pytest.mark.asyncio
    async def test_timeout(self):
        with patch("httpx.AsyncClient") as mock_client_cls:
            mock_client = AsyncMock()
            mock_client.post.side_effect = httpx.ReadTimeout("too slow")
            mock_client_cls.return_value.__aenter__.return_value = mock_client

            with pytest.raises(UpstreamError) as exc_info:
                await self.client.create_chat_completion({"model": "gpt-4o-mini", "messages": []})

        assert exc_info.value.status_code == 504
        assert exc_info.value.code == "upstream_timeout"

    @pytest.mark.asyncio
    async def test_connection_error(self):
        with patch("httpx.AsyncClient") as mock_client_cls:
            mock_client = AsyncMock()
            mock_client.post.side_effect = httpx.ConnectError("refused")
            mock_client_cls.return_value.__aenter__.return_value = mock_client

            with pytest.raises(UpstreamError) as exc_info:
                await self.client.create_chat_completion({"model": "gpt-4o-mini", "messages": []})

        assert exc_info.value.status_code == 502

    @pytest.mark.asyncio
    async def test_invalid_body(self):
        with patch("httpx.AsyncClient") as mock_client_cls:
            mock_client = AsyncMock()
            mock_client.post.return_value = MagicMock(status_code=200, json=lambda: {"unexpected": True})
            mock_client_cls.return_value.__aenter__.return_value = mock_client

            with pytest.raises(UpstreamError):
                await self.client.create_chat_completion({"model": "gpt-4o-mini", "messages": []})


class TestStreamChatCompletion:
    def setup_method(self):
        self.client = OpenAIClient("https://api.example.com/v1", "sk-test", timeout=10)

    @pytest.mark.asyncio
    async def test_chunks_until_done(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(json.loads(request.content))
            body = sse_body(
                json.dumps(chunk("Hel")),
                json.dumps(chunk(tool_calls=[tool_call_start(0, "call_1", "get_weather")])),
                json.dumps(chunk(finish_reason="stop")),
                "[DONE]",
                json.dumps(chunk("after done")),
            )
            return httpx.Response(200, content=body, headers={"content-type": "text/event-stream"})

        with patch("httpx.AsyncClient", side_effect=mock_transport_client(handler)):
            chunks = [item async for item in self.client.stream_chat_completion({"model": "m", "messages": []})]

        assert requests[0]["stream"] is True
        assert len(chunks) == 3
        assert chunks[0]["choices"][0]["delta"]["content"] == "Hel"
        assert chunks[1]["choices"][0]["delta"]["tool_calls"][0]["function"]["name"] == "get_weather"
        assert chunks[2]["choices"][0]["finish_reason"] == "stop"

    @pytest.mark.asyncio
    async def test_invalid_chunks_are_skipped(self):
        def handler(request: httpx.Request) -> httpx.Response:
            body = sse_body('{"not": "a chunk"}', json.dumps(chunk("ok")))
            return httpx.Response(200, content=body)

        with patch("httpx.AsyncClient", side_effect=mock_transport_client(handler)):
            chunks = [item async for item in self.client.stream_chat_completion({"model": "m", "messages": []})]

        assert [item["choices"][0]["delta"]["content"] for item in chunks] == ["ok"]

    @pytest.mark.asyncio
    async def test_error_status(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={"error": {"message": "Invalid API key"}})

        with patch("httpx.AsyncClient", side_effect=mock_transport_client(handler)):
            with pytest.raises(UpstreamError) as exc_info:
                async for _ in self.client.stream_chat_completion({"model": "m", "messages": []}):
                    pass

        assert exc_info.value.status_code == 401
        assert exc_info.value.message == "Invalid API key"
