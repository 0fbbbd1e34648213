"""
Shared test doubles: a scripted provider and chat-completion builders.
"""

import json
from typing import Any, AsyncIterator, Iterable, Optional

from responses_gateway.providers.base import ProviderClient


def completion(
    content: Optional[str] = "Hi there",
    finish_reason: str = "stop",
    tool_calls: Optional[list[dict[str, Any]]] = None,
    usage: Optional[dict[str, Any]] = None,
    completion_id: str = "chatcmpl-1",
) -> dict[str, Any]:
    message: dict[str, Any] = {"role": "assistant", "content": content}
    if tool_calls:
        message["tool_calls"] = tool_calls
    body: dict[str, Any] = {
        "id": completion_id,
        "object": "chat.completion",
        "created": 1700000000,
        "model": "gpt-4o-mini",
        "choices": [{"index": 0, "message": message, "finish_reason": finish_reason}],
    }
    if usage is not None:
        body["usage"] = usage
    return body


def tool_call(call_id: str, name: str, arguments: str = "{}") -> dict[str, Any]:
    return {"id": call_id, "type": "function", "function": {"name": name, "arguments": arguments}}


def chunk(
    content: Optional[str] = None,
    finish_reason: Optional[str] = None,
    tool_calls: Optional[list[dict[str, Any]]] = None,
    index: int = 0,
) -> dict[str, Any]:
    delta: dict[str, Any] = {}
    if content is not None:
        delta["content"] = content
    if tool_calls is not None:
        delta["tool_calls"] = tool_calls
    return {
        "id": "chatcmpl-stream",
        "object": "chat.completion.chunk",
        "created": 1700000000,
        "model": "gpt-4o-mini",
        "choices": [{"index": index, "delta": delta, "finish_reason": finish_reason}],
    }


def tool_call_start(index: int, call_id: str, name: str, arguments: str = "") -> dict[str, Any]:
    return {"index": index, "id": call_id, "type": "function", "function": {"name": name, "arguments": arguments}}


def tool_call_arguments(index: int, arguments: str) -> dict[str, Any]:
    return {"index": index, "function": {"arguments": arguments}}


class ScriptedProvider(ProviderClient):
    """
    Provider returning scripted results in order

    completions feed create_chat_completion, streams (lists of chunks, or an
    exception to raise after them) feed stream_chat_completion.
    """

    def __init__(
        self,
        completions: Optional[list[dict[str, Any]]] = None,
        streams: Optional[list[list[Any]]] = None,
    ):
        self.completions = list(completions or [])
        self.streams = list(streams or [])
        self.requests: list[dict[str, Any]] = []

    async def create_chat_completion(self, body: dict[str, Any]) -> dict[str, Any]:
        self.requests.append(body)
        return self.completions.pop(0)

    async def stream_chat_completion(self, body: dict[str, Any]) -> AsyncIterator[dict[str, Any]]:
        self.requests.append(body)
        for item in self.streams.pop(0):
            if isinstance(item, Exception):
                raise item
            yield item


async def collect(events: AsyncIterator[Any]) -> list[Any]:
    return [event async for event in events]


def event_types(events: list[dict[str, Any]]) -> list[str]:
    return [event["type"] for event in events]


def find_event(events: list[dict[str, Any]], event_type: str) -> Optional[dict[str, Any]]:
    return next((event for event in events if event["type"] == event_type), None)


def parse_sse(frames: Iterable[bytes]) -> list[dict[str, Any]]:
    """Decode the data payloads of SSE frames produced by the gateway."""
    parsed = []
    for frame in frames:
        for line in frame.decode("utf-8").split("\n"):
            if line.startswith("data: "):
                parsed.append(json.loads(line[len("data: "):]))
    return parsed
