"""
Chat Completion Chunk Converter

Turns one streamed chat-completion chunk into raw Responses events. The
events still need aggregation (see services.stream_aggregator): argument
completion is only signalled by a marker event and nothing here knows which
tools run inside the gateway.
"""

from __future__ import annotations

from typing import Any

from responses_gateway.common.responses import events
from responses_gateway.common.responses.items import new_id
from responses_gateway.common.responses.response_converter import function_call_output_item


class ChunkConverter:
    """
    Chunk → Event Converter

    One instance per streaming iteration. It remembers the item ids it handed
    out so every delta of the same message or call carries the same item_id.
    """

    def __init__(self) -> None:
        self._message_ids: dict[int, str] = {}
        self._call_ids: dict[int, str] = {}

    def message_item_id(self, output_index: int) -> str:
        if output_index not in self._message_ids:
            self._message_ids[output_index] = new_id("msg")
        return self._message_ids[output_index]

    def call_item_id(self, output_index: int) -> str:
        call_id = self._call_ids.get(output_index)
        return f"fc_{call_id}" if call_id else ""

    def convert(self, chunk: dict[str, Any]) -> list[dict[str, Any]]:
        """
        Convert one chunk

        - text delta → response.output_text.delta (output_index = choice index)
        - tool call delta with a function name → response.output_item.added with an in_progress function_call
        - tool call delta without a name → response.function_call_arguments.delta (output_index = tool call index)
        - finish_reason "tool_calls" → response.function_call_arguments.done marker with empty arguments

        Args:
            chunk: Chat Completions stream chunk

        Returns:
            list: Events in the order they should be processed
        """
        converted: list[dict[str, Any]] = []

        for choice in chunk.get("choices") or []:
            if not isinstance(choice, dict):
                continue
            index = int(choice.get("index") or 0)
            delta = choice.get("delta") or {}

            content = delta.get("content")
            if isinstance(content, str) and content:
                converted.append(events.output_text_delta(self.message_item_id(index), index, 0, content))

            for tool_call in delta.get("tool_calls") or []:
                converted.extend(self._convert_tool_call(tool_call))

            if choice.get("finish_reason") == "tool_calls":
                converted.append(events.function_call_arguments_done("", index, ""))

        return converted

    def _convert_tool_call(self, tool_call: dict[str, Any]) -> list[dict[str, Any]]:
        tool_index = int(tool_call.get("index") or 0)
        function = tool_call.get("function") or {}
        name = function.get("name")
        arguments = function.get("arguments") or ""

        if name:
            call_id = tool_call.get("id") or new_id("call")
            self._call_ids[tool_index] = call_id
            item = function_call_output_item(call_id, name, arguments, status="in_progress")
            return [events.output_item_added(tool_index, item)]

        if arguments:
            return [events.function_call_arguments_delta(self.call_item_id(tool_index), tool_index, arguments)]

        return []
