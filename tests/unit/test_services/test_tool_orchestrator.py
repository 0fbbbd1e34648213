"""
Tool Orchestrator Unit Tests
"""

import json

import pytest

from responses_gateway.common.errors import TooManyToolCallsError
from responses_gateway.common.responses.response_converter import function_call_output_item, message_output_item
from responses_gateway.services.tool_orchestrator import ToolOrchestrator


def envelope(*outputs):
    return {"id": "resp_1", "object": "response", "status": "completed", "output": list(outputs)}


class TestResolve:
    @pytest.mark.asyncio
    async def test_registered_call_is_executed(self, tool_service, weather_tool):
        orchestrator = ToolOrchestrator(tool_service, max_tool_calls=3)
        resolution = await orchestrator.resolve(
            envelope(function_call_output_item("call_1", "get_weather", '{"city":"Paris"}')),
            {"model": "m", "input": "weather in Paris?"},
        )

        assert resolution.recurse is True
        assert weather_tool.calls == [{"city": "Paris"}]
        items = resolution.input_items
        assert items[0] == {"role": "user", "content": "weather in Paris?"}
        assert items[1]["type"] == "function_call"
        assert items[1]["call_id"] == "call_1"
        assert items[2]["type"] == "function_call_output"
        assert items[2]["call_id"] == "call_1"
        assert json.loads(items[2]["output"]) == {"city": "Paris", "forecast": "sunny"}

    @pytest.mark.asyncio
    async def test_unregistered_call_stops_recursion(self, tool_service, weather_tool):
        orchestrator = ToolOrchestrator(tool_service, max_tool_calls=3)
        resolution = await orchestrator.resolve(
            envelope(
                function_call_output_item("call_1", "get_weather", '{"city":"Paris"}'),
                function_call_output_item("call_2", "search_docs", '{"q":"x"}'),
            ),
            {"model": "m", "input": "hi"},
        )

        assert resolution.recurse is False
        assert len(weather_tool.calls) == 1
        assert [item.get("type") for item in resolution.input_items[1:]] == [
            "function_call",
            "function_call_output",
            "function_call",
        ]
        assert resolution.input_items[-1]["name"] == "search_docs"

    @pytest.mark.asyncio
    async def test_message_outputs_are_parked_after_calls(self, tool_service):
        orchestrator = ToolOrchestrator(tool_service, max_tool_calls=3)
        resolution = await orchestrator.resolve(
            envelope(
                message_output_item("Let me check."),
                function_call_output_item("call_1", "get_weather", '{"city":"Rome"}'),
            ),
            {"model": "m", "input": "hi"},
        )

        assert resolution.recurse is True
        assert resolution.input_items[-1]["type"] == "message"
        assert resolution.input_items[-1]["content"][0]["text"] == "Let me check."

    @pytest.mark.asyncio
    async def test_reasoning_and_blank_messages_are_not_parked(self, tool_service):
        orchestrator = ToolOrchestrator(tool_service, max_tool_calls=3)
        resolution = await orchestrator.resolve(
            envelope(
                message_output_item("  "),
                function_call_output_item("call_1", "get_weather", '{"city":"Rome"}'),
                {"id": "rs_1", "type": "reasoning", "summary": [{"type": "summary_text", "text": "plan"}]},
            ),
            {"model": "m", "input": "hi"},
        )

        assert resolution.recurse is True
        assert [item.get("type") for item in resolution.input_items[1:]] == [
            "function_call",
            "function_call_output",
        ]

    @pytest.mark.asyncio
    async def test_failing_tool_output_is_error_text(self, tool_service):
        orchestrator = ToolOrchestrator(tool_service, max_tool_calls=3)
        resolution = await orchestrator.resolve(
            envelope(function_call_output_item("call_1", "broken", "{}")),
            {"model": "m", "input": "hi"},
        )

        output = resolution.input_items[-1]["output"]
        assert output.startswith("Tool broken execution with arguments {} failed with error message:")
        assert "backend unavailable" in output
        assert resolution.recurse is True

    @pytest.mark.asyncio
    async def test_limit_counts_calls_in_input(self, tool_service):
        history = []
        for n in range(3):
            history.append({"type": "function_call", "call_id": f"old_{n}", "name": "think", "arguments": "{}"})
            history.append({"type": "function_call_output", "call_id": f"old_{n}", "output": "ok"})

        orchestrator = ToolOrchestrator(tool_service, max_tool_calls=3)
        with pytest.raises(TooManyToolCallsError) as exc_info:
            await orchestrator.resolve(
                envelope(function_call_output_item("call_1", "get_weather", '{"city":"Oslo"}')),
                {"model": "m", "input": history},
            )
        assert exc_info.value.code == "too_many_tool_calls"

    @pytest.mark.asyncio
    async def test_limit_not_checked_when_caller_owes_outputs(self, tool_service):
        history = [
            {"type": "function_call", "call_id": f"old_{n}", "name": "think", "arguments": "{}"} for n in range(5)
        ]
        orchestrator = ToolOrchestrator(tool_service, max_tool_calls=3)
        resolution = await orchestrator.resolve(envelope(), {"model": "m", "input": history})
        assert resolution.recurse is False
