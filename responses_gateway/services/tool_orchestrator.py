"""
Tool Orchestrator

Executes the function calls of one iteration that the gateway can run itself
and decides whether the loop should call the provider again.
"""

import logging
from dataclasses import dataclass
from typing import Any

from responses_gateway.common.errors import TooManyToolCallsError
from responses_gateway.common.responses.items import (
    FUNCTION_CALL,
    FUNCTION_CALL_OUTPUT,
    MESSAGE,
    count_items,
    input_items,
    item_type,
    message_text,
)
from responses_gateway.tools.base import ToolRegistry

logger = logging.getLogger(__name__)


@dataclass
class ToolResolution:
    """
    Outcome of one resolution pass

    input_items is the conversation to send on the next iteration: the
    request input, then executed calls with their outputs, then parked items.
    """

    input_items: list[dict[str, Any]]
    recurse: bool


class ToolOrchestrator:
    """
    Tool Orchestrator

    Calls are executed one at a time in the order the provider produced them.
    """

    def __init__(self, tool_registry: ToolRegistry, max_tool_calls: int):
        self.tool_registry = tool_registry
        self.max_tool_calls = max_tool_calls

    async def resolve(self, envelope: dict[str, Any], params: dict[str, Any]) -> ToolResolution:
        """
        Execute registered tool calls found in the envelope

        Args:
            envelope: Responses envelope of the finished iteration
            params: Request of the finished iteration

        Returns:
            ToolResolution: Updated input items and whether to call the provider again

        Raises:
            TooManyToolCallsError: The conversation holds more function calls than allowed
        """
        items = input_items(params)
        parked: list[dict[str, Any]] = []

        for output in envelope.get("output") or []:
            kind = item_type(output)
            if kind == MESSAGE:
                # Assistant text is replayed after the resolved calls
                if message_text(output.get("content")).strip():
                    parked.append(output)
                continue
            if kind != FUNCTION_CALL:
                continue

            call = {
                "type": FUNCTION_CALL,
                "id": output.get("id"),
                "call_id": output.get("call_id"),
                "name": output.get("name"),
                "arguments": output.get("arguments") or "",
                "status": "completed",
            }

            if self.tool_registry.lookup(call["name"]) is None:
                logger.debug("Parking call %s to unregistered tool %s", call["call_id"], call["name"])
                parked.append(call)
                continue

            result = await self.tool_registry.execute(call["name"], call["arguments"])
            logger.debug("Executed tool %s for call %s", call["name"], call["call_id"])
            items.append(call)
            items.append(
                {
                    "type": FUNCTION_CALL_OUTPUT,
                    "call_id": call["call_id"],
                    "output": result if result is not None else "",
                }
            )

        items.extend(parked)

        calls = count_items(items, FUNCTION_CALL)
        outputs = count_items(items, FUNCTION_CALL_OUTPUT)
        if calls > outputs:
            logger.debug("%d function call(s) left for the caller", calls - outputs)
            return ToolResolution(input_items=items, recurse=False)

        if calls > self.max_tool_calls:
            logger.error("Function call count %d exceeds MAX_TOOL_CALLS=%d", calls, self.max_tool_calls)
            raise TooManyToolCallsError()

        return ToolResolution(input_items=items, recurse=True)
