"""
Payload Formatter

Lets callers enable gateway-managed tools by type only (e.g. {"type": "think"})
and shows them the same way in returned envelopes.
"""

import copy
from typing import Any

from responses_gateway.common.errors import InvalidInputError
from responses_gateway.common.responses.events import ENVELOPE_EVENTS
from responses_gateway.common.responses.request_converter import HOSTED_TOOL_TYPES
from responses_gateway.tools.service import ToolService


class PayloadFormatter:
    """Expands managed tools in requests and collapses them in envelopes"""

    def __init__(self, tool_service: ToolService):
        self.tool_service = tool_service

    def format_request(self, params: dict[str, Any]) -> dict[str, Any]:
        """
        Replace managed tool references with their function declarations

        Args:
            params: Responses request body

        Returns:
            dict: A copy of the request with expanded tools

        Raises:
            InvalidInputError: A tool type is neither a known declaration nor a registered tool
        """
        tools = params.get("tools")
        if not tools:
            return params

        expanded = []
        for tool in tools:
            tool_type = tool.get("type") if isinstance(tool, dict) else None
            if tool_type == "function" or tool_type in HOSTED_TOOL_TYPES:
                expanded.append(tool)
                continue
            function_tool = self.tool_service.get_function_tool(tool_type) if tool_type else None
            if function_tool is None:
                raise InvalidInputError(f"Define tool {tool_type} properly", details={"param": "tools"})
            expanded.append(function_tool)

        return {**params, "tools": expanded}

    def format_response(self, envelope: dict[str, Any]) -> dict[str, Any]:
        """Copy of the envelope where registered function tools appear as {"type": <name>}"""
        tools = envelope.get("tools")
        if not tools:
            return envelope

        formatted = copy.copy(envelope)
        formatted["tools"] = [
            {"type": tool["name"]}
            if isinstance(tool, dict)
            and tool.get("type") == "function"
            and tool.get("name")
            and self.tool_service.lookup(tool["name"]) is not None
            else tool
            for tool in tools
        ]
        return formatted

    def format_event(self, event: dict[str, Any]) -> dict[str, Any]:
        if event.get("type") in ENVELOPE_EVENTS and isinstance(event.get("response"), dict):
            return {**event, "response": self.format_response(event["response"])}
        return event
