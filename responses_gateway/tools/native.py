"""
Native Tools

Tools implemented in-process by the gateway.
"""

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

from responses_gateway.common.errors import ToolExecutionError
from responses_gateway.tools.base import ToolDefinition, ToolHosting, ToolProtocol

logger = logging.getLogger(__name__)


class NativeTool(ABC):
    """Base class of an in-process tool"""

    definition: ToolDefinition

    @abstractmethod
    async def run(self, arguments: dict[str, Any]) -> str:
        pass


class ThinkTool(NativeTool):
    """
    Think Tool

    Gives the model a scratchpad step without side effects.
    """

    definition = ToolDefinition(
        name="think",
        description=(
            "Use the tool to think about something. It will not obtain new information or change the "
            "database, but just append the thought to the log."
        ),
        parameters={
            "type": "object",
            "properties": {
                "thought": {
                    "type": "string",
                    "description": "A thought to think about",
                },
            },
            "required": ["thought"],
            "additionalProperties": False,
        },
        protocol=ToolProtocol.NATIVE,
        hosting=ToolHosting.MANAGED,
    )

    async def run(self, arguments: dict[str, Any]) -> str:
        logger.debug("think: %s", arguments.get("thought"))
        return "Your thought has been logged."


class NativeToolRegistry:
    """
    Native Tool Registry

    Holds the in-process tools by name. The think tool is always registered.
    """

    def __init__(self, tools: Optional[list[NativeTool]] = None):
        self._tools: dict[str, NativeTool] = {}
        for tool in tools if tools is not None else [ThinkTool()]:
            self.register(tool)

    def register(self, tool: NativeTool) -> None:
        self._tools[tool.definition.name] = tool

    def find_by_name(self, name: str) -> Optional[ToolDefinition]:
        tool = self._tools.get(name)
        return tool.definition if tool else None

    def find_all(self) -> list[ToolDefinition]:
        return [tool.definition for tool in self._tools.values()]

    async def execute(self, name: str, arguments: str) -> Optional[str]:
        """
        Run a native tool

        Args:
            name: Tool name
            arguments: JSON object string ("" counts as no arguments)

        Returns:
            Optional[str]: Tool output, None when no such tool is registered

        Raises:
            ToolExecutionError: The arguments are not a JSON object
        """
        tool = self._tools.get(name)
        if tool is None:
            return None

        try:
            parsed = json.loads(arguments) if arguments and arguments.strip() else {}
        except json.JSONDecodeError as e:
            raise ToolExecutionError(f"Invalid arguments for tool {name}: {e}") from e
        if not isinstance(parsed, dict):
            raise ToolExecutionError(f"Arguments for tool {name} must be a JSON object")

        return await tool.run(parsed)
