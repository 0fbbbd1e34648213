"""
Tool Definitions and Registry Interface

Defines the tool metadata shared by the native and MCP registries and the
registry interface used by the tool-call loop.
"""

import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class ToolProtocol(str, Enum):
    """How the gateway talks to the tool"""

    NATIVE = "native"
    MCP = "mcp"


class ToolHosting(str, Enum):
    """Who runs the tool"""

    # Executed by the gateway itself
    MANAGED = "managed"
    # Executed by a server configured by the operator
    SELF_HOSTED = "self_hosted"


@dataclass
class ToolDefinition:
    """
    Tool Definition Data Class

    Describes one executable tool. The parameters are a JSON schema.
    """

    name: str
    description: str
    parameters: dict[str, Any] = field(default_factory=dict)
    protocol: ToolProtocol = ToolProtocol.NATIVE
    hosting: ToolHosting = ToolHosting.MANAGED
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def to_function_tool(self) -> dict[str, Any]:
        """
        Render the tool as a Responses function tool declaration

        Returns:
            dict: {"type": "function", "name", "description", "parameters", "strict"}
        """
        return {
            "type": "function",
            "name": self.name,
            "description": self.description,
            "parameters": self.parameters,
            "strict": True,
        }


class ToolRegistry(ABC):
    """
    Executable Tool Registry Interface

    The tool-call loop only needs to know whether a tool runs inside the
    gateway and how to run it. Registries are read-only while a request is
    being served.
    """

    @abstractmethod
    def lookup(self, name: str) -> Optional[ToolDefinition]:
        """
        Find a tool by name

        Args:
            name: Tool (function) name

        Returns:
            Optional[ToolDefinition]: None when the tool is not executable here
        """
        pass

    @abstractmethod
    async def execute(self, name: str, arguments: str) -> Optional[str]:
        """
        Execute a tool

        Args:
            name: Tool name
            arguments: JSON encoded arguments as produced by the model

        Returns:
            Optional[str]: Tool output, None when the tool is unknown
        """
        pass
