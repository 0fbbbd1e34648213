"""
Tool Registry Module

Native (in-process) and MCP hosted tools the gateway can execute itself.
"""

from responses_gateway.tools.base import ToolDefinition, ToolHosting, ToolProtocol, ToolRegistry
from responses_gateway.tools.mcp import McpToolRegistry
from responses_gateway.tools.native import NativeToolRegistry
from responses_gateway.tools.service import ToolService

__all__ = [
    "ToolDefinition",
    "ToolHosting",
    "ToolProtocol",
    "ToolRegistry",
    "McpToolRegistry",
    "NativeToolRegistry",
    "ToolService",
]
