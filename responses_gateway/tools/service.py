"""
Tool Service

Single entry point to the native and MCP registries: lookup, execution and
the function declarations used to expand managed tools in requests.
"""

import logging
from typing import Any, Optional

from responses_gateway.config import Settings
from responses_gateway.tools.base import ToolDefinition, ToolProtocol, ToolRegistry
from responses_gateway.tools.mcp import McpToolRegistry, load_server_configs
from responses_gateway.tools.native import NativeToolRegistry

logger = logging.getLogger(__name__)


class ToolService(ToolRegistry):
    """
    Tool Service

    Native tools take precedence over MCP tools with the same name.
    """

    def __init__(
        self,
        native_registry: Optional[NativeToolRegistry] = None,
        mcp_registry: Optional[McpToolRegistry] = None,
    ):
        self.native_registry = native_registry or NativeToolRegistry()
        self.mcp_registry = mcp_registry or McpToolRegistry()

    async def load(self, settings: Settings) -> None:
        """
        Load MCP tools from the configured servers

        Args:
            settings: Application settings (TOOLS_MCP_ENABLED, MCP_SERVER_CONFIG_FILE_PATH, HTTP_TIMEOUT)
        """
        if not settings.TOOLS_MCP_ENABLED:
            logger.info("MCP tools are not enabled, skipping loading of MCP tools.")
            return

        self.mcp_registry.timeout = settings.HTTP_TIMEOUT
        configs = load_server_configs(settings.MCP_SERVER_CONFIG_FILE_PATH)
        await self.mcp_registry.load(configs)

    async def close(self) -> None:
        await self.mcp_registry.close()

    def lookup(self, name: str) -> Optional[ToolDefinition]:
        return self.native_registry.find_by_name(name) or self.mcp_registry.find_by_name(name)

    def list_tools(self) -> list[ToolDefinition]:
        return self.native_registry.find_all() + self.mcp_registry.find_all()

    def get_function_tool(self, name: str) -> Optional[dict[str, Any]]:
        """Responses function declaration of a registered tool, None if unknown."""
        tool = self.lookup(name)
        return tool.to_function_tool() if tool else None

    async def execute(self, name: str, arguments: str) -> Optional[str]:
        return await self.execute_tool(name, arguments)

    async def execute_tool(self, name: str, arguments: str) -> Optional[str]:
        """
        Execute a tool by name

        Failures are reported as the tool output so a failing tool does not
        abort the conversation.

        Args:
            name: Tool name
            arguments: JSON encoded arguments

        Returns:
            Optional[str]: Tool output or error description, None when the tool is unknown
        """
        tool = self.lookup(name)
        if tool is None:
            return None

        try:
            if tool.protocol == ToolProtocol.NATIVE:
                result = await self.native_registry.execute(name, arguments)
            else:
                result = await self.mcp_registry.execute(name, arguments)
        except Exception as e:
            message = f"Tool {name} execution with arguments {arguments} failed with error message: {e}"
            logger.error(message, exc_info=True)
            return message

        logger.debug("tool %s executed with arguments: %s gave result: %s", name, arguments, result)
        return result
