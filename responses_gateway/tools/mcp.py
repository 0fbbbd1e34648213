"""
MCP Tools

Connects to Model Context Protocol servers listed in the MCP config file and
registers the tools they expose. Remote servers are reached over streamable
HTTP, local servers are started as subprocesses speaking MCP on stdio. Both
go through an mcp ClientSession.

Config file format:
    {"mcpServers": {"<name>": {"url": "..."}}}
    {"mcpServers": {"<name>": {"command": "...", "args": [...], "env": {...}}}}
"""

from __future__ import annotations

import json
import logging
import os
import shutil
from contextlib import AsyncExitStack
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Any, Optional

import anyio
from mcp import ClientSession, StdioServerParameters
from mcp.client.stdio import stdio_client
from mcp.client.streamable_http import streamablehttp_client
from mcp.types import TextContent

from responses_gateway.common.errors import ToolExecutionError
from responses_gateway.tools.base import ToolDefinition, ToolHosting, ToolProtocol

logger = logging.getLogger(__name__)

CONNECT_TIMEOUT_SECONDS = 20


@dataclass
class McpServerConfig:
    """One entry of the "mcpServers" map"""

    name: str
    url: Optional[str] = None
    command: Optional[str] = None
    args: list[str] = field(default_factory=list)
    env: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, name: str, data: dict[str, Any]) -> "McpServerConfig":
        return cls(
            name=name,
            url=data.get("url"),
            command=data.get("command"),
            args=list(data.get("args") or []),
            env=dict(data.get("env") or {}),
        )


def load_server_configs(path: str) -> list[McpServerConfig]:
    """
    Read the MCP server config file

    Args:
        path: Path of the JSON config file

    Returns:
        list[McpServerConfig]: Empty when the file is missing or empty
    """
    config_path = Path(path)
    if not config_path.is_file():
        logger.warning("MCP server config file %s not found. No MCP tools will be loaded.", path)
        return []

    content = config_path.read_text(encoding="utf-8")
    if not content.strip():
        logger.warning("MCP server config file is empty. No MCP tools will be loaded.")
        return []

    servers = json.loads(content).get("mcpServers") or {}
    return [McpServerConfig.from_dict(name, data or {}) for name, data in servers.items()]


def stdio_parameters(config: McpServerConfig) -> StdioServerParameters:
    """
    Subprocess parameters of a stdio server

    Env values name an environment variable of the gateway or are literal
    values.
    """
    command = shutil.which(config.command) or config.command
    env = None
    if config.env:
        env = {**os.environ, **{key: os.environ.get(value, value) for key, value in config.env.items()}}
    return StdioServerParameters(command=command, args=config.args, env=env)


class McpServer:
    """
    MCP Server Connection

    Owns the transport and the ClientSession of one server. Everything
    entered on connect is released by close.
    """

    def __init__(self, config: McpServerConfig, timeout: float = 300):
        self.config = config
        self.timeout = timeout
        self.exit_stack = AsyncExitStack()
        self.session: Optional[ClientSession] = None

    @property
    def name(self) -> str:
        return self.config.name

    async def connect(self) -> None:
        if self.config.url and not self.config.command:
            read, write, _ = await self.exit_stack.enter_async_context(
                streamablehttp_client(self.config.url, timeout=timedelta(seconds=self.timeout))
            )
        elif self.config.command:
            read, write = await self.exit_stack.enter_async_context(stdio_client(stdio_parameters(self.config)))
        else:
            raise ValueError(f"MCP server {self.name} needs either a url or a command")

        session = await self.exit_stack.enter_async_context(
            ClientSession(read, write, read_timeout_seconds=timedelta(seconds=self.timeout))
        )
        with anyio.fail_after(CONNECT_TIMEOUT_SECONDS):
            await session.initialize()
        self.session = session

    def _require_session(self) -> ClientSession:
        if self.session is None:
            raise ToolExecutionError(f"MCP server {self.name} is not connected")
        return self.session

    async def list_tools(self) -> list[ToolDefinition]:
        result = await self._require_session().list_tools()
        return [
            ToolDefinition(
                name=tool.name,
                description=tool.description or "",
                parameters=tool.inputSchema or {"type": "object", "properties": {}},
                protocol=ToolProtocol.MCP,
                hosting=ToolHosting.SELF_HOSTED,
            )
            for tool in result.tools
        ]

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> str:
        """
        Call a tool and join its text content

        Raises:
            ToolExecutionError: The server reported an error
        """
        result = await self._require_session().call_tool(name, arguments)
        text = "\n".join(part.text for part in result.content if isinstance(part, TextContent))
        if result.isError:
            raise ToolExecutionError(text or f"MCP tool {name} reported an error")
        return text

    async def close(self) -> None:
        try:
            await self.exit_stack.aclose()
        finally:
            self.session = None


class McpToolRegistry:
    """
    MCP Tool Registry

    Maps tool names to the server exposing them. A later server exposing the
    same tool name replaces the earlier registration.
    """

    def __init__(self, timeout: float = 300):
        self.timeout = timeout
        self._tools: dict[str, ToolDefinition] = {}
        self._tool_servers: dict[str, McpServer] = {}
        self._servers: dict[str, McpServer] = {}

    async def connect(self, config: McpServerConfig) -> McpServer:
        server = McpServer(config, self.timeout)
        try:
            await server.connect()
        except BaseException:
            await server.close()
            raise
        return server

    async def register_server(self, config: McpServerConfig) -> None:
        server = await self.connect(config)
        try:
            tools = await server.list_tools()
        except BaseException:
            await server.close()
            raise

        self._servers[config.name] = server
        for tool in tools:
            logger.info("Adding MCP tool %s from server %s", tool.name, config.name)
            self._tools[tool.name] = tool
            self._tool_servers[tool.name] = server

    async def load(self, configs: list[McpServerConfig]) -> None:
        """Connect to every configured server; failing servers are logged and skipped."""
        for config in configs:
            try:
                await self.register_server(config)
                logger.info("Successfully loaded tools for MCP server: %s", config.name)
            except Exception as e:
                logger.error("Failed to load tools for MCP server %s: %s", config.name, e)

    def find_by_name(self, name: str) -> Optional[ToolDefinition]:
        return self._tools.get(name)

    def find_all(self) -> list[ToolDefinition]:
        return list(self._tools.values())

    async def execute(self, name: str, arguments: str) -> Optional[str]:
        server = self._tool_servers.get(name)
        if server is None:
            return None
        try:
            parsed = json.loads(arguments) if arguments and arguments.strip() else {}
        except json.JSONDecodeError as e:
            raise ToolExecutionError(f"Invalid arguments for tool {name}: {e}") from e
        return await server.call_tool(name, parsed)

    async def close(self) -> None:
        # Servers are closed in reverse order of connection
        for name, server in reversed(list(self._servers.items())):
            try:
                await server.close()
            except Exception as e:
                logger.warning("Failed to close MCP server %s: %s", name, e)
        self._servers.clear()
        self._tool_servers.clear()
        self._tools.clear()
