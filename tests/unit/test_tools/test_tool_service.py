"""
Tool Service Unit Tests
"""

from unittest.mock import AsyncMock, patch

import pytest

from responses_gateway.config import Settings
from responses_gateway.tools.base import ToolDefinition, ToolHosting, ToolProtocol
from responses_gateway.tools.mcp import McpToolRegistry
from responses_gateway.tools.native import NativeToolRegistry
from responses_gateway.tools.service import ToolService


class TestLookup:
    def test_native_tools(self, tool_service):
        assert tool_service.lookup("get_weather").name == "get_weather"
        assert tool_service.lookup("search_docs") is None
        assert {tool.name for tool in tool_service.list_tools()} == {"think", "get_weather", "broken"}

    def test_get_function_tool(self, tool_service):
        assert tool_service.get_function_tool("get_weather")["parameters"]["required"] == ["city"]
        assert tool_service.get_function_tool("search_docs") is None

    def test_native_shadows_mcp(self):
        mcp_registry = McpToolRegistry()
        mcp_registry._tools["think"] = ToolDefinition(
            name="think", description="remote", protocol=ToolProtocol.MCP, hosting=ToolHosting.SELF_HOSTED
        )
        service = ToolService(NativeToolRegistry(), mcp_registry)
        assert service.lookup("think").protocol == ToolProtocol.NATIVE


class TestExecute:
    @pytest.mark.asyncio
    async def test_native_tool(self, tool_service, weather_tool):
        result = await tool_service.execute("get_weather", '{"city": "Lima"}')
        assert '"forecast": "sunny"' in result
        assert weather_tool.calls == [{"city": "Lima"}]

    @pytest.mark.asyncio
    async def test_unknown_tool(self, tool_service):
        assert await tool_service.execute("search_docs", "{}") is None

    @pytest.mark.asyncio
    async def test_failure_is_returned_as_text(self, tool_service):
        result = await tool_service.execute("broken", "{}")
        assert result == "Tool broken execution with arguments {} failed with error message: backend unavailable"

    @pytest.mark.asyncio
    async def test_invalid_arguments_are_returned_as_text(self, tool_service):
        result = await tool_service.execute("get_weather", "{oops")
        assert result.startswith("Tool get_weather execution with arguments {oops failed with error message:")

    @pytest.mark.asyncio
    async def test_mcp_tool_is_dispatched(self):
        mcp_registry = McpToolRegistry()
        mcp_registry._tools["search_docs"] = ToolDefinition(
            name="search_docs", description="", protocol=ToolProtocol.MCP, hosting=ToolHosting.SELF_HOSTED
        )
        service = ToolService(NativeToolRegistry(), mcp_registry)

        with patch.object(mcp_registry, "execute", AsyncMock(return_value="3 results")) as execute:
            assert await service.execute("search_docs", '{"q": "x"}') == "3 results"
        execute.assert_awaited_once_with("search_docs", '{"q": "x"}')


class TestLoad:
    @pytest.mark.asyncio
    async def test_disabled(self, tool_service):
        with patch("responses_gateway.tools.service.load_server_configs") as load_configs:
            await tool_service.load(Settings(TOOLS_MCP_ENABLED=False))
        load_configs.assert_not_called()

    @pytest.mark.asyncio
    async def test_enabled_reads_config_file(self, tmp_path):
        config_file = tmp_path / "mcp.json"
        config_file.write_text('{"mcpServers": {"docs": {"url": "http://localhost:9000/mcp"}}}')
        mcp_registry = McpToolRegistry()
        service = ToolService(NativeToolRegistry(), mcp_registry)

        with patch.object(mcp_registry, "load", AsyncMock()) as load:
            await service.load(Settings(TOOLS_MCP_ENABLED=True, MCP_SERVER_CONFIG_FILE_PATH=str(config_file), HTTP_TIMEOUT=12))

        configs = load.call_args.args[0]
        assert [config.name for config in configs] == ["docs"]
        assert configs[0].url == "http://localhost:9000/mcp"
        assert mcp_registry.timeout == 12
