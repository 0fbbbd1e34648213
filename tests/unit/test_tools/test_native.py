"""
Native Tool Unit Tests
"""

import pytest

from responses_gateway.common.errors import ToolExecutionError
from responses_gateway.tools.base import ToolHosting, ToolProtocol
from responses_gateway.tools.native import NativeToolRegistry, ThinkTool


def test_think_definition():
    definition = ThinkTool.definition
    assert definition.protocol == ToolProtocol.NATIVE
    assert definition.hosting == ToolHosting.MANAGED

    function_tool = definition.to_function_tool()
    assert function_tool["type"] == "function"
    assert function_tool["name"] == "think"
    assert function_tool["strict"] is True
    assert function_tool["parameters"]["additionalProperties"] is False


class TestNativeToolRegistry:
    def setup_method(self):
        self.registry = NativeToolRegistry()

    def test_think_is_registered_by_default(self):
        assert self.registry.find_by_name("think") is ThinkTool.definition
        assert self.registry.find_by_name("missing") is None
        assert [tool.name for tool in self.registry.find_all()] == ["think"]

    @pytest.mark.asyncio
    async def test_execute_think(self):
        result = await self.registry.execute("think", '{"thought": "check the units"}')
        assert result == "Your thought has been logged."

    @pytest.mark.asyncio
    async def test_execute_unknown_tool(self):
        assert await self.registry.execute("missing", "{}") is None

    @pytest.mark.asyncio
    async def test_blank_arguments(self):
        assert await self.registry.execute("think", "") == "Your thought has been logged."

    @pytest.mark.asyncio
    @pytest.mark.parametrize("arguments", ["{not json", "[1, 2]"])
    async def test_invalid_arguments(self, arguments):
        with pytest.raises(ToolExecutionError):
            await self.registry.execute("think", arguments)
