"""
Test Configuration Module
"""

import json
from typing import Any

import pytest
import pytest_asyncio

from responses_gateway.repositories.memory import InMemoryResponseStore
from responses_gateway.services.gateway_loop import GatewayConfig
from responses_gateway.tools.base import ToolDefinition
from responses_gateway.tools.native import NativeTool, NativeToolRegistry, ThinkTool
from responses_gateway.tools.service import ToolService


class WeatherTool(NativeTool):
    """Deterministic tool used by the loop tests"""

    definition = ToolDefinition(
        name="get_weather",
        description="Get the weather for a city",
        parameters={
            "type": "object",
            "properties": {"city": {"type": "string"}},
            "required": ["city"],
        },
    )

    def __init__(self):
        self.calls: list[dict[str, Any]] = []

    async def run(self, arguments: dict[str, Any]) -> str:
        self.calls.append(arguments)
        return json.dumps({"city": arguments.get("city"), "forecast": "sunny"})


class FailingTool(NativeTool):
    definition = ToolDefinition(name="broken", description="Always fails")

    async def run(self, arguments: dict[str, Any]) -> str:
        raise RuntimeError("backend unavailable")


@pytest.fixture
def weather_tool() -> WeatherTool:
    return WeatherTool()


@pytest.fixture
def tool_service(weather_tool) -> ToolService:
    """Tool service with think, get_weather and broken registered"""
    return ToolService(NativeToolRegistry([ThinkTool(), weather_tool, FailingTool()]))


@pytest.fixture
def gateway_config() -> GatewayConfig:
    return GatewayConfig(max_tool_calls=3, max_streaming_duration_ms=60000, request_timeout_seconds=5)


@pytest_asyncio.fixture
async def response_store() -> InMemoryResponseStore:
    return InMemoryResponseStore(cache_size=100)
