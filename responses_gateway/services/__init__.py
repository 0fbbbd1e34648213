"""
Service Layer Module Initialization
"""

from responses_gateway.services.gateway_loop import GatewayConfig, StreamingGatewayLoop, SyncGatewayLoop
from responses_gateway.services.payload_formatter import PayloadFormatter
from responses_gateway.services.response_service import ResponseService
from responses_gateway.services.stream_aggregator import ChunkChannel, StreamAggregator
from responses_gateway.services.tool_orchestrator import ToolOrchestrator, ToolResolution

__all__ = [
    "GatewayConfig",
    "SyncGatewayLoop",
    "StreamingGatewayLoop",
    "PayloadFormatter",
    "ResponseService",
    "ChunkChannel",
    "StreamAggregator",
    "ToolOrchestrator",
    "ToolResolution",
]
