"""
Responses ↔ Chat Completions protocol bridge
"""

from responses_gateway.common.responses.chunk_converter import ChunkConverter
from responses_gateway.common.responses.events import StreamEventType
from responses_gateway.common.responses.request_converter import RequestConverter
from responses_gateway.common.responses.response_converter import ResponseConverter

__all__ = [
    "ChunkConverter",
    "RequestConverter",
    "ResponseConverter",
    "StreamEventType",
]
