"""
Gateway Loops

The control loops that turn one Responses request into as many provider
calls as the tool calls require. Each iteration converts the current
request, calls the provider, converts the result and lets the tool
orchestrator decide whether another iteration is needed.

SyncGatewayLoop serves non-streaming requests, StreamingGatewayLoop
re-subscribes to a new provider stream per iteration and yields events.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, AsyncIterator, Optional

from responses_gateway.common.errors import RequestTimeoutError, TooManyToolCallsError
from responses_gateway.common.responses import events
from responses_gateway.common.responses.events import StreamEventType
from responses_gateway.common.responses.items import new_id
from responses_gateway.common.responses.request_converter import RequestConverter
from responses_gateway.common.responses.response_converter import ResponseConverter
from responses_gateway.common.timer import Timer
from responses_gateway.config import Settings
from responses_gateway.providers.base import ProviderClient
from responses_gateway.services.stream_aggregator import DEFAULT_CHANNEL_SIZE, ChunkChannel, StreamAggregator
from responses_gateway.services.tool_orchestrator import ToolOrchestrator
from responses_gateway.tools.base import ToolRegistry

logger = logging.getLogger(__name__)

STREAM_TIMEOUT_MESSAGE = (
    "Timeout while processing. Increase the timeout limit by setting "
    "MAX_STREAMING_TIMEOUT_MS environment variable."
)


@dataclass
class GatewayConfig:
    """
    Loop limits

    Passed explicitly into the loops; nothing inside them reads the environment.
    """

    max_tool_calls: int = 10
    max_streaming_duration_ms: int = 60000
    request_timeout_seconds: float = 30
    channel_size: int = DEFAULT_CHANNEL_SIZE

    @classmethod
    def from_settings(cls, settings: Settings) -> "GatewayConfig":
        return cls(
            max_tool_calls=settings.MAX_TOOL_CALLS,
            max_streaming_duration_ms=settings.MAX_STREAMING_TIMEOUT_MS,
            request_timeout_seconds=settings.REQUEST_TIMEOUT_SECONDS,
        )


def _has_tool_calls(completion: dict[str, Any]) -> bool:
    return any(
        isinstance(choice, dict) and choice.get("finish_reason") == "tool_calls"
        for choice in completion.get("choices") or []
    )


class SyncGatewayLoop:
    """
    Non-streaming loop

    One provider call per iteration; iterations run strictly one after another.
    """

    def __init__(
        self,
        provider: ProviderClient,
        tool_registry: ToolRegistry,
        config: GatewayConfig,
        request_converter: Optional[RequestConverter] = None,
        response_converter: Optional[ResponseConverter] = None,
    ):
        self.provider = provider
        self.config = config
        self.request_converter = request_converter or RequestConverter()
        self.response_converter = response_converter or ResponseConverter()
        self.orchestrator = ToolOrchestrator(tool_registry, config.max_tool_calls)

    async def run(self, params: dict[str, Any]) -> dict[str, Any]:
        """
        Produce the final envelope for a request

        Args:
            params: Responses request body

        Returns:
            dict: Envelope of the last iteration

        Raises:
            RequestTimeoutError: The whole loop took longer than request_timeout_seconds
            TooManyToolCallsError: The tool-call limit was exceeded
            InvalidInputError: The request cannot be converted
            UpstreamError: The provider call failed
        """
        try:
            return await asyncio.wait_for(self._run(params), timeout=self.config.request_timeout_seconds)
        except asyncio.TimeoutError:
            logger.error("Request timed out after %s seconds", self.config.request_timeout_seconds)
            raise RequestTimeoutError(f"Request timed out after {self.config.request_timeout_seconds} seconds")

    async def _run(self, params: dict[str, Any]) -> dict[str, Any]:
        response_id = new_id("resp")
        current = dict(params)
        iteration = 0

        while True:
            iteration += 1
            logger.debug("Response %s iteration %d", response_id, iteration)

            body = self.request_converter.to_provider_request(current)
            completion = await self.provider.create_chat_completion(body)
            envelope = self.response_converter.to_envelope(completion, current, response_id)

            if not _has_tool_calls(completion):
                return envelope

            resolution = await self.orchestrator.resolve(envelope, current)
            if not resolution.recurse:
                return envelope

            current = {**current, "input": resolution.input_items}


class StreamingGatewayLoop:
    """
    Streaming loop

    Emits `response.created` once, then one aggregated provider stream per
    iteration. The elapsed time is checked once per iteration.
    """

    def __init__(
        self,
        provider: ProviderClient,
        tool_registry: ToolRegistry,
        config: GatewayConfig,
        request_converter: Optional[RequestConverter] = None,
        response_converter: Optional[ResponseConverter] = None,
    ):
        self.provider = provider
        self.tool_registry = tool_registry
        self.config = config
        self.request_converter = request_converter or RequestConverter()
        self.response_converter = response_converter or ResponseConverter()
        self.orchestrator = ToolOrchestrator(tool_registry, config.max_tool_calls)

    async def stream(self, params: dict[str, Any]) -> AsyncIterator[dict[str, Any]]:
        """
        Stream the events of a request

        Args:
            params: Responses request body

        Yields:
            dict: Responses stream events

        Raises:
            TooManyToolCallsError: Raised after the matching error event was yielded
            InvalidInputError: The request cannot be converted
            UpstreamError: The provider stream failed
        """
        response_id = new_id("resp")
        timer = Timer().start()
        current = dict(params)

        yield events.response_event(
            StreamEventType.CREATED,
            self.response_converter.build_intermediate_response(current, "in_progress", response_id),
        )

        iteration = 0
        while True:
            if timer.exceeded(self.config.max_streaming_duration_ms):
                logger.warning("Streaming response %s timed out after %sms", response_id, timer.elapsed_ms)
                yield events.error_event("timeout", STREAM_TIMEOUT_MESSAGE)
                return

            iteration += 1
            logger.debug("Streaming response %s iteration %d", response_id, iteration)

            body = self.request_converter.to_provider_request(current)
            aggregator = StreamAggregator(self.tool_registry, self.response_converter, response_id, current)
            async with ChunkChannel(self.provider.stream_chat_completion(body), self.config.channel_size) as channel:
                async for event in aggregator.aggregate(channel):
                    yield event

            outcome = aggregator.outcome
            if outcome is None or outcome.terminal:
                return

            try:
                resolution = await self.orchestrator.resolve(outcome.envelope, current)
            except TooManyToolCallsError as e:
                yield events.error_event(e.code, e.message)
                raise

            if not resolution.recurse:
                yield events.response_event(StreamEventType.COMPLETED, outcome.envelope)
                return

            current = {**current, "input": resolution.input_items}
