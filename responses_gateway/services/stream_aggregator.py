"""
Stream Aggregator

Consumes the provider's chat-completion chunks for one iteration of the
streaming loop and republishes them as Responses stream events. Text and
function-call arguments are buffered per output index so that the closing
events (output_text.done, function_call_arguments.done, output_item.done)
and the final output items can be rebuilt from the fragments.

Chunks reach the aggregator through a ChunkChannel: a bounded queue fed by a
producer task that iterates the provider stream.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Iterator, Optional

from responses_gateway.common.responses import events
from responses_gateway.common.responses.chunk_converter import ChunkConverter
from responses_gateway.common.responses.events import StreamEventType
from responses_gateway.common.responses.items import FUNCTION_CALL
from responses_gateway.common.responses.response_converter import (
    ResponseConverter,
    function_call_output_item,
    message_output_item,
)
from responses_gateway.tools.base import ToolRegistry

logger = logging.getLogger(__name__)

DEFAULT_CHANNEL_SIZE = 64

TERMINAL_FINISH_REASONS = ("stop", "length", "content_filter")


@dataclass
class _ChannelFailure:
    error: BaseException


_END_OF_STREAM = object()


class ChunkChannel:
    """
    Bounded chunk channel

    A producer task pushes provider chunks into the queue; the aggregator
    pulls them with `async for`. Leaving the context cancels the producer,
    which closes the upstream subscription.

    Example:
        async with ChunkChannel(provider.stream_chat_completion(body)) as channel:
            async for chunk in channel:
                ...
    """

    def __init__(self, source: AsyncIterator[dict[str, Any]], maxsize: int = DEFAULT_CHANNEL_SIZE):
        self._source = source
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self._producer: Optional[asyncio.Task] = None

    async def __aenter__(self) -> "ChunkChannel":
        self._producer = asyncio.create_task(self._produce())
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def _produce(self) -> None:
        try:
            async for chunk in self._source:
                await self._queue.put(chunk)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            await self._queue.put(_ChannelFailure(e))
            return
        await self._queue.put(_END_OF_STREAM)

    def __aiter__(self) -> "ChunkChannel":
        return self

    async def __anext__(self) -> dict[str, Any]:
        item = await self._queue.get()
        if item is _END_OF_STREAM:
            raise StopAsyncIteration
        if isinstance(item, _ChannelFailure):
            raise item.error
        return item

    async def close(self) -> None:
        if self._producer is not None and not self._producer.done():
            self._producer.cancel()
            await asyncio.gather(self._producer, return_exceptions=True)
        aclose = getattr(self._source, "aclose", None)
        if aclose is not None:
            await aclose()


@dataclass
class StreamAccumulator:
    """
    Per-iteration streaming state

    Owned by a single aggregate() call and discarded when the iteration ends.
    """

    converter: ChunkConverter = field(default_factory=ChunkConverter)
    # output index -> text fragments in arrival order
    text_buffers: dict[int, list[str]] = field(default_factory=dict)
    # output index -> argument fragments in arrival order
    argument_buffers: dict[int, list[str]] = field(default_factory=dict)
    # output index -> (function name, call id)
    function_calls: dict[int, tuple[str, str]] = field(default_factory=dict)
    internal_call_ids: set[str] = field(default_factory=set)
    output_items: list[dict[str, Any]] = field(default_factory=list)
    in_progress_emitted: bool = False


@dataclass
class IterationOutcome:
    """
    Result of one streaming iteration

    terminal is True when a terminal event (completed / incomplete) was already
    emitted; otherwise the envelope holds tool calls the gateway must execute.
    """

    envelope: dict[str, Any]
    terminal: bool
    finish_reason: Optional[str] = None
    internal_call_ids: set[str] = field(default_factory=set)


class StreamAggregator:
    """
    Stream Aggregator

    One instance per iteration. aggregate() is an async generator of events;
    once it is exhausted, `outcome` tells the loop what happened.
    """

    def __init__(
        self,
        tool_registry: ToolRegistry,
        response_converter: ResponseConverter,
        response_id: str,
        params: dict[str, Any],
    ):
        self.tool_registry = tool_registry
        self.response_converter = response_converter
        self.response_id = response_id
        self.params = params
        self.outcome: Optional[IterationOutcome] = None

    def _envelope(self, status: str, outputs: list[dict[str, Any]], **kwargs: Any) -> dict[str, Any]:
        return self.response_converter.build_final_response(
            self.params, status, self.response_id, outputs, **kwargs
        )

    async def aggregate(self, chunks: AsyncIterator[dict[str, Any]]) -> AsyncIterator[dict[str, Any]]:
        """
        Aggregate one provider stream

        Args:
            chunks: Provider chunks (usually a ChunkChannel)

        Yields:
            dict: Responses stream events
        """
        accumulator = StreamAccumulator()
        try:
            async for chunk in chunks:
                if not chunk.get("choices"):
                    continue

                if not accumulator.in_progress_emitted:
                    accumulator.in_progress_emitted = True
                    yield events.response_event(
                        StreamEventType.IN_PROGRESS,
                        self.response_converter.build_intermediate_response(
                            self.params, "in_progress", self.response_id
                        ),
                    )

                for event in self._handle_chunk(chunk, accumulator):
                    yield event

                if self.outcome is not None:
                    return
        except Exception:
            # Buffered text and arguments are closed out before the failure surfaces
            done_events, _ = self._flush_text(accumulator)
            for event in done_events:
                yield event
            for event in self._on_arguments_done(accumulator):
                yield event
            raise

        # Stream ended without a finish reason
        logger.warning("Provider stream for %s ended without a finish reason", self.response_id)
        done_events, messages = self._flush_text(accumulator)
        for event in done_events:
            yield event
        accumulator.output_items.extend(messages)
        envelope = self._envelope("completed", accumulator.output_items)
        yield events.response_event(StreamEventType.COMPLETED, envelope)
        self.outcome = IterationOutcome(envelope=envelope, terminal=True)

    def _handle_chunk(self, chunk: dict[str, Any], accumulator: StreamAccumulator) -> Iterator[dict[str, Any]]:
        finish_reasons = [
            choice.get("finish_reason")
            for choice in chunk.get("choices") or []
            if isinstance(choice, dict) and choice.get("finish_reason")
        ]

        for event in accumulator.converter.convert(chunk):
            yield from self._dispatch(event, accumulator)

        terminal_reason = next((reason for reason in finish_reasons if reason in TERMINAL_FINISH_REASONS), None)
        if terminal_reason is not None:
            yield from self._finish(terminal_reason, accumulator)
        elif "tool_calls" in finish_reasons:
            yield from self._finish_tool_calls(accumulator)

    # ============ Event dispatch ============

    def _dispatch(self, event: dict[str, Any], accumulator: StreamAccumulator) -> Iterator[dict[str, Any]]:
        event_type = event["type"]

        if event_type == StreamEventType.OUTPUT_TEXT_DELTA.value:
            yield from self._on_text_delta(event, accumulator)
        elif event_type == StreamEventType.OUTPUT_ITEM_ADDED.value:
            yield from self._on_function_call_added(event, accumulator)
        elif event_type == StreamEventType.FUNCTION_CALL_ARGUMENTS_DELTA.value:
            yield from self._on_arguments_delta(event, accumulator)
        elif event_type == StreamEventType.FUNCTION_CALL_ARGUMENTS_DONE.value:
            yield from self._on_arguments_done(accumulator)
        else:
            yield event

    def _on_text_delta(self, event: dict[str, Any], accumulator: StreamAccumulator) -> Iterator[dict[str, Any]]:
        index = event["output_index"]
        if index not in accumulator.text_buffers:
            accumulator.text_buffers[index] = []
            item_id = event["item_id"]
            yield events.output_item_added(
                index,
                {"id": item_id, "type": "message", "role": "assistant", "status": "in_progress", "content": []},
            )
            yield events.content_part_added(item_id, index, 0, {"type": "output_text", "text": "", "annotations": []})

        accumulator.text_buffers[index].append(event["delta"])
        yield event

    def _on_function_call_added(self, event: dict[str, Any], accumulator: StreamAccumulator) -> Iterator[dict[str, Any]]:
        index = event["output_index"]
        item = event["item"]
        name = item["name"]
        call_id = item["call_id"]

        accumulator.function_calls[index] = (name, call_id)
        if self.tool_registry.lookup(name) is not None:
            accumulator.internal_call_ids.add(call_id)

        arguments = item.get("arguments") or ""
        accumulator.argument_buffers[index] = [arguments] if arguments else []
        if arguments.strip():
            # Some providers send the complete call in a single chunk
            self._upsert_function_call(accumulator, function_call_output_item(call_id, name, arguments))

        yield event

    def _on_arguments_delta(self, event: dict[str, Any], accumulator: StreamAccumulator) -> Iterator[dict[str, Any]]:
        index = event["output_index"]
        accumulator.argument_buffers.setdefault(index, []).append(event["delta"])

        call = accumulator.function_calls.get(index)
        if call is not None and call[1] in accumulator.internal_call_ids:
            return
        yield event

    def _on_arguments_done(self, accumulator: StreamAccumulator) -> Iterator[dict[str, Any]]:
        for index in sorted(accumulator.function_calls):
            name, call_id = accumulator.function_calls[index]
            arguments = "".join(accumulator.argument_buffers.get(index, []))
            item = function_call_output_item(call_id, name, arguments)

            if call_id not in accumulator.internal_call_ids:
                yield events.function_call_arguments_done(item["id"], index, arguments)
                yield events.output_item_done(index, item)

            self._upsert_function_call(accumulator, item)

    @staticmethod
    def _upsert_function_call(accumulator: StreamAccumulator, item: dict[str, Any]) -> None:
        for existing in accumulator.output_items:
            if existing.get("type") == FUNCTION_CALL and existing.get("call_id") == item["call_id"]:
                existing["arguments"] = item["arguments"]
                return
        accumulator.output_items.append(item)

    # ============ Finish handling ============

    def _flush_text(self, accumulator: StreamAccumulator) -> tuple[list[dict[str, Any]], list[dict[str, Any]]]:
        """
        Close every open text buffer

        Returns:
            tuple: (closing events, one message output item per buffer)
        """
        done_events: list[dict[str, Any]] = []
        messages: list[dict[str, Any]] = []

        for index in sorted(accumulator.text_buffers):
            text = "".join(accumulator.text_buffers[index])
            item_id = accumulator.converter.message_item_id(index)
            message = message_output_item(text, item_id=item_id)

            done_events.append(events.output_text_done(item_id, index, 0, text))
            done_events.append(events.content_part_done(item_id, index, 0, message["content"][0]))
            done_events.append(events.output_item_done(index, message))
            messages.append(message)

        accumulator.text_buffers.clear()
        return done_events, messages

    def _finish(self, reason: str, accumulator: StreamAccumulator) -> Iterator[dict[str, Any]]:
        done_events, messages = self._flush_text(accumulator)
        yield from done_events
        accumulator.output_items.extend(messages)

        if reason == "stop":
            envelope = self._envelope("completed", accumulator.output_items)
            yield events.response_event(StreamEventType.COMPLETED, envelope)
        else:
            incomplete_reason = "max_output_tokens" if reason == "length" else "content_filter"
            envelope = self._envelope(
                "incomplete",
                accumulator.output_items,
                incomplete_details={"reason": incomplete_reason},
            )
            yield events.response_event(StreamEventType.INCOMPLETE, envelope)

        self.outcome = IterationOutcome(envelope=envelope, terminal=True, finish_reason=reason)

    def _finish_tool_calls(self, accumulator: StreamAccumulator) -> Iterator[dict[str, Any]]:
        done_events, messages = self._flush_text(accumulator)
        yield from done_events
        # Preceding text is presented before the tool calls
        accumulator.output_items[:0] = messages

        envelope = self._envelope("completed", accumulator.output_items)
        if not accumulator.internal_call_ids:
            yield events.response_event(StreamEventType.COMPLETED, envelope)
            self.outcome = IterationOutcome(envelope=envelope, terminal=True, finish_reason="tool_calls")
            return

        self.outcome = IterationOutcome(
            envelope=envelope,
            terminal=False,
            finish_reason="tool_calls",
            internal_call_ids=set(accumulator.internal_call_ids),
        )
