"""
Response Stream Events

Names and builders for the events the gateway streams to Responses clients.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional


class StreamEventType(str, Enum):
    """Event types emitted on a Responses SSE stream"""

    CREATED = "response.created"
    IN_PROGRESS = "response.in_progress"
    OUTPUT_ITEM_ADDED = "response.output_item.added"
    OUTPUT_ITEM_DONE = "response.output_item.done"
    CONTENT_PART_ADDED = "response.content_part.added"
    CONTENT_PART_DONE = "response.content_part.done"
    OUTPUT_TEXT_DELTA = "response.output_text.delta"
    OUTPUT_TEXT_DONE = "response.output_text.done"
    FUNCTION_CALL_ARGUMENTS_DELTA = "response.function_call_arguments.delta"
    FUNCTION_CALL_ARGUMENTS_DONE = "response.function_call_arguments.done"
    COMPLETED = "response.completed"
    INCOMPLETE = "response.incomplete"
    FAILED = "response.failed"
    ERROR = "error"


# Events whose payload is the whole envelope
ENVELOPE_EVENTS = frozenset(
    {
        StreamEventType.CREATED.value,
        StreamEventType.IN_PROGRESS.value,
        StreamEventType.COMPLETED.value,
        StreamEventType.INCOMPLETE.value,
        StreamEventType.FAILED.value,
    }
)

TERMINAL_EVENTS = frozenset(
    {
        StreamEventType.COMPLETED.value,
        StreamEventType.INCOMPLETE.value,
        StreamEventType.FAILED.value,
    }
)


def response_event(event_type: StreamEventType, envelope: dict[str, Any]) -> dict[str, Any]:
    return {"type": event_type.value, "response": envelope}


def output_item_added(output_index: int, item: dict[str, Any]) -> dict[str, Any]:
    return {
        "type": StreamEventType.OUTPUT_ITEM_ADDED.value,
        "output_index": output_index,
        "item": item,
    }


def output_item_done(output_index: int, item: dict[str, Any]) -> dict[str, Any]:
    return {
        "type": StreamEventType.OUTPUT_ITEM_DONE.value,
        "output_index": output_index,
        "item": item,
    }


def content_part_added(item_id: str, output_index: int, content_index: int, part: dict[str, Any]) -> dict[str, Any]:
    return {
        "type": StreamEventType.CONTENT_PART_ADDED.value,
        "item_id": item_id,
        "output_index": output_index,
        "content_index": content_index,
        "part": part,
    }


def content_part_done(item_id: str, output_index: int, content_index: int, part: dict[str, Any]) -> dict[str, Any]:
    return {
        "type": StreamEventType.CONTENT_PART_DONE.value,
        "item_id": item_id,
        "output_index": output_index,
        "content_index": content_index,
        "part": part,
    }


def output_text_delta(item_id: str, output_index: int, content_index: int, delta: str) -> dict[str, Any]:
    return {
        "type": StreamEventType.OUTPUT_TEXT_DELTA.value,
        "item_id": item_id,
        "output_index": output_index,
        "content_index": content_index,
        "delta": delta,
    }


def output_text_done(item_id: str, output_index: int, content_index: int, text: str) -> dict[str, Any]:
    return {
        "type": StreamEventType.OUTPUT_TEXT_DONE.value,
        "item_id": item_id,
        "output_index": output_index,
        "content_index": content_index,
        "text": text,
    }


def function_call_arguments_delta(item_id: str, output_index: int, delta: str) -> dict[str, Any]:
    return {
        "type": StreamEventType.FUNCTION_CALL_ARGUMENTS_DELTA.value,
        "item_id": item_id,
        "output_index": output_index,
        "delta": delta,
    }


def function_call_arguments_done(item_id: str, output_index: int, arguments: str) -> dict[str, Any]:
    return {
        "type": StreamEventType.FUNCTION_CALL_ARGUMENTS_DONE.value,
        "item_id": item_id,
        "output_index": output_index,
        "arguments": arguments,
    }


def error_event(code: str, message: str, param: Optional[str] = None) -> dict[str, Any]:
    """
    Build an error event

    Args:
        code: Machine readable code, e.g. "timeout" or "too_many_tool_calls"
        message: Human readable message
        param: Offending request parameter, if any

    Returns:
        dict: Error event payload
    """
    return {
        "type": StreamEventType.ERROR.value,
        "code": code,
        "message": message,
        "param": param,
    }
