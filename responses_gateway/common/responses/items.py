"""
Response Item Helpers

Small helpers shared by the converters, the tool orchestrator and the store
for working with Responses input/output items (plain dicts).
"""

from __future__ import annotations

import time
import uuid
from typing import Any, Iterable

FUNCTION_CALL = "function_call"
FUNCTION_CALL_OUTPUT = "function_call_output"
MESSAGE = "message"
REASONING = "reasoning"


def new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex}"


def item_type(item: dict[str, Any]) -> str:
    """
    Resolve the type of an input item

    Easy messages ({"role": ..., "content": ...}) carry no type and count as messages.
    """
    value = item.get("type")
    if isinstance(value, str) and value:
        return value
    return MESSAGE


def input_items(params: dict[str, Any]) -> list[dict[str, Any]]:
    """
    Return the request input as a list of items

    A flat string input becomes a single user message.

    Args:
        params: Responses request body

    Returns:
        list: A new list; the request is not modified
    """
    value = params.get("input")
    if isinstance(value, str):
        return [{"role": "user", "content": value}]
    if isinstance(value, list):
        return list(value)
    return []


def count_items(items: Iterable[dict[str, Any]], kind: str) -> int:
    return sum(1 for item in items if item_type(item) == kind)


def message_text(content: Any) -> str:
    """Join the text parts of a message content (string or list of parts)."""
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    parts: list[str] = []
    if isinstance(content, list):
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and isinstance(part.get("text"), str):
                parts.append(part["text"])
    return "".join(parts)


def with_identity(item: dict[str, Any]) -> dict[str, Any]:
    """
    Copy an item, assigning the id and created_at the store pages by

    Args:
        item: Input or output item

    Returns:
        dict: The copy with "id" and "created_at" set when missing
    """
    stored = dict(item)
    if not stored.get("id"):
        stored["id"] = new_id("item")
    if stored.get("created_at") is None:
        stored["created_at"] = time.time()
    return stored
