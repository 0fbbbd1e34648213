"""
Chat Completion → Responses Envelope Converter

Maps a completed (non-streaming) chat completion into a Responses envelope:
message, reasoning and function_call output items, status derived from the
finish reasons, usage counters and the echoed request parameters.
"""

from __future__ import annotations

import time
from typing import Any, Optional

from responses_gateway.common.responses.items import FUNCTION_CALL, MESSAGE, REASONING, message_text, new_id

REASONING_START = "<think>"
REASONING_END = "</think>"

CONTENT_FILTER_ERROR = {
    "code": "server_error",
    "message": "The message violated our content policy",
}


def split_reasoning(content: str) -> tuple[str, Optional[str]]:
    """
    Split a <think>...</think> span out of the message text

    Args:
        content: Raw assistant text

    Returns:
        tuple: (message text without the span and bare markers, trimmed reasoning or None)
    """
    start = content.find(REASONING_START)
    end = content.find(REASONING_END, start + len(REASONING_START)) if start != -1 else -1
    if start == -1 or end == -1:
        return content.replace(REASONING_START, "").replace(REASONING_END, "").strip(), None

    reasoning = content[start + len(REASONING_START):end].strip()
    text = content[:start] + content[end + len(REASONING_END):]
    text = text.replace(REASONING_START, "").replace(REASONING_END, "").strip()
    return text, reasoning


def message_output_item(text: str, item_id: Optional[str] = None, annotations: Optional[list] = None) -> dict[str, Any]:
    return {
        "id": item_id or new_id("msg"),
        "type": MESSAGE,
        "role": "assistant",
        "status": "completed",
        "content": [
            {
                "type": "output_text",
                "text": text,
                "annotations": annotations or [],
            }
        ],
    }


def function_call_output_item(call_id: str, name: str, arguments: str, status: str = "completed") -> dict[str, Any]:
    return {
        "id": f"fc_{call_id}",
        "type": FUNCTION_CALL,
        "call_id": call_id,
        "name": name,
        "arguments": arguments,
        "status": status,
    }


def _convert_annotations(message: dict[str, Any]) -> list[dict[str, Any]]:
    annotations: list[dict[str, Any]] = []
    for annotation in message.get("annotations") or []:
        if not isinstance(annotation, dict) or annotation.get("type") != "url_citation":
            continue
        citation = annotation.get("url_citation") or {}
        annotations.append(
            {
                "type": "url_citation",
                "url": citation.get("url"),
                "title": citation.get("title"),
                "start_index": citation.get("start_index"),
                "end_index": citation.get("end_index"),
            }
        )
    return annotations


def _convert_usage(usage: Any) -> Optional[dict[str, Any]]:
    if not isinstance(usage, dict):
        return None
    input_tokens = int(usage.get("prompt_tokens") or 0)
    output_tokens = int(usage.get("completion_tokens") or 0)
    completion_details = usage.get("completion_tokens_details") or {}
    prompt_details = usage.get("prompt_tokens_details") or {}
    return {
        "input_tokens": input_tokens,
        "input_tokens_details": {"cached_tokens": int(prompt_details.get("cached_tokens") or 0)},
        "output_tokens": output_tokens,
        "output_tokens_details": {"reasoning_tokens": int(completion_details.get("reasoning_tokens") or 0)},
        "total_tokens": int(usage.get("total_tokens") or (input_tokens + output_tokens)),
    }


class ResponseConverter:
    """
    Chat Completions → Responses Envelope Converter

    Also builds the envelopes used by the streaming path (created, in_progress
    and terminal events).
    """

    def to_envelope(
        self,
        completion: dict[str, Any],
        params: dict[str, Any],
        response_id: Optional[str] = None,
    ) -> dict[str, Any]:
        """
        Convert one chat completion into a Responses envelope

        Args:
            completion: Chat Completions response body
            params: The Responses request that produced it (echoed back)
            response_id: Caller-visible response id; defaults to one derived from the completion

        Returns:
            dict: Responses envelope
        """
        outputs: list[dict[str, Any]] = []
        finish_reasons: list[str] = []

        for choice in completion.get("choices") or []:
            if not isinstance(choice, dict):
                continue
            if choice.get("finish_reason"):
                finish_reasons.append(choice["finish_reason"])
            outputs.extend(self.choice_outputs(choice))

        status = "completed"
        error = None
        incomplete_details = None
        if "content_filter" in finish_reasons:
            # Both signals are kept; callers may rely on either
            status = "failed"
            error = dict(CONTENT_FILTER_ERROR)
            incomplete_details = {"reason": "content_filter"}
        elif "length" in finish_reasons:
            status = "incomplete"
            incomplete_details = {"reason": "max_output_tokens"}

        if response_id is None:
            completion_id = completion.get("id")
            response_id = f"resp_{completion_id}" if completion_id else new_id("resp")

        return self.build_final_response(
            params,
            status,
            response_id,
            outputs,
            incomplete_details=incomplete_details,
            error=error,
            usage=_convert_usage(completion.get("usage")),
            created_at=completion.get("created"),
        )

    @staticmethod
    def choice_outputs(choice: dict[str, Any]) -> list[dict[str, Any]]:
        """
        Output items of one choice: message (if any text), reasoning, then function calls in call order
        """
        message = choice.get("message") or {}
        outputs: list[dict[str, Any]] = []

        text, reasoning = split_reasoning(message_text(message.get("content")))
        if reasoning is None:
            # Some providers report reasoning in a dedicated field
            provided = message.get("reasoning_content") or message.get("reasoning")
            if isinstance(provided, str) and provided.strip():
                reasoning = provided.strip()

        if text.strip():
            outputs.append(message_output_item(text, annotations=_convert_annotations(message)))

        if reasoning:
            outputs.append(
                {
                    "id": new_id("rs"),
                    "type": REASONING,
                    "summary": [{"type": "summary_text", "text": reasoning}],
                }
            )

        for tool_call in message.get("tool_calls") or []:
            function = tool_call.get("function") or {}
            outputs.append(
                function_call_output_item(
                    call_id=tool_call.get("id") or new_id("call"),
                    name=function.get("name") or "",
                    arguments=function.get("arguments") or "",
                )
            )

        return outputs

    def build_intermediate_response(
        self,
        params: dict[str, Any],
        status: str,
        response_id: str,
    ) -> dict[str, Any]:
        """Envelope without outputs, used for created / in_progress events."""
        return self.build_final_response(params, status, response_id, [])

    @staticmethod
    def build_final_response(
        params: dict[str, Any],
        status: str,
        response_id: str,
        outputs: list[dict[str, Any]],
        incomplete_details: Optional[dict[str, Any]] = None,
        error: Optional[dict[str, Any]] = None,
        usage: Optional[dict[str, Any]] = None,
        created_at: Optional[int] = None,
    ) -> dict[str, Any]:
        """
        Build a Responses envelope echoing the request parameters

        Args:
            params: Responses request body
            status: in_progress / completed / incomplete / failed
            response_id: Caller-visible response id
            outputs: Output items
            incomplete_details: {"reason": ...} when incomplete
            error: {"code", "message"} when failed
            usage: Usage counters
            created_at: Unix timestamp, defaults to now

        Returns:
            dict: Responses envelope
        """
        tools = params.get("tools") or []
        tool_choice = params.get("tool_choice")
        if tool_choice is None:
            tool_choice = "auto" if tools else "none"

        return {
            "id": response_id,
            "object": "response",
            "created_at": created_at if isinstance(created_at, int) else int(time.time()),
            "status": status,
            "model": params.get("model"),
            "output": list(outputs),
            "instructions": params.get("instructions"),
            "metadata": params.get("metadata") or {},
            "temperature": params.get("temperature"),
            "top_p": params.get("top_p"),
            "max_output_tokens": params.get("max_output_tokens"),
            "parallel_tool_calls": params.get("parallel_tool_calls", True),
            "tools": tools,
            "tool_choice": tool_choice,
            "previous_response_id": params.get("previous_response_id"),
            "reasoning": params.get("reasoning"),
            "text": params.get("text") or {"format": {"type": "text"}},
            "truncation": params.get("truncation") or "disabled",
            "user": params.get("user"),
            "store": params.get("store", False),
            "usage": usage,
            "error": error,
            "incomplete_details": incomplete_details,
        }
