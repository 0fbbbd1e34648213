"""
Responses Request Converter

Translates a `/v1/responses` request body into the `/v1/chat/completions`
request body understood by the provider: message list, tool declarations,
tool choice, response format, sampling and reasoning parameters.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

from responses_gateway.common.errors import InvalidInputError
from responses_gateway.common.responses.items import (
    FUNCTION_CALL,
    FUNCTION_CALL_OUTPUT,
    MESSAGE,
    REASONING,
    item_type,
    message_text,
)

logger = logging.getLogger(__name__)

# Hosted tool types that are declared to the provider as plain functions
HOSTED_TOOL_TYPES = ("web_search_preview", "web_search", "file_search", "computer_use_preview")

TOOL_CHOICE_OPTIONS = ("auto", "none", "required")

TEXT_PART_TYPES = ("input_text", "output_text", "text")

SYSTEM_ROLES = ("system", "developer")

POSITION_ERROR = "System or developer messages must be at position 0 in the messages array"


class RequestConverter:
    """
    Responses → Chat Completions Request Converter

    Stateless; one instance can be shared by all requests.
    """

    def to_provider_request(self, params: dict[str, Any]) -> dict[str, Any]:
        """
        Convert a Responses request into a Chat Completions request

        Optional fields that are absent (or null) in the request are omitted.

        Args:
            params: Responses request body

        Returns:
            dict: Chat Completions request body (without "stream")

        Raises:
            InvalidInputError: The input, tools or tool choice cannot be converted
        """
        model = params.get("model")
        if not isinstance(model, str) or not model:
            raise InvalidInputError("model is required", details={"param": "model"})

        body: dict[str, Any] = {
            "model": model,
            "messages": self.convert_messages(params),
        }

        if params.get("temperature") is not None:
            body["temperature"] = params["temperature"]
        if params.get("top_p") is not None:
            body["top_p"] = params["top_p"]
        if params.get("max_output_tokens") is not None:
            body["max_completion_tokens"] = params["max_output_tokens"]

        tools = params.get("tools")
        if tools:
            body["tools"] = [self.convert_tool(tool) for tool in tools]
            if params.get("parallel_tool_calls") is not None:
                body["parallel_tool_calls"] = params["parallel_tool_calls"]

        if params.get("tool_choice") is not None:
            body["tool_choice"] = self.convert_tool_choice(params["tool_choice"])

        text_config = params.get("text")
        if isinstance(text_config, dict) and text_config.get("format") is not None:
            body["response_format"] = self.convert_response_format(text_config["format"])

        reasoning = params.get("reasoning")
        if isinstance(reasoning, dict) and reasoning.get("effort") is not None:
            body["reasoning_effort"] = reasoning["effort"]

        if params.get("user") is not None:
            body["user"] = params["user"]

        return body

    # ============ Messages ============

    def convert_messages(self, params: dict[str, Any]) -> list[dict[str, Any]]:
        """
        Build the chat message list from "instructions" and "input"

        Raises:
            InvalidInputError: Unsupported input, or a system/developer message not at position 0
        """
        instructions = params.get("instructions") or None
        input_value = params.get("input")

        if isinstance(input_value, str):
            messages: list[dict[str, Any]] = []
            if instructions:
                messages.append({"role": "system", "content": instructions})
            messages.append({"role": "user", "content": input_value})
            return messages

        if not isinstance(input_value, list):
            raise InvalidInputError(
                "Input must be a text string or a list of input items",
                details={"param": "input"},
            )

        has_system = any(
            isinstance(item, dict) and item.get("role") in SYSTEM_ROLES for item in input_value
        )

        messages = []
        if instructions and not has_system:
            messages.append({"role": "system", "content": instructions})

        for item in input_value:
            if not isinstance(item, dict):
                raise InvalidInputError("Input items must be objects", details={"param": "input"})
            messages.extend(self._convert_item(item, instructions))

        self.validate_message_order(input_value)
        return messages

    @staticmethod
    def validate_message_order(items: list[dict[str, Any]]) -> None:
        """System and developer messages are accepted only as the first input item."""
        for index, item in enumerate(items):
            if index != 0 and item_type(item) == MESSAGE and item.get("role") in SYSTEM_ROLES:
                raise InvalidInputError(POSITION_ERROR, details={"param": "input"})

    def _convert_item(self, item: dict[str, Any], instructions: Optional[str]) -> list[dict[str, Any]]:
        kind = item_type(item)

        if kind == FUNCTION_CALL:
            return [
                {
                    "role": "assistant",
                    "tool_calls": [
                        {
                            "id": item.get("call_id"),
                            "type": "function",
                            "function": {
                                "name": item.get("name"),
                                "arguments": item.get("arguments") or "",
                            },
                        }
                    ],
                }
            ]

        if kind == FUNCTION_CALL_OUTPUT:
            output = item.get("output")
            if not isinstance(output, str):
                output = json.dumps(output, ensure_ascii=False)
            return [{"role": "tool", "tool_call_id": item.get("call_id"), "content": output}]

        if kind == REASONING:
            # Reasoning summaries are not replayed to the provider
            logger.debug("Skipping reasoning input item %s", item.get("id"))
            return []

        if kind != MESSAGE:
            raise InvalidInputError(f"Unsupported input item type: {kind}", details={"param": "input"})

        role = item.get("role")
        content = item.get("content")

        if role == "user":
            return [{"role": "user", "content": self._convert_user_content(content)}]
        if role == "system":
            return [{"role": "system", "content": self._merge_instructions(instructions, message_text(content))}]
        if role == "developer":
            return [{"role": "developer", "content": self._merge_instructions(instructions, self._first_text(content))}]
        if role == "assistant":
            return self._convert_assistant(content)
        if role == "tool":
            tool_call_id = item.get("tool_call_id") or item.get("call_id")
            if not tool_call_id:
                raise InvalidInputError("Tool messages require a tool_call_id", details={"param": "input"})
            return [{"role": "tool", "tool_call_id": tool_call_id, "content": message_text(content)}]

        raise InvalidInputError(f"Unsupported message role: {role}", details={"param": "input"})

    @staticmethod
    def _merge_instructions(instructions: Optional[str], text: str) -> str:
        if instructions:
            return f"{instructions}\n{text}"
        return text

    @staticmethod
    def _first_text(content: Any) -> str:
        if isinstance(content, str):
            return content
        if isinstance(content, list):
            for part in content:
                if isinstance(part, dict) and isinstance(part.get("text"), str):
                    return part["text"]
        return ""

    def _convert_user_content(self, content: Any) -> Any:
        if isinstance(content, str):
            return content
        if not isinstance(content, list):
            raise InvalidInputError("Unsupported user message content", details={"param": "input"})

        if len(content) == 1 and isinstance(content[0], dict) and content[0].get("type") in TEXT_PART_TYPES:
            return content[0].get("text") or ""

        return [self._convert_user_part(part) for part in content]

    @staticmethod
    def _convert_user_part(part: Any) -> dict[str, Any]:
        if isinstance(part, str):
            return {"type": "text", "text": part}
        if not isinstance(part, dict):
            raise InvalidInputError("Unsupported input content", details={"param": "input"})

        part_type = part.get("type")
        if part_type in TEXT_PART_TYPES:
            return {"type": "text", "text": part.get("text") or ""}

        if part_type == "input_image":
            url = part.get("image_url")
            if isinstance(url, dict):
                url = url.get("url")
            if not isinstance(url, str) or not url:
                raise InvalidInputError("input_image requires an image_url", details={"param": "input"})
            return {
                "type": "image_url",
                "image_url": {"url": url, "detail": part.get("detail") or "auto"},
            }

        if part_type == "input_file":
            file_object = {
                key: part[key]
                for key in ("file_data", "file_id", "filename")
                if part.get(key) is not None
            }
            return {"type": "file", "file": file_object}

        raise InvalidInputError(f"Unsupported input content type: {part_type}", details={"param": "input"})

    @staticmethod
    def _convert_assistant(content: Any) -> list[dict[str, Any]]:
        if content is None or isinstance(content, str):
            return [{"role": "assistant", "content": content or ""}]
        if not isinstance(content, list):
            raise InvalidInputError("Unsupported assistant message content", details={"param": "input"})

        messages: list[dict[str, Any]] = []
        texts: list[str] = []
        for part in content:
            if isinstance(part, str):
                texts.append(part)
                continue
            part_type = part.get("type") if isinstance(part, dict) else None
            if part_type in TEXT_PART_TYPES:
                texts.append(part.get("text") or "")
            elif part_type == "refusal":
                messages.append({"role": "assistant", "refusal": part.get("refusal") or ""})
            else:
                raise InvalidInputError(
                    "Assistant message other than text is not supported.",
                    details={"param": "input"},
                )

        # One assistant message per text part keeps output order intact
        return [{"role": "assistant", "content": text} for text in texts] + messages

    # ============ Tools ============

    @staticmethod
    def convert_tool(tool: Any) -> dict[str, Any]:
        """
        Convert one Responses tool declaration into a Chat Completions tool

        Raises:
            InvalidInputError: Unsupported tool type
        """
        tool_type = tool.get("type") if isinstance(tool, dict) else None

        if tool_type == "function":
            name = tool.get("name")
            if not name:
                raise InvalidInputError("Function tools require a name", details={"param": "tools"})
            function: dict[str, Any] = {"name": name}
            if tool.get("description") is not None:
                function["description"] = tool["description"]
            if tool.get("parameters") is not None:
                function["parameters"] = tool["parameters"]
            if tool.get("strict") is not None:
                function["strict"] = tool["strict"]
            return {"type": "function", "function": function}

        if tool_type in HOSTED_TOOL_TYPES:
            return {"type": "function", "function": {"name": tool_type}}

        raise InvalidInputError(f"Unsupported tool type: {tool_type}", details={"param": "tools"})

    @staticmethod
    def convert_tool_choice(tool_choice: Any) -> Any:
        """
        Convert the tool choice

        Raises:
            InvalidInputError: Unsupported tool choice shape
        """
        if isinstance(tool_choice, str):
            if tool_choice in TOOL_CHOICE_OPTIONS:
                return tool_choice
            raise InvalidInputError(f"Unsupported tool_choice: {tool_choice}", details={"param": "tool_choice"})

        if isinstance(tool_choice, dict):
            choice_type = tool_choice.get("type")
            if choice_type == "function" and tool_choice.get("name"):
                return {"type": "function", "function": {"name": tool_choice["name"]}}
            if choice_type in HOSTED_TOOL_TYPES:
                # Hosted tools are declared as functions named after their type
                return {"type": "function", "function": {"name": choice_type}}

        raise InvalidInputError("Unsupported tool_choice", details={"param": "tool_choice"})

    @staticmethod
    def convert_response_format(text_format: Any) -> dict[str, Any]:
        """
        Convert text.format into response_format

        Raises:
            InvalidInputError: Unsupported format type
        """
        format_type = text_format.get("type") if isinstance(text_format, dict) else None

        if format_type == "text":
            return {"type": "text"}
        if format_type == "json_object":
            return {"type": "json_object"}
        if format_type == "json_schema":
            json_schema: dict[str, Any] = {
                "name": text_format.get("name") or "response",
                "schema": text_format.get("schema") or {},
            }
            if text_format.get("strict") is not None:
                json_schema["strict"] = text_format["strict"]
            if text_format.get("description") is not None:
                json_schema["description"] = text_format["description"]
            return {"type": "json_schema", "json_schema": json_schema}

        raise InvalidInputError(f"Unsupported text format: {format_type}", details={"param": "text.format"})
