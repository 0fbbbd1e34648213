"""
Server-Sent Events Helpers

Decodes the provider's chat-completion SSE stream and encodes the gateway's
response events for the client.
"""

from __future__ import annotations

import json
from typing import Any, Optional

DONE_MARKER = "[DONE]"


class SSEDecoder:
    """
    Simple SSE Decoder: Splits bytes stream into event blocks and extracts data fields.

    - Uses empty line (\\n\\n) as event boundary
    - Supports CRLF (\\r\\n)
    - Only parses data: lines, ignores other fields
    """

    def __init__(self) -> None:
        self._buf = b""

    def feed(self, chunk: bytes) -> list[str]:
        """
        Append bytes and return list of parsed data payloads (one string per event).
        """
        if not chunk:
            return []

        data = (self._buf + chunk).replace(b"\r\n", b"\n")
        parts = data.split(b"\n\n")
        self._buf = parts.pop()  # Keep last incomplete event

        payloads: list[str] = []
        for event in parts:
            payload = self._extract_data_payload(event)
            if payload is not None:
                payloads.append(payload)
        return payloads

    def flush(self) -> list[str]:
        """Return the payload of a trailing event not terminated by a blank line."""
        remaining, self._buf = self._buf, b""
        if not remaining.strip():
            return []
        payload = self._extract_data_payload(remaining.replace(b"\r\n", b"\n"))
        return [payload] if payload is not None else []

    @staticmethod
    def _extract_data_payload(event: bytes) -> Optional[str]:
        data_lines: list[bytes] = []
        for line in event.split(b"\n"):
            if not line:
                continue
            if line.startswith(b"data:"):
                value = line[5:]
                if value.startswith(b" "):
                    value = value[1:]
                data_lines.append(value)
        if not data_lines:
            return None
        return b"\n".join(data_lines).decode("utf-8", errors="ignore")


def encode_sse_event(event: dict[str, Any]) -> bytes:
    """
    Encode one response event as an SSE frame

    The event name is taken from the payload's "type" field.

    Args:
        event: Response stream event

    Returns:
        bytes: "event: <type>\\ndata: <json>\\n\\n"
    """
    payload = json.dumps(event, ensure_ascii=False)
    return f"event: {event.get('type', 'message')}\ndata: {payload}\n\n".encode("utf-8")
