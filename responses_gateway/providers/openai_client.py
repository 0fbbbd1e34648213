"""
OpenAI Protocol Client

Calls OpenAI-compatible /chat/completions endpoints with httpx. Bodies are
validated against the openai SDK models before they reach the converters.
"""

import json
import logging
from typing import Any, AsyncIterator, Optional

import httpx
from openai.types.chat import ChatCompletion, ChatCompletionChunk
from pydantic import ValidationError

from responses_gateway.common.errors import UpstreamError
from responses_gateway.common.sse import DONE_MARKER, SSEDecoder
from responses_gateway.common.timer import Timer
from responses_gateway.config import Settings
from responses_gateway.providers.base import ProviderClient

logger = logging.getLogger(__name__)

# x-model-provider header value -> base URL
PROVIDER_BASE_URLS = {
    "openai": "https://api.openai.com/v1",
    "claude": "https://api.anthropic.com/v1",
    "groq": "https://api.groq.com/openai/v1",
}


def resolve_base_url(provider: Optional[str], settings: Settings) -> str:
    """
    Pick the provider base URL

    Args:
        provider: Value of the x-model-provider header
        settings: Application settings (MODEL_BASE_URL fallback)

    Returns:
        str: Base URL without trailing slash
    """
    if provider:
        base_url = PROVIDER_BASE_URLS.get(provider.strip().lower())
        if base_url:
            return base_url
    return settings.MODEL_BASE_URL.rstrip("/")


def _error_details(response: httpx.Response, body: bytes) -> dict[str, Any]:
    text = body.decode("utf-8", errors="replace")
    try:
        payload = json.loads(text)
    except json.JSONDecodeError:
        return {"status_code": response.status_code, "body": text}
    return {"status_code": response.status_code, "body": payload}


def _error_message(details: dict[str, Any]) -> str:
    body = details.get("body")
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str):
            return error
    return f"Provider returned status {details.get('status_code')}"


class OpenAIClient(ProviderClient):
    """
    OpenAI Protocol Client

    Works with any provider exposing the OpenAI chat completions API.
    """

    def __init__(self, base_url: str, api_key: str, timeout: float = 300):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout

    @property
    def url(self) -> str:
        return f"{self.base_url}/chat/completions"

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    async def create_chat_completion(self, body: dict[str, Any]) -> dict[str, Any]:
        request_body = {**body, "stream": False}
        logger.debug("Chat completion request: url=%s body=%s", self.url, json.dumps(request_body, ensure_ascii=False))

        timer = Timer().start()
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.url, headers=self._headers(), json=request_body)
                timer.mark_first_byte()
        except httpx.TimeoutException as e:
            raise UpstreamError(f"Request timeout: {str(e)}", code="upstream_timeout", status_code=504) from e
        except httpx.RequestError as e:
            raise UpstreamError(f"Request error: {str(e)}", status_code=502) from e

        if response.status_code >= 400:
            details = _error_details(response, response.content)
            raise UpstreamError(_error_message(details), details=details, status_code=response.status_code)

        try:
            completion = ChatCompletion.model_validate(response.json())
        except (json.JSONDecodeError, ValidationError) as e:
            raise UpstreamError(f"Invalid chat completion from provider: {str(e)}") from e

        logger.debug("Chat completion %s received in %sms", completion.id, timer.elapsed_ms)
        return completion.model_dump(exclude_unset=True)

    async def stream_chat_completion(self, body: dict[str, Any]) -> AsyncIterator[dict[str, Any]]:
        request_body = {**body, "stream": True}
        logger.debug("Chat completion stream request: url=%s body=%s", self.url, json.dumps(request_body, ensure_ascii=False))

        timer = Timer().start()
        decoder = SSEDecoder()
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                async with client.stream("POST", self.url, headers=self._headers(), json=request_body) as response:
                    if response.status_code >= 400:
                        details = _error_details(response, await response.aread())
                        raise UpstreamError(_error_message(details), details=details, status_code=response.status_code)

                    async for raw in response.aiter_bytes():
                        timer.mark_first_byte()
                        for payload in decoder.feed(raw):
                            if payload.strip() == DONE_MARKER:
                                return
                            chunk = self._parse_chunk(payload)
                            if chunk is not None:
                                yield chunk

                    for payload in decoder.flush():
                        if payload.strip() == DONE_MARKER:
                            return
                        chunk = self._parse_chunk(payload)
                        if chunk is not None:
                            yield chunk
        except httpx.TimeoutException as e:
            raise UpstreamError(f"Request timeout: {str(e)}", code="upstream_timeout", status_code=504) from e
        except httpx.RequestError as e:
            raise UpstreamError(f"Request error: {str(e)}", status_code=502) from e
        finally:
            logger.debug("Chat completion stream closed after %sms (first byte %sms)", timer.elapsed_ms, timer.first_byte_delay_ms)

    @staticmethod
    def _parse_chunk(payload: str) -> Optional[dict[str, Any]]:
        try:
            chunk = ChatCompletionChunk.model_validate_json(payload)
        except ValidationError as e:
            logger.debug("Skipping invalid stream chunk: %s (%s)", payload, e)
            return None
        return chunk.model_dump(exclude_unset=True)
