"""
Response Store Redis Implementation

Stores each response with its items as one JSON document.
Uses Redis native TTL for automatic expiration.
"""

import logging
from typing import Any, Optional

from redis.asyncio import Redis

from responses_gateway.domain.response import StoredResponse
from responses_gateway.repositories.response_store import ResponseStore, build_stored_items

logger = logging.getLogger(__name__)

KEY_PREFIX = "responses:"


class RedisResponseStore(ResponseStore):
    """
    Response Store Redis Implementation

    Leverages Redis native TTL, so no cleanup task is needed.
    """

    def __init__(self, client: Redis, ttl_seconds: Optional[int] = None):
        """
        Initialize Repository

        Args:
            client: Async Redis client instance
            ttl_seconds: Expiry of stored responses (None means never expires)
        """
        self.client = client
        self.ttl_seconds = ttl_seconds

    @staticmethod
    def _key(response_id: str) -> str:
        return f"{KEY_PREFIX}{response_id}"

    async def store_response(self, response: dict[str, Any], input_items: list[dict[str, Any]]) -> None:
        response_id = response["id"]
        logger.debug("Storing response with ID: %s", response_id)

        stored_inputs, stored_outputs = build_stored_items(response, input_items)
        existing = await self.get(response_id)
        if existing is not None:
            stored_inputs = existing.input_items + stored_inputs
            stored_outputs = existing.output_items + stored_outputs

        data = StoredResponse(
            response=response,
            input_items=stored_inputs,
            output_items=stored_outputs,
        ).model_dump_json()

        if self.ttl_seconds is not None and self.ttl_seconds > 0:
            await self.client.set(self._key(response_id), data, ex=self.ttl_seconds)
        else:
            await self.client.set(self._key(response_id), data)

    async def get(self, response_id: str) -> Optional[StoredResponse]:
        raw = await self.client.get(self._key(response_id))
        if raw is None:
            return None
        return StoredResponse.model_validate_json(raw)

    async def delete_response(self, response_id: str) -> bool:
        deleted_count = await self.client.delete(self._key(response_id))
        return deleted_count > 0
