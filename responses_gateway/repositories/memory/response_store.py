"""
Response Store In-Memory Implementation

Keeps stored responses in a bounded LRU cache. Contents are lost on restart.
"""

import logging
from collections import OrderedDict
from typing import Any, Optional

from responses_gateway.domain.response import StoredResponse
from responses_gateway.repositories.response_store import ResponseStore, build_stored_items

logger = logging.getLogger(__name__)


class InMemoryResponseStore(ResponseStore):
    """
    Response Store In-Memory Implementation

    The least recently used response is evicted once cache_size is reached.
    """

    def __init__(self, cache_size: int = 10000):
        self.cache_size = cache_size
        self._entries: OrderedDict[str, StoredResponse] = OrderedDict()

    async def store_response(self, response: dict[str, Any], input_items: list[dict[str, Any]]) -> None:
        response_id = response["id"]
        logger.debug("Storing response with ID: %s", response_id)

        stored_inputs, stored_outputs = build_stored_items(response, input_items)
        existing = self._entries.pop(response_id, None)
        if existing is not None:
            stored_inputs = existing.input_items + stored_inputs
            stored_outputs = existing.output_items + stored_outputs

        self._entries[response_id] = StoredResponse(
            response=response,
            input_items=stored_inputs,
            output_items=stored_outputs,
        )

        while len(self._entries) > self.cache_size:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("Evicted response %s from the in-memory store", evicted)

    async def get(self, response_id: str) -> Optional[StoredResponse]:
        stored = self._entries.get(response_id)
        if stored is not None:
            self._entries.move_to_end(response_id)
        return stored

    async def delete_response(self, response_id: str) -> bool:
        return self._entries.pop(response_id, None) is not None
