"""
Response Store Repository Interface

Defines the data access interface for stored responses and their items.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from responses_gateway.common.responses.items import FUNCTION_CALL, MESSAGE, item_type, with_identity
from responses_gateway.domain.response import StoredResponse


def build_stored_items(
    response: dict[str, Any], input_items: list[dict[str, Any]]
) -> tuple[list[dict[str, Any]], list[dict[str, Any]]]:
    """
    Prepare the items to persist for a response

    Args:
        response: Response envelope
        input_items: Conversation input of the response

    Returns:
        tuple: (input items with id and created_at, message and function call outputs)
    """
    stored_inputs = [with_identity(item) for item in input_items]
    stored_outputs = [
        with_identity(item)
        for item in response.get("output") or []
        if item_type(item) in (MESSAGE, FUNCTION_CALL)
    ]
    return stored_inputs, stored_outputs


class ResponseStore(ABC):
    """Response Store Repository Interface"""

    @abstractmethod
    async def store_response(self, response: dict[str, Any], input_items: list[dict[str, Any]]) -> None:
        """
        Persist a response

        Storing again under the same response id replaces the envelope and
        appends to the stored item lists.

        Args:
            response: Response envelope
            input_items: Input items of the request that produced it
        """
        pass

    @abstractmethod
    async def get(self, response_id: str) -> Optional[StoredResponse]:
        """
        Get a stored response with its items

        Returns:
            StoredResponse if found, None otherwise
        """
        pass

    async def get_response(self, response_id: str) -> Optional[dict[str, Any]]:
        stored = await self.get(response_id)
        return stored.response if stored else None

    async def get_input_items(self, response_id: str) -> list[dict[str, Any]]:
        stored = await self.get(response_id)
        return stored.input_items if stored else []

    async def get_output_items(self, response_id: str) -> list[dict[str, Any]]:
        stored = await self.get(response_id)
        return stored.output_items if stored else []

    @abstractmethod
    async def delete_response(self, response_id: str) -> bool:
        """
        Delete a stored response

        Returns:
            True if deleted, False if it didn't exist
        """
        pass
