"""
Response Service Module

Serves the /v1/responses operations: runs the gateway loops for new
responses, continues stored conversations and pages stored input items.
"""

import logging
from typing import Any, AsyncIterator, Optional

import anyio

from responses_gateway.common.errors import (
    AppError,
    NotFoundError,
    ResponseProcessingError,
    StreamingError,
    TooManyToolCallsError,
)
from responses_gateway.common.responses import events
from responses_gateway.common.responses.events import TERMINAL_EVENTS
from responses_gateway.common.responses.items import input_items
from responses_gateway.common.sse import encode_sse_event
from responses_gateway.domain.response import DeletedResponse, InputItemList
from responses_gateway.providers.base import ProviderClient
from responses_gateway.repositories.response_store import ResponseStore
from responses_gateway.services.gateway_loop import GatewayConfig, StreamingGatewayLoop, SyncGatewayLoop
from responses_gateway.services.payload_formatter import PayloadFormatter
from responses_gateway.tools.service import ToolService

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100


class ResponseService:
    """
    Response Service

    Request-scoped collaborators (the provider client) are passed per call;
    the tool service, the store and the loop limits are shared.
    """

    def __init__(
        self,
        tool_service: ToolService,
        response_store: ResponseStore,
        config: GatewayConfig,
    ):
        self.tool_service = tool_service
        self.response_store = response_store
        self.config = config
        self.payload_formatter = PayloadFormatter(tool_service)

    async def _prepare_params(self, params: dict[str, Any]) -> dict[str, Any]:
        """
        Expand managed tools and the previous response into the request

        Raises:
            NotFoundError: previous_response_id names an unknown response
            InvalidInputError: A managed tool is not registered
        """
        prepared = self.payload_formatter.format_request(params)

        previous_id = prepared.get("previous_response_id")
        if previous_id:
            stored = await self.response_store.get(previous_id)
            if stored is None:
                raise NotFoundError(f"Previous response with ID {previous_id} not found")
            prepared = {
                **prepared,
                "input": stored.input_items + stored.output_items + input_items(prepared),
            }

        return prepared

    async def _store(self, envelope: dict[str, Any], params: dict[str, Any]) -> None:
        if not params.get("store"):
            return
        await self.response_store.store_response(envelope, input_items(params))

    async def create_response(self, params: dict[str, Any], provider: ProviderClient) -> dict[str, Any]:
        """
        Create a response without streaming

        Args:
            params: Responses request body
            provider: Provider client for this request

        Returns:
            dict: Final envelope as shown to the caller

        Raises:
            AppError: Request, provider, limit and timeout errors
            ResponseProcessingError: Any other failure
        """
        try:
            prepared = await self._prepare_params(params)
            loop = SyncGatewayLoop(provider, self.tool_service, self.config)
            envelope = await loop.run(prepared)
            await self._store(envelope, prepared)
        except AppError:
            raise
        except Exception as e:
            logger.error("Error processing response: %s", e, exc_info=True)
            raise ResponseProcessingError(f"Error processing response: {str(e)}") from e

        return self.payload_formatter.format_response(envelope)

    async def create_streaming_response(
        self, params: dict[str, Any], provider: ProviderClient
    ) -> AsyncIterator[bytes]:
        """
        Create a streaming response

        Args:
            params: Responses request body
            provider: Provider client for this request

        Yields:
            bytes: SSE frames

        Raises:
            StreamingError: Raised after the client was sent an error event
        """
        terminal_envelope: Optional[dict[str, Any]] = None
        prepared = params
        try:
            prepared = await self._prepare_params(params)
            loop = StreamingGatewayLoop(provider, self.tool_service, self.config)
            async for event in loop.stream(prepared):
                if event.get("type") in TERMINAL_EVENTS:
                    terminal_envelope = event["response"]
                yield encode_sse_event(self.payload_formatter.format_event(event))
        except TooManyToolCallsError as e:
            # The loop already sent the error event
            logger.error("Streaming response stopped: %s", e.message)
            raise StreamingError(e.message, code=e.code) from e
        except Exception as e:
            message = f"Error in streaming response: {str(e)}"
            logger.error(message, exc_info=True)
            yield encode_sse_event(events.error_event("stream_error", message))
            raise StreamingError(message) from e
        finally:
            if terminal_envelope is not None and prepared.get("store"):
                # Client disconnect cancels the stream, keep the write alive
                with anyio.CancelScope(shield=True):
                    try:
                        await self._store(terminal_envelope, prepared)
                    except Exception as e:
                        logger.error("Failed to store streamed response %s: %s", terminal_envelope.get("id"), e)

    async def get_response(self, response_id: str) -> dict[str, Any]:
        """
        Raises:
            NotFoundError: No stored response with this id
        """
        envelope = await self.response_store.get_response(response_id)
        if envelope is None:
            raise NotFoundError(f"Response with ID {response_id} not found")
        return self.payload_formatter.format_response(envelope)

    async def delete_response(self, response_id: str) -> DeletedResponse:
        deleted = await self.response_store.delete_response(response_id)
        return DeletedResponse(id=response_id, deleted=deleted)

    async def list_input_items(
        self,
        response_id: str,
        limit: int = 20,
        order: str = "desc",
        after: Optional[str] = None,
        before: Optional[str] = None,
    ) -> InputItemList:
        """
        Page through the input items of a stored response

        Args:
            response_id: Stored response id
            limit: Page size, clamped to 1..100
            order: "asc" or "desc" by created_at; anything else means "asc"
            after: Return items after this item id
            before: Return items before this item id

        Returns:
            InputItemList: The page

        Raises:
            NotFoundError: No stored response with this id
        """
        logger.info("Listing input items for response ID: %s", response_id)

        limit = max(1, min(limit, MAX_PAGE_SIZE))
        if order not in ("asc", "desc"):
            order = "asc"

        stored = await self.response_store.get(response_id)
        if stored is None:
            raise NotFoundError(f"Response not found with ID: {response_id}")

        items = sorted(
            stored.input_items,
            key=lambda item: item.get("created_at") or 0,
            reverse=order == "desc",
        )
        ids = [item.get("id") for item in items]

        from_index = ids.index(after) + 1 if after in ids else 0
        to_index = ids.index(before) if before in ids else (len(items) if before is None else -1)

        from_index = max(0, min(from_index, len(items)))
        to_index = max(from_index, min(to_index, len(items)))

        page = items[from_index:to_index][:limit]
        return InputItemList(
            data=page,
            first_id=page[0].get("id") if page else None,
            last_id=page[-1].get("id") if page else None,
            has_more=(to_index - from_index) > len(page),
        )
