"""
Responses API

Provides the /v1/responses endpoints.
"""

import logging
from typing import AsyncIterator

from fastapi import APIRouter, Query
from fastapi.responses import StreamingResponse

from responses_gateway.api.deps import ProviderClientDep, ResponseServiceDep
from responses_gateway.common.errors import StreamingError
from responses_gateway.domain.response import DeletedResponse, InputItemList, ResponseCreateRequest

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Responses"])


async def _log_stream_errors(stream: AsyncIterator[bytes]) -> AsyncIterator[bytes]:
    """The client already got an error event; keep StreamingResponse logs clean."""
    try:
        async for frame in stream:
            yield frame
    except StreamingError as e:
        logger.error("Streaming response failed: %s", e.message)


@router.post("/v1/responses")
async def create_response(
    request: ResponseCreateRequest,
    provider: ProviderClientDep,
    service: ResponseServiceDep,
):
    """
    Create a model response

    With "stream": true the events are sent as text/event-stream.
    """
    params = request.to_params()

    if request.stream:
        return StreamingResponse(
            _log_stream_errors(service.create_streaming_response(params, provider)),
            media_type="text/event-stream",
            headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
        )

    return await service.create_response(params, provider)


@router.get("/v1/responses/{response_id}")
async def get_response(response_id: str, service: ResponseServiceDep):
    """Get a stored response"""
    return await service.get_response(response_id)


@router.delete("/v1/responses/{response_id}", response_model=DeletedResponse)
async def delete_response(response_id: str, service: ResponseServiceDep):
    """Delete a stored response"""
    return await service.delete_response(response_id)


@router.get("/v1/responses/{response_id}/input_items", response_model=InputItemList)
async def list_input_items(
    response_id: str,
    service: ResponseServiceDep,
    limit: int = Query(20, description="Page size (1-100)"),
    order: str = Query("desc", description="asc or desc by creation time"),
    after: str = Query(None, description="List items after this item id"),
    before: str = Query(None, description="List items before this item id"),
):
    """List the input items of a stored response"""
    return await service.list_input_items(response_id, limit=limit, order=order, after=after, before=before)
