"""
Response Domain Model

Defines the Responses API request model and the stored-response DTOs.
"""

from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class ResponseCreateRequest(BaseModel):
    """
    Create Response Request

    Only the fields the gateway itself acts on are declared; every other
    Responses parameter is kept as an extra field and passed to the converters.
    """

    model: str = Field(..., min_length=1, description="Model name")
    input: Union[str, list[dict[str, Any]]] = Field(..., description="Text input or list of input items")
    instructions: Optional[str] = Field(None, description="System instructions")
    stream: bool = Field(False, description="Stream events over SSE")
    store: Optional[bool] = Field(None, description="Persist the response for later retrieval")
    previous_response_id: Optional[str] = Field(None, description="Continue from a stored response")
    tools: Optional[list[dict[str, Any]]] = Field(None, description="Tool declarations")

    model_config = ConfigDict(extra="allow")

    def to_params(self) -> dict[str, Any]:
        """Request body as a plain dict, unset fields omitted"""
        return self.model_dump(exclude_unset=True)


class StoredResponse(BaseModel):
    """Stored Response with its conversation items"""

    response: dict[str, Any] = Field(..., description="Response envelope")
    input_items: list[dict[str, Any]] = Field(default_factory=list, description="Input items, with id and created_at")
    output_items: list[dict[str, Any]] = Field(default_factory=list, description="Message and function call outputs")


class InputItemList(BaseModel):
    """Paginated input items of a stored response"""

    object: str = "list"
    data: list[dict[str, Any]] = Field(default_factory=list)
    first_id: Optional[str] = None
    last_id: Optional[str] = None
    has_more: bool = False


class DeletedResponse(BaseModel):
    """Delete Response Result"""

    id: str
    deleted: bool
    object: str = "response"
