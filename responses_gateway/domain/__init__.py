"""
Domain Model Module Initialization
"""

from responses_gateway.domain.response import (
    DeletedResponse,
    InputItemList,
    ResponseCreateRequest,
    StoredResponse,
)

__all__ = [
    "DeletedResponse",
    "InputItemList",
    "ResponseCreateRequest",
    "StoredResponse",
]
