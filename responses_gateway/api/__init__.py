"""
API Router Module Initialization
"""

from responses_gateway.api.responses import router as responses_router

__all__ = [
    "responses_router",
]
