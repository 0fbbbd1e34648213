"""
Repository Module Initialization
"""

from responses_gateway.repositories.response_store import ResponseStore

__all__ = [
    "ResponseStore",
]
