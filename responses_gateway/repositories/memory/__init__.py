"""
In-Memory Repository Implementation Module Initialization
"""

from responses_gateway.repositories.memory.response_store import InMemoryResponseStore

__all__ = [
    "InMemoryResponseStore",
]
