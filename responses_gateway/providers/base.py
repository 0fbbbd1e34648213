"""
Upstream Provider Client Base Class

Defines the abstract interface the gateway loops use to call a
chat-completions provider.
"""

from abc import ABC, abstractmethod
from typing import Any, AsyncIterator


class ProviderClient(ABC):
    """
    Upstream Provider Client Abstract Base Class

    One instance serves one inbound request: it carries the provider base URL
    and the caller's credentials.
    """

    @abstractmethod
    async def create_chat_completion(self, body: dict[str, Any]) -> dict[str, Any]:
        """
        Call /chat/completions without streaming

        Args:
            body: Chat Completions request body

        Returns:
            dict: Chat Completions response body

        Raises:
            UpstreamError: The provider failed or could not be reached
        """
        pass

    @abstractmethod
    def stream_chat_completion(self, body: dict[str, Any]) -> AsyncIterator[dict[str, Any]]:
        """
        Call /chat/completions with streaming

        Args:
            body: Chat Completions request body

        Yields:
            dict: Chat completion chunks, in arrival order

        Raises:
            UpstreamError: The provider failed or could not be reached
        """
        pass
