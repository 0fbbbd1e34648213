"""
Provider Client Module
"""

from responses_gateway.providers.base import ProviderClient
from responses_gateway.providers.openai_client import OpenAIClient, resolve_base_url

__all__ = [
    "ProviderClient",
    "OpenAIClient",
    "resolve_base_url",
]
