"""
API Dependency Injection Module

Provides dependencies required by FastAPI routes.
"""

from typing import Annotated, Optional

from fastapi import Depends, Header

from responses_gateway.common.errors import InvalidInputError
from responses_gateway.config import get_settings
from responses_gateway.db.redis import get_redis
from responses_gateway.providers import OpenAIClient, ProviderClient, resolve_base_url
from responses_gateway.repositories.memory import InMemoryResponseStore
from responses_gateway.repositories.redis import RedisResponseStore
from responses_gateway.repositories.response_store import ResponseStore
from responses_gateway.services.gateway_loop import GatewayConfig
from responses_gateway.services.response_service import ResponseService
from responses_gateway.tools.service import ToolService

# ============ Global Singletons ============

# Tools are loaded once at startup and read-only afterwards
_tool_service: Optional[ToolService] = None
# Stored responses must outlive a single request
_response_store: Optional[ResponseStore] = None


def get_tool_service() -> ToolService:
    """Get the shared tool service"""
    global _tool_service
    if _tool_service is None:
        _tool_service = ToolService()
    return _tool_service


def get_response_store() -> ResponseStore:
    """
    Get the shared response store

    The backend follows RESPONSE_STORE_TYPE; the Redis client must have been
    initialized by the application lifespan.
    """
    global _response_store
    if _response_store is None:
        settings = get_settings()
        if settings.RESPONSE_STORE_TYPE == "redis":
            _response_store = RedisResponseStore(get_redis(), settings.RESPONSE_STORE_TTL_SECONDS)
        else:
            _response_store = InMemoryResponseStore(settings.RESPONSE_STORE_CACHE_SIZE)
    return _response_store


def reset_dependencies() -> None:
    """Drop the shared instances (used on shutdown)"""
    global _tool_service, _response_store
    _tool_service = None
    _response_store = None


ToolServiceDep = Annotated[ToolService, Depends(get_tool_service)]
ResponseStoreDep = Annotated[ResponseStore, Depends(get_response_store)]


# ============ Service Dependencies ============

def get_response_service(tool_service: ToolServiceDep, response_store: ResponseStoreDep) -> ResponseService:
    """Get the response service"""
    return ResponseService(tool_service, response_store, GatewayConfig.from_settings(get_settings()))


# ============ Provider Dependencies ============

def _extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    if authorization.lower().startswith("bearer "):
        return authorization[7:].strip() or None
    return None


async def get_provider_client(
    authorization: str = Header(None, description="Bearer token forwarded to the provider"),
    x_model_provider: str = Header(None, description="openai, claude or groq", alias="x-model-provider"),
) -> ProviderClient:
    """
    Build the provider client of the current request

    The caller's key is forwarded to the provider as-is.

    Raises:
        InvalidInputError: No bearer token
    """
    api_key = _extract_bearer_token(authorization)
    if not api_key:
        raise InvalidInputError("api-key is missing.", code="missing_api_key")

    settings = get_settings()
    return OpenAIClient(
        base_url=resolve_base_url(x_model_provider, settings),
        api_key=api_key,
        timeout=settings.HTTP_TIMEOUT,
    )


# Dependency type aliases
ResponseServiceDep = Annotated[ResponseService, Depends(get_response_service)]
ProviderClientDep = Annotated[ProviderClient, Depends(get_provider_client)]
