"""Global dependencies for the application.

Everything here reads singletons built once in the ``main.py`` lifespan
and stored on ``app.state``; tests replace them via
``app.dependency_overrides``.
"""

import httpx
from fastapi import Request

from src.adapters import HttpServiceAdapter
from src.credentials import CredentialCache
from src.gateway.dispatcher import Dispatcher
from src.health.aggregator import HealthAggregator
from src.registry import ToolRegistry


async def get_http_client(request: Request) -> httpx.AsyncClient:
    """Dependency to get the global shared HTTP client.

    This client is initialized in main.py lifespan and shared across requests
    to enable connection pooling (keep-alive).

    Args:
        request: The FastAPI request object.

    Returns:
        The global httpx.AsyncClient instance.
    """
    return request.app.state.http_client


async def get_tool_registry(request: Request) -> ToolRegistry:
    return request.app.state.tool_registry


async def get_dispatcher(request: Request) -> Dispatcher:
    return request.app.state.dispatcher


async def get_credential_cache(request: Request) -> CredentialCache:
    return request.app.state.credential_cache


async def get_adapters_by_prefix(request: Request) -> dict[str, HttpServiceAdapter]:
    """Adapters keyed by REST prefix (e.g. ``/meta-ads``)."""
    return {adapter.rest_prefix: adapter for adapter in request.app.state.adapters.values()}


async def get_health_aggregator(request: Request) -> HealthAggregator:
    return request.app.state.health_aggregator
