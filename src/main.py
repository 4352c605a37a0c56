import httpx
from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from typing import Annotated

from .config import Settings, get_settings
from .logging_config import configure_logging
from .auth.exceptions import AuthenticationError
from .adapters import build_adapters
from .credentials import CredentialCache, MemoryKeyValueStore, build_token_providers
from .dependencies import get_tool_registry
from .gateway.dispatcher import Dispatcher
from .gateway.schemas import utc_timestamp
from .health.aggregator import HealthAggregator
from .registry import ToolRegistry
from src.health.router import router as health_router
from src.mcp_transport.router import router as mcp_router
from src.gateway.router import router as rest_router


settings = get_settings()


def init_app_state(app: FastAPI, settings: Settings, client: httpx.AsyncClient) -> None:
    """Build the process-wide singletons and attach them to ``app.state``.

    Raises:
        ValueError: If the tool catalog has duplicate names or routes to an
            unconfigured service.
    """
    store = MemoryKeyValueStore(namespace=settings.CACHE_NAMESPACE, maxsize=settings.CACHE_MAX_ENTRIES)
    credentials = CredentialCache(store, build_token_providers(settings, client))
    adapters = build_adapters(settings, client)
    registry = ToolRegistry.from_config()

    app.state.http_client = client
    app.state.credential_cache = credentials
    app.state.adapters = adapters
    app.state.tool_registry = registry
    app.state.dispatcher = Dispatcher(registry, adapters, credentials)
    app.state.health_aggregator = HealthAggregator(adapters, credentials, settings, tool_count=len(registry))


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.LOG_LEVEL, settings.LOG_JSON)

    # Initialize global HTTP client for connection pooling
    # timeouts=None removes global default timeout, allowing per-request timeouts
    client = httpx.AsyncClient(timeout=None)
    init_app_state(app, settings, client)

    yield

    # Shutdown: Close HTTP client
    await client.aclose()

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    lifespan=lifespan,
    debug=settings.DEBUG,
    # /docs is the Google Docs REST prefix
    docs_url=None,
)

# Global exception handlers
@app.exception_handler(AuthenticationError)
async def authentication_exception_handler(request: Request, exc: AuthenticationError):
    return JSONResponse(
        status_code=401,
        content={"error": exc.code}
    )

@app.get("/health")
async def health_check(
    registry: Annotated[ToolRegistry, Depends(get_tool_registry)],
    settings: Annotated[Settings, Depends(get_settings)],
):
    return {
        "status": "ok",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "tools": len(registry),
        "timestamp": utc_timestamp(),
    }

# Include routers; the REST fallback catches every other path so it goes last
app.include_router(health_router)
app.include_router(mcp_router)
app.include_router(rest_router)
