"""REST fallback: authenticated pass-through to service adapters."""

import json
from typing import Annotated, Any

import structlog
from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse

from src.adapters import (
    AdapterRequest,
    HttpServiceAdapter,
    InvalidAdapterRequestError,
    RouteNotFoundError,
)
from src.auth.dependencies import require_gateway_api_key
from src.credentials import CredentialCache, CredentialError
from src.dependencies import get_adapters_by_prefix, get_credential_cache

from .schemas import ErrorCode, StructuredError, create_error


logger = structlog.get_logger("gateway")

REST_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE"]

router = APIRouter(tags=["rest"], dependencies=[Depends(require_gateway_api_key)])


def create_error_response(status_code: int, error: StructuredError) -> JSONResponse:
    """Create a JSON response carrying a structured error."""
    return JSONResponse(
        status_code=status_code,
        content=error.model_dump(mode="json", exclude_none=True),
    )


async def _read_json_body(request: Request) -> Any | None:
    raw = await request.body()
    if not raw:
        return None
    return json.loads(raw)


async def _forward(
    request: Request,
    adapter: HttpServiceAdapter,
    sub_path: str,
    credentials: CredentialCache,
) -> Response:
    if not adapter.has_route(request.method, sub_path):
        return JSONResponse(
            status_code=404,
            content={"error": f"Unknown {adapter.name} endpoint", "path": sub_path},
        )

    try:
        body = await _read_json_body(request)
    except ValueError:
        return create_error_response(400, create_error(
            ErrorCode.INVALID_REQUEST, "Request body is not valid JSON", service=adapter.name,
        ))

    try:
        token = await credentials.get(adapter.credential)
    except CredentialError as e:
        return create_error_response(401, create_error(
            ErrorCode(e.code), e.message, service=adapter.name,
        ))

    internal = AdapterRequest(
        method=request.method,
        path=sub_path,
        query=dict(request.query_params),
        body=body,
    )
    try:
        upstream = await adapter.call(internal, token)
    except InvalidAdapterRequestError as e:
        return create_error_response(400, create_error(
            ErrorCode.INVALID_REQUEST, e.message, service=adapter.name,
        ))
    except RouteNotFoundError as e:
        return JSONResponse(status_code=404, content={"error": e.message, "path": e.path})
    except Exception as e:
        logger.warning("rest_upstream_failed", service=adapter.name, path=sub_path, error=str(e), exc_info=True)
        return create_error_response(502, create_error(
            ErrorCode.NETWORK_ERROR,
            str(e) or e.__class__.__name__,
            "Check network connectivity",
            adapter.name,
        ))

    return Response(
        content=upstream.content,
        status_code=upstream.status_code,
        media_type=upstream.content_type,
    )


@router.api_route("/{prefix}", methods=REST_METHODS, include_in_schema=False)
@router.api_route("/{prefix}/{path:path}", methods=REST_METHODS)
async def rest_fallback(
    request: Request,
    prefix: str,
    adapters: Annotated[dict[str, HttpServiceAdapter], Depends(get_adapters_by_prefix)],
    credentials: Annotated[CredentialCache, Depends(get_credential_cache)],
    path: str = "",
) -> Response:
    """Forward ``/{prefix}/{path}`` to the adapter owning ``prefix``.

    Upstream responses are passed through unchanged (status, body and
    content type).

    Args:
        request: Incoming request.
        prefix: Service REST prefix without the leading slash.
        adapters: Adapters keyed by REST prefix.
        credentials: Token source for the adapter call.
        path: Sub-path below the prefix.

    Returns:
        The upstream response, or a gateway error response.
    """
    adapter = adapters.get(f"/{prefix}")
    if adapter is None:
        response: Response = JSONResponse(
            status_code=404,
            content={"error": "Not found", "path": request.url.path},
        )
    else:
        sub_path = f"/{path}" if path else ""
        response = await _forward(request, adapter, sub_path, credentials)

    logger.info(
        "rest_request",
        method=request.method,
        path=request.url.path,
        service=adapter.name if adapter else None,
        status=response.status_code,
    )
    return response
