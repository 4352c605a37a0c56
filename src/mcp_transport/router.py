"""JSON-RPC 2.0 transport for the MCP protocol."""

import json
from typing import Annotated, Any

import structlog
from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from src.config import Settings, get_settings
from src.dependencies import get_dispatcher, get_tool_registry
from src.gateway.dispatcher import Dispatcher
from src.registry import ToolRegistry

from .schemas import (
    MCPInitializeParams,
    MCPJSONRPCRequest,
    MCPJSONRPCResponse,
    MCPToolCallParams,
)
from .service import handle_initialize, handle_tools_call, handle_tools_list


logger = structlog.get_logger("mcp")

router = APIRouter(prefix="", tags=["mcp"])

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


def _jsonrpc_error_response(
    request_id: str | int | None,
    code: int,
    message: str,
    status_code: int = 200,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=MCPJSONRPCResponse(
            id=request_id,
            error={"code": code, "message": message},
        ).to_wire(),
    )


def _jsonrpc_result_response(request_id: str | int | None, result: Any) -> JSONResponse:
    return JSONResponse(content=MCPJSONRPCResponse(id=request_id, result=result).to_wire())


async def _dispatch(
    jsonrpc_request: MCPJSONRPCRequest,
    endpoint_path: str,
    registry: ToolRegistry,
    dispatcher: Dispatcher,
    settings: Settings,
) -> Response:
    method = jsonrpc_request.method
    params = jsonrpc_request.params or {}

    if method == "initialize":
        result = await handle_initialize(MCPInitializeParams(**params), settings)
        return _jsonrpc_result_response(jsonrpc_request.id, result.model_dump())

    if method.startswith("notifications/"):
        # Notifications get no JSON-RPC reply
        return Response(status_code=202)

    if method == "tools/list":
        result = await handle_tools_list(registry)
        return _jsonrpc_result_response(jsonrpc_request.id, result.model_dump())

    if method == "tools/call":
        try:
            call_params = MCPToolCallParams(**params)
        except ValidationError:
            return _jsonrpc_error_response(
                jsonrpc_request.id, INVALID_PARAMS, "Invalid params: 'name' is required"
            )
        tool_result = await handle_tools_call(
            dispatcher,
            call_params.name,
            call_params.arguments,
            endpoint_path=endpoint_path,
        )
        return _jsonrpc_result_response(jsonrpc_request.id, tool_result.to_wire())

    return _jsonrpc_error_response(jsonrpc_request.id, METHOD_NOT_FOUND, f"Method not found: {method}")


@router.post("/", operation_id="mcp_root")
@router.post("/mcp", operation_id="mcp_endpoint")
async def mcp_endpoint(
    request: Request,
    registry: Annotated[ToolRegistry, Depends(get_tool_registry)],
    dispatcher: Annotated[Dispatcher, Depends(get_dispatcher)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> Response:
    """Handle JSON-RPC 2.0 messages.

    Supports ``initialize``, ``notifications/*``, ``tools/list`` and
    ``tools/call``. Protocol errors are returned as JSON-RPC error objects
    with HTTP 200.
    """
    try:
        body = json.loads(await request.body())
    except ValueError:
        return _jsonrpc_error_response(None, PARSE_ERROR, "Parse error")

    request_id = body.get("id") if isinstance(body, dict) else None
    try:
        jsonrpc_request = MCPJSONRPCRequest(**body) if isinstance(body, dict) else None
    except ValidationError:
        jsonrpc_request = None
    if jsonrpc_request is None:
        return _jsonrpc_error_response(request_id, INVALID_REQUEST, "Invalid Request")

    try:
        return await _dispatch(jsonrpc_request, request.url.path, registry, dispatcher, settings)
    except Exception:
        logger.error("jsonrpc_internal_error", method=jsonrpc_request.method, exc_info=True)
        return _jsonrpc_error_response(jsonrpc_request.id, INTERNAL_ERROR, "Internal error")
