"""Business logic for MCP protocol handlers."""

from typing import Any

from src.config import Settings
from src.gateway.dispatcher import Dispatcher
from src.gateway.schemas import ToolResult
from src.registry import ToolRegistry

from .schemas import (
    MCPInitializeParams,
    MCPInitializeResult,
    MCPServerInfo,
    MCPToolListResult,
)


async def handle_initialize(params: MCPInitializeParams, settings: Settings) -> MCPInitializeResult:
    """Handle initialize request.

    The client's requested protocol version is accepted but the server
    always answers with the version it implements.

    Args:
        params: Initialize parameters from client.
        settings: Application settings supplying the server identity.

    Returns:
        Server initialization response.
    """
    return MCPInitializeResult(
        serverInfo=MCPServerInfo(name=settings.APP_NAME, version=settings.APP_VERSION),
    )


async def handle_tools_list(registry: ToolRegistry) -> MCPToolListResult:
    """Handle tools/list request with the full static catalog."""
    return MCPToolListResult(tools=[tool.advertised() for tool in registry.list()])


async def handle_tools_call(
    dispatcher: Dispatcher,
    name: str,
    arguments: dict[str, Any] | None,
    endpoint_path: str = "/mcp",
) -> ToolResult:
    """Handle tools/call request.

    Tool failures never raise; they come back as ``isError`` results.

    Args:
        dispatcher: Tool dispatcher.
        name: Tool name to invoke.
        arguments: Tool arguments.
        endpoint_path: API endpoint path used for invocation.

    Returns:
        Tool execution result.
    """
    return await dispatcher.execute(name, arguments or {}, endpoint_path=endpoint_path)
