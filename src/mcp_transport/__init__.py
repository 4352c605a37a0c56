"""MCP transport module - JSON-RPC 2.0 over HTTP POST."""

from .schemas import (
    PROTOCOL_VERSION,
    MCPInitializeParams,
    MCPInitializeResult,
    MCPJSONRPCRequest,
    MCPJSONRPCResponse,
    MCPToolCallParams,
    MCPToolListResult,
)
from .service import handle_initialize, handle_tools_call, handle_tools_list

__all__ = [
    "PROTOCOL_VERSION",
    "MCPInitializeParams",
    "MCPInitializeResult",
    "MCPJSONRPCRequest",
    "MCPJSONRPCResponse",
    "MCPToolCallParams",
    "MCPToolListResult",
    "handle_initialize",
    "handle_tools_call",
    "handle_tools_list",
]
