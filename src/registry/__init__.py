"""Registry module - Tool definitions and discovery."""

from .config import ToolRegistryConfig, load_tool_registry
from .schemas import QueryBinding, RouteBinding, ToolDefinition
from .service import ToolRegistry, ToolNotFoundError


__all__ = [
    "ToolRegistryConfig",
    "load_tool_registry",
    "QueryBinding",
    "RouteBinding",
    "ToolDefinition",
    "ToolRegistry",
    "ToolNotFoundError",
]
