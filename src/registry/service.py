"""In-memory tool registry built once at startup."""

from pathlib import Path
from typing import Iterable

from .config import load_tool_registry
from .schemas import ToolDefinition


class ToolNotFoundError(KeyError):
    """Raised by ToolRegistry.get for an unknown tool name."""

    def __init__(self, name: str):
        super().__init__(name)
        self.name = name


class ToolRegistry:
    """Read-only catalog of tool definitions keyed by name."""

    def __init__(self, tools: Iterable[ToolDefinition]):
        """Build the registry.

        Args:
            tools: Tool definitions in advertised order.

        Raises:
            ValueError: If two tools share a name.
        """
        self._tools: dict[str, ToolDefinition] = {}
        for tool in tools:
            if tool.name in self._tools:
                raise ValueError(f"duplicate tool name in config: {tool.name}")
            self._tools[tool.name] = tool

    @classmethod
    def from_config(cls, config_path: str | Path | None = None) -> "ToolRegistry":
        return cls(load_tool_registry(config_path).tools)

    def list(self) -> list[ToolDefinition]:
        return list(self._tools.values())

    def has(self, name: str) -> bool:
        return name in self._tools

    def get(self, name: str) -> ToolDefinition:
        """Return the tool named ``name``.

        Raises:
            ToolNotFoundError: If no such tool is registered.
        """
        try:
            return self._tools[name]
        except KeyError:
            raise ToolNotFoundError(name) from None

    def services(self) -> set[str]:
        """Names of the adapters the registered tools route to."""
        return {tool.route.service for tool in self._tools.values()}

    def __len__(self) -> int:
        return len(self._tools)
