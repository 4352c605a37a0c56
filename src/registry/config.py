"""Static tool registry config loader."""

from pathlib import Path

import yaml
from pydantic import BaseModel, Field

from .schemas import ToolDefinition


class ToolRegistryConfig(BaseModel):
    """Container for tool definitions."""

    tools: list[ToolDefinition] = Field(default_factory=list)


def load_tool_registry(config_path: str | Path | None = None) -> ToolRegistryConfig:
    """Load tool registry config from YAML.

    Args:
        config_path: Optional custom path for the tool registry config.

    Returns:
        Parsed ToolRegistryConfig, or an empty config if the file is missing.
    """
    if config_path is None:
        config_path = Path(__file__).parent / "tools.yaml"
    else:
        config_path = Path(config_path)

    if not config_path.exists():
        return ToolRegistryConfig()

    with config_path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}

    return ToolRegistryConfig(**data)
