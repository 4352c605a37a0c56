"""Pydantic schemas for tool definitions and their private routes."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class QueryBinding(BaseModel):
    """Binds one query parameter of a route to a tool argument.

    Attributes:
        arg: Argument name to read.
        default: Value used when the argument is absent or empty.
    """

    model_config = ConfigDict(frozen=True)

    arg: str
    default: Any | None = None


class RouteBinding(BaseModel):
    """How a tool call becomes an internal adapter request.

    Never advertised through ``tools/list``.

    Attributes:
        service: Adapter that serves the tool.
        method: Internal HTTP method.
        path: Internal path template; ``{name}`` placeholders are filled
            from tool arguments.
        query: Query parameter bindings.
        body: ``none`` sends no body, ``arguments`` forwards all arguments,
            ``argument`` forwards the single argument named by ``body_argument``.
        body_argument: Argument forwarded as the body in ``argument`` mode.
        output: Shape of the success payload.
        mime_type: Media type for ``image`` and ``resource`` outputs.
    """

    model_config = ConfigDict(frozen=True)

    service: str
    method: str = "GET"
    path: str
    query: dict[str, QueryBinding] = Field(default_factory=dict)
    body: Literal["none", "arguments", "argument"] = "none"
    body_argument: str | None = None
    output: Literal["text", "image", "resource"] = "text"
    mime_type: str | None = None

    @field_validator("query", mode="before")
    @classmethod
    def expand_query_shorthand(cls, value: Any) -> Any:
        """Allow ``param: argName`` as shorthand for ``param: {arg: argName}``."""
        if isinstance(value, dict):
            return {
                param: {"arg": binding} if isinstance(binding, str) else binding
                for param, binding in value.items()
            }
        return value


class ToolDefinition(BaseModel):
    """A tool advertised to agent runtimes.

    Attributes:
        name: Unique tool identifier.
        description: Human-readable description.
        inputSchema: JSON Schema of the tool arguments.
        route: Private binding to an adapter route.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Unique tool identifier")
    description: str = Field(..., description="Human-readable description")
    inputSchema: dict[str, Any] = Field(
        default_factory=lambda: {"type": "object", "properties": {}},
        description="JSON Schema of the tool arguments",
    )
    route: RouteBinding = Field(..., exclude=True)

    @property
    def required_arguments(self) -> list[str]:
        return list(self.inputSchema.get("required") or [])

    def advertised(self) -> dict[str, Any]:
        """Public form used by ``tools/list``."""
        return self.model_dump(mode="json")
