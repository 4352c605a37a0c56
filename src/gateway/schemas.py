"""Pydantic schemas for tool results and the structured error taxonomy."""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field


class ErrorCode(str, Enum):
    """Closed set of error codes surfaced to tool callers."""

    UNAUTHORIZED = "UNAUTHORIZED"
    RATE_LIMITED = "RATE_LIMITED"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    NOT_FOUND = "NOT_FOUND"
    NETWORK_ERROR = "NETWORK_ERROR"
    INVALID_REQUEST = "INVALID_REQUEST"
    TOKEN_REFRESH_FAILED = "TOKEN_REFRESH_FAILED"
    UNKNOWN = "UNKNOWN"


def utc_timestamp() -> str:
    """Current UTC time as an ISO-8601 string with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class StructuredError(BaseModel):
    """Error object returned to callers in place of raw upstream payloads.

    Attributes:
        error: Always True; lets callers detect errors in parsed text.
        code: Taxonomy code.
        message: Human-readable description.
        hint: Suggested next action for the caller.
        service: Upstream service the error relates to.
        timestamp: ISO-8601 creation time.
    """

    error: Literal[True] = True
    code: ErrorCode = Field(..., description="Error taxonomy code")
    message: str = Field(..., description="Error message")
    hint: str | None = Field(default=None, description="Suggested remedy")
    service: str | None = Field(default=None, description="Upstream service name")
    timestamp: str = Field(default_factory=utc_timestamp, description="ISO-8601 timestamp")

    def to_json(self) -> str:
        """Serialize for embedding in a text content item."""
        return json.dumps(self.model_dump(mode="json", exclude_none=True))


def create_error(
    code: ErrorCode,
    message: str,
    hint: str | None = None,
    service: str | None = None,
) -> StructuredError:
    """Build a StructuredError stamped with the current time."""
    return StructuredError(code=code, message=message, hint=hint, service=service)


class ToolContent(BaseModel):
    """Content item in a tool result.

    Text items carry ``text``; image items carry base64 ``data`` and
    ``mimeType``; resource items carry a ``resource`` with a data URI.
    """

    type: Literal["text", "image", "resource"]
    text: str | None = None
    data: str | None = None
    mimeType: str | None = None
    resource: dict[str, Any] | None = None


class ToolResult(BaseModel):
    """Result envelope for tools/call."""

    content: list[ToolContent]
    isError: bool = False

    @classmethod
    def text(cls, text: str) -> "ToolResult":
        """Create a single-item text success result."""
        return cls(content=[ToolContent(type="text", text=text)])

    @classmethod
    def from_error(cls, error: StructuredError) -> "ToolResult":
        """Create an error result with the structured error serialized as text."""
        return cls(content=[ToolContent(type="text", text=error.to_json())], isError=True)

    def structured_error(self) -> StructuredError | None:
        """Parse the structured error back out of an error result."""
        if not self.isError or not self.content or self.content[0].text is None:
            return None
        return StructuredError.model_validate_json(self.content[0].text)

    def to_wire(self) -> dict[str, Any]:
        """Dump for the JSON-RPC result field, dropping unset content fields."""
        return self.model_dump(mode="json", exclude_none=True)
