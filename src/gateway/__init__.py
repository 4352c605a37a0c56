"""Gateway module - tool dispatch, error taxonomy and the REST fallback."""

from .schemas import (
    ErrorCode,
    StructuredError,
    ToolContent,
    ToolResult,
    create_error,
    utc_timestamp,
)
from .classifier import classify, service_from_name, is_oauth_service
from .dispatcher import Dispatcher, build_adapter_request, shape_output


__all__ = [
    # Schemas
    "ErrorCode",
    "StructuredError",
    "ToolContent",
    "ToolResult",
    "create_error",
    "utc_timestamp",
    # Classification
    "classify",
    "service_from_name",
    "is_oauth_service",
    # Dispatch
    "Dispatcher",
    "build_adapter_request",
    "shape_output",
]
