"""Pydantic schemas for audit logging."""

from enum import Enum

from pydantic import BaseModel, Field


class AuditStatus(str, Enum):
    """Status of a tool invocation."""
    
    success = "success"
    error = "error"


class AuditRecord(BaseModel):
    """One tool invocation as emitted to the audit log.
    
    Attributes:
        request_id: Correlation ID for tracing.
        tool: Which tool was invoked.
        service: Adapter the tool routes to, if known.
        endpoint_path: Surface the call arrived on.
        status: Outcome of the invocation.
        duration_ms: Call duration in milliseconds.
        error_code: Error code if failed.
    """
    
    request_id: str
    tool: str
    service: str | None = None
    endpoint_path: str
    status: AuditStatus
    duration_ms: int = Field(ge=0)
    error_code: str | None = None
