"""High-level audit logger for tool invocations."""

import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator
from uuid import uuid4

import structlog

from .schemas import AuditRecord, AuditStatus

logger = structlog.get_logger("audit")


class AuditContext:
    """Tracks timing and outcome of one tool invocation.
    
    Attributes:
        request_id: Correlation ID for tracing.
        tool: Which tool is being invoked.
        service: Adapter the tool routes to, once resolved.
        start_time: When the invocation started.
        status: Final status of the invocation.
        error_code: Error code if failed.
    """
    
    def __init__(
        self,
        request_id: str,
        tool: str,
        service: str | None = None,
        endpoint_path: str = "/unknown",
    ) -> None:
        self.request_id = request_id
        self.tool = tool
        self.service = service
        self.endpoint_path = endpoint_path
        self.start_time = time.perf_counter()
        self.status = AuditStatus.success
        self.error_code: str | None = None
    
    def mark_error(self, error_code: str) -> None:
        """Mark the invocation as failed with an error code.
        
        Args:
            error_code: The error code to record.
        """
        self.status = AuditStatus.error
        self.error_code = error_code
    
    @property
    def duration_ms(self) -> int:
        """Calculate duration in milliseconds."""
        elapsed = time.perf_counter() - self.start_time
        return int(elapsed * 1000)
    
    def to_record(self) -> AuditRecord:
        return AuditRecord(
            request_id=self.request_id,
            tool=self.tool,
            service=self.service,
            endpoint_path=self.endpoint_path,
            status=self.status,
            duration_ms=self.duration_ms,
            error_code=self.error_code,
        )


def log_tool_invocation(context: AuditContext) -> AuditRecord:
    """Emit the ``tool_invocation`` event for a finished call.
    
    Args:
        context: Audit context with invocation details.
        
    Returns:
        The record that was logged.
    """
    record = context.to_record()
    log = logger.warning if record.status is AuditStatus.error else logger.info
    log("tool_invocation", **record.model_dump(mode="json"))
    return record


@asynccontextmanager
async def audit_tool_invocation(
    tool: str,
    request_id: str | None = None,
    service: str | None = None,
    endpoint_path: str = "/unknown",
) -> AsyncGenerator[AuditContext, None]:
    """Context manager for auditing tool invocations.
    
    Automatically tracks timing and logs when the context exits.
    
    Args:
        tool: Which tool is being invoked.
        request_id: Correlation ID (generated if omitted).
        service: Adapter the tool routes to, if already known.
        endpoint_path: Surface the call arrived on.
        
    Yields:
        AuditContext for marking status/errors.
        
    Example:
        async with audit_tool_invocation("gmail_inbox") as ctx:
            result = await do_work()
            if result.isError:
                ctx.mark_error("UNAUTHORIZED")
    """
    context = AuditContext(
        request_id=request_id or str(uuid4()),
        tool=tool,
        service=service,
        endpoint_path=endpoint_path,
    )
    try:
        yield context
    except Exception:
        if context.error_code is None:
            context.mark_error("UNKNOWN")
        raise
    finally:
        log_tool_invocation(context)
