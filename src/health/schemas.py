"""Pydantic schemas for health reports."""

from enum import Enum

from pydantic import BaseModel, Field


class ProbeStatus(str, Enum):
    """Outcome of a single service probe."""

    ok = "ok"
    warning = "warning"
    error = "error"


class GatewayStatus(str, Enum):
    """Overall gateway status derived from probe outcomes."""

    ok = "ok"
    degraded = "degraded"
    down = "down"


class ServiceHealth(BaseModel):
    """Probe result for one upstream service."""

    service: str
    status: ProbeStatus
    latencyMs: int | None = None
    message: str | None = None
    hint: str | None = None


class GatewayHealth(BaseModel):
    status: GatewayStatus
    version: str
    timestamp: str
    tools: int = Field(..., description="Number of advertised tools")


class HealthSummary(BaseModel):
    healthy: int = 0
    degraded: int = 0
    failed: int = 0


class HealthReport(BaseModel):
    """Aggregated result of probing every monitored service."""

    gateway: GatewayHealth
    services: list[ServiceHealth]
    summary: HealthSummary
