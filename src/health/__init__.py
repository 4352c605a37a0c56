"""Health module - concurrent upstream probes and status reduction."""

from .aggregator import HealthAggregator, reduce_status, summarize
from .schemas import (
    GatewayHealth,
    GatewayStatus,
    HealthReport,
    HealthSummary,
    ProbeStatus,
    ServiceHealth,
)

__all__ = [
    "HealthAggregator",
    "reduce_status",
    "summarize",
    "GatewayHealth",
    "GatewayStatus",
    "HealthReport",
    "HealthSummary",
    "ProbeStatus",
    "ServiceHealth",
]
