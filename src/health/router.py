"""FastAPI router for upstream diagnostics."""

from typing import Annotated

from fastapi import APIRouter, Depends

from src.dependencies import get_health_aggregator

from .aggregator import HealthAggregator
from .schemas import HealthReport, ServiceHealth


router = APIRouter(prefix="/health", tags=["health"])


@router.get("/full", response_model=HealthReport, response_model_exclude_none=True)
async def full_health(
    aggregator: Annotated[HealthAggregator, Depends(get_health_aggregator)],
) -> HealthReport:
    """Probe every monitored upstream concurrently.

    The gateway status is ``ok`` when nothing failed, ``degraded`` when
    some probes failed and some succeeded, and ``down`` otherwise.
    """
    return await aggregator.run_full()


@router.get("/{service}", response_model=ServiceHealth, response_model_exclude_none=True)
async def service_health(
    service: str,
    aggregator: Annotated[HealthAggregator, Depends(get_health_aggregator)],
) -> ServiceHealth:
    """Probe a single upstream by name or alias."""
    return await aggregator.run_one(service)
