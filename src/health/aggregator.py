"""Concurrent upstream health probes reduced to a single report."""

import asyncio
import time
from typing import Iterable, Mapping

import structlog

from src.adapters import HttpServiceAdapter
from src.config import Settings
from src.credentials import CredentialCache, CredentialNotConfiguredError, TokenRefreshError
from src.gateway.classifier import is_oauth_service
from src.gateway.schemas import utc_timestamp

from .schemas import (
    GatewayHealth,
    GatewayStatus,
    HealthReport,
    HealthSummary,
    ProbeStatus,
    ServiceHealth,
)

logger = structlog.get_logger("health")


def summarize(results: Iterable[ServiceHealth]) -> HealthSummary:
    """Count probe outcomes by status."""
    summary = HealthSummary()
    for result in results:
        if result.status == ProbeStatus.ok:
            summary.healthy += 1
        elif result.status == ProbeStatus.warning:
            summary.degraded += 1
        else:
            summary.failed += 1
    return summary


def reduce_status(summary: HealthSummary) -> GatewayStatus:
    """Collapse a summary into the gateway status.

    Warnings never change the gateway status; only failures do.
    """
    if summary.failed == 0:
        return GatewayStatus.ok
    if summary.healthy > 0:
        return GatewayStatus.degraded
    return GatewayStatus.down


class HealthAggregator:
    """Runs one probe per monitored upstream and aggregates the results."""

    def __init__(
        self,
        adapters: Mapping[str, HttpServiceAdapter],
        credentials: CredentialCache,
        settings: Settings,
        tool_count: int = 0,
    ):
        """Initialize the aggregator.

        Args:
            adapters: Adapter per service name.
            credentials: Token source for authenticated probes.
            settings: Application settings (version, probe timeout, secrets).
            tool_count: Number of advertised tools reported in the gateway block.
        """
        self.adapters = dict(adapters)
        self.credentials = credentials
        self.settings = settings
        self.tool_count = tool_count
        self.timeout = settings.HEALTH_PROBE_TIMEOUT_SECONDS

    @property
    def monitored(self) -> list[HttpServiceAdapter]:
        return [adapter for adapter in self.adapters.values() if adapter.config.monitored]

    def resolve(self, name: str) -> HttpServiceAdapter | None:
        """Find an adapter by service name or alias (``meta-ads`` -> ``meta_ads``)."""
        if name in self.adapters:
            return self.adapters[name]
        for adapter in self.adapters.values():
            if name in adapter.config.aliases:
                return adapter
        return None

    def missing_secrets(self, adapter: HttpServiceAdapter) -> list[str]:
        """Configured secret names the service needs but that are unset."""
        config = adapter.config
        if config.secrets:
            return [name for name in config.secrets if not adapter.setting(name)]
        return self.credentials.missing_secrets(adapter.credential)

    async def run_full(self) -> HealthReport:
        """Probe every monitored service concurrently.

        Returns:
            HealthReport with one ServiceHealth per monitored service, in
            catalog order.
        """
        results = await asyncio.gather(*(self._timed_probe(adapter) for adapter in self.monitored))
        summary = summarize(results)
        return HealthReport(
            gateway=GatewayHealth(
                status=reduce_status(summary),
                version=self.settings.APP_VERSION,
                timestamp=utc_timestamp(),
                tools=self.tool_count,
            ),
            services=list(results),
            summary=summary,
        )

    async def run_one(self, name: str) -> ServiceHealth:
        """Probe a single service by name or alias."""
        adapter = self.resolve(name)
        if adapter is None:
            return ServiceHealth(
                service=name,
                status=ProbeStatus.error,
                message=f"Unknown service: {name}",
            )
        return await self._timed_probe(adapter)

    async def _timed_probe(self, adapter: HttpServiceAdapter) -> ServiceHealth:
        if self.timeout is None:
            result = await self.probe(adapter)
        else:
            try:
                result = await asyncio.wait_for(self.probe(adapter), timeout=self.timeout)
            except asyncio.TimeoutError:
                result = ServiceHealth(
                    service=adapter.name,
                    status=ProbeStatus.error,
                    message=f"No response within {self.timeout:g}s",
                    hint=adapter.config.hint,
                )

        logger.info(
            "health_probe",
            service=result.service,
            status=result.status.value,
            latency_ms=result.latencyMs,
        )
        return result

    async def probe(self, adapter: HttpServiceAdapter) -> ServiceHealth:
        """Check one service.

        Known-degraded services and services without credentials are
        reported as warnings without any network call.

        Args:
            adapter: Adapter for the service being probed.

        Returns:
            ServiceHealth for the service.
        """
        config = adapter.config
        if config.degraded:
            return ServiceHealth(
                service=adapter.name,
                status=ProbeStatus.warning,
                message=config.degraded,
                hint=config.degraded_hint,
            )

        missing = self.missing_secrets(adapter)
        if missing:
            return ServiceHealth(
                service=adapter.name,
                status=ProbeStatus.warning,
                message=f"{' or '.join(missing)} not configured",
            )

        upstream = adapter.probe_request()
        if upstream is None:
            return ServiceHealth(
                service=adapter.name,
                status=ProbeStatus.ok,
                message="Configured (not tested)",
            )

        start = time.perf_counter()
        try:
            token = await self.credentials.get(adapter.credential)
            response = await adapter.send(upstream, token)
        except (TokenRefreshError, CredentialNotConfiguredError):
            hint = "Re-authenticate with Google OAuth" if is_oauth_service(adapter.name) else config.hint
            return ServiceHealth(
                service=adapter.name,
                status=ProbeStatus.error,
                message="Token refresh failed",
                hint=hint,
            )
        except Exception as e:
            return ServiceHealth(
                service=adapter.name,
                status=ProbeStatus.error,
                message=str(e) or e.__class__.__name__,
                hint="Network error",
            )

        latency_ms = int((time.perf_counter() - start) * 1000)
        if response.ok or response.status_code in config.probe.ok_statuses:
            return ServiceHealth(service=adapter.name, status=ProbeStatus.ok, latencyMs=latency_ms)
        return ServiceHealth(
            service=adapter.name,
            status=ProbeStatus.error,
            latencyMs=latency_ms,
            message=f"HTTP {response.status_code}",
            hint=config.hint,
        )
