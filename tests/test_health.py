"""Tests for health probes and status reduction."""

import asyncio

import httpx
import pytest

from src.adapters import AdapterResponse, build_adapters
from src.credentials import CredentialCache, MemoryKeyValueStore, build_token_providers
from src.health import (
    GatewayStatus,
    HealthAggregator,
    HealthSummary,
    ProbeStatus,
    ServiceHealth,
    reduce_status,
    summarize,
)

from conftest import GOOGLE_TOKEN_URL, RecordingUpstream, make_settings


def make_aggregator(settings, client: httpx.AsyncClient, tool_count: int = 54) -> HealthAggregator:
    credentials = CredentialCache(MemoryKeyValueStore(), build_token_providers(settings, client))
    return HealthAggregator(build_adapters(settings, client), credentials, settings, tool_count=tool_count)


def _results(ok: int = 0, warning: int = 0, error: int = 0) -> list[ServiceHealth]:
    return (
        [ServiceHealth(service=f"ok{i}", status=ProbeStatus.ok) for i in range(ok)]
        + [ServiceHealth(service=f"warn{i}", status=ProbeStatus.warning) for i in range(warning)]
        + [ServiceHealth(service=f"err{i}", status=ProbeStatus.error) for i in range(error)]
    )


class TestReduction:
    """Tests for reducing probe results to a gateway status."""

    def test_mixed_results_are_degraded(self):
        """Test that failures alongside healthy services mean degraded."""
        summary = summarize(_results(ok=10, warning=2, error=1))
        assert summary == HealthSummary(healthy=10, degraded=2, failed=1)
        assert reduce_status(summary) == GatewayStatus.degraded

    def test_all_failed_is_down(self):
        """Test that only failures mean down."""
        summary = summarize(_results(error=5))
        assert reduce_status(summary) == GatewayStatus.down

    def test_no_failures_is_ok(self):
        """Test that warnings alone leave the gateway ok."""
        assert reduce_status(summarize(_results(ok=3, warning=4))) == GatewayStatus.ok
        assert reduce_status(summarize([])) == GatewayStatus.ok

    def test_warnings_only_with_failure_is_down(self):
        """Test that warnings do not count as healthy."""
        assert reduce_status(summarize(_results(warning=3, error=1))) == GatewayStatus.down


class TestRunOne:
    """Tests for probing a single service."""

    @pytest.mark.asyncio
    async def test_unknown_service(self, settings, upstream):
        """Test that an unknown name is reported as an error."""
        aggregator = make_aggregator(settings, upstream.client())
        result = await aggregator.run_one("unknown-service")

        assert result.model_dump(exclude_none=True) == {
            "service": "unknown-service",
            "status": "error",
            "message": "Unknown service: unknown-service",
        }

    @pytest.mark.asyncio
    async def test_aliases(self, settings, upstream):
        """Test resolving dashed service aliases."""
        aggregator = make_aggregator(settings, upstream.client())

        meta = await aggregator.run_one("meta-ads")
        google_ads = await aggregator.run_one("google-ads")

        assert meta.service == "meta_ads"
        assert meta.status == ProbeStatus.ok
        assert upstream.requests[0].url.params["access_token"] == "meta-key"
        assert google_ads.service == "google_ads"

    @pytest.mark.asyncio
    async def test_ok_with_latency(self, settings, upstream):
        """Test that a successful probe reports latency."""
        result = await make_aggregator(settings, upstream.client()).run_one("render")
        assert result.status == ProbeStatus.ok
        assert result.latencyMs is not None
        assert upstream.requests[0].url.params["limit"] == "1"

    @pytest.mark.asyncio
    async def test_known_degraded_skips_network(self, settings, upstream):
        """Test that known-degraded services warn without a request."""
        aggregator = make_aggregator(settings, upstream.client())

        mercury = await aggregator.run_one("mercury")
        google_ads = await aggregator.run_one("google_ads")

        assert mercury.status == ProbeStatus.warning
        assert mercury.message == "IP-blocked from the edge runtime"
        assert mercury.hint == "Use direct API access"
        assert google_ads.message == "Pending API approval"
        assert upstream.requests == []

    @pytest.mark.asyncio
    async def test_missing_credentials(self, upstream):
        """Test that unset secrets warn without a request."""
        settings = make_settings(NEON_ORG_ID="", SENTRY_AUTH_TOKEN="")
        aggregator = make_aggregator(settings, upstream.client())

        neon = await aggregator.run_one("neon")
        sentry = await aggregator.run_one("sentry")

        assert neon.status == ProbeStatus.warning
        assert neon.message == "NEON_ORG_ID not configured"
        assert sentry.message == "SENTRY_AUTH_TOKEN not configured"
        assert upstream.requests == []

    @pytest.mark.asyncio
    async def test_missing_credentials_names_only_unset_secrets(self, upstream):
        """Only the unset secrets are named, joined with 'or'."""
        settings = make_settings(BROWSERLESS_TOKEN="")
        aggregator = make_aggregator(settings, upstream.client())

        browser = await aggregator.run_one("browser")
        assert browser.message == "BROWSERLESS_TOKEN not configured"

        settings = make_settings(NEON_API_KEY="", NEON_ORG_ID="")
        neon = await make_aggregator(settings, upstream.client()).run_one("neon")
        assert neon.message == "NEON_API_KEY or NEON_ORG_ID not configured"

    @pytest.mark.asyncio
    async def test_configured_without_probe(self, settings, upstream):
        """Test services that have no probe request."""
        result = await make_aggregator(settings, upstream.client()).run_one("browser")
        assert result.status == ProbeStatus.ok
        assert result.message == "Configured (not tested)"
        assert upstream.requests == []

    @pytest.mark.asyncio
    async def test_extra_ok_status(self, settings):
        """Test statuses listed as healthy for a service."""
        recorder = RecordingUpstream(status_code=404)
        aggregator = make_aggregator(settings, recorder.client())

        supabase = await aggregator.run_one("supabase")
        render = await aggregator.run_one("render")

        assert supabase.status == ProbeStatus.ok
        assert render.status == ProbeStatus.error
        assert render.message == "HTTP 404"
        assert render.hint == "Check RENDER_API_KEY"

    @pytest.mark.asyncio
    async def test_google_refresh_failure(self, settings):
        """Test that a failed Google refresh is reported as an error."""
        def handler(request: httpx.Request) -> httpx.Response:
            if str(request.url) == GOOGLE_TOKEN_URL:
                return httpx.Response(401, json={"error": "invalid_client"})
            return httpx.Response(200, json={})

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        result = await make_aggregator(settings, client).run_one("gmail")

        assert result.status == ProbeStatus.error
        assert result.message == "Token refresh failed"
        assert result.hint == "Re-authenticate with Google OAuth"

    @pytest.mark.asyncio
    async def test_transport_exception(self, settings):
        """Test that a transport error keeps its message."""
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("name resolution failed")

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        result = await make_aggregator(settings, client).run_one("netlify")

        assert result.status == ProbeStatus.error
        assert result.message == "name resolution failed"

    @pytest.mark.asyncio
    async def test_probe_timeout(self, upstream):
        """Test that a probe exceeding the timeout is an error."""
        settings = make_settings(HEALTH_PROBE_TIMEOUT_SECONDS=0.05)
        aggregator = make_aggregator(settings, upstream.client())

        async def hang(upstream_request, token):
            await asyncio.sleep(5)
            return AdapterResponse(status_code=200)

        aggregator.adapters["render"].send = hang
        result = await aggregator.run_one("render")

        assert result.status == ProbeStatus.error
        assert result.message == "No response within 0.05s"


class TestRunFull:
    """Tests for the full health report."""

    @pytest.mark.asyncio
    async def test_all_configured(self, settings, upstream):
        """Test the report when every service is configured."""
        report = await make_aggregator(settings, upstream.client(), tool_count=54).run_full()

        services = [result.service for result in report.services]
        assert "sheets" not in services
        assert "unipile" not in services
        assert len(services) == 13
        assert report.summary == HealthSummary(healthy=11, degraded=2, failed=0)
        assert report.gateway.status == GatewayStatus.ok
        assert report.gateway.tools == 54
        assert report.gateway.version == settings.APP_VERSION

    @pytest.mark.asyncio
    async def test_partial_failure_is_degraded(self, settings):
        """Test that one failing service degrades the gateway."""
        recorder = RecordingUpstream()
        recorder.responses["api.render.com"] = httpx.Response(503)
        report = await make_aggregator(settings, recorder.client()).run_full()

        assert report.summary.failed == 1
        assert report.gateway.status == GatewayStatus.degraded

    @pytest.mark.asyncio
    async def test_probes_run_concurrently(self, settings):
        """Test that probes overlap in time."""
        in_flight = 0
        peak = 0

        async def slow_send(self_adapter, upstream_request, token):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return AdapterResponse(status_code=200)

        aggregator = make_aggregator(settings, RecordingUpstream().client())
        for adapter in aggregator.adapters.values():
            adapter.send = slow_send.__get__(adapter)

        await aggregator.run_full()
        assert peak > 1
