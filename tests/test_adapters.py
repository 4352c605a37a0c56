"""Tests for the data-driven service adapters."""

import base64
import json
from email import message_from_bytes

import httpx
import pytest

from src.adapters import (
    AdapterRequest,
    AdapterResponse,
    HttpServiceAdapter,
    InvalidAdapterRequestError,
    RouteConfig,
    RouteNotFoundError,
    ServiceConfig,
    build_adapters,
    load_service_catalog,
)
from src.adapters.http import compile_route, template_fields

from conftest import RecordingUpstream


@pytest.fixture
def adapters(settings, upstream):
    return build_adapters(settings, upstream.client())


def _json(request: httpx.Request):
    return json.loads(request.content)


class TestRouteCompilation:
    """Tests for compiling REST route templates into patterns."""

    def test_placeholders_match_single_segments(self):
        """Test that each placeholder matches exactly one path segment."""
        route = compile_route(RouteConfig(name="issues", path="/issues/{org}/{project}", upstream_path="/x"))
        match = route.pattern.match("/issues/acme/web")
        assert match.groupdict() == {"org": "acme", "project": "web"}
        assert route.pattern.match("/issues/acme") is None
        assert route.pattern.match("/issues/acme/web/") is not None

    def test_template_fields(self):
        """Test extracting placeholder names from an upstream template."""
        assert template_fields("/customers/{customerId}/googleAds:searchStream") == ["customerId"]
        assert template_fields("") == []


class TestServiceCatalog:
    """Tests for loading the upstream service catalog."""

    def test_packaged_catalog(self):
        """Test that the packaged catalog lists every upstream service."""
        catalog = load_service_catalog()
        names = [service.name for service in catalog.services]
        assert len(names) == 16
        assert "meta_ads" in names
        prefixes = {service.rest_prefix for service in catalog.services}
        assert {"/meta-ads", "/google-ads", "/supabase"} <= prefixes

    def test_duplicate_prefix_rejected(self, tmp_path):
        """Test that two services sharing a REST prefix fail to load."""
        path = tmp_path / "services.yaml"
        path.write_text(
            "services:\n"
            "  - {name: a, rest_prefix: /a, credential: a}\n"
            "  - {name: b, rest_prefix: /a, credential: b}\n"
        )
        with pytest.raises(ValueError, match="duplicate REST prefix"):
            load_service_catalog(path)


class TestHttpServiceAdapter:
    """Tests for the generic HTTP service adapter."""

    def test_match_and_has_route(self, adapters):
        """Test route lookup by method and sub-path."""
        gmail = adapters["gmail"]
        route, params = gmail.match("GET", "/message/abc")
        assert route.name == "message"
        assert params == {"messageId": "abc"}
        assert gmail.has_route("POST", "/send")
        assert not gmail.has_route("GET", "/send")
        with pytest.raises(RouteNotFoundError) as exc_info:
            gmail.match("GET", "/nope")
        assert exc_info.value.message == "Unknown gmail endpoint"

    def test_path_params_are_unquoted(self, adapters):
        """Test that percent-encoded path values are decoded."""
        _, params = adapters["gmail"].match("GET", "/message/a%2Fb")
        assert params == {"messageId": "a/b"}

    @pytest.mark.asyncio
    async def test_bearer_auth_and_default_query(self, adapters, upstream):
        """Test bearer auth header and route default query values."""
        response = await adapters["gmail"].call(AdapterRequest(path="/inbox"), "tok")

        assert response.ok
        request = upstream.requests[0]
        assert request.headers["Authorization"] == "Bearer tok"
        assert request.url.path == "/gmail/v1/users/me/messages"
        assert request.url.params["maxResults"] == "20"
        assert request.url.params["q"] == "in:inbox"

    @pytest.mark.asyncio
    async def test_caller_query_overrides_defaults(self, adapters, upstream):
        """Test that caller query values win over route defaults."""
        await adapters["gmail"].call(AdapterRequest(path="/inbox", query={"maxResults": 5}), "tok")
        assert upstream.requests[0].url.params["maxResults"] == "5"

    @pytest.mark.asyncio
    async def test_query_auth(self, adapters, upstream):
        """Test services that pass the token as a query parameter."""
        await adapters["meta_ads"].call(AdapterRequest(path="/accounts"), "meta-tok")
        request = upstream.requests[0]
        assert request.url.params["access_token"] == "meta-tok"
        assert "Authorization" not in request.headers

    @pytest.mark.asyncio
    async def test_header_auth(self, adapters, upstream):
        """Test services that pass the token in a custom header."""
        await adapters["unipile"].call(AdapterRequest(path="/accounts"), "uni-tok")
        assert upstream.requests[0].headers["X-API-KEY"] == "uni-tok"

    @pytest.mark.asyncio
    async def test_token_auth(self, adapters, upstream):
        """Test services that use the Token authorization scheme."""
        await adapters["mem0"].call(AdapterRequest(method="POST", path="/search", body={"query": "x"}), "m-tok")
        assert upstream.requests[0].headers["Authorization"] == "Token m-tok"

    @pytest.mark.asyncio
    async def test_settings_query_and_headers(self, adapters, upstream):
        """Test query values and headers filled from settings."""
        await adapters["neon"].call(AdapterRequest(path="/projects"), "tok")
        assert upstream.requests[0].url.params["org_id"] == "org-1"

        await adapters["supabase"].call(AdapterRequest(path="/storage/buckets"), "svc")
        request = upstream.requests[1]
        assert request.headers["apikey"] == "service-key"
        assert str(request.url).startswith("https://project.supabase.test/storage/v1/bucket")

    @pytest.mark.asyncio
    async def test_placeholders_from_query_and_defaults(self, adapters, upstream):
        """Test placeholder values taken from the query and defaults."""
        await adapters["sheets"].call(AdapterRequest(path="/read", query={"spreadsheetId": "s1"}), "tok")
        request = upstream.requests[0]
        assert request.url.path == "/v4/spreadsheets/s1/values/Sheet1"
        assert "spreadsheetId" not in request.url.params

    @pytest.mark.asyncio
    async def test_placeholders_from_body_are_consumed(self, adapters, upstream):
        """Test that placeholder values are removed from the forwarded body."""
        await adapters["sheets"].call(
            AdapterRequest(
                method="POST",
                path="/write",
                body={"spreadsheetId": "s1", "range": "A1", "values": [[1]]},
            ),
            "tok",
        )
        request = upstream.requests[0]
        assert request.method == "PUT"
        assert request.url.path == "/v4/spreadsheets/s1/values/A1"
        assert _json(request) == {"values": [[1]]}

    @pytest.mark.asyncio
    async def test_missing_placeholder(self, adapters, upstream):
        """Test that an unfillable placeholder fails before any request."""
        with pytest.raises(InvalidAdapterRequestError):
            await adapters["sheets"].call(AdapterRequest(path="/metadata"), "tok")
        assert upstream.requests == []

    @pytest.mark.asyncio
    async def test_settings_params(self, adapters, upstream):
        """Test placeholders filled from settings."""
        await adapters["google_ads"].call(AdapterRequest(path="/campaigns"), "g-tok")
        request = upstream.requests[0]
        assert request.method == "POST"
        assert request.url.path == "/v14/customers/1234567890/googleAds:searchStream"
        assert request.headers["developer-token"] == "dev-token"
        assert "FROM campaign" in _json(request)["query"]

    def test_probe_request(self, adapters):
        """Test building the health probe request."""
        probe = adapters["neon"].probe_request()
        assert probe.url == "https://console.neon.tech/api/v2/projects"
        assert probe.query == {"limit": 1, "org_id": "org-1"}
        assert adapters["browser"].probe_request() is None

    def test_base_url_from_settings(self, adapters):
        """Test a base URL read from settings."""
        assert adapters["browser"].base_url == "https://browserless.test"

    def test_generic_adapter_for_plain_services(self, adapters):
        """Test that services without hooks use the generic adapter."""
        assert type(adapters["render"]) is HttpServiceAdapter


class TestServiceHooks:
    """Tests for per-service request and response hooks."""

    @pytest.mark.asyncio
    async def test_gmail_send_builds_raw_message(self, adapters, upstream):
        """Test that Gmail send encodes a MIME message."""
        await adapters["gmail"].call(
            AdapterRequest(method="POST", path="/send", body={"to": "a@example.com", "subject": "Hi", "body": "Hello"}),
            "tok",
        )
        raw = _json(upstream.requests[0])["raw"]
        message = message_from_bytes(base64.urlsafe_b64decode(raw + "=" * (-len(raw) % 4)))
        assert message["To"] == "a@example.com"
        assert message["Subject"] == "Hi"
        assert "Hello" in message.get_payload()

    @pytest.mark.asyncio
    async def test_calendar_events_default_time_min(self, adapters, upstream):
        """Test that calendar events default to upcoming events."""
        await adapters["calendar"].call(AdapterRequest(path="/events"), "tok")
        request = upstream.requests[0]
        assert request.url.path == "/calendar/v3/calendars/primary/events"
        assert "timeMin" in request.url.params

    @pytest.mark.asyncio
    async def test_drive_search_query(self, adapters, upstream):
        """Test building the Drive search expression."""
        await adapters["drive"].call(AdapterRequest(path="/search", query={"name": "report", "folderId": "f1"}), "tok")
        q = upstream.requests[0].url.params["q"]
        assert q == "trashed=false and name contains 'report' and 'f1' in parents"

    @pytest.mark.asyncio
    async def test_drive_move_removes_current_parents(self, settings):
        """Test that moving a file can detach it from its current folders."""
        recorder = RecordingUpstream()
        recorder.responses["fields=parents"] = httpx.Response(200, json={"parents": ["old-1", "old-2"]})
        drive = build_adapters(settings, recorder.client())["drive"]

        await drive.call(
            AdapterRequest(method="POST", path="/move", body={"fileId": "file-1", "folderId": "new", "removeFromCurrent": True}),
            "tok",
        )

        lookup, patch = recorder.requests
        assert lookup.method == "GET"
        assert patch.method == "PATCH"
        assert patch.url.path == "/drive/v3/files/file-1"
        assert patch.url.params["addParents"] == "new"
        assert patch.url.params["removeParents"] == "old-1,old-2"

    @pytest.mark.asyncio
    async def test_drive_create_folder_adds_link(self, adapters, upstream):
        """Test that a created folder carries its web link."""
        response = await adapters["drive"].call(AdapterRequest(method="POST", path="/folder", body={"name": "Reports"}), "tok")
        assert _json(upstream.requests[0])["mimeType"] == "application/vnd.google-apps.folder"
        assert response.json_body()["webViewLink"] == "https://drive.google.com/drive/folders/abc"

    @pytest.mark.asyncio
    async def test_docs_read_extracts_text(self, settings):
        """Test flattening a document body into plain text."""
        recorder = RecordingUpstream()
        recorder.responses["/documents/doc-9"] = httpx.Response(200, json={
            "documentId": "doc-9",
            "title": "Notes",
            "body": {"content": [
                {"paragraph": {"elements": [{"textRun": {"content": "Hello "}}]}},
                {"paragraph": {"elements": [{"textRun": {"content": "world"}}]}},
            ]},
        })
        docs = build_adapters(settings, recorder.client())["docs"]

        response = await docs.call(AdapterRequest(path="/read", query={"documentId": "doc-9"}), "tok")

        assert response.json_body() == {
            "title": "Notes",
            "content": "Hello world",
            "documentUrl": "https://docs.google.com/document/d/doc-9/edit",
        }

    @pytest.mark.asyncio
    async def test_docs_append_inserts_at_end(self, settings):
        """Test that appended text is inserted before the final newline."""
        recorder = RecordingUpstream()
        recorder.responses[":batchUpdate"] = httpx.Response(200, json={"replies": []})
        recorder.responses["/documents/doc-9"] = httpx.Response(200, json={
            "body": {"content": [{"endIndex": 1}, {"endIndex": 42}]},
        })
        docs = build_adapters(settings, recorder.client())["docs"]

        await docs.call(AdapterRequest(method="POST", path="/append", body={"documentId": "doc-9", "text": "more"}), "tok")

        fetch, update = recorder.requests
        assert fetch.method == "GET"
        insert = _json(update)["requests"][0]["insertText"]
        assert insert == {"location": {"index": 41}, "text": "\nmore"}

    @pytest.mark.asyncio
    async def test_sentry_project_slug(self, adapters, upstream):
        """Test slug and platform defaults for new Sentry projects."""
        await adapters["sentry"].call(
            AdapterRequest(method="POST", path="/teams/acme/core/projects", body={"name": "My App"}),
            "tok",
        )
        assert _json(upstream.requests[0]) == {"name": "My App", "slug": "my-app", "platform": "javascript"}

    @pytest.mark.asyncio
    async def test_google_ads_performance_window(self, adapters, upstream):
        """Test mapping a day count to a Google Ads date range."""
        await adapters["google_ads"].call(AdapterRequest(path="/performance", query={"days": "30"}), "tok")
        assert "LAST_30_DAYS" in _json(upstream.requests[0])["query"]

    @pytest.mark.asyncio
    async def test_google_ads_rejects_bad_days(self, adapters):
        """Test that a non-numeric day count is rejected."""
        with pytest.raises(InvalidAdapterRequestError):
            await adapters["google_ads"].call(AdapterRequest(path="/performance", query={"days": "week"}), "tok")

    @pytest.mark.asyncio
    async def test_supabase_filter_expansion(self, adapters, upstream):
        """Test expanding a filter string into PostgREST parameters."""
        await adapters["supabase"].call(
            AdapterRequest(path="/query/leads", query={"filter": "status=eq.active&owner=eq.me", "limit": 5}),
            "tok",
        )
        params = upstream.requests[0].url.params
        assert params["status"] == "eq.active"
        assert params["owner"] == "eq.me"
        assert params["limit"] == "5"
        assert params["select"] == "*"
        assert "filter" not in params

    @pytest.mark.asyncio
    async def test_supabase_rpc_defaults_to_empty_params(self, adapters, upstream):
        """Test that an RPC call without a body sends an empty object."""
        await adapters["supabase"].call(AdapterRequest(method="POST", path="/rpc/get_stats"), "tok")
        assert _json(upstream.requests[0]) == {}

    @pytest.mark.asyncio
    async def test_mem0_add_defaults_user(self, adapters, upstream):
        """Test that memories default to the configured user."""
        await adapters["mem0"].call(AdapterRequest(method="POST", path="/add", body={"content": "likes tea"}), "tok")
        body = _json(upstream.requests[0])
        assert body["user_id"] == "chi"
        assert body["messages"] == [{"role": "user", "content": "likes tea"}]

    @pytest.mark.asyncio
    async def test_mem0_search_requires_query(self, adapters):
        """Test that memory search without a query is rejected."""
        with pytest.raises(InvalidAdapterRequestError):
            await adapters["mem0"].call(AdapterRequest(method="POST", path="/search", body={}), "tok")


class TestAdapterResponse:
    """Tests for the adapter response model."""

    def test_from_data(self):
        """Test building a JSON response from a Python value."""
        response = AdapterResponse.from_data({"a": 1}, status_code=201)
        assert response.status_code == 201
        assert response.json_body() == {"a": 1}
        assert response.ok


def test_custom_service_config(settings, upstream):
    """Test an adapter built from an inline service config."""
    config = ServiceConfig(
        name="custom",
        rest_prefix="/custom",
        base_url="https://custom.test/",
        credential="render",
        routes=[RouteConfig(name="ping", path="/ping", upstream_path="/ping")],
    )
    adapter = HttpServiceAdapter(config, upstream.client(), settings)
    assert adapter.base_url == "https://custom.test"
    assert adapter.has_route("GET", "/ping")
