# Test configuration
import sys
from pathlib import Path

import httpx
import pytest

REPO_ROOT = Path(__file__).parent.parent

# Add repo root to path so tests can import modules
sys.path.insert(0, str(REPO_ROOT))

from src.config import Settings  # noqa: E402


GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"

ALL_SECRETS = {
    "GATEWAY_API_KEY": "gateway-test-key",
    "GOOGLE_CLIENT_ID": "client-id",
    "GOOGLE_CLIENT_SECRET": "client-secret",
    "GOOGLE_REFRESH_TOKEN": "refresh-token",
    "GOOGLE_ADS_DEVELOPER_TOKEN": "dev-token",
    "GOOGLE_ADS_CUSTOMER_ID": "1234567890",
    "RENDER_API_KEY": "render-key",
    "SENTRY_AUTH_TOKEN": "sentry-key",
    "NEON_API_KEY": "neon-key",
    "NEON_ORG_ID": "org-1",
    "MERCURY_API_TOKEN": "mercury-key",
    "NETLIFY_AUTH_TOKEN": "netlify-key",
    "META_ACCESS_TOKEN": "meta-key",
    "BROWSERLESS_TOKEN": "browserless-key",
    "BROWSERLESS_URL": "https://browserless.test",
    "UNIPILE_API_KEY": "unipile-key",
    "SUPABASE_URL": "https://project.supabase.test",
    "SUPABASE_ANON_KEY": "anon-key",
    "SUPABASE_SERVICE_KEY": "service-key",
    "MEM0_API_KEY": "mem0-key",
}


def make_settings(**overrides) -> Settings:
    """Settings with every upstream secret configured, ignoring the environment file."""
    return Settings(_env_file=None, **{**ALL_SECRETS, **overrides})


class RecordingUpstream:
    """httpx.MockTransport handler that records requests.

    Google token exchanges are answered with a fresh access token; every
    other request gets ``status_code`` with a small JSON body unless a
    route-specific response was registered.
    """

    def __init__(self, status_code: int = 200):
        self.status_code = status_code
        self.requests: list[httpx.Request] = []
        self.token_requests: list[httpx.Request] = []
        self.responses: dict[str, httpx.Response] = {}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if str(request.url) == GOOGLE_TOKEN_URL:
            self.token_requests.append(request)
            return httpx.Response(200, json={"access_token": "google-access", "expires_in": 3600})

        self.requests.append(request)
        for fragment, response in self.responses.items():
            if fragment in str(request.url):
                return response
        return httpx.Response(
            self.status_code,
            json={"id": "abc", "documentId": "doc-1", "spreadsheetId": "sheet-1"},
        )

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def upstream() -> RecordingUpstream:
    return RecordingUpstream()
