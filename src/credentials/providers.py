"""Token providers that exchange long-lived secrets for bearer tokens."""

from typing import Protocol

import httpx

from src.config import Settings

from .exceptions import CredentialNotConfiguredError, TokenRefreshError
from .schemas import TokenGrant


# Lifetime given to static API keys so they are re-read periodically
STATIC_TOKEN_LIFETIME_SECONDS = 3600

# Used when an OAuth token response omits expires_in
DEFAULT_OAUTH_EXPIRES_IN = 3600

GOOGLE_IDENTITY = "google"

# Identity -> setting holding its API key
STATIC_SECRET_SETTINGS: dict[str, str] = {
    "render": "RENDER_API_KEY",
    "sentry": "SENTRY_AUTH_TOKEN",
    "neon": "NEON_API_KEY",
    "mercury": "MERCURY_API_TOKEN",
    "netlify": "NETLIFY_AUTH_TOKEN",
    "meta": "META_ACCESS_TOKEN",
    "browserless": "BROWSERLESS_TOKEN",
    "unipile": "UNIPILE_API_KEY",
    "supabase": "SUPABASE_SERVICE_KEY",
    "mem0": "MEM0_API_KEY",
}


class TokenProvider(Protocol):
    """Source of tokens for one credential identity."""

    identity: str

    def missing_secrets(self) -> list[str]:
        """Names of required secrets that are unset."""
        ...

    async def fetch_token(self) -> TokenGrant:
        """Obtain a fresh token.

        Raises:
            CredentialNotConfiguredError: If required secrets are unset.
            TokenRefreshError: If the exchange fails.
        """
        ...


class StaticSecretProvider:
    """Serves a configured API key as the bearer token."""

    def __init__(
        self,
        identity: str,
        secret_name: str,
        secret: str,
        lifetime_seconds: int = STATIC_TOKEN_LIFETIME_SECONDS,
    ):
        self.identity = identity
        self.secret_name = secret_name
        self._secret = secret
        self.lifetime_seconds = lifetime_seconds

    def missing_secrets(self) -> list[str]:
        return [] if self._secret else [self.secret_name]

    async def fetch_token(self) -> TokenGrant:
        if not self._secret:
            raise CredentialNotConfiguredError(self.identity, [self.secret_name])
        return TokenGrant(token=self._secret, expires_in=self.lifetime_seconds)


class GoogleOAuthProvider:
    """Exchanges a Google OAuth refresh token for an access token."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        client_id: str,
        client_secret: str,
        refresh_token: str,
        token_url: str = "https://oauth2.googleapis.com/token",
        timeout: float = 30.0,
        identity: str = GOOGLE_IDENTITY,
    ):
        self.identity = identity
        self._client = client
        self._client_id = client_id
        self._client_secret = client_secret
        self._refresh_token = refresh_token
        self.token_url = token_url
        self.timeout = timeout

    def missing_secrets(self) -> list[str]:
        required = {
            "GOOGLE_CLIENT_ID": self._client_id,
            "GOOGLE_CLIENT_SECRET": self._client_secret,
            "GOOGLE_REFRESH_TOKEN": self._refresh_token,
        }
        return [name for name, value in required.items() if not value]

    async def fetch_token(self) -> TokenGrant:
        missing = self.missing_secrets()
        if missing:
            raise CredentialNotConfiguredError(self.identity, missing)

        response = await self._client.post(
            self.token_url,
            data={
                "client_id": self._client_id,
                "client_secret": self._client_secret,
                "refresh_token": self._refresh_token,
                "grant_type": "refresh_token",
            },
            timeout=self.timeout,
        )
        if response.status_code >= 400:
            raise TokenRefreshError(
                self.identity,
                f"HTTP {response.status_code}: {response.text[:200]}",
            )

        try:
            data = response.json()
            token = data["access_token"]
            expires_in = int(data.get("expires_in") or DEFAULT_OAUTH_EXPIRES_IN)
        except (ValueError, KeyError, TypeError, AttributeError):
            raise TokenRefreshError(self.identity, "malformed token response")

        if not isinstance(token, str) or not token:
            raise TokenRefreshError(self.identity, "token response has no access_token")
        return TokenGrant(token=token, expires_in=expires_in)


def build_token_providers(
    settings: Settings,
    client: httpx.AsyncClient,
) -> dict[str, TokenProvider]:
    """Build one provider per credential identity from settings.

    Args:
        settings: Application settings holding upstream secrets.
        client: Shared HTTP client used for OAuth exchanges.

    Returns:
        Mapping of identity to provider.
    """
    providers: dict[str, TokenProvider] = {
        GOOGLE_IDENTITY: GoogleOAuthProvider(
            client=client,
            client_id=settings.GOOGLE_CLIENT_ID,
            client_secret=settings.GOOGLE_CLIENT_SECRET,
            refresh_token=settings.GOOGLE_REFRESH_TOKEN,
            token_url=settings.GOOGLE_TOKEN_URL,
            timeout=settings.HTTP_TIMEOUT_SECONDS,
        ),
    }
    for identity, setting_name in STATIC_SECRET_SETTINGS.items():
        providers[identity] = StaticSecretProvider(
            identity=identity,
            secret_name=setting_name,
            secret=getattr(settings, setting_name),
        )
    return providers
