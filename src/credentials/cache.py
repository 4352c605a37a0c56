"""Credential cache with refresh-ahead semantics."""

import time
from typing import Callable, Mapping

import structlog
from pydantic import ValidationError

from .exceptions import CredentialNotConfiguredError, TokenRefreshError
from .providers import TokenProvider
from .schemas import CachedCredential
from .store import KeyValueStore

logger = structlog.get_logger("credentials")


# Tokens are renewed this long before their declared expiry
REFRESH_SKEW_MS = 60_000


def epoch_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


class CredentialCache:
    """Obtains and caches short-lived bearer tokens per credential identity.

    A cached token is served while ``now < expires_at - REFRESH_SKEW_MS``;
    otherwise it is refreshed through the identity's provider and written
    back to the store.

    Concurrent ``get`` calls for the same expired identity may each refresh.
    Refreshes are idempotent and the store is last-write-wins, so duplicate
    refreshes cost an extra token exchange but never expose a torn value.
    """

    def __init__(
        self,
        store: KeyValueStore,
        providers: Mapping[str, TokenProvider],
        clock: Callable[[], int] = epoch_ms,
    ):
        """Initialize the cache.

        Args:
            store: Backing key-value store.
            providers: Token provider per identity.
            clock: Returns the current time in epoch milliseconds.
        """
        self._store = store
        self._providers = dict(providers)
        self._clock = clock

    @staticmethod
    def cache_key(identity: str) -> str:
        return f"credential:{identity}"

    def has_identity(self, identity: str) -> bool:
        return identity in self._providers

    def missing_secrets(self, identity: str) -> list[str]:
        """Names of unset secrets for an identity (empty when configured)."""
        provider = self._providers.get(identity)
        if provider is None:
            return [identity]
        return provider.missing_secrets()

    async def peek(self, identity: str) -> CachedCredential | None:
        """Return the stored credential without refreshing it."""
        raw = await self._store.get(self.cache_key(identity))
        if raw is None:
            return None
        try:
            return CachedCredential.model_validate_json(raw)
        except ValidationError:
            logger.warning("credential_cache_corrupt", identity=identity)
            return None

    async def put(self, identity: str, token: str, expires_in: int) -> CachedCredential:
        """Store a token that expires ``expires_in`` seconds from now."""
        credential = CachedCredential(
            token=token,
            expires_at_epoch_ms=self._clock() + expires_in * 1000,
        )
        await self._store.put(
            self.cache_key(identity),
            credential.model_dump_json(),
            ttl_seconds=expires_in,
        )
        return credential

    async def get(self, identity: str) -> str:
        """Return a usable token for ``identity``, refreshing if needed.

        Args:
            identity: Credential identity (e.g. "google").

        Returns:
            Bearer token string.

        Raises:
            CredentialNotConfiguredError: If the identity has no usable secrets.
            TokenRefreshError: If the refresh exchange fails.
        """
        cached = await self.peek(identity)
        if cached is not None and self._clock() < cached.expires_at_epoch_ms - REFRESH_SKEW_MS:
            return cached.token
        return await self.refresh(identity)

    async def refresh(self, identity: str) -> str:
        """Unconditionally fetch and store a new token for ``identity``."""
        provider = self._providers.get(identity)
        if provider is None:
            raise CredentialNotConfiguredError(identity, [])

        try:
            grant = await provider.fetch_token()
            await self.put(identity, grant.token, grant.expires_in)
        except CredentialNotConfiguredError:
            raise
        except TokenRefreshError as e:
            logger.warning("credential_refresh_failed", identity=identity, reason=e.reason)
            raise
        except Exception as e:
            logger.warning("credential_refresh_failed", identity=identity, reason=str(e))
            raise TokenRefreshError(identity, str(e) or e.__class__.__name__) from e

        logger.info("credential_refreshed", identity=identity, expires_in=grant.expires_in)
        return grant.token
