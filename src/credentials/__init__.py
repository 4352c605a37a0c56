"""Credential module - cached upstream tokens with refresh-ahead."""

from .cache import CredentialCache, REFRESH_SKEW_MS, epoch_ms
from .exceptions import CredentialError, TokenRefreshError, CredentialNotConfiguredError
from .providers import (
    TokenProvider,
    StaticSecretProvider,
    GoogleOAuthProvider,
    build_token_providers,
)
from .schemas import CachedCredential, TokenGrant
from .store import KeyValueStore, MemoryKeyValueStore


__all__ = [
    "CredentialCache",
    "REFRESH_SKEW_MS",
    "epoch_ms",
    "CredentialError",
    "TokenRefreshError",
    "CredentialNotConfiguredError",
    "TokenProvider",
    "StaticSecretProvider",
    "GoogleOAuthProvider",
    "build_token_providers",
    "CachedCredential",
    "TokenGrant",
    "KeyValueStore",
    "MemoryKeyValueStore",
]
