"""Pydantic schemas for cached credentials."""

from typing import NamedTuple

from pydantic import BaseModel, Field


class CachedCredential(BaseModel):
    """A short-lived bearer token with its absolute expiry.
    
    Attributes:
        token: Opaque bearer token.
        expires_at_epoch_ms: Expiry as milliseconds since the Unix epoch.
    """
    
    token: str = Field(..., description="Opaque bearer token")
    expires_at_epoch_ms: int = Field(..., description="Expiry in epoch milliseconds")


class TokenGrant(NamedTuple):
    """Token issued by a provider.
    
    Attributes:
        token: Opaque bearer token.
        expires_in: Lifetime in seconds.
    """
    
    token: str
    expires_in: int
