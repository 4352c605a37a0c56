"""Gateway API key authentication for the REST fallback surface."""

from .exceptions import (
    GatewayBaseError,
    AuthenticationError,
    MissingAPIKeyError,
    InvalidAPIKeyError,
)
from .dependencies import get_api_key_from_header, require_gateway_api_key


__all__ = [
    "GatewayBaseError",
    "AuthenticationError",
    "MissingAPIKeyError",
    "InvalidAPIKeyError",
    "get_api_key_from_header",
    "require_gateway_api_key",
]
