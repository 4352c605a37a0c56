"""FastAPI dependencies for gateway API key authentication."""

import hmac
from typing import Annotated

from fastapi import Depends, Header

from src.config import Settings, get_settings

from .exceptions import InvalidAPIKeyError, MissingAPIKeyError


async def get_api_key_from_header(authorization: Annotated[str | None, Header()] = None) -> str:
    """Extract the gateway API key from the Authorization header.
    
    Args:
        authorization: Authorization header value (format: 'Bearer <key>').
        
    Returns:
        The presented API key.
        
    Raises:
        MissingAPIKeyError: If header is missing or malformed.
    """
    if not authorization:
        raise MissingAPIKeyError("Missing Authorization header")
    
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise MissingAPIKeyError("Invalid Authorization header format. Expected: 'Bearer <key>'")
    
    return parts[1]


async def require_gateway_api_key(
    api_key: Annotated[str, Depends(get_api_key_from_header)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> None:
    """Reject the request unless it carries the configured gateway API key.
    
    An unset ``GATEWAY_API_KEY`` rejects every REST call.
    
    Raises:
        InvalidAPIKeyError: If the key does not match.
    """
    expected = settings.GATEWAY_API_KEY
    if not expected or not hmac.compare_digest(api_key.encode(), expected.encode()):
        raise InvalidAPIKeyError("Invalid gateway API key")
