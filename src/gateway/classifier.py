"""Maps upstream HTTP statuses onto the structured error taxonomy.

Classification is pure: it inspects a response that has already been
obtained and never performs I/O.
"""

from typing import Protocol

from .schemas import ErrorCode, StructuredError, create_error


GOOGLE_OAUTH_SERVICES = frozenset({"gmail", "calendar", "drive", "sheets", "docs"})


class HasStatus(Protocol):
    status_code: int


def service_from_name(tool_or_service: str) -> str:
    """Leading segment of a tool name up to the first underscore.

    ``gmail_inbox`` -> ``gmail``; a bare service name is returned unchanged.
    """
    return tool_or_service.split("_", 1)[0]


def is_oauth_service(service: str) -> bool:
    """Whether the service authenticates with the auto-refreshed Google token."""
    return service.startswith("google") or service in GOOGLE_OAUTH_SERVICES


def classify(tool_or_service: str, response: HasStatus) -> StructuredError | None:
    """Classify an adapter response, first match wins.

    Args:
        tool_or_service: Tool name (or service name) the call was made for.
        response: Anything exposing ``status_code``.

    Returns:
        A StructuredError for 401/403/429/5xx, otherwise None so the body
        is passed through unchanged.
    """
    service = service_from_name(tool_or_service)
    status = response.status_code

    if status == 401:
        if is_oauth_service(service):
            hint = "Google token may be expired - will auto-refresh on next request"
        else:
            hint = f"Check {service.upper()}_API_KEY or token"
        return create_error(
            ErrorCode.UNAUTHORIZED,
            f"Authentication failed for {service}",
            hint,
            service,
        )

    if status == 403:
        return create_error(
            ErrorCode.UNAUTHORIZED,
            f"Access denied for {service}",
            "Check API permissions or scopes",
            service,
        )

    if status == 429:
        return create_error(
            ErrorCode.RATE_LIMITED,
            f"Rate limit exceeded for {service}",
            "Wait a few minutes before retrying",
            service,
        )

    if status >= 500:
        return create_error(
            ErrorCode.SERVICE_UNAVAILABLE,
            f"{service} service is temporarily unavailable",
            "Retry in a few seconds",
            service,
        )

    return None
