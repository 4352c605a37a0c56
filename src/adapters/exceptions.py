"""Exceptions raised by service adapters."""

from src.auth.exceptions import GatewayBaseError


class AdapterError(GatewayBaseError):
    """Base exception for adapter-level failures."""
    pass


class RouteNotFoundError(AdapterError):
    """Raised when no adapter route matches an internal request.
    
    Attributes:
        service: Service whose route table was searched.
        path: Internal path that did not match.
    """
    
    def __init__(self, service: str, path: str):
        super().__init__(
            message=f"Unknown {service} endpoint",
            code="NOT_FOUND",
        )
        self.service = service
        self.path = path


class InvalidAdapterRequestError(AdapterError):
    """Raised when an internal request lacks values the upstream call needs.
    
    Attributes:
        service: Service the request was addressed to.
        detail: What was missing or malformed.
    """
    
    def __init__(self, service: str, detail: str):
        super().__init__(
            message=f"Invalid {service} request: {detail}",
            code="INVALID_REQUEST",
        )
        self.service = service
        self.detail = detail


class InvalidToolArgumentsError(AdapterError):
    """Raised when tool arguments cannot be bound to a tool route.
    
    Attributes:
        tool: Tool whose arguments were rejected.
        detail: What was missing or malformed.
    """
    
    def __init__(self, tool: str, detail: str):
        super().__init__(
            message=f"Invalid arguments for {tool}: {detail}",
            code="INVALID_REQUEST",
        )
        self.tool = tool
        self.detail = detail
