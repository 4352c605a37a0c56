"""Base exceptions for the gateway and gateway API key authentication."""


class GatewayBaseError(Exception):
    """Base exception for all gateway errors."""
    
    def __init__(self, message: str, code: str | None = None):
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(self.message)


class AuthenticationError(GatewayBaseError):
    """Raised when a REST caller fails gateway API key authentication."""
    
    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message=message, code="Unauthorized")


class MissingAPIKeyError(AuthenticationError):
    """Raised when the Authorization header is absent or malformed."""
    pass


class InvalidAPIKeyError(AuthenticationError):
    """Raised when the presented key does not match the gateway API key."""
    pass
