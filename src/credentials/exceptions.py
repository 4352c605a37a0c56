"""Exceptions raised while resolving upstream credentials."""

from src.auth.exceptions import GatewayBaseError


class CredentialError(GatewayBaseError):
    """Base exception for credential resolution failures.
    
    Attributes:
        identity: Credential identity that could not be resolved.
    """
    
    def __init__(self, identity: str, message: str, code: str):
        super().__init__(message=message, code=code)
        self.identity = identity


class TokenRefreshError(CredentialError):
    """Raised when exchanging a long-lived secret for a token fails.
    
    Attributes:
        identity: Credential identity being refreshed.
        reason: Description of the failure.
    """
    
    def __init__(self, identity: str, reason: str):
        super().__init__(
            identity=identity,
            message=f"Token refresh failed for '{identity}': {reason}",
            code="TOKEN_REFRESH_FAILED",
        )
        self.reason = reason


class CredentialNotConfiguredError(CredentialError):
    """Raised when the secrets backing an identity are not configured.
    
    Attributes:
        identity: Credential identity.
        missing: Names of the unset secrets.
    """
    
    def __init__(self, identity: str, missing: list[str]):
        names = ", ".join(missing) or identity
        super().__init__(
            identity=identity,
            message=f"{names} not configured",
            code="UNAUTHORIZED",
        )
        self.missing = missing
