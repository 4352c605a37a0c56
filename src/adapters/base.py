"""Boundary types shared by the dispatcher and service adapters."""

import json
from typing import Any, Protocol

from pydantic import BaseModel, Field


class AdapterRequest(BaseModel):
    """Normalized internal request handed to an adapter.
    
    Attributes:
        method: HTTP method of the internal route.
        path: Internal path relative to the service prefix (e.g. "/inbox").
        query: Query parameters.
        body: JSON body, if any.
    """
    
    method: str = Field(default="GET", description="HTTP method")
    path: str = Field(..., description="Internal route path")
    query: dict[str, Any] = Field(default_factory=dict, description="Query parameters")
    body: Any | None = Field(default=None, description="JSON body")


class AdapterResponse(BaseModel):
    """Raw HTTP-like response returned by an adapter.
    
    Attributes:
        status_code: Upstream HTTP status.
        content: Raw body bytes.
        content_type: Media type of ``content``.
    """
    
    status_code: int
    content: bytes = b""
    content_type: str = "application/json"
    
    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300
    
    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")
    
    def json_body(self) -> Any:
        return json.loads(self.content)
    
    @classmethod
    def from_data(cls, data: Any, status_code: int = 200) -> "AdapterResponse":
        """Build a JSON response from a Python value."""
        return cls(status_code=status_code, content=json.dumps(data).encode("utf-8"))


class ServiceAdapter(Protocol):
    """Per-upstream translation layer.
    
    Attributes:
        name: Service name (e.g. "gmail").
        credential: Credential identity the adapter authenticates with.
        rest_prefix: REST fallback prefix (e.g. "/gmail").
    """
    
    name: str
    credential: str
    rest_prefix: str
    
    async def call(self, request: AdapterRequest, token: str) -> AdapterResponse:
        """Perform the upstream call for an internal request.
        
        Raises:
            RouteNotFoundError: If no route matches the request.
            InvalidAdapterRequestError: If required values are missing.
            httpx.HTTPError: On transport failures.
        """
        ...
    
    def has_route(self, method: str, path: str) -> bool:
        """Whether an internal route matches without calling upstream."""
        ...
