"""Adapter module - per-service translation to upstream REST calls."""

from .base import AdapterRequest, AdapterResponse, ServiceAdapter
from .config import (
    RouteConfig,
    ProbeConfig,
    ServiceConfig,
    ServiceCatalog,
    load_service_catalog,
)
from .exceptions import (
    AdapterError,
    RouteNotFoundError,
    InvalidAdapterRequestError,
    InvalidToolArgumentsError,
)
from .http import HttpServiceAdapter, UpstreamRequest
from .services import ADAPTER_TYPES, build_adapters


__all__ = [
    "AdapterRequest",
    "AdapterResponse",
    "ServiceAdapter",
    "RouteConfig",
    "ProbeConfig",
    "ServiceConfig",
    "ServiceCatalog",
    "load_service_catalog",
    "AdapterError",
    "RouteNotFoundError",
    "InvalidAdapterRequestError",
    "InvalidToolArgumentsError",
    "HttpServiceAdapter",
    "UpstreamRequest",
    "ADAPTER_TYPES",
    "build_adapters",
]
