"""Static upstream service catalog loader."""

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field


class RouteConfig(BaseModel):
    """One internal route of a service and the upstream call it maps to.

    ``upstream_path`` placeholders are filled from the matched path
    parameters, then from query or body keys of the same name (which are
    consumed), then from ``settings_params``, then from ``defaults``.
    """

    name: str
    method: str = "GET"
    path: str
    upstream_path: str
    upstream_method: str | None = None
    query: dict[str, Any] = Field(default_factory=dict)
    defaults: dict[str, Any] = Field(default_factory=dict)
    body: Any | None = None
    headers: dict[str, str] = Field(default_factory=dict)
    settings_query: dict[str, str] = Field(default_factory=dict)
    settings_params: dict[str, str] = Field(default_factory=dict)


class ProbeConfig(BaseModel):
    """Minimal authenticated request used by the health check."""

    method: str = "GET"
    path: str
    query: dict[str, Any] = Field(default_factory=dict)
    body: Any | None = None
    settings_query: dict[str, str] = Field(default_factory=dict)
    ok_statuses: list[int] = Field(default_factory=list)


class ServiceConfig(BaseModel):
    """Upstream service definition loaded from static config."""

    name: str
    rest_prefix: str
    base_url: str = ""
    base_url_setting: str | None = None
    credential: str
    auth: Literal["bearer", "token", "query", "header"] = "bearer"
    auth_param: str | None = None
    settings_headers: dict[str, str] = Field(default_factory=dict)
    secrets: list[str] = Field(default_factory=list)
    aliases: list[str] = Field(default_factory=list)
    hint: str | None = None
    degraded: str | None = None
    degraded_hint: str | None = None
    monitored: bool = True
    probe: ProbeConfig | None = None
    routes: list[RouteConfig] = Field(default_factory=list)


class ServiceCatalog(BaseModel):
    """Container for service definitions."""

    services: list[ServiceConfig] = Field(default_factory=list)


def load_service_catalog(config_path: str | Path | None = None) -> ServiceCatalog:
    """Load the service catalog from YAML.

    Args:
        config_path: Optional custom path for the service catalog.

    Returns:
        Parsed ServiceCatalog, or an empty catalog if the file is missing.

    Raises:
        ValueError: If two services share a name or REST prefix.
    """
    if config_path is None:
        config_path = Path(__file__).parent / "services.yaml"
    else:
        config_path = Path(config_path)

    if not config_path.exists():
        return ServiceCatalog()

    with config_path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}

    catalog = ServiceCatalog(**data)

    seen_names: set[str] = set()
    seen_prefixes: set[str] = set()
    for service in catalog.services:
        if service.name in seen_names:
            raise ValueError(f"duplicate service name in config: {service.name}")
        if service.rest_prefix in seen_prefixes:
            raise ValueError(f"duplicate REST prefix in config: {service.rest_prefix}")
        seen_names.add(service.name)
        seen_prefixes.add(service.rest_prefix)

    return catalog
