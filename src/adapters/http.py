"""Generic HTTP pass-through adapter driven by a service route table."""

import re
import string
from typing import Any, NamedTuple
from urllib.parse import quote, unquote

import httpx
from pydantic import BaseModel, Field

from src.config import Settings

from .base import AdapterRequest, AdapterResponse
from .config import ProbeConfig, RouteConfig, ServiceConfig
from .exceptions import InvalidAdapterRequestError, RouteNotFoundError


_PLACEHOLDER = re.compile(r"\{(\w+)\}")


class UpstreamRequest(BaseModel):
    """Fully resolved upstream call, before authentication is applied."""

    method: str
    url: str
    query: dict[str, Any] = Field(default_factory=dict)
    body: Any | None = None
    headers: dict[str, str] = Field(default_factory=dict)


class CompiledRoute(NamedTuple):
    config: RouteConfig
    pattern: re.Pattern[str]


def compile_route(route: RouteConfig) -> CompiledRoute:
    """Turn ``/message/{messageId}`` into an anchored regex with named groups."""
    regex = ""
    position = 0
    for match in _PLACEHOLDER.finditer(route.path):
        regex += re.escape(route.path[position:match.start()])
        regex += f"(?P<{match.group(1)}>[^/]+)"
        position = match.end()
    regex += re.escape(route.path[position:])
    return CompiledRoute(route, re.compile(f"^{regex}/?$"))


def template_fields(template: str) -> list[str]:
    """Placeholder names in a ``str.format`` template."""
    return [field for _, field, _, _ in string.Formatter().parse(template) if field]


class HttpServiceAdapter:
    """Translates internal requests into authenticated upstream REST calls.

    Subclasses customise individual routes with two optional hooks keyed by
    route name: ``prepare_<name>(upstream)`` returns a rewritten
    UpstreamRequest, and ``handle_<name>(upstream, token)`` replaces the
    single upstream call with its own sequence of calls.
    """

    def __init__(self, config: ServiceConfig, client: httpx.AsyncClient, settings: Settings):
        self.config = config
        self.name = config.name
        self.credential = config.credential
        self.rest_prefix = config.rest_prefix
        self.settings = settings
        self.timeout = settings.HTTP_TIMEOUT_SECONDS
        self._client = client
        self._routes = [compile_route(route) for route in config.routes]

        base_url = config.base_url
        if config.base_url_setting:
            base_url = getattr(settings, config.base_url_setting) or base_url
        self.base_url = base_url.rstrip("/")

    @property
    def probe(self) -> ProbeConfig | None:
        return self.config.probe

    def match(self, method: str, path: str) -> tuple[RouteConfig, dict[str, str]]:
        """Find the first route matching ``method`` and ``path``.

        Raises:
            RouteNotFoundError: If nothing matches.
        """
        path = path or "/"
        for route, pattern in self._routes:
            if route.method.upper() != method.upper():
                continue
            match = pattern.match(path)
            if match:
                return route, {name: unquote(value) for name, value in match.groupdict().items()}
        raise RouteNotFoundError(self.name, path)

    def has_route(self, method: str, path: str) -> bool:
        try:
            self.match(method, path)
        except RouteNotFoundError:
            return False
        return True

    def setting(self, name: str) -> str:
        return str(getattr(self.settings, name, "") or "")

    def _with_settings_query(self, query: dict[str, Any], settings_query: dict[str, str]) -> dict[str, Any]:
        for param, setting_name in settings_query.items():
            value = self.setting(setting_name)
            if value:
                query[param] = value
        return query

    def _absolute(self, path: str) -> str:
        return path if path.startswith(("http://", "https://")) else f"{self.base_url}{path}"

    def probe_request(self) -> UpstreamRequest | None:
        """Upstream request used by the health check, if the service has one."""
        if self.probe is None:
            return None
        return UpstreamRequest(
            method=self.probe.method.upper(),
            url=self._absolute(self.probe.path),
            query=self._with_settings_query(dict(self.probe.query), self.probe.settings_query),
            body=self.probe.body,
        )

    def build_upstream(
        self,
        route: RouteConfig,
        params: dict[str, str],
        request: AdapterRequest,
    ) -> UpstreamRequest:
        """Resolve the upstream URL, query and body for a matched route."""
        query = {k: v for k, v in request.query.items() if v is not None}
        body = request.body
        values: dict[str, Any] = {}

        for field in template_fields(route.upstream_path):
            if field in params:
                values[field] = params[field]
            elif field in query:
                values[field] = query.pop(field)
            elif isinstance(body, dict) and field in body:
                values[field] = body[field]
                body = {k: v for k, v in body.items() if k != field}
            elif field in route.settings_params:
                values[field] = self.setting(route.settings_params[field])
            elif field in route.defaults:
                values[field] = route.defaults[field]
            else:
                values[field] = None

            if values[field] is None or values[field] == "":
                raise InvalidAdapterRequestError(self.name, f"missing '{field}'")

        path = route.upstream_path.format(
            **{name: quote(str(value), safe="") for name, value in values.items()}
        )
        url = self._absolute(path)

        upstream = UpstreamRequest(
            method=(route.upstream_method or route.method).upper(),
            url=url,
            query=self._with_settings_query({**route.query, **query}, route.settings_query),
            body=route.body if route.body is not None else body,
            headers=dict(route.headers),
        )

        prepare = getattr(self, f"prepare_{route.name}", None)
        if prepare is not None:
            upstream = prepare(upstream)
        return upstream

    def auth_headers(self, token: str) -> dict[str, str]:
        headers = {
            header: self.setting(setting_name)
            for header, setting_name in self.config.settings_headers.items()
        }
        if self.config.auth == "bearer":
            headers["Authorization"] = f"Bearer {token}"
        elif self.config.auth == "token":
            headers["Authorization"] = f"Token {token}"
        elif self.config.auth == "header":
            headers[self.config.auth_param or "X-API-KEY"] = token
        return headers

    async def send(self, upstream: UpstreamRequest, token: str) -> AdapterResponse:
        """Issue one authenticated upstream call and capture the raw response."""
        query = dict(upstream.query)
        if self.config.auth == "query":
            query[self.config.auth_param or "access_token"] = token

        headers = {**self.auth_headers(token), **upstream.headers}
        kwargs: dict[str, Any] = {}
        if upstream.body is not None:
            kwargs["json"] = upstream.body

        response = await self._client.request(
            upstream.method,
            upstream.url,
            params=query,
            headers=headers,
            timeout=self.timeout,
            **kwargs,
        )
        return AdapterResponse(
            status_code=response.status_code,
            content=response.content,
            content_type=response.headers.get("content-type", "application/json"),
        )

    async def call(self, request: AdapterRequest, token: str) -> AdapterResponse:
        route, params = self.match(request.method, request.path)
        upstream = self.build_upstream(route, params, request)

        handler = getattr(self, f"handle_{route.name}", None)
        if handler is not None:
            return await handler(upstream, token)
        return await self.send(upstream, token)
