"""Dispatches tool calls to service adapters and shapes their results."""

import base64
from typing import Any, Mapping
from urllib.parse import quote

from src.adapters import (
    AdapterRequest,
    AdapterResponse,
    InvalidAdapterRequestError,
    InvalidToolArgumentsError,
    ServiceAdapter,
)
from src.adapters.http import template_fields
from src.audit import AuditContext, audit_tool_invocation
from src.credentials import CredentialCache, CredentialNotConfiguredError, TokenRefreshError
from src.registry import ToolDefinition, ToolRegistry

from .classifier import classify, is_oauth_service, service_from_name
from .schemas import ErrorCode, StructuredError, ToolContent, ToolResult, create_error


def _is_blank(value: Any) -> bool:
    return value is None or value == ""


def build_adapter_request(tool: ToolDefinition, arguments: dict[str, Any]) -> AdapterRequest:
    """Translate tool arguments into the internal request for its route.

    Args:
        tool: Tool being invoked.
        arguments: Caller-supplied arguments.

    Returns:
        AdapterRequest addressed to the tool's adapter.

    Raises:
        InvalidToolArgumentsError: If a required argument or path value is missing.
    """
    route = tool.route

    missing = [name for name in tool.required_arguments if _is_blank(arguments.get(name))]
    if missing:
        raise InvalidToolArgumentsError(tool.name, f"missing required arguments: {', '.join(missing)}")

    path_fields = template_fields(route.path)
    path_values: dict[str, str] = {}
    for field in path_fields:
        value = arguments.get(field)
        if _is_blank(value):
            raise InvalidToolArgumentsError(tool.name, f"missing '{field}'")
        path_values[field] = quote(str(value), safe="")

    query: dict[str, Any] = {}
    for param, binding in route.query.items():
        value = arguments.get(binding.arg)
        if _is_blank(value):
            value = binding.default
        if not _is_blank(value):
            query[param] = value

    body: Any | None = None
    if route.body == "arguments":
        body = {key: value for key, value in arguments.items() if key not in path_fields}
    elif route.body == "argument":
        body = arguments.get(route.body_argument)

    return AdapterRequest(
        method=route.method,
        path=route.path.format(**path_values),
        query=query,
        body=body,
    )


def shape_output(tool: ToolDefinition, response: AdapterResponse) -> ToolResult:
    """Turn a successful adapter response into the tool's output shape."""
    output = tool.route.output
    if output == "text":
        return ToolResult.text(response.text)

    mime_type = tool.route.mime_type or response.content_type
    encoded = base64.b64encode(response.content).decode("ascii")
    if output == "image":
        return ToolResult(content=[ToolContent(type="image", data=encoded, mimeType=mime_type)])
    return ToolResult(content=[ToolContent(
        type="resource",
        resource={"uri": f"data:{mime_type};base64,{encoded}", "mimeType": mime_type},
    )])


class Dispatcher:
    """Routes ``(tool name, arguments)`` to an adapter call.

    Every outcome, including unknown tools, bad arguments, credential
    failures and transport errors, is returned as a ToolResult; nothing
    raised below this layer reaches the transport.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        adapters: Mapping[str, ServiceAdapter],
        credentials: CredentialCache,
    ):
        """Initialize the dispatcher.

        Args:
            registry: Tool catalog.
            adapters: Adapter per service name.
            credentials: Token source for adapter calls.

        Raises:
            ValueError: If a tool routes to a service with no adapter.
        """
        unrouted = sorted(registry.services() - set(adapters))
        if unrouted:
            raise ValueError(f"tools route to unconfigured services: {', '.join(unrouted)}")
        self.registry = registry
        self.adapters = dict(adapters)
        self.credentials = credentials

    async def execute(
        self,
        tool_name: str,
        arguments: dict[str, Any] | None = None,
        request_id: str | None = None,
        endpoint_path: str = "/mcp",
    ) -> ToolResult:
        """Execute one tool call.

        Args:
            tool_name: Name of the tool to run.
            arguments: Tool arguments.
            request_id: Correlation ID for the audit log.
            endpoint_path: Surface the call arrived on.

        Returns:
            Success payload or structured error envelope.
        """
        async with audit_tool_invocation(
            tool=tool_name,
            request_id=request_id,
            endpoint_path=endpoint_path,
        ) as audit:
            return await self._execute(tool_name, arguments or {}, audit)

    @staticmethod
    def _fail(audit: AuditContext, error: StructuredError) -> ToolResult:
        audit.mark_error(error.code.value)
        return ToolResult.from_error(error)

    async def _execute(self, tool_name: str, arguments: dict[str, Any], audit: AuditContext) -> ToolResult:
        if not self.registry.has(tool_name):
            return self._fail(audit, create_error(
                ErrorCode.NOT_FOUND,
                f"Unknown tool: {tool_name}",
                "Check available tools with tools/list",
            ))

        tool = self.registry.get(tool_name)
        service = service_from_name(tool_name)
        audit.service = tool.route.service

        try:
            request = build_adapter_request(tool, arguments)
        except InvalidToolArgumentsError as e:
            return self._fail(audit, create_error(
                ErrorCode.INVALID_REQUEST, e.message, "Check the tool's inputSchema", service,
            ))

        adapter = self.adapters[tool.route.service]
        try:
            token = await self.credentials.get(adapter.credential)
        except TokenRefreshError as e:
            hint = (
                "Re-authenticate with Google OAuth"
                if is_oauth_service(service) or e.identity == "google"
                else f"Check {e.identity} credentials"
            )
            return self._fail(audit, create_error(ErrorCode.TOKEN_REFRESH_FAILED, e.message, hint, service))
        except CredentialNotConfiguredError as e:
            return self._fail(audit, create_error(
                ErrorCode.UNAUTHORIZED, e.message, f"Set {' and '.join(e.missing) or e.identity}", service,
            ))
        except Exception as e:
            return self._fail(audit, create_error(
                ErrorCode.TOKEN_REFRESH_FAILED,
                str(e) or e.__class__.__name__,
                f"Check {adapter.credential} credentials",
                service,
            ))

        try:
            response = await adapter.call(request, token)
        except InvalidAdapterRequestError as e:
            return self._fail(audit, create_error(
                ErrorCode.INVALID_REQUEST, e.message, "Check the tool's inputSchema", service,
            ))
        except Exception as e:
            return self._fail(audit, create_error(
                ErrorCode.NETWORK_ERROR,
                str(e) or e.__class__.__name__,
                "Check network connectivity",
                service,
            ))

        error = classify(tool_name, response)
        if error is not None:
            return self._fail(audit, error)
        return shape_output(tool, response)
