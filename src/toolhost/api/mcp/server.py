"""MCP server: composition root and method dispatch.

``McpServer`` owns one registry per entity kind, the declared capabilities,
the notification queue, the session store and the per-request cancellation
tokens. ``dispatch`` is the only place typed errors become error envelopes.
"""

import functools
import logging
from collections.abc import Callable, Mapping
from typing import Any

from toolhost import __version__
from toolhost.core.config.settings import Settings, get_settings
from toolhost.core.mcp.cancellation import CancellationManager, CancellationToken
from toolhost.core.mcp.capabilities import CapabilitySet
from toolhost.core.mcp.constants import (
    LATEST_PROTOCOL_VERSION,
    NOTIFY_CANCELLED,
    NOTIFY_INITIALIZED,
    SUPPORTED_PROTOCOL_VERSIONS,
    ErrorCode,
)
from toolhost.core.mcp.exceptions import (
    InternalError,
    InvalidParamsError,
    McpError,
    ProtocolError,
)
from toolhost.core.mcp.notifications import NotificationQueue
from toolhost.core.mcp.protocols import (
    FaultSink,
    ResourceHandler,
    ResourceProvider,
    ToolHandler,
    ToolProvider,
)
from toolhost.core.mcp.registry import DuplicatePolicy, accepts_keyword
from toolhost.core.mcp.schema import Schema, SchemaLike
from toolhost.core.mcp.session import SessionManager
from toolhost.servers.prompts.registry import Prompt, PromptRegistry
from toolhost.servers.resources.registry import (
    DEFAULT_MIME_TYPE,
    Resource,
    ResourceRegistry,
    ResourceTemplate,
)
from toolhost.servers.resources.uri_template import UriTemplate
from toolhost.servers.tools.registry import Tool, ToolRegistry
from toolhost.utils.schema import schema_from_function

from .results import shape_prompt_result, shape_resource_contents, shape_tool_result

logger = logging.getLogger(__name__)

RequestHandler = Callable[[dict[str, Any], CancellationToken], dict[str, Any]]

# Methods accepted before initialize when initialization is required
PRE_INIT_METHODS = frozenset({"initialize", "ping"})


def error_response(code: ErrorCode, message: str, kind: str) -> dict[str, Any]:
    return {"error": {"code": int(code), "message": message, "data": {"kind": kind}}}


def _require_str(params: Mapping[str, Any], key: str) -> str:
    value = params.get(key)
    if not isinstance(value, str) or not value:
        raise InvalidParamsError(f"Missing required parameter '{key}'")
    return value


def _arguments(params: Mapping[str, Any]) -> dict[str, Any]:
    arguments = params.get("arguments")
    if arguments is None:
        return {}
    if not isinstance(arguments, Mapping):
        raise InvalidParamsError("'arguments' must be an object")
    return dict(arguments)


def _keyword_handler(func: Callable[..., Any]) -> Callable[..., Any]:
    """Adapt ``func(**arguments)`` to the ``handler(arguments)`` convention."""
    if accepts_keyword(func, "token"):

        def handler(arguments: dict[str, Any], token: CancellationToken) -> Any:
            return func(**arguments, token=token)

    else:

        def handler(arguments: dict[str, Any]) -> Any:  # type: ignore[misc]
            return func(**arguments)

    handler.__name__ = getattr(func, "__name__", "handler")
    return handler


class McpServer:
    """Hosts tools, resources and prompts behind MCP method names."""

    def __init__(
        self,
        name: str = "toolhost",
        version: str = __version__,
        *,
        instructions: str | None = None,
        capabilities: CapabilitySet | Mapping[str, Any] | None = None,
        duplicate_policy: DuplicatePolicy | str = DuplicatePolicy.REPLACE,
        require_initialize: bool = False,
        fault_sink: FaultSink | None = None,
    ):
        """Initialize the server.

        Args:
            name: Server name reported in ``serverInfo``
            version: Server version reported in ``serverInfo``
            instructions: Optional usage instructions returned by ``initialize``
            capabilities: Capabilities declared on top of the derived ones
            duplicate_policy: What registering an existing name does
            require_initialize: Reject other methods until ``initialize`` succeeded
            fault_sink: Receives failures of isolated cancellation callbacks
        """
        self.name = name
        self.version = version
        self.instructions = instructions
        self.require_initialize = require_initialize

        self.notifications = NotificationQueue()
        self.sessions = SessionManager()
        self.cancellations = CancellationManager(fault_sink=fault_sink)
        self.tools = ToolRegistry(self.notifications, duplicate_policy=duplicate_policy)
        self.resources = ResourceRegistry(self.notifications, duplicate_policy=duplicate_policy)
        self.prompts = PromptRegistry(self.notifications, duplicate_policy=duplicate_policy)

        if isinstance(capabilities, CapabilitySet):
            self._declared = capabilities.model_copy(deep=True)
        else:
            self._declared = CapabilitySet.from_dict(capabilities)

        self.initialized = False
        self.client_ready = False
        self.client_capabilities: CapabilitySet | None = None
        self.client_info: dict[str, Any] | None = None
        self.protocol_version: str | None = None

        self._handlers: dict[str, RequestHandler] = {
            "initialize": self._initialize,
            "ping": self._ping,
            "tools/list": self._list_tools,
            "tools/call": self._call_tool,
            "resources/list": self._list_resources,
            "resources/templates/list": self._list_resource_templates,
            "resources/read": self._read_resource,
            "resources/subscribe": self._subscribe,
            "resources/unsubscribe": self._unsubscribe,
            "prompts/list": self._list_prompts,
            "prompts/get": self._get_prompt,
        }

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "McpServer":
        """Build a server from ``Settings`` (environment and .env by default)."""
        settings = settings or get_settings()
        server = cls(
            name=settings.server.server_name,
            version=settings.server.server_version,
            instructions=settings.server.instructions,
            duplicate_policy=settings.server.duplicate_policy,
            require_initialize=settings.server.require_initialize,
        )
        if settings.server.prompts_dir:
            server.prompts.load_directory(settings.server.prompts_dir)
        return server

    # Capabilities

    @property
    def capabilities(self) -> CapabilitySet:
        """Capabilities announced in ``initialize``.

        Every non-empty registry contributes ``{kind: {"listChanged": true}}``;
        declared capabilities are merged over that.
        """
        derived = CapabilitySet()
        if len(self.tools):
            derived.set("tools", {"listChanged": True})
        if len(self.resources) or self.resources.templates():
            derived.set("resources", {"listChanged": True})
        if len(self.prompts):
            derived.set("prompts", {"listChanged": True})
        return derived.merge(self._declared)

    def register_capabilities(self, capabilities: CapabilitySet | Mapping[str, Any]) -> CapabilitySet:
        """Merge ``capabilities`` into the declared set and return the result."""
        if not isinstance(capabilities, CapabilitySet):
            capabilities = CapabilitySet.from_dict(capabilities)
        self._declared = self._declared.merge(capabilities)
        return self._declared

    def enable_resource_subscriptions(self) -> None:
        self.register_capabilities({"resources": {"subscribe": True, "listChanged": True}})

    def enable_logging(self) -> None:
        self.register_capabilities({"logging": {}})

    # Registration

    def register_tool(
        self,
        name: str,
        schema: SchemaLike,
        handler: ToolHandler,
        *,
        description: str | None = None,
    ) -> Tool:
        return self.tools.register(name, schema, handler, description=description)

    def register_resource(
        self,
        name: str,
        uri: str,
        handler: ResourceHandler,
        *,
        description: str | None = None,
        mime_type: str = DEFAULT_MIME_TYPE,
    ) -> Resource:
        return self.resources.register(
            name, uri, handler, description=description, mime_type=mime_type
        )

    def register_resource_template(
        self,
        name: str,
        uri_pattern: str,
        handler: ResourceHandler,
        *,
        description: str | None = None,
        mime_type: str = DEFAULT_MIME_TYPE,
    ) -> ResourceTemplate:
        return self.resources.register_template(
            name, uri_pattern, handler, description=description, mime_type=mime_type
        )

    def register_prompt(
        self,
        name: str,
        schema: SchemaLike,
        handler: Callable[..., Any],
        *,
        description: str | None = None,
    ) -> Prompt:
        return self.prompts.register(name, schema, handler, description=description)

    def unregister_tool(self, name: str) -> bool:
        return self.tools.remove(name)

    def unregister_resource(self, name: str) -> bool:
        return self.resources.remove(name)

    def unregister_resource_template(self, name: str) -> bool:
        return self.resources.remove_template(name)

    def unregister_prompt(self, name: str) -> bool:
        return self.prompts.remove(name)

    def tool(
        self, name: str | None = None, description: str | None = None
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Decorator registering a function as a tool.

        The schema comes from the signature and the docstring's ``Args:``
        section; the function is called with the arguments as keywords.
        """

        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            self.tools.register(
                name or func.__name__,
                schema_from_function(func),
                _keyword_handler(func),
                description=description,
            )
            return func

        return decorator

    def resource(
        self,
        uri: str,
        name: str | None = None,
        description: str | None = None,
        mime_type: str = DEFAULT_MIME_TYPE,
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Decorator registering a function as a resource.

        A URI containing ``{...}`` expressions registers a template and the
        function receives the bindings as keywords; otherwise it is called
        without arguments.
        """

        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            summary = schema_from_function(func).description
            keyword_handler = _keyword_handler(func)

            if accepts_keyword(func, "token"):

                def target(uri: str, params: Mapping[str, Any], token: CancellationToken) -> Any:
                    return keyword_handler(dict(params), token=token)

            else:

                def target(uri: str, params: Mapping[str, Any]) -> Any:  # type: ignore[misc]
                    return keyword_handler(dict(params))

            register = (
                self.resources.register_template
                if UriTemplate.is_template(uri)
                else self.resources.register
            )

            register(
                name or func.__name__,
                uri,
                target,
                description=description or summary,
                mime_type=mime_type,
            )
            return func

        return decorator

    def prompt(
        self, name: str | None = None, description: str | None = None
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Decorator registering a function as a prompt."""

        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            self.prompts.register(
                name or func.__name__,
                schema_from_function(func),
                _keyword_handler(func),
                description=description,
            )
            return func

        return decorator

    def add_tool_provider(self, provider: ToolProvider) -> list[Tool]:
        """Register every tool a provider exposes.

        Args:
            provider: Object implementing the ToolProvider protocol
        """
        registered = []
        for definition in provider.get_tools():
            tool_name = definition["name"]
            handler = functools.partial(_call_provider_tool, provider, tool_name)
            registered.append(
                self.tools.register(
                    tool_name,
                    Schema.from_descriptor(definition),
                    handler,
                    description=definition.get("description"),
                )
            )
        logger.info(f"Added {len(registered)} tools from {type(provider).__name__}")
        return registered

    def add_resource_provider(self, provider: ResourceProvider) -> list[Resource]:
        """Register every resource a provider exposes.

        Args:
            provider: Object implementing the ResourceProvider protocol
        """
        registered = []
        for definition in provider.get_resources():
            registered.append(
                self.resources.register(
                    definition.get("name") or definition["uri"],
                    definition["uri"],
                    functools.partial(_read_provider_resource, provider),
                    description=definition.get("description"),
                    mime_type=definition.get("mimeType", DEFAULT_MIME_TYPE),
                )
            )
        logger.info(f"Added {len(registered)} resources from {type(provider).__name__}")
        return registered

    # Dispatch

    def dispatch(
        self,
        method: str,
        params: Mapping[str, Any] | None = None,
        request_id: Any = None,
    ) -> dict[str, Any]:
        """Handle one request.

        Args:
            method: Protocol method name (e.g. ``tools/call``)
            params: Request params
            request_id: Id used by ``notifications/cancelled`` to find the request

        Returns:
            The success result, or ``{"error": {"code", "message", "data"}}``
        """
        handler = self._handlers.get(method)
        if handler is None:
            logger.warning(f"Method not found: {method}")
            return error_response(ErrorCode.METHOD_NOT_FOUND, "Method not found", "method_not_found")

        if self.require_initialize and not self.initialized and method not in PRE_INIT_METHODS:
            logger.warning(f"Rejected {method}: server not initialized")
            return error_response(ErrorCode.INVALID_REQUEST, "Server not initialized", "not_initialized")

        if params is not None and not isinstance(params, Mapping):
            return error_response(ErrorCode.INVALID_PARAMS, "Invalid params", "invalid_params")

        if request_id is not None:
            token = self.cancellations.register_request(request_id, {"method": method})
        else:
            token = CancellationToken.none()

        try:
            return handler(dict(params or {}), token)
        except McpError as e:
            logger.warning(f"{method} failed ({e.kind}): {e}")
            return {"error": e.to_error()}
        except Exception:
            logger.exception(f"Unexpected error while handling {method}")
            return {"error": InternalError().to_error()}
        finally:
            if request_id is not None:
                self.cancellations.unregister_request(request_id)

    def handle_notification(self, method: str, params: Mapping[str, Any] | None = None) -> None:
        """Handle a client notification; unknown ones are ignored."""
        params = params or {}
        if method == NOTIFY_INITIALIZED:
            self.client_ready = True
            logger.info("Client finished initialization")
        elif method == NOTIFY_CANCELLED:
            request_id = params.get("requestId")
            if request_id is None:
                logger.warning("Cancellation notification without requestId ignored")
                return
            self.cancellations.cancel_request(request_id, params.get("reason"))
        else:
            logger.debug(f"Ignoring notification {method}")

    def drain_notifications(self) -> list[dict[str, Any]]:
        """Pending notifications, oldest first, as ``{method, params}`` mappings."""
        return [notification.to_dict() for notification in self.notifications.drain()]

    def notify_resource_updated(self, uri: str) -> bool:
        return self.resources.notify_updated(uri)

    def log_message(self, level: str, message: str, data: Any = None) -> None:
        """Queue a log entry for the peer (requires ``enable_logging``)."""
        if not self._declared.has("logging"):
            logger.debug("Logging capability not enabled; client log message dropped")
            return
        self.notifications.log_message(level, message, data, logger_name=self.name)

    # Method handlers

    def _initialize(self, params: dict[str, Any], token: CancellationToken) -> dict[str, Any]:
        requested = params.get("protocolVersion")
        if requested not in SUPPORTED_PROTOCOL_VERSIONS:
            raise ProtocolError(requested, SUPPORTED_PROTOCOL_VERSIONS)

        try:
            self.client_capabilities = CapabilitySet.from_dict(params.get("capabilities"))
        except (TypeError, AttributeError) as e:
            raise InvalidParamsError(f"Invalid client capabilities: {e}") from e
        client_info = params.get("clientInfo")
        self.client_info = dict(client_info) if isinstance(client_info, Mapping) else None
        self.protocol_version = LATEST_PROTOCOL_VERSION
        self.initialized = True
        if self.sessions.session_id is None:
            self.sessions.generate_session_id()

        client_name = (self.client_info or {}).get("name", "unknown client")
        logger.info(
            f"Initialized for {client_name} (requested {requested}, using {LATEST_PROTOCOL_VERSION})"
        )

        result: dict[str, Any] = {
            "protocolVersion": LATEST_PROTOCOL_VERSION,
            "capabilities": self.capabilities.to_dict(),
            "serverInfo": {"name": self.name, "version": self.version},
        }
        if self.instructions:
            result["instructions"] = self.instructions
        return result

    def _ping(self, params: dict[str, Any], token: CancellationToken) -> dict[str, Any]:
        return {}

    def _list_tools(self, params: dict[str, Any], token: CancellationToken) -> dict[str, Any]:
        return {"tools": self.tools.list()}

    def _call_tool(self, params: dict[str, Any], token: CancellationToken) -> dict[str, Any]:
        name = _require_str(params, "name")
        result = self.tools.execute(name, _arguments(params), token)
        return shape_tool_result(result)

    def _list_resources(self, params: dict[str, Any], token: CancellationToken) -> dict[str, Any]:
        return {"resources": self.resources.list()}

    def _list_resource_templates(
        self, params: dict[str, Any], token: CancellationToken
    ) -> dict[str, Any]:
        return {"resourceTemplates": self.resources.list_templates()}

    def _read_resource(self, params: dict[str, Any], token: CancellationToken) -> dict[str, Any]:
        uri = _require_str(params, "uri")
        resource, content = self.resources.read_entry(uri, token)
        return shape_resource_contents(uri, resource, content)

    def _subscribe(self, params: dict[str, Any], token: CancellationToken) -> dict[str, Any]:
        uri = _require_str(params, "uri")
        self.resources.resolve(uri)
        self.notifications.subscribe(uri)
        return {}

    def _unsubscribe(self, params: dict[str, Any], token: CancellationToken) -> dict[str, Any]:
        self.notifications.unsubscribe(_require_str(params, "uri"))
        return {}

    def _list_prompts(self, params: dict[str, Any], token: CancellationToken) -> dict[str, Any]:
        return {"prompts": self.prompts.list()}

    def _get_prompt(self, params: dict[str, Any], token: CancellationToken) -> dict[str, Any]:
        name = _require_str(params, "name")
        result = self.prompts.execute(name, _arguments(params), token)
        prompt = self.prompts.get(name)
        return shape_prompt_result(result, prompt.description if prompt else None)


def _call_provider_tool(provider: ToolProvider, name: str, arguments: dict[str, Any]) -> Any:
    return provider.call_tool(name, arguments)


def _read_provider_resource(provider: ResourceProvider, uri: str, params: Mapping[str, Any]) -> Any:
    return provider.get_resource(uri)
