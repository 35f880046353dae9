"""MCP protocols for type-safe composition."""

from collections.abc import Callable, Mapping, Sequence
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class ToolHandler(Protocol):
    """Callable that executes a tool.

    Handlers may declare an extra ``token`` parameter to receive the
    request's cancellation token.
    """

    def __call__(self, arguments: Mapping[str, Any]) -> Any:
        """Execute the tool.

        Args:
            arguments: Validated tool arguments

        Returns:
            Tool result, returned to the caller verbatim
        """
        ...


@runtime_checkable
class ResourceHandler(Protocol):
    """Callable that reads a resource or template match."""

    def __call__(self, uri: str, params: Mapping[str, Any]) -> Any:
        """Read the resource.

        Args:
            uri: The URI that was requested
            params: Placeholder bindings (empty for literal URIs)

        Returns:
            Text, bytes, or a mapping with ``text``/``blob``/``mimeType``
        """
        ...


@runtime_checkable
class TimerHandle(Protocol):
    """Handle returned by a scheduler; ``asyncio.TimerHandle`` satisfies it."""

    def cancel(self) -> None: ...


@runtime_checkable
class Scheduler(Protocol):
    """Arms timers. ``asyncio`` event loops satisfy this protocol."""

    def call_later(self, delay: float, callback: Callable[[], Any]) -> TimerHandle:
        """Run ``callback`` once after ``delay`` seconds.

        Args:
            delay: Seconds to wait
            callback: Zero-argument callable

        Returns:
            Handle that disarms the timer when cancelled
        """
        ...


FaultSink = Callable[[BaseException, Any], None]
"""Receives ``(exception, context)`` for faults isolated by the core."""


@runtime_checkable
class ToolProvider(Protocol):
    """Protocol for objects that can provide MCP tools."""

    def get_tools(self) -> Sequence[dict[str, Any]]:
        """Return list of tool definitions.

        Returns:
            Sequence of tool definitions with ``name`` and ``inputSchema``.
        """
        ...

    def call_tool(self, name: str, arguments: dict[str, Any]) -> Any:
        """Execute a tool with given arguments.

        Args:
            name: Tool name to execute
            arguments: Validated tool arguments

        Returns:
            Tool execution result
        """
        ...


@runtime_checkable
class ResourceProvider(Protocol):
    """Protocol for objects that can provide MCP resources."""

    def get_resources(self) -> Sequence[dict[str, Any]]:
        """Return list of resource definitions.

        Returns:
            Sequence of resource definitions with ``uri`` and ``name``.
        """
        ...

    def get_resource(self, uri: str) -> Any:
        """Retrieve a resource by URI.

        Args:
            uri: Resource URI to retrieve

        Returns:
            Resource content
        """
        ...
