"""Base implementations for MCP providers.

Providers group related tools or resources in one object; the server
registers everything a provider exposes via ``add_tool_provider`` and
``add_resource_provider``.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any


class BaseToolProvider(ABC):
    """Base implementation for tool providers."""

    @abstractmethod
    def get_tools(self) -> Sequence[dict[str, Any]]:
        """Return list of tool definitions.

        Returns:
            Sequence of ``{"name", "description", "inputSchema"}`` definitions.
        """
        pass

    @abstractmethod
    def call_tool(self, name: str, arguments: dict[str, Any]) -> Any:
        """Execute a tool with given arguments.

        Args:
            name: Tool name to execute
            arguments: Validated tool arguments

        Returns:
            Tool execution result
        """
        pass


class BaseResourceProvider(ABC):
    """Base implementation for resource providers."""

    @abstractmethod
    def get_resources(self) -> Sequence[dict[str, Any]]:
        """Return list of resource definitions.

        Returns:
            Sequence of ``{"uri", "name", "description", "mimeType"}`` definitions.
        """
        pass

    @abstractmethod
    def get_resource(self, uri: str) -> Any:
        """Retrieve a resource by URI.

        Args:
            uri: Resource URI to retrieve

        Returns:
            Resource content (text, bytes or a content mapping)
        """
        pass
