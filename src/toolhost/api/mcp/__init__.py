"""MCP server implementation."""

from .providers import BaseResourceProvider, BaseToolProvider
from .server import McpServer

__all__ = [
    "McpServer",
    "BaseToolProvider",
    "BaseResourceProvider",
]
