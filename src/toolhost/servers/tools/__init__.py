"""Tool hosting."""

from .registry import Tool, ToolRegistry
from .response import ToolResponse

__all__ = [
    "Tool",
    "ToolRegistry",
    "ToolResponse",
]
