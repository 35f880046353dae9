"""Tool registry."""

from dataclasses import dataclass
from typing import Any

from toolhost.core.mcp.constants import NOTIFY_TOOLS_LIST_CHANGED
from toolhost.core.mcp.registry import Entity, Registry


@dataclass
class Tool(Entity):
    """A callable tool: ``handler(arguments) -> result``."""

    def metadata(self) -> dict[str, Any]:
        data = super().metadata()
        data["inputSchema"] = self.schema.input_schema()
        return data


class ToolRegistry(Registry[Tool]):
    kind = "tool"
    entity_class = Tool
    list_changed_method = NOTIFY_TOOLS_LIST_CHANGED
