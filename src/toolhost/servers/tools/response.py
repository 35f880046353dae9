"""Result helpers for tool handlers."""

import json
from dataclasses import dataclass, field
from typing import Any


@dataclass
class ToolResponse:
    """Content-array result of ``tools/call``."""

    content: list[dict[str, Any]] = field(default_factory=list)
    is_error: bool = False

    @classmethod
    def text(cls, text: str) -> "ToolResponse":
        return cls(content=[{"type": "text", "text": text}])

    @classmethod
    def json(cls, data: Any, indent: int | None = None) -> "ToolResponse":
        """Serialize ``data`` as JSON text content."""
        return cls(content=[{"type": "text", "text": json.dumps(data, indent=indent, default=str)}])

    @classmethod
    def error(cls, message: str, code: str | None = None) -> "ToolResponse":
        """Tool-level failure reported to the peer as a normal result.

        Use for expected failures the model should see (bad input, remote
        errors); unexpected exceptions become protocol errors instead.
        """
        text = f"[{code}] {message}" if code else message
        return cls(content=[{"type": "text", "text": text}], is_error=True)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"content": [dict(item) for item in self.content]}
        if self.is_error:
            result["isError"] = True
        return result
