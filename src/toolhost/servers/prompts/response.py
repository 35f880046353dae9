"""Result helpers for prompt handlers."""

from dataclasses import dataclass, field
from typing import Any

ROLES = ("user", "assistant")


def text_message(text: str, role: str = "user") -> dict[str, Any]:
    if role not in ROLES:
        raise ValueError(f"Message role must be one of {ROLES}")
    return {"role": role, "content": {"type": "text", "text": text}}


@dataclass
class PromptResponse:
    """Messages returned by ``prompts/get``."""

    messages: list[dict[str, Any]] = field(default_factory=list)
    description: str | None = None

    @classmethod
    def text(cls, text: str, role: str = "user", description: str | None = None) -> "PromptResponse":
        return cls(messages=[text_message(text, role)], description=description)

    @classmethod
    def from_messages(
        cls, messages: list[dict[str, Any]], description: str | None = None
    ) -> "PromptResponse":
        return cls(messages=list(messages), description=description)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"messages": [dict(message) for message in self.messages]}
        if self.description is not None:
            result["description"] = self.description
        return result
