"""Capability sets exchanged during negotiation."""

import copy
from collections.abc import Mapping
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field


class CapabilitySet(BaseModel):
    """Announced features: six well-known slots plus vendor extensions.

    A well-known slot is either ``None`` (absent) or a mapping of
    sub-options. Anything else lives in ``additional``.
    """

    SLOTS: ClassVar[tuple[str, ...]] = (
        "experimental",
        "logging",
        "completions",
        "prompts",
        "resources",
        "tools",
    )

    model_config = ConfigDict(validate_assignment=True)

    experimental: dict[str, Any] | None = None
    logging: dict[str, Any] | None = None
    completions: dict[str, Any] | None = None
    prompts: dict[str, Any] | None = None
    resources: dict[str, Any] | None = None
    tools: dict[str, Any] | None = None
    additional: dict[str, Any] = Field(default_factory=dict)

    def get(self, name: str, default: Any = None) -> Any:
        if name in self.SLOTS:
            value = getattr(self, name)
            return default if value is None else value
        return self.additional.get(name, default)

    def set(self, name: str, value: Any) -> None:
        """Set a slot or extension.

        Raises:
            TypeError: If a well-known slot is given a non-mapping value.
        """
        if name in self.SLOTS:
            if value is not None and not isinstance(value, Mapping):
                raise TypeError(
                    f"Capability '{name}' must be a mapping, got {type(value).__name__}"
                )
            setattr(self, name, dict(value) if value is not None else None)
        else:
            self.additional[name] = value

    def has(self, name: str) -> bool:
        if name in self.SLOTS:
            return getattr(self, name) is not None
        return name in self.additional

    def to_dict(self) -> dict[str, Any]:
        """Render present slots followed by extensions.

        Well-known slots win when an extension reuses their key.
        """
        result: dict[str, Any] = {}
        for slot in self.SLOTS:
            value = getattr(self, slot)
            if value is not None:
                result[slot] = copy.deepcopy(value)
        for key, value in self.additional.items():
            if key not in result:
                result[key] = copy.deepcopy(value)
        return result

    def merge(self, other: "CapabilitySet") -> "CapabilitySet":
        """Return a new set with ``other`` layered over this one.

        Slots are unioned key-wise with ``other`` winning; extensions are
        unioned when both sides hold mappings, otherwise replaced. Neither
        operand is modified and the result shares no containers with them.
        """
        merged = self.model_copy(deep=True)

        for slot in self.SLOTS:
            theirs = getattr(other, slot)
            if theirs is None:
                continue
            mine = getattr(merged, slot)
            theirs = copy.deepcopy(theirs)
            setattr(merged, slot, {**mine, **theirs} if mine is not None else theirs)

        for key, value in other.additional.items():
            value = copy.deepcopy(value)
            current = merged.additional.get(key)
            if isinstance(current, dict) and isinstance(value, dict):
                merged.additional[key] = {**current, **value}
            else:
                merged.additional[key] = value

        return merged

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "CapabilitySet":
        capabilities = cls()
        for name, value in (data or {}).items():
            capabilities.set(name, copy.deepcopy(value))
        return capabilities
