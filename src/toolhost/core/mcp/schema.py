"""Argument schema descriptors."""

import copy
from collections.abc import Mapping
from typing import Any, Union

from pydantic import BaseModel, Field

SchemaLike = Union["Schema", Mapping[str, Any], list[Mapping[str, Any]], None]


class Schema(BaseModel):
    """Lightweight JSON-Schema-like description of accepted arguments.

    ``properties`` maps a parameter name to its constraint (``type``,
    optional ``enum``, nested ``properties``/``required`` for objects and
    ``items`` for arrays). Names listed in ``required`` but missing from
    ``properties`` are still checked for presence.
    """

    properties: dict[str, dict[str, Any]] = Field(default_factory=dict)
    required: list[str] = Field(default_factory=list)
    description: str | None = None

    @classmethod
    def from_descriptor(cls, descriptor: SchemaLike) -> "Schema":
        """Normalize a raw descriptor into a Schema.

        Accepted shapes:
            - an existing ``Schema`` (returned as is)
            - ``None`` (empty schema)
            - ``{"properties": ..., "required": ..., "description": ...}``
            - ``{"inputSchema": {...}, "description": ...}`` (tool metadata)
            - ``{"arguments": {...}}`` (prompt metadata)
            - a list of prompt arguments ``[{"name", "description", "required"}]``
        """
        if isinstance(descriptor, Schema):
            return descriptor
        if descriptor is None:
            return cls()
        if isinstance(descriptor, list):
            return cls._from_argument_list(descriptor)
        if not isinstance(descriptor, Mapping):
            raise TypeError(
                f"Schema descriptor must be a mapping, got {type(descriptor).__name__}"
            )

        raw = dict(descriptor)
        description = raw.get("description")
        for wrapper in ("inputSchema", "arguments"):
            inner = raw.get(wrapper)
            if isinstance(inner, Mapping):
                raw = dict(inner)
                break
            if wrapper == "arguments" and isinstance(inner, list):
                schema = cls._from_argument_list(inner)
                schema.description = description
                return schema

        return cls(
            properties=copy.deepcopy(dict(raw.get("properties") or {})),
            required=list(raw.get("required") or []),
            description=description if description is not None else raw.get("description"),
        )

    @classmethod
    def _from_argument_list(cls, arguments: list[Mapping[str, Any]]) -> "Schema":
        properties: dict[str, dict[str, Any]] = {}
        required: list[str] = []
        for argument in arguments:
            name = argument["name"]
            constraint: dict[str, Any] = {"type": argument.get("type", "string")}
            if argument.get("description"):
                constraint["description"] = argument["description"]
            if "enum" in argument:
                constraint["enum"] = list(argument["enum"])
            properties[name] = constraint
            if argument.get("required"):
                required.append(name)
        return cls(properties=properties, required=required)

    def input_schema(self) -> dict[str, Any]:
        """Render as a JSON Schema ``object`` for list responses."""
        return {
            "type": "object",
            "properties": copy.deepcopy(self.properties),
            "required": list(self.required),
        }

    def prompt_arguments(self) -> list[dict[str, Any]]:
        """Render as the prompt argument list used by ``prompts/list``."""
        arguments = []
        for name, constraint in self.properties.items():
            argument: dict[str, Any] = {"name": name, "required": name in self.required}
            if constraint.get("description"):
                argument["description"] = constraint["description"]
            arguments.append(argument)
        for name in self.required:
            if name not in self.properties:
                arguments.append({"name": name, "required": True})
        return arguments

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "properties": copy.deepcopy(self.properties),
            "required": list(self.required),
        }
        if self.description is not None:
            data["description"] = self.description
        return data
