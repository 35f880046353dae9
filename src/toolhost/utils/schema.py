"""Utilities for deriving argument schemas from function signatures."""

import inspect
import types
from collections.abc import Callable
from typing import Any, Literal, Union, get_args, get_origin, get_type_hints

from toolhost.core.mcp.schema import Schema

# Parameters filled in by the runtime, never by the peer
RESERVED_PARAMETERS = frozenset({"self", "token"})

DOCSTRING_SECTIONS = ("Args:", "Returns:", "Raises:", "Yields:", "Example:", "Examples:")


def python_type_to_json_schema(python_type: Any) -> dict[str, Any]:
    """Convert a Python type hint to a JSON schema constraint.

    Args:
        python_type: Type hint to convert

    Returns:
        Constraint dict; empty (accept anything) for types with no JSON equivalent
    """
    origin = get_origin(python_type)
    args = get_args(python_type)

    if origin is Union or origin is types.UnionType:
        members = [arg for arg in args if arg is not type(None)]
        if len(members) == 1:
            # Optional[X]: optionality is expressed through ``required``
            return python_type_to_json_schema(members[0])
        constraints = [python_type_to_json_schema(arg) for arg in args]
        tags = [c["type"] for c in constraints if "type" in c]
        return {"type": tags} if len(tags) == len(constraints) else {}

    if origin is Literal:
        values = list(args)
        value_types = {python_type_to_json_schema(type(v)).get("type") for v in values}
        schema: dict[str, Any] = {"enum": values}
        if len(value_types) == 1 and None not in value_types:
            schema["type"] = value_types.pop()
        return schema

    if python_type is Any or python_type is inspect.Parameter.empty:
        return {}
    if python_type is type(None):
        return {"type": "null"}
    if python_type is str:
        return {"type": "string"}
    if python_type is bool:
        return {"type": "boolean"}
    if python_type is int:
        return {"type": "integer"}
    if python_type is float:
        return {"type": "number"}
    if python_type in (list, tuple) or origin in (list, tuple):
        if args and args[0] is not Ellipsis:
            return {"type": "array", "items": python_type_to_json_schema(args[0])}
        return {"type": "array"}
    if python_type is dict or origin is dict:
        return {"type": "object"}
    return {}


def parse_docstring(doc: str | None) -> tuple[str, dict[str, str]]:
    """Split a Google-style docstring into summary and ``Args:`` descriptions."""
    if not doc:
        return "", {}

    lines = inspect.cleandoc(doc).splitlines()
    summary: list[str] = []
    for line in lines:
        stripped = line.strip()
        if not stripped or stripped in DOCSTRING_SECTIONS:
            break
        summary.append(stripped)

    descriptions: dict[str, str] = {}
    in_args = False
    current: str | None = None
    for line in lines:
        stripped = line.strip()
        if stripped == "Args:":
            in_args = True
            continue
        if not in_args:
            continue
        if not stripped or stripped in DOCSTRING_SECTIONS:
            break
        name, sep, text = stripped.partition(":")
        name = name.split("(")[0].strip()
        if sep and name.isidentifier() and line.startswith(" " * 4) and not line.startswith(" " * 8):
            current = name
            descriptions[current] = text.strip()
        elif current:
            descriptions[current] = f"{descriptions[current]} {stripped}".strip()

    return " ".join(summary), descriptions


def schema_from_function(func: Callable[..., Any]) -> Schema:
    """Build a ``Schema`` from a function's signature, hints and docstring.

    Parameters without defaults become required. ``self`` and ``token`` are
    skipped.
    """
    signature = inspect.signature(func)
    try:
        hints = get_type_hints(func)
    except (NameError, TypeError):
        hints = {}
    summary, descriptions = parse_docstring(func.__doc__)

    properties: dict[str, dict[str, Any]] = {}
    required: list[str] = []
    for name, parameter in signature.parameters.items():
        if name in RESERVED_PARAMETERS or parameter.kind in (
            inspect.Parameter.VAR_POSITIONAL,
            inspect.Parameter.VAR_KEYWORD,
        ):
            continue

        constraint = python_type_to_json_schema(hints.get(name, parameter.annotation))
        if name in descriptions:
            constraint["description"] = descriptions[name]
        if parameter.default is inspect.Parameter.empty:
            required.append(name)
        elif parameter.default is not None:
            constraint["default"] = parameter.default
        properties[name] = constraint

    return Schema(properties=properties, required=required, description=summary or None)
