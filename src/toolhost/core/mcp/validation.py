"""Schema validation for invocation arguments.

Checks run in a fixed order: the required pass over ``schema.required``,
then the type/enum pass over ``schema.properties`` in declaration order,
recursing into nested objects and array items. Values are never coerced.
"""

from collections.abc import Iterator, Mapping
from typing import Any

from .exceptions import ValidationError, Violation
from .schema import Schema, SchemaLike


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def _is_integer(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


TYPE_CHECKS = {
    "string": lambda v: isinstance(v, str),
    "number": _is_number,
    "integer": _is_integer,
    "boolean": lambda v: isinstance(v, bool),
    "object": lambda v: isinstance(v, Mapping),
    "array": lambda v: isinstance(v, list | tuple),
    "null": lambda v: v is None,
    "any": lambda v: True,
}


def _matches_type(value: Any, expected: str | list[str]) -> bool:
    if isinstance(expected, list):
        return any(_matches_type(value, tag) for tag in expected)
    check = TYPE_CHECKS.get(expected)
    # Unknown type tags accept anything
    return check is None or check(value)


def _in_enum(value: Any, allowed: list[Any]) -> bool:
    # True == 1 in Python; a boolean must only match a boolean
    return any(
        candidate == value and isinstance(candidate, bool) == isinstance(value, bool)
        for candidate in allowed
    )


def _join(prefix: str, name: str) -> str:
    return f"{prefix}.{name}" if prefix else name


class SchemaValidator:
    """Validates argument mappings against a ``Schema``."""

    def validate(self, arguments: Mapping[str, Any] | None, schema: SchemaLike) -> None:
        """Raise on the first violation.

        Raises:
            ValidationError: If any constraint is violated.
        """
        for violation in self.iter_violations(arguments, schema):
            raise ValidationError([violation])

    def collect(self, arguments: Mapping[str, Any] | None, schema: SchemaLike) -> list[Violation]:
        """Return every violation, in check order."""
        return list(self.iter_violations(arguments, schema))

    def is_valid(self, arguments: Mapping[str, Any] | None, schema: SchemaLike) -> bool:
        return next(self.iter_violations(arguments, schema), None) is None

    def iter_violations(
        self, arguments: Mapping[str, Any] | None, schema: SchemaLike
    ) -> Iterator[Violation]:
        schema = Schema.from_descriptor(schema)
        yield from self._check_object(arguments or {}, schema.properties, schema.required, "")

    def _check_object(
        self,
        arguments: Mapping[str, Any],
        properties: Mapping[str, Mapping[str, Any]],
        required: list[str],
        prefix: str,
    ) -> Iterator[Violation]:
        for name in required:
            if name not in arguments:
                field = _join(prefix, name)
                yield Violation(
                    field=field,
                    constraint="required",
                    message=f"Missing required parameter: {field}",
                    expected="present",
                )

        for name, constraint in properties.items():
            if name in arguments:
                yield from self._check_value(arguments[name], constraint, _join(prefix, name))

    def _check_value(
        self, value: Any, constraint: Mapping[str, Any], field: str
    ) -> Iterator[Violation]:
        expected = constraint.get("type")
        if expected is not None and not _matches_type(value, expected):
            yield Violation(
                field=field,
                constraint="type",
                message=(
                    f"Invalid type for parameter '{field}': expected {expected}, "
                    f"got {type(value).__name__}"
                ),
                expected=expected,
                received=value,
            )
            return

        allowed = constraint.get("enum")
        if allowed is not None and not _in_enum(value, list(allowed)):
            yield Violation(
                field=field,
                constraint="enum",
                message=f"Invalid value for parameter '{field}': must be one of {list(allowed)}",
                expected=list(allowed),
                received=value,
            )
            return

        if isinstance(value, Mapping) and ("properties" in constraint or "required" in constraint):
            yield from self._check_object(
                value,
                constraint.get("properties") or {},
                list(constraint.get("required") or []),
                field,
            )

        items = constraint.get("items")
        if isinstance(value, list | tuple) and isinstance(items, Mapping):
            for index, item in enumerate(value):
                yield from self._check_value(item, items, f"{field}[{index}]")


def format_violations(violations: list[Violation], context: str = "parameters") -> str:
    """Format violations into one readable message for logs.

    Args:
        violations: Violations in check order
        context: Description of what was being validated (e.g., "tool 'add' arguments")

    Returns:
        Single-line message for one violation, bulleted list for several
    """
    if len(violations) == 1:
        violation = violations[0]
        message = f"Invalid {context}: {violation.field} - {violation.message}"
        if violation.constraint != "required":
            message += f" (received: {violation.received!r})"
        return message

    lines = [f"Invalid {context} - {len(violations)} errors:"]
    for violation in violations:
        if violation.constraint == "required":
            lines.append(f"  • {violation.field}: {violation.message}")
        else:
            received_type = type(violation.received).__name__
            lines.append(
                f"  • {violation.field}: {violation.message} "
                f"(received {received_type}: {violation.received!r})"
            )
    return "\n".join(lines)
