"""RFC 6570 URI templates (level 3 subset) for dynamic resources.

Supported operators: simple ``{var}``, reserved ``{+var}``, fragment
``{#var}``, label ``{.var}``, path ``{/var}``, query ``{?a,b}`` and
continuation ``{&a}``, with the ``*`` explode modifier.
"""

import re
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote, unquote

MAX_TEMPLATE_LENGTH = 1_000_000
MAX_VARIABLE_LENGTH = 1_000_000
MAX_TEMPLATE_EXPRESSIONS = 10_000

OPERATORS = ("+", "#", ".", "/", "?", "&")
RESERVED_SAFE = ":/?#[]@!$&'()*+,;="

_EXPRESSION = re.compile(r"\{([^}]*)\}")


def _check_length(value: str, limit: int, what: str) -> None:
    if len(value) > limit:
        raise ValueError(f"{what} exceeds maximum length of {limit}")


@dataclass(frozen=True)
class Expression:
    operator: str
    names: tuple[str, ...]
    exploded: bool


class UriTemplate:
    """Parsed URI template that can both expand and match URIs."""

    def __init__(self, template: str):
        _check_length(template, MAX_TEMPLATE_LENGTH, "Template")
        self.template = template
        self._parts = self._parse(template)
        self._pattern = re.compile(self._build_pattern())

    @staticmethod
    def is_template(value: str) -> bool:
        """Return True if ``value`` contains a ``{...}`` expression."""
        return re.search(r"\{[^}\s]+\}", value) is not None

    @property
    def variable_names(self) -> list[str]:
        return [name for part in self._parts if isinstance(part, Expression) for name in part.names]

    def _parse(self, template: str) -> list[str | Expression]:
        parts: list[str | Expression] = []
        position = 0
        for count, match in enumerate(_EXPRESSION.finditer(template), start=1):
            if count > MAX_TEMPLATE_EXPRESSIONS:
                raise ValueError(
                    f"Template contains too many expressions (max {MAX_TEMPLATE_EXPRESSIONS})"
                )
            if match.start() > position:
                parts.append(template[position : match.start()])
            parts.append(self._parse_expression(match.group(1)))
            position = match.end()

        rest = template[position:]
        if "{" in rest:
            raise ValueError("Unclosed template expression")
        if rest:
            parts.append(rest)
        return parts

    def _parse_expression(self, body: str) -> Expression:
        operator = body[0] if body and body[0] in OPERATORS else ""
        names = []
        for raw in body[len(operator) :].split(","):
            name = raw.replace("*", "").strip()
            if name:
                _check_length(name, MAX_VARIABLE_LENGTH, "Variable name")
                names.append(name)
        if not names:
            raise ValueError(f"Empty template expression '{{{body}}}'")
        return Expression(operator=operator, names=tuple(names), exploded="*" in body)

    def _build_pattern(self) -> str:
        pattern = ["^"]
        for part in self._parts:
            if isinstance(part, str):
                pattern.append(re.escape(part))
                continue

            if part.operator in ("?", "&"):
                for index, name in enumerate(part.names):
                    lead = "\\?" if part.operator == "?" and index == 0 else "&"
                    pattern.append(f"{lead}{re.escape(name)}=([^&#]+)")
            elif part.operator in ("+", "#"):
                prefix = "\\#" if part.operator == "#" else ""
                pattern.append(prefix + ",".join("(.+)" for _ in part.names))
            elif part.operator == ".":
                pattern.append("".join("\\.([^/,.]+)" for _ in part.names))
            elif part.operator == "/":
                pattern.append("".join("/([^/,]+)" for _ in part.names))
            elif part.exploded:
                pattern.append("([^/]+(?:,[^/]+)*)")
            else:
                pattern.append(",".join("([^/,]+)" for _ in part.names))
        pattern.append("$")
        return "".join(pattern)

    def match(self, uri: str) -> dict[str, Any] | None:
        """Extract variable bindings, or None if ``uri`` does not match.

        Exploded values containing commas come back as lists.
        """
        if len(uri) > MAX_TEMPLATE_LENGTH:
            return None
        found = self._pattern.match(uri)
        if found is None:
            return None

        bindings: dict[str, Any] = {}
        groups = iter(found.groups())
        for part in self._parts:
            if isinstance(part, str):
                continue
            for name in part.names:
                value = unquote(next(groups))
                if part.exploded and "," in value:
                    bindings[name] = value.split(",")
                else:
                    bindings[name] = value
        return bindings

    def expand(self, variables: dict[str, Any]) -> str:
        """Expand the template; undefined variables are omitted."""
        return "".join(
            part if isinstance(part, str) else self._expand_expression(part, variables)
            for part in self._parts
        )

    def _encode(self, value: Any, operator: str) -> str:
        text = str(value)
        _check_length(text, MAX_VARIABLE_LENGTH, "Variable value")
        safe = RESERVED_SAFE if operator in ("+", "#") else ""
        return quote(text, safe=safe)

    def _expand_expression(self, part: Expression, variables: dict[str, Any]) -> str:
        present = [name for name in part.names if variables.get(name) is not None]
        if not present:
            return ""

        def encoded(name: str) -> list[str]:
            value = variables[name]
            values = value if isinstance(value, list | tuple) else [value]
            return [self._encode(item, part.operator) for item in values]

        if part.operator in ("?", "&"):
            pairs = [f"{name}={','.join(encoded(name))}" for name in present]
            return part.operator + "&".join(pairs)

        values = [item for name in present for item in encoded(name)]
        if part.operator == "#":
            return "#" + ",".join(values)
        if part.operator == ".":
            return "." + ".".join(values)
        if part.operator == "/":
            return "/" + "/".join(values)
        return ",".join(values)

    def __str__(self) -> str:
        return self.template

    def __repr__(self) -> str:
        return f"UriTemplate({self.template!r})"
