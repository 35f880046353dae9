"""MCP-related exceptions.

Every error the core raises derives from ``McpError`` and carries the wire
``code``, a stable ``public_message`` and a short ``kind`` tag. Only those
three leave the process; the detailed message stays in logs.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar

from .constants import ErrorCode

if TYPE_CHECKING:
    from .cancellation import CancellationToken


class McpError(Exception):
    """Base exception for MCP-related errors."""

    code: ClassVar[ErrorCode] = ErrorCode.INTERNAL_ERROR
    public_message: ClassVar[str] = "Internal error"
    kind: ClassVar[str] = "internal"

    def __init__(self, message: str | None = None, details: dict[str, Any] | None = None):
        self.details = details or {}
        super().__init__(message or self.public_message)

    def to_error(self) -> dict[str, Any]:
        """Render the redacted error envelope body."""
        return {
            "code": int(self.code),
            "message": self.public_message,
            "data": {"kind": self.kind},
        }


class NotFoundError(McpError):
    """Raised when a tool, resource, template or prompt is not registered."""

    code = ErrorCode.INVALID_PARAMS
    public_message = "Not found"
    kind = "not_found"

    def __init__(self, entity: str, name: str):
        self.entity = entity
        self.name = name
        super().__init__(f"{entity.capitalize()} '{name}' not found")


class DuplicateError(McpError):
    """Raised when a name is registered twice under the reject policy."""

    code = ErrorCode.INVALID_PARAMS
    public_message = "Already registered"
    kind = "duplicate"

    def __init__(self, entity: str, name: str):
        self.entity = entity
        self.name = name
        super().__init__(f"{entity.capitalize()} '{name}' is already registered")


@dataclass(frozen=True)
class Violation:
    """A single schema violation.

    ``field`` is a dotted path (``user.tags[1]``); ``constraint`` is one of
    ``required``, ``type`` or ``enum``.
    """

    field: str
    constraint: str
    message: str
    expected: Any = None
    received: Any = None


class ValidationError(McpError):
    """Raised when arguments do not satisfy a schema."""

    code = ErrorCode.INVALID_PARAMS
    public_message = "Invalid params"
    kind = "validation"

    def __init__(self, violations: list[Violation]):
        if not violations:
            raise ValueError("ValidationError requires at least one violation")
        self.violations = list(violations)
        super().__init__(violations[0].message)

    @property
    def violation(self) -> Violation:
        return self.violations[0]

    @property
    def field(self) -> str:
        return self.violations[0].field

    @property
    def constraint(self) -> str:
        return self.violations[0].constraint


class InvalidParamsError(McpError):
    """Raised when dispatch params are malformed (e.g. missing ``name``)."""

    code = ErrorCode.INVALID_PARAMS
    public_message = "Invalid params"
    kind = "invalid_params"


class CancellationError(McpError):
    """Raised when an operation observes a cancelled token."""

    code = ErrorCode.REQUEST_TIMEOUT
    public_message = "Request cancelled"
    kind = "cancelled"

    def __init__(self, reason: str | None = None, token: "CancellationToken | None" = None):
        self.reason = reason
        self.token = token
        super().__init__(reason or "Operation was cancelled")

    @property
    def cancelled_at(self) -> float | None:
        return self.token.cancelled_at if self.token is not None else None


class ProtocolError(McpError):
    """Raised when the client asks for an unsupported protocol version."""

    code = ErrorCode.INVALID_PARAMS
    public_message = "Unsupported protocol version"
    kind = "protocol"

    def __init__(self, requested: Any, supported: tuple[str, ...]):
        self.requested = requested
        self.supported = supported
        super().__init__(
            f"Unsupported protocol version {requested!r}; supported: {', '.join(supported)}"
        )

    def to_error(self) -> dict[str, Any]:
        error = super().to_error()
        error["data"]["supported"] = list(self.supported)
        return error


class InternalError(McpError):
    """Raised when a handler fails unexpectedly.

    The original exception is chained as ``__cause__``.
    """

    code = ErrorCode.INTERNAL_ERROR
    public_message = "Internal error"
    kind = "internal"
