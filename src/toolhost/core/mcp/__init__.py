"""Core MCP abstractions: capabilities, validation, cancellation, registries."""

from .cancellation import CancellationManager, CancellationToken, ThreadingScheduler
from .capabilities import CapabilitySet
from .constants import LATEST_PROTOCOL_VERSION, SUPPORTED_PROTOCOL_VERSIONS, ErrorCode
from .exceptions import (
    CancellationError,
    DuplicateError,
    InternalError,
    InvalidParamsError,
    McpError,
    NotFoundError,
    ProtocolError,
    ValidationError,
    Violation,
)
from .notifications import Notification, NotificationQueue
from .protocols import ResourceProvider, Scheduler, ToolProvider
from .registry import DuplicatePolicy, Entity, Registry
from .schema import Schema
from .session import SessionManager
from .validation import SchemaValidator, format_violations

__all__ = [
    "CancellationError",
    "CancellationManager",
    "CancellationToken",
    "CapabilitySet",
    "DuplicateError",
    "DuplicatePolicy",
    "Entity",
    "ErrorCode",
    "InternalError",
    "InvalidParamsError",
    "LATEST_PROTOCOL_VERSION",
    "McpError",
    "NotFoundError",
    "Notification",
    "NotificationQueue",
    "ProtocolError",
    "Registry",
    "ResourceProvider",
    "SUPPORTED_PROTOCOL_VERSIONS",
    "Scheduler",
    "Schema",
    "SchemaValidator",
    "SessionManager",
    "ThreadingScheduler",
    "ToolProvider",
    "ValidationError",
    "Violation",
    "format_violations",
]
