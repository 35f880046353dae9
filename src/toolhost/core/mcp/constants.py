"""Protocol constants shared by the server core."""

from enum import IntEnum

LATEST_PROTOCOL_VERSION = "2024-11-05"
SUPPORTED_PROTOCOL_VERSIONS: tuple[str, ...] = ("2024-11-05", "2024-10-07")


class ErrorCode(IntEnum):
    """Numeric error codes carried in the error envelope."""

    CONNECTION_CLOSED = -32000
    REQUEST_TIMEOUT = -32001

    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603


# Server -> client notifications
NOTIFY_MESSAGE = "notifications/message"
NOTIFY_RESOURCES_LIST_CHANGED = "notifications/resources/list_changed"
NOTIFY_RESOURCE_UPDATED = "notifications/resources/updated"
NOTIFY_TOOLS_LIST_CHANGED = "notifications/tools/list_changed"
NOTIFY_PROMPTS_LIST_CHANGED = "notifications/prompts/list_changed"

# Client -> server notifications
NOTIFY_INITIALIZED = "notifications/initialized"
NOTIFY_CANCELLED = "notifications/cancelled"
