"""Shared test fixtures and configuration."""

import copy
import sys
from pathlib import Path

import pytest

# Add src to path for testing
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from toolhost.api.mcp.server import McpServer  # noqa: E402
from toolhost.core.config.settings import reset_settings  # noqa: E402
from toolhost.core.mcp.notifications import NotificationQueue  # noqa: E402
from toolhost.servers.tools.response import ToolResponse  # noqa: E402

CALCULATOR_SCHEMA = {
    "properties": {
        "operation": {"type": "string", "enum": ["add", "subtract"]},
        "a": {"type": "number"},
        "b": {"type": "number"},
    },
    "required": ["operation", "a", "b"],
    "description": "Add or subtract two numbers",
}


def calculator(arguments):
    """Reference tool handler used across tests."""
    if arguments["operation"] == "add":
        value = arguments["a"] + arguments["b"]
    else:
        value = arguments["a"] - arguments["b"]
    return ToolResponse.text(str(value))


class CallRecorder:
    """Handler stand-in that records every call."""

    def __init__(self, result=None):
        self.calls = []
        self.result = result

    def __call__(self, *args, **kwargs):
        self.calls.append((args, kwargs))
        return self.result

    @property
    def call_count(self):
        return len(self.calls)


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    """Isolate every test from the developer's environment and .env file."""
    for key in (
        "DEBUG",
        "LOG_LEVEL",
        "TOOLHOST_SERVER_NAME",
        "TOOLHOST_SERVER_VERSION",
        "TOOLHOST_INSTRUCTIONS",
        "TOOLHOST_DUPLICATE_POLICY",
        "TOOLHOST_REQUIRE_INITIALIZE",
        "TOOLHOST_PROMPTS_DIR",
    ):
        monkeypatch.delenv(key, raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def queue():
    """Fresh notification queue."""
    return NotificationQueue()


@pytest.fixture
def recorder():
    """Handler that records its calls and returns a text response."""
    return CallRecorder(result=ToolResponse.text("ok"))


@pytest.fixture
def make_recorder():
    """Factory for recorders returning a given result."""
    return CallRecorder


@pytest.fixture
def calculator_schema():
    """Raw descriptor of the calculator tool."""
    return copy.deepcopy(CALCULATOR_SCHEMA)


@pytest.fixture
def calculator_handler():
    """Calculator tool handler."""
    return calculator


@pytest.fixture
def server():
    """Server with the calculator tool, a greeting resource and a user template."""
    server = McpServer(name="test-server", version="9.9.9")
    server.register_tool("calculator", CALCULATOR_SCHEMA, calculator)
    server.resources.register_static("greeting", "greeting://hello", "Hello, World!")
    server.resources.register_template(
        "user",
        "user://{id}",
        lambda uri, params: f"User profile for {params['id']}",
    )
    server.notifications.clear()
    return server
