"""End-to-end request flows through McpServer."""

import asyncio
import threading

import pytest

from toolhost.api.mcp.providers import BaseToolProvider
from toolhost.api.mcp.server import McpServer
from toolhost.core.mcp.cancellation import CancellationToken, ThreadingScheduler
from toolhost.core.mcp.constants import (
    LATEST_PROTOCOL_VERSION,
    NOTIFY_INITIALIZED,
    NOTIFY_PROMPTS_LIST_CHANGED,
    NOTIFY_RESOURCE_UPDATED,
    NOTIFY_RESOURCES_LIST_CHANGED,
)
from toolhost.core.mcp.exceptions import CancellationError
from toolhost.core.mcp.protocols import (
    ResourceHandler,
    ResourceProvider,
    Scheduler,
    ToolHandler,
    ToolProvider,
)
from toolhost.servers.prompts.response import PromptResponse


class EchoProvider(BaseToolProvider):
    def get_tools(self):
        return [{"name": "echo", "inputSchema": {"properties": {"text": {"type": "string"}}}}]

    def call_tool(self, name, arguments):
        return arguments.get("text", "")


@pytest.mark.integration
class TestSessionFlow:
    """Drive a server the way a client session would."""

    def test_full_session(self, server):
        """Initialize, discover, call, subscribe and receive updates."""
        # Handshake
        server.enable_resource_subscriptions()
        result = server.dispatch(
            "initialize",
            {"protocolVersion": "2024-10-07", "clientInfo": {"name": "it"}},
            request_id=1,
        )
        server.handle_notification(NOTIFY_INITIALIZED)

        assert result["protocolVersion"] == LATEST_PROTOCOL_VERSION
        assert result["capabilities"]["resources"]["subscribe"] is True
        assert server.client_ready

        # Discovery
        assert [t["name"] for t in server.dispatch("tools/list", request_id=2)["tools"]] == ["calculator"]
        assert server.dispatch("resources/templates/list", request_id=3)["resourceTemplates"][0]["name"] == "user"

        # Calls
        call = server.dispatch(
            "tools/call",
            {"name": "calculator", "arguments": {"operation": "subtract", "a": 10, "b": 4.5}},
            request_id=4,
        )
        assert call["content"][0]["text"] == "5.5"

        # Subscriptions
        server.dispatch("resources/subscribe", {"uri": "user://1"}, request_id=5)
        server.notify_resource_updated("user://1")
        server.register_prompt("hello", None, lambda arguments: PromptResponse.text("hi"))

        assert server.drain_notifications() == [
            {"method": NOTIFY_RESOURCE_UPDATED, "params": {"uri": "user://1"}},
            {"method": NOTIFY_PROMPTS_LIST_CHANGED},
        ]
        assert len(server.cancellations) == 0

    def test_registration_while_serving(self, server):
        """Registry changes are visible to the next request."""
        server.add_tool_provider(EchoProvider())
        server.unregister_resource_template("user")

        assert server.dispatch("tools/call", {"name": "echo", "arguments": {"text": "hey"}}) == {
            "content": [{"type": "text", "text": "hey"}]
        }
        assert server.dispatch("resources/read", {"uri": "user://1"})["error"]["data"]["kind"] == "not_found"
        assert {"method": NOTIFY_RESOURCES_LIST_CHANGED} in server.drain_notifications()

    def test_concurrent_calls(self, server):
        """Parallel calls with distinct request ids do not interfere."""
        results = {}

        def worker(index):
            results[index] = server.dispatch(
                "tools/call",
                {"name": "calculator", "arguments": {"operation": "add", "a": index, "b": 1}},
                request_id=f"req-{index}",
            )

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert {i: r["content"][0]["text"] for i, r in results.items()} == {i: str(i + 1) for i in range(8)}
        assert len(server.cancellations) == 0


@pytest.mark.integration
class TestTimeouts:
    """Timeout tokens backed by real schedulers."""

    def test_threading_scheduler(self):
        """A timeout token fires on a background timer."""
        fired = threading.Event()
        token = CancellationToken.after(0.01, ThreadingScheduler())
        token.on_cancelled(lambda cancelled: fired.set())

        assert fired.wait(timeout=5)
        assert token.reason == "Operation timed out"
        with pytest.raises(CancellationError):
            token.throw_if_cancelled()

    def test_asyncio_loop_as_scheduler(self):
        """An asyncio event loop satisfies the scheduler protocol."""

        async def scenario():
            loop = asyncio.get_running_loop()
            assert isinstance(loop, Scheduler)
            token = CancellationToken.after(0.01, loop, reason="too slow")
            await asyncio.sleep(0.05)
            return token

        token = asyncio.run(scenario())

        assert token.is_cancelled
        assert token.reason == "too slow"


@pytest.mark.integration
class TestProtocols:
    """Structural protocol checks."""

    def test_providers_satisfy_protocols(self):
        """Provider base classes match the runtime-checkable protocols."""
        assert isinstance(EchoProvider(), ToolProvider)
        assert not isinstance(EchoProvider(), ResourceProvider)
        assert isinstance(ThreadingScheduler(), Scheduler)

    def test_registered_handlers_satisfy_protocols(self):
        """Handlers stored by the server match the handler protocols."""
        server = McpServer()
        tool = server.register_tool("echo", None, lambda arguments: arguments)
        resource = server.register_resource("readme", "file:///readme", lambda uri, params: "hi")

        assert isinstance(tool.handler, ToolHandler)
        assert isinstance(resource.handler, ResourceHandler)
        assert not isinstance("not callable", ToolHandler)

    def test_server_from_defaults(self):
        """A default server announces its package identity."""
        result = McpServer().dispatch("initialize", {"protocolVersion": LATEST_PROTOCOL_VERSION})

        assert result["serverInfo"]["name"] == "toolhost"
