"""Tests for the resource registry."""

import pytest

from toolhost.core.mcp.cancellation import CancellationToken
from toolhost.core.mcp.constants import NOTIFY_RESOURCE_UPDATED, NOTIFY_RESOURCES_LIST_CHANGED
from toolhost.core.mcp.exceptions import (
    CancellationError,
    DuplicateError,
    InternalError,
    NotFoundError,
    ValidationError,
)
from toolhost.core.mcp.registry import DuplicatePolicy
from toolhost.servers.resources.registry import ResourceRegistry
from toolhost.servers.resources.uri_template import MAX_TEMPLATE_LENGTH


@pytest.fixture
def registry(queue):
    """Resource registry wired to a notification queue."""
    registry = ResourceRegistry(queue)
    registry.register_static("greeting", "greeting://hello", "Hello, World!")
    registry.register_template("user", "user://{id}", lambda uri, params: f"User profile for {params['id']}")
    queue.clear()
    return registry


class TestRead:
    """Test reading literal and templated resources."""

    @pytest.mark.unit
    def test_static_resource(self, registry):
        """Test a literal URI returns the registered content."""
        assert registry.read("greeting://hello") == "Hello, World!"

    @pytest.mark.unit
    def test_template_binding(self, registry):
        """Test template placeholders reach the handler."""
        assert registry.read("user://123") == "User profile for 123"

    @pytest.mark.unit
    def test_handler_receives_uri_and_params(self, registry, make_recorder):
        """Test the handler is called with the requested URI and bindings."""
        # Arrange
        handler = make_recorder(result="row")
        registry.register_template("row", "db://{table}/{key}", handler)

        # Act
        registry.read("db://users/7")

        # Assert
        args, kwargs = handler.calls[0]
        assert args == ("db://users/7", {"table": "users", "key": "7"})
        assert isinstance(kwargs["token"], CancellationToken)

    @pytest.mark.unit
    def test_literal_wins_over_template(self, registry):
        """Test a literal URI is preferred to a matching template."""
        registry.register_static("admin", "user://admin", "The administrator")

        assert registry.read("user://admin") == "The administrator"
        assert registry.read("user://42") == "User profile for 42"

    @pytest.mark.unit
    def test_templates_tried_in_registration_order(self, registry):
        """Test the first matching template serves the URI."""
        registry.register_template("catch_all", "user://{+rest}", lambda uri, params: "catch-all")

        assert registry.read("user://5") == "User profile for 5"
        assert registry.read("user://5/posts") == "catch-all"

    @pytest.mark.unit
    def test_unknown_uri(self, registry):
        """Test an unmatched URI raises NotFoundError."""
        with pytest.raises(NotFoundError) as exc_info:
            registry.read("missing://nowhere")

        assert exc_info.value.entity == "resource"
        assert exc_info.value.name == "missing://nowhere"

    @pytest.mark.unit
    def test_overlong_uri_not_found(self, registry):
        """Test an over-long URI resolves to NotFoundError, not an internal error."""
        with pytest.raises(NotFoundError):
            registry.read("user://" + "x" * MAX_TEMPLATE_LENGTH)

    @pytest.mark.unit
    def test_read_entry_returns_resource(self, registry):
        """Test read_entry reports which resource served the URI."""
        resource, content = registry.read_entry("user://9")

        assert resource.name == "user"
        assert content == "User profile for 9"

    @pytest.mark.unit
    def test_bytes_returned_unchanged(self, registry):
        """Test binary content is passed through."""
        registry.register_static("logo", "file:///logo.png", b"\x89PNG", mime_type="image/png")

        assert registry.read("file:///logo.png") == b"\x89PNG"

    @pytest.mark.unit
    def test_handler_failure(self, registry):
        """Test handler exceptions become InternalError."""

        def broken(uri, params):
            raise OSError("disk gone")

        registry.register("broken", "file:///broken", broken)

        with pytest.raises(InternalError) as exc_info:
            registry.read("file:///broken")

        assert isinstance(exc_info.value.__cause__, OSError)

    @pytest.mark.unit
    def test_cancelled_token(self, registry, make_recorder):
        """Test a cancelled token stops the read before the handler runs."""
        handler = make_recorder(result="never")
        registry.register("slow", "file:///slow", handler)

        with pytest.raises(CancellationError):
            registry.read("file:///slow", CancellationToken.cancelled("stop"))

        assert handler.call_count == 0

    @pytest.mark.unit
    def test_template_schema_validation(self, registry):
        """Test bindings are validated against the template schema."""
        registry.register_template(
            "page",
            "page://{kind}",
            lambda uri, params: params["kind"],
            schema={"properties": {"kind": {"type": "string", "enum": ["a", "b"]}}},
        )

        assert registry.read("page://a") == "a"
        with pytest.raises(ValidationError):
            registry.read("page://z")


class TestRegistration:
    """Test registration bookkeeping."""

    @pytest.mark.unit
    def test_list_metadata(self, registry):
        """Test list and list_templates shapes."""
        assert registry.list() == [
            {"uri": "greeting://hello", "name": "greeting", "mimeType": "text/plain"}
        ]
        assert registry.list_templates() == [
            {"uriTemplate": "user://{id}", "name": "user", "mimeType": "text/plain"}
        ]

    @pytest.mark.unit
    def test_register_notifies(self, registry, queue):
        """Test registering a resource or template announces a list change."""
        registry.register_static("readme", "file:///README", "hi")
        registry.register_template("doc", "doc://{name}", lambda uri, params: "")

        assert [n.method for n in queue.drain()] == [NOTIFY_RESOURCES_LIST_CHANGED] * 2

    @pytest.mark.unit
    def test_invalid_template(self, registry):
        """Test malformed templates are rejected."""
        with pytest.raises(ValueError):
            registry.register_template("bad", "user://{id", lambda uri, params: "")

    @pytest.mark.unit
    def test_missing_uri(self, registry):
        """Test a resource needs a URI."""
        with pytest.raises(ValueError):
            registry.register("nouri", "", lambda uri, params: "")

    @pytest.mark.unit
    def test_reject_duplicate_template(self, queue):
        """Test REJECT applies to templates too."""
        registry = ResourceRegistry(queue, duplicate_policy=DuplicatePolicy.REJECT)
        registry.register_template("user", "user://{id}", lambda uri, params: "")

        with pytest.raises(DuplicateError):
            registry.register_template("user", "member://{id}", lambda uri, params: "")

        assert registry.get_template("user").uri == "user://{id}"

    @pytest.mark.unit
    def test_replace_template(self, registry):
        """Test REPLACE updates a template in place."""
        registry.register_template("user", "member://{id}", lambda uri, params: f"Member {params['id']}")

        assert registry.read("member://1") == "Member 1"
        with pytest.raises(NotFoundError):
            registry.read("user://1")

    @pytest.mark.unit
    def test_remove_template(self, registry, queue):
        """Test removing templates."""
        assert registry.remove_template("user") is True
        assert registry.remove_template("user") is False
        assert registry.templates() == []
        assert len(queue.drain()) == 1

    @pytest.mark.unit
    def test_clear_removes_templates(self, registry, queue):
        """Test clear empties both collections with one notification."""
        registry.clear()

        assert len(registry) == 0
        assert registry.templates() == []
        assert [n.method for n in queue.drain()] == [NOTIFY_RESOURCES_LIST_CHANGED]


class TestUpdates:
    """Test resource update announcements."""

    @pytest.mark.unit
    def test_notify_subscribed(self, registry, queue):
        """Test subscribed URIs produce an updated notification."""
        queue.subscribe("greeting://hello")

        assert registry.notify_updated("greeting://hello") is True
        assert queue.drain()[0].to_dict() == {
            "method": NOTIFY_RESOURCE_UPDATED,
            "params": {"uri": "greeting://hello"},
        }

    @pytest.mark.unit
    def test_notify_unsubscribed(self, registry, queue):
        """Test unsubscribed URIs are not announced."""
        assert registry.notify_updated("greeting://hello") is False
        assert queue.size() == 0

    @pytest.mark.unit
    def test_notify_without_queue(self):
        """Test a detached registry announces nothing."""
        assert ResourceRegistry().notify_updated("greeting://hello") is False
