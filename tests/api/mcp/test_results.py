"""Tests for result shaping."""

import pytest

from toolhost.api.mcp.results import shape_prompt_result, shape_resource_contents
from toolhost.core.mcp.schema import Schema
from toolhost.servers.prompts.response import PromptResponse
from toolhost.servers.resources.registry import Resource


@pytest.fixture
def resource():
    """Plain-text resource used as the shaping context."""
    return Resource(name="notes", schema=Schema(), handler=lambda uri, params: "", uri="notes://a")


class TestResourceContents:
    """Test resource content shaping."""

    @pytest.mark.unit
    def test_mapping_with_text(self, resource):
        """Test a mapping may override the MIME type."""
        result = shape_resource_contents("notes://a", resource, {"text": "# Hi", "mimeType": "text/markdown"})

        assert result == {"contents": [{"uri": "notes://a", "mimeType": "text/markdown", "text": "# Hi"}]}

    @pytest.mark.unit
    def test_mapping_with_blob_bytes(self, resource):
        """Test blob bytes are base64 encoded."""
        result = shape_resource_contents("notes://a", resource, {"blob": b"hi"})

        assert result["contents"][0]["blob"] == "aGk="

    @pytest.mark.unit
    def test_list_of_items(self, resource):
        """Test several content items."""
        result = shape_resource_contents(
            "notes://a", resource, ["one", {"uri": "notes://b", "text": "two"}]
        )

        assert [item["uri"] for item in result["contents"]] == ["notes://a", "notes://b"]

    @pytest.mark.unit
    def test_ready_contents_pass_through(self, resource):
        """Test a ready contents mapping is returned as is."""
        ready = {"contents": [{"uri": "notes://a", "text": "x"}]}

        assert shape_resource_contents("notes://a", resource, ready) == ready


class TestPromptResult:
    """Test prompt result shaping."""

    @pytest.mark.unit
    def test_list_of_strings(self):
        """Test strings in a list become user messages."""
        result = shape_prompt_result(["first", {"role": "assistant", "content": {"type": "text", "text": "ok"}}])

        assert [message["role"] for message in result["messages"]] == ["user", "assistant"]

    @pytest.mark.unit
    def test_own_description_kept(self):
        """Test a response description wins over the registered one."""
        result = shape_prompt_result(PromptResponse.text("hi", description="own"), "registered")

        assert result["description"] == "own"

    @pytest.mark.unit
    def test_invalid_result(self):
        """Test unsupported results are rejected."""
        with pytest.raises(TypeError):
            shape_prompt_result(3.14)
