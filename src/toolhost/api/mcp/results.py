"""Shape handler return values into protocol result mappings."""

import base64
import json
from collections.abc import Mapping
from typing import Any

from toolhost.servers.prompts.response import PromptResponse, text_message
from toolhost.servers.resources.registry import Resource
from toolhost.servers.tools.response import ToolResponse


def shape_tool_result(result: Any) -> dict[str, Any]:
    """Wrap a tool handler's return value as ``{"content": [...]}``.

    Strings become one text item, mappings that already carry ``content``
    pass through, anything else is serialized as JSON text.
    """
    if isinstance(result, ToolResponse):
        return result.to_dict()
    if isinstance(result, Mapping) and "content" in result:
        return dict(result)
    if result is None:
        return {"content": []}
    if isinstance(result, str):
        return ToolResponse.text(result).to_dict()
    return ToolResponse.json(result).to_dict()


def _content_entry(uri: str, mime_type: str, value: Any) -> dict[str, Any]:
    if isinstance(value, bytes | bytearray):
        return {
            "uri": uri,
            "mimeType": mime_type,
            "blob": base64.b64encode(bytes(value)).decode("ascii"),
        }
    if isinstance(value, str):
        return {"uri": uri, "mimeType": mime_type, "text": value}
    return {
        "uri": uri,
        "mimeType": "application/json",
        "text": json.dumps(value, default=str),
    }


def shape_resource_contents(uri: str, resource: Resource, content: Any) -> dict[str, Any]:
    """Wrap resource content as ``{"contents": [{uri, mimeType, text|blob}]}``.

    Handlers may return text, bytes, a mapping with ``text``/``blob``/
    ``content`` (plus optional ``uri`` and ``mimeType``), a list of those,
    or a ready ``{"contents": [...]}`` mapping.
    """
    if isinstance(content, Mapping) and "contents" in content:
        return dict(content)

    items = content if isinstance(content, list) else [content]
    contents = []
    for item in items:
        if isinstance(item, Mapping) and ({"text", "blob", "content"} & item.keys()):
            item_uri = item.get("uri", uri)
            mime_type = item.get("mimeType", resource.mime_type)
            if "blob" in item:
                blob = item["blob"]
                if isinstance(blob, bytes | bytearray):
                    blob = base64.b64encode(bytes(blob)).decode("ascii")
                contents.append({"uri": item_uri, "mimeType": mime_type, "blob": blob})
            else:
                value = item["text"] if "text" in item else item["content"]
                contents.append(_content_entry(item_uri, mime_type, value))
        else:
            contents.append(_content_entry(uri, resource.mime_type, item))
    return {"contents": contents}


def shape_prompt_result(result: Any, description: str | None = None) -> dict[str, Any]:
    """Wrap a prompt handler's return value as ``{"messages": [...]}``."""
    if isinstance(result, PromptResponse):
        shaped = result.to_dict()
    elif isinstance(result, Mapping) and "messages" in result:
        shaped = dict(result)
    elif isinstance(result, str):
        shaped = PromptResponse.text(result).to_dict()
    elif isinstance(result, list):
        shaped = {
            "messages": [
                text_message(message) if isinstance(message, str) else dict(message)
                for message in result
            ]
        }
    else:
        raise TypeError(f"Prompt handlers must return messages, got {type(result).__name__}")

    if description and "description" not in shaped:
        shaped["description"] = description
    return shaped
