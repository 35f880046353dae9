"""Prompt registry and YAML prompt loading.

A prompt file looks like::

    name: code_review
    description: Review a snippet
    arguments:
      - name: language
        description: Programming language
        required: true
    messages:
      - role: user
        content: "Review this {language} code"

``template: "..."`` may replace ``messages`` for a single user message.
Placeholders are ``{name}``; unknown names and any other braces are left as
written.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from toolhost.core.mcp.constants import NOTIFY_PROMPTS_LIST_CHANGED
from toolhost.core.mcp.registry import Entity, Registry
from toolhost.core.mcp.schema import Schema

from .response import PromptResponse, text_message

logger = logging.getLogger(__name__)

PROMPT_FILE_PATTERNS = ("*.yaml", "*.yml")


@dataclass
class Prompt(Entity):
    """A prompt: ``handler(arguments) -> messages``."""

    source: str | None = None

    def metadata(self) -> dict[str, Any]:
        data = super().metadata()
        data["arguments"] = self.schema.prompt_arguments()
        return data


_PLACEHOLDER = re.compile(r"\{(\w+)\}")


def render(text: str, arguments: dict[str, Any]) -> str:
    return _PLACEHOLDER.sub(
        lambda m: str(arguments[m[1]]) if m[1] in arguments else m[0], text
    )


class PromptRegistry(Registry[Prompt]):
    kind = "prompt"
    entity_class = Prompt
    list_changed_method = NOTIFY_PROMPTS_LIST_CHANGED

    def load_directory(self, directory: Path | str) -> int:
        """Register every YAML prompt in ``directory``.

        Later calls override earlier ones with the same name, so load
        shared prompts first and local overrides last.

        Args:
            directory: Directory to scan (non-recursive)

        Returns:
            Number of prompts registered
        """
        directory = Path(directory)
        if not directory.is_dir():
            logger.warning(f"Prompt directory does not exist: {directory}")
            return 0

        files = sorted(path for pattern in PROMPT_FILE_PATTERNS for path in directory.glob(pattern))
        loaded = 0
        for file_path in files:
            try:
                with file_path.open("r", encoding="utf-8") as f:
                    prompt_data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                logger.error(f"Failed to parse prompt file {file_path}: {e}")
                continue
            except OSError as e:
                logger.error(f"Error reading prompt file {file_path}: {e}")
                continue

            if not isinstance(prompt_data, dict) or "name" not in prompt_data:
                logger.warning(f"Invalid prompt file (missing name): {file_path}")
                continue

            try:
                self.register_definition(prompt_data, source=str(file_path))
            except (KeyError, TypeError, ValueError) as e:
                logger.error(f"Invalid prompt definition in {file_path}: {e}")
                continue
            loaded += 1

        logger.info(f"Loaded {loaded} prompts from {directory}")
        return loaded

    def register_definition(self, definition: dict[str, Any], source: str | None = None) -> Prompt:
        """Register a prompt from a declarative definition (as loaded from YAML)."""
        name = str(definition["name"])
        description = definition.get("description")

        if "messages" in definition:
            messages = [
                {"role": message.get("role", "user"), "text": str(message["content"])}
                for message in definition["messages"]
            ]
        elif "template" in definition:
            messages = [{"role": "user", "text": str(definition["template"])}]
        else:
            raise ValueError(f"Prompt '{name}' needs 'messages' or 'template'")
        # Roles are checked once here, not per render
        for message in messages:
            text_message("", message["role"])

        def handler(arguments: dict[str, Any]) -> PromptResponse:
            return PromptResponse.from_messages(
                [text_message(render(m["text"], arguments), m["role"]) for m in messages],
                description=description,
            )

        prompt = Prompt(
            name=name,
            schema=Schema.from_descriptor(definition.get("arguments") or None),
            handler=handler,
            description=description,
            source=source,
        )
        return self._store(prompt)

    def sources(self) -> dict[str, str | None]:
        """Map prompt names to the file they were loaded from (None if registered in code)."""
        return {prompt.name: prompt.source for prompt in self.entities()}
