"""Prompt hosting."""

from .registry import Prompt, PromptRegistry
from .response import PromptResponse

__all__ = [
    "Prompt",
    "PromptRegistry",
    "PromptResponse",
]
