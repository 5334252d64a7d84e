"""Model Gateway and the value types it exchanges."""

from __future__ import annotations

from promptlab.llm.gateway import ModelGateway
from promptlab.llm.types import (
    LLM_ERROR_PREFIX,
    FileAttachment,
    GenerationOptions,
    GenerationResult,
    total_tokens,
)

__all__ = [
    "LLM_ERROR_PREFIX",
    "FileAttachment",
    "GenerationOptions",
    "GenerationResult",
    "ModelGateway",
    "total_tokens",
]
