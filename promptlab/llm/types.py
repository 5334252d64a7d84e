"""Value types exchanged with the Model Gateway."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

LLM_ERROR_PREFIX = "LLM_ERROR:"


@dataclass(frozen=True)
class GenerationOptions:
    """Sampling options for a single generation call."""

    temperature: float = 0.0
    max_output_tokens: int = 300


@dataclass(frozen=True)
class FileAttachment:
    """An uploaded original handed to the model for direct analysis."""

    path: str
    mime_type: str


@dataclass
class GenerationResult:
    """Normalised gateway response.

    ``text`` is always a string. Transport or provider failures are reported
    as ``"LLM_ERROR: <message>"`` with the error payload in ``raw``.
    """

    text: str
    raw: Any = None
    usage: dict[str, Any] | None = None
    model_version: str | None = None
    response_id: str | None = None

    @property
    def is_error(self) -> bool:
        return self.text.startswith(LLM_ERROR_PREFIX)


def total_tokens(usage: dict[str, Any] | None) -> int:
    """Read the total token count from either usage shape.

    Returns 0 when usage is missing or carries no total.
    """
    if not usage:
        return 0
    for key in ("totalTokenCount", "total_tokens"):
        value = usage.get(key)
        if isinstance(value, (int, float)):
            return int(value)
    return 0
