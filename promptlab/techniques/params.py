"""Caller-supplied technique parameters.

Keys are accepted in snake_case or camelCase. Unknown keys are ignored and
values that fail validation are dropped with a warning, so a bad option
falls back to the technique default instead of failing the whole run.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

log = structlog.get_logger(__name__)


class FewShotExample(BaseModel):
    model_config = ConfigDict(extra="ignore")

    text: str = ""
    label: str | None = None
    summary: str | None = None


class TechniqueParams(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )

    instruction: str | None = None
    allowed_labels: list[str] | None = None
    examples: list[FewShotExample] = Field(default_factory=list)
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    max_tokens: int | None = Field(default=None, ge=1, le=8192)
    max_iterations: int = Field(default=5, ge=1, le=20)
    tool_spec: str | None = None
    max_reflections: int = Field(default=3, ge=1, le=5)
    max_documents: int = Field(default=5, ge=1, le=20)
    use_uploaded_docs: bool = True
    use_files_directly: bool = True
    reasoning_style: str = "analytical"
    retrieval_method: str = "lexical"

    def temperature_or(self, default: float) -> float:
        return default if self.temperature is None else self.temperature

    def max_tokens_or(self, default: int) -> int:
        return default if self.max_tokens is None else self.max_tokens

    @classmethod
    def coerce(cls, params: TechniqueParams | Mapping[str, Any] | None) -> TechniqueParams:
        """Build params from a model, mapping or ``None``, dropping invalid values."""
        if isinstance(params, TechniqueParams):
            return params
        data = dict(params or {})
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            # Error locations use the camelCase alias; compare case- and underscore-blind.
            invalid = {_normalise_key(str(err["loc"][0])) for err in exc.errors() if err.get("loc")}
            log.warning("params.invalid_dropped", keys=sorted(invalid))
            cleaned = {k: v for k, v in data.items() if _normalise_key(k) not in invalid}
            return cls.model_validate(cleaned)


def _normalise_key(key: str) -> str:
    return key.replace("_", "").lower()
