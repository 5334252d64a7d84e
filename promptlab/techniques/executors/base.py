"""Base class and shared data types for technique executors.

Every concrete executor inherits from ``TechniqueExecutor`` and implements
``_execute``. The public ``run`` wraps it: it coerces parameters, measures
latency over the full execution and turns any unexpected exception into a
well-formed result with ``final_answer="Unknown"``, so callers always get a
``TechniqueResult`` back.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import asdict, dataclass, replace
from typing import Any, ClassVar

import structlog

from promptlab.llm.gateway import ModelGateway
from promptlab.llm.types import GenerationOptions, GenerationResult
from promptlab.techniques.params import TechniqueParams

log = structlog.get_logger(__name__)

UNKNOWN = "Unknown"


@dataclass(kw_only=True)
class TechniqueOutput:
    """Fields shared by every technique's output record.

    Attributes:
        final_answer: The answer extracted from the model output.
        raw_text:     Trimmed model text (concatenated for multi-call techniques).
        raw:          Provider payload, or a technique-specific trace.
        usage:        Token usage as reported by the provider, if any.
        latency_ms:   Wall-clock time of the whole execution.
        error:        Set only when the executor itself failed.
    """

    final_answer: str
    raw_text: str = ""
    raw: Any = None
    usage: dict[str, Any] | None = None
    latency_ms: int = 0
    error: str | None = None


@dataclass(kw_only=True)
class TechniqueResult:
    technique: str
    prompt: str
    outputs: list[TechniqueOutput]
    model: str | None = None

    @property
    def output(self) -> TechniqueOutput:
        return self.outputs[0]

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def elapsed_ms(start: float) -> int:
    return int(round((time.perf_counter() - start) * 1000))


class TechniqueExecutor(ABC):
    """Abstract base for all technique executors.

    Args:
        gateway: Model Gateway shared by all calls of one execution.
    """

    technique: ClassVar[str]

    def __init__(self, gateway: ModelGateway) -> None:
        self._gateway = gateway

    async def run(
        self,
        input_text: str,
        params: TechniqueParams | Mapping[str, Any] | None = None,
    ) -> TechniqueResult:
        start = time.perf_counter()
        try:
            options = TechniqueParams.coerce(params)
            result = await self._execute(input_text or "", options)
        except Exception as exc:
            log.exception("technique.failed", technique=self.technique, error=str(exc))
            output = TechniqueOutput(
                final_answer=UNKNOWN,
                error=f"{exc.__class__.__name__}: {exc}",
            )
            result = self._result("", output)

        latency = elapsed_ms(start)
        result.outputs = [replace(o, latency_ms=latency) for o in result.outputs]
        log.info(
            "technique.completed",
            technique=self.technique,
            latency_ms=latency,
            failed=result.output.error is not None,
        )
        return result

    @abstractmethod
    async def _execute(self, input_text: str, params: TechniqueParams) -> TechniqueResult:
        """Run the technique and return a result with exactly one output."""

    # ------------------------------------------------------------------
    # Shared helpers available to all executors
    # ------------------------------------------------------------------

    async def _generate(
        self, prompt: str, *, temperature: float, max_tokens: int
    ) -> GenerationResult:
        return await self._gateway.generate(
            prompt,
            GenerationOptions(temperature=temperature, max_output_tokens=max_tokens),
        )

    def _result(self, prompt: str, output: TechniqueOutput) -> TechniqueResult:
        return TechniqueResult(technique=self.technique, prompt=prompt, outputs=[output])
