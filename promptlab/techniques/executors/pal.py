"""Program-aided executor.

The model writes a Python ``solution()`` function instead of answering
directly; the program runs in the sandboxed evaluator and its return value
becomes the answer.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

import structlog

from promptlab.llm.gateway import ModelGateway
from promptlab.parsing import first_present, regex_group, section
from promptlab.prompts.templates import build_pal_prompt
from promptlab.sandbox.evaluator import SandboxedEvaluator
from promptlab.techniques.executors.base import TechniqueExecutor, TechniqueOutput, TechniqueResult
from promptlab.techniques.params import TechniqueParams

log = structlog.get_logger(__name__)

TEMPERATURE = 0.0
MAX_TOKENS = 1000
NO_CODE = "No code generated"

_FENCED_BLOCK = r"```[ \t]*(?:python3?|py)?[ \t]*\n([\s\S]*?)```"
_FENCE_MARKER = re.compile(r"```[ \t]*(?:python3?|py)?", re.IGNORECASE)

CODE_CHAIN = (section("PYTHON_CODE"), regex_group(_FENCED_BLOCK))


def strip_fences(code: str) -> str:
    """Return the body of the first fenced block, or ``code`` without fence markers."""
    match = re.search(_FENCED_BLOCK, code, re.IGNORECASE)
    if match and match.group(1).strip():
        return match.group(1).strip()
    return _FENCE_MARKER.sub("", code).strip()


@dataclass(kw_only=True)
class PalOutput(TechniqueOutput):
    code: str = ""
    execution_error: str | None = None


class PalExecutor(TechniqueExecutor):
    technique = "pal"

    def __init__(self, gateway: ModelGateway, evaluator: SandboxedEvaluator) -> None:
        super().__init__(gateway)
        self._evaluator = evaluator

    async def _execute(self, input_text: str, params: TechniqueParams) -> TechniqueResult:
        prompt = build_pal_prompt(input_text, params.instruction)
        out = await self._generate(
            prompt,
            temperature=params.temperature_or(TEMPERATURE),
            max_tokens=params.max_tokens_or(MAX_TOKENS),
        )
        text = out.text.strip()
        code = strip_fences(first_present(text, CODE_CHAIN) or "")

        execution_error = None
        if not code:
            final_answer = NO_CODE
        else:
            outcome = await self._evaluator.evaluate(code)
            if outcome.ok:
                final_answer = outcome.value
            else:
                execution_error = outcome.error
                final_answer = f"Error: {outcome.error}"
                log.info("pal.execution_failed", error=outcome.error, timed_out=outcome.timed_out)

        return self._result(
            prompt,
            PalOutput(
                code=code,
                final_answer=final_answer,
                execution_error=execution_error,
                raw_text=text,
                raw=out.raw,
                usage=out.usage,
            ),
        )
