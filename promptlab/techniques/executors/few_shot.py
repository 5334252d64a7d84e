"""Few-shot executor: worked examples followed by the new input."""

from __future__ import annotations

from promptlab.llm.types import LLM_ERROR_PREFIX
from promptlab.prompts.templates import build_few_shot_prompt
from promptlab.techniques.executors.base import UNKNOWN, TechniqueExecutor, TechniqueOutput, TechniqueResult
from promptlab.techniques.executors.labels import (
    clean_labels,
    last_line_words,
    match_allowed_label,
    strip_markup,
)
from promptlab.techniques.params import TechniqueParams

TEMPERATURE = 0.0
MAX_TOKENS = 24


def extract_few_shot_answer(raw_text: str, allowed_labels: list[str]) -> str:
    """Allowed label if present, else the whole last line (multi-word answers kept)."""
    if raw_text.startswith(LLM_ERROR_PREFIX):
        return UNKNOWN
    cleaned = strip_markup(raw_text, all_bullets=False)
    canonical = match_allowed_label(cleaned, allowed_labels)
    if canonical:
        return canonical
    words = last_line_words(cleaned)
    return " ".join(words) if words else UNKNOWN


class FewShotExecutor(TechniqueExecutor):
    technique = "few_shot"

    async def _execute(self, input_text: str, params: TechniqueParams) -> TechniqueResult:
        labels = clean_labels(params.allowed_labels)
        examples = [e.model_dump(exclude_none=True) for e in params.examples]
        prompt = build_few_shot_prompt(input_text, examples, params.instruction, labels or None)

        out = await self._generate(
            prompt, temperature=TEMPERATURE, max_tokens=params.max_tokens_or(MAX_TOKENS)
        )
        raw_text = out.text.strip()

        return self._result(
            prompt,
            TechniqueOutput(
                final_answer=extract_few_shot_answer(raw_text, labels),
                raw_text=raw_text,
                raw=out.raw,
                usage=out.usage,
            ),
        )
