"""Zero-shot executor: one deterministic call, reduced to a single label."""

from __future__ import annotations

from promptlab.llm.types import LLM_ERROR_PREFIX
from promptlab.prompts.templates import build_zero_shot_prompt
from promptlab.techniques.executors.base import UNKNOWN, TechniqueExecutor, TechniqueOutput, TechniqueResult
from promptlab.techniques.executors.labels import (
    capitalize_label,
    clean_labels,
    last_line_words,
    match_allowed_label,
    pick_label_word,
    strip_markup,
)
from promptlab.techniques.params import TechniqueParams

TEMPERATURE = 0.0
MAX_TOKENS = 30


def extract_zero_shot_label(raw_text: str, allowed_labels: list[str]) -> str:
    if raw_text.startswith(LLM_ERROR_PREFIX):
        return UNKNOWN
    cleaned = strip_markup(raw_text, all_bullets=True)
    canonical = match_allowed_label(cleaned, allowed_labels)
    if canonical:
        return canonical
    word = pick_label_word(last_line_words(cleaned))
    return capitalize_label(word) if word else UNKNOWN


class ZeroShotExecutor(TechniqueExecutor):
    technique = "zero_shot"

    async def _execute(self, input_text: str, params: TechniqueParams) -> TechniqueResult:
        labels = clean_labels(params.allowed_labels)
        prompt = build_zero_shot_prompt(input_text, params.instruction, labels or None)

        # Temperature is fixed: label output must be reproducible.
        out = await self._generate(
            prompt, temperature=TEMPERATURE, max_tokens=params.max_tokens_or(MAX_TOKENS)
        )
        raw_text = out.text.strip()

        return self._result(
            prompt,
            TechniqueOutput(
                final_answer=extract_zero_shot_label(raw_text, labels),
                raw_text=raw_text,
                raw=out.raw,
                usage=out.usage,
            ),
        )
