"""Chain-of-thought executor: numbered reasoning followed by a final answer."""

from __future__ import annotations

from dataclasses import dataclass

from promptlab.parsing import first_present, last_paragraph, parse_section, section
from promptlab.prompts.templates import build_chain_of_thought_prompt
from promptlab.techniques.executors.base import UNKNOWN, TechniqueExecutor, TechniqueOutput, TechniqueResult
from promptlab.techniques.params import TechniqueParams

TEMPERATURE = 0.0
MAX_TOKENS = 500

FINAL_ANSWER_CHAIN = (section("FINAL_ANSWER"), last_paragraph)


@dataclass(kw_only=True)
class ChainOfThoughtOutput(TechniqueOutput):
    reasoning: str = ""


class ChainOfThoughtExecutor(TechniqueExecutor):
    technique = "chain_of_thought"

    async def _execute(self, input_text: str, params: TechniqueParams) -> TechniqueResult:
        prompt = build_chain_of_thought_prompt(input_text, params.instruction)
        out = await self._generate(
            prompt,
            temperature=params.temperature_or(TEMPERATURE),
            max_tokens=params.max_tokens_or(MAX_TOKENS),
        )
        text = out.text.strip()

        return self._result(
            prompt,
            ChainOfThoughtOutput(
                reasoning=parse_section(text, "REASONING") or "",
                final_answer=first_present(text, FINAL_ANSWER_CHAIN) or UNKNOWN,
                raw_text=text,
                raw=out.raw,
                usage=out.usage,
            ),
        )
