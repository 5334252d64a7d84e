"""Self-consistency executor.

One sampled call at a higher temperature asks the model for several
independent reasoning paths and the answer most of them agree on. The paths
are split back out of the ``Reasoning Paths:`` block on their numbered
markers.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from promptlab.parsing import first_present, regex_group
from promptlab.prompts.templates import build_self_consistency_prompt
from promptlab.techniques.executors.base import UNKNOWN, TechniqueExecutor, TechniqueOutput, TechniqueResult
from promptlab.techniques.params import TechniqueParams

TEMPERATURE = 0.7
MAX_TOKENS = 1000

PATHS_CHAIN = (regex_group(r"Reasoning Paths:\s*([\s\S]*?)(?=Final Answer:|\Z)"),)
FINAL_ANSWER_CHAIN = (regex_group(r"Final Answer:\s*([\s\S]*)"),)

_PATH_MARKER = re.compile(r"(?:^|\n)\s*\d+\.\s+")


def split_paths(block: str) -> list[str]:
    """Split a numbered block into paths; an unsplittable block is one path."""
    paths = [p.strip() for p in _PATH_MARKER.split(block) if p.strip()]
    return paths or [block]


@dataclass(kw_only=True)
class SelfConsistencyOutput(TechniqueOutput):
    reasoning_paths: list[str] = field(default_factory=list)


class SelfConsistencyExecutor(TechniqueExecutor):
    technique = "self_consistency"

    async def _execute(self, input_text: str, params: TechniqueParams) -> TechniqueResult:
        prompt = build_self_consistency_prompt(input_text, params.instruction)
        out = await self._generate(
            prompt,
            temperature=params.temperature_or(TEMPERATURE),
            max_tokens=params.max_tokens_or(MAX_TOKENS),
        )
        text = out.text.strip()
        block = first_present(text, PATHS_CHAIN) or ""

        return self._result(
            prompt,
            SelfConsistencyOutput(
                reasoning_paths=split_paths(block),
                final_answer=first_present(text, FINAL_ANSWER_CHAIN) or UNKNOWN,
                raw_text=text,
                raw=out.raw,
                usage=out.usage,
            ),
        )
