"""Reflexion executor.

One call asks the model for an initial attempt followed by numbered
self-critique / revision cycles; the executor parses the cycles back into
ordered steps.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

from promptlab.parsing import parse_section
from promptlab.prompts.templates import build_reflexion_prompt
from promptlab.techniques.executors.base import TechniqueExecutor, TechniqueOutput, TechniqueResult
from promptlab.techniques.params import TechniqueParams

TEMPERATURE = 0.1
MAX_TOKENS = 1500
MAX_PARSED_CYCLES = 5
NO_FINAL_ANSWER = "Unable to determine final answer"


class ReflexionStepKind(StrEnum):
    INITIAL = "initial"
    REFLECTION = "reflection"
    REVISION = "revision"


@dataclass(frozen=True)
class ReflexionStep:
    kind: ReflexionStepKind
    cycle: int
    content: str


@dataclass(kw_only=True)
class ReflexionOutput(TechniqueOutput):
    steps: list[ReflexionStep] = field(default_factory=list)
    reflection_count: int = 0
    reasoning: str = ""


def parse_reflexion_steps(text: str) -> list[ReflexionStep]:
    """Initial attempt, then (reflection, revision) pairs in cycle order.

    Parsing stops at the first cycle with neither section.
    """
    steps: list[ReflexionStep] = []
    initial = parse_section(text, "INITIAL_ATTEMPT")
    if initial:
        steps.append(ReflexionStep(ReflexionStepKind.INITIAL, 0, initial))

    for cycle in range(1, MAX_PARSED_CYCLES + 1):
        reflection = parse_section(text, f"REFLECTION_{cycle}")
        revision = parse_section(text, f"REVISED_SOLUTION_{cycle}")
        if not reflection and not revision:
            break
        if reflection:
            steps.append(ReflexionStep(ReflexionStepKind.REFLECTION, cycle, reflection))
        if revision:
            steps.append(ReflexionStep(ReflexionStepKind.REVISION, cycle, revision))
    return steps


def latest_solution(steps: list[ReflexionStep]) -> str | None:
    """Content of the last revision, else of the initial attempt."""
    revisions = [s for s in steps if s.kind is ReflexionStepKind.REVISION]
    if revisions:
        return revisions[-1].content
    initial = next((s for s in steps if s.kind is ReflexionStepKind.INITIAL), None)
    return initial.content if initial else None


def format_reflexion(steps: list[ReflexionStep]) -> str:
    titles = {
        ReflexionStepKind.INITIAL: "Initial Attempt",
        ReflexionStepKind.REFLECTION: "Reflection {cycle}",
        ReflexionStepKind.REVISION: "Revised Solution {cycle}",
    }
    return "\n\n".join(
        f"{titles[s.kind].format(cycle=s.cycle)}:\n{s.content}" for s in steps
    )


class ReflexionExecutor(TechniqueExecutor):
    technique = "reflexion"

    async def _execute(self, input_text: str, params: TechniqueParams) -> TechniqueResult:
        prompt = build_reflexion_prompt(input_text, params.max_reflections)
        out = await self._generate(
            prompt,
            temperature=params.temperature_or(TEMPERATURE),
            max_tokens=params.max_tokens_or(MAX_TOKENS),
        )
        text = out.text.strip()
        steps = parse_reflexion_steps(text)
        final_answer = parse_section(text, "FINAL_ANSWER") or latest_solution(steps) or NO_FINAL_ANSWER

        return self._result(
            prompt,
            ReflexionOutput(
                steps=steps,
                reflection_count=sum(1 for s in steps if s.kind is ReflexionStepKind.REFLECTION),
                reasoning=format_reflexion(steps),
                final_answer=final_answer,
                raw_text=text,
                raw=out.raw,
                usage=out.usage,
            ),
        )
