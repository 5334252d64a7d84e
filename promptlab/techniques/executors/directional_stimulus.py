"""Directional-stimulus executor.

Two sequential calls: a creative generator (temperature 0.7) writes hints
without solving the problem, then a deterministic solver answers guided by
those hints.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from promptlab.llm.types import total_tokens
from promptlab.parsing import first_present, regex_group, whole_text
from promptlab.prompts.templates import (
    build_directional_stimuli_generator_prompt,
    build_directional_stimulus_solver_prompt,
)
from promptlab.techniques.executors.base import UNKNOWN, TechniqueExecutor, TechniqueOutput, TechniqueResult
from promptlab.techniques.params import TechniqueParams

log = structlog.get_logger(__name__)

GENERATOR_TEMPERATURE = 0.7
SOLVER_TEMPERATURE = 0.0
MAX_TOKENS = 500

STIMULI_CHAIN = (regex_group(r"Directional Stimuli:\s*([\s\S]*)"), whole_text)
ANSWER_CHAIN = (regex_group(r"Answer:\s*([\s\S]*?)(?=\nJustification:|\Z)"),)
JUSTIFICATION_CHAIN = (regex_group(r"Justification:\s*([\s\S]*)"), whole_text)


@dataclass(kw_only=True)
class DirectionalStimulusOutput(TechniqueOutput):
    stimuli: str = ""
    justification: str = ""


class DirectionalStimulusExecutor(TechniqueExecutor):
    technique = "directional_stimulus"

    async def _execute(self, input_text: str, params: TechniqueParams) -> TechniqueResult:
        gen_prompt = build_directional_stimuli_generator_prompt(input_text)
        gen_out = await self._generate(
            gen_prompt, temperature=GENERATOR_TEMPERATURE, max_tokens=MAX_TOKENS
        )
        gen_text = gen_out.text.strip()
        stimuli = first_present(gen_text, STIMULI_CHAIN) or ""
        log.debug("directional_stimulus.stimuli", chars=len(stimuli))

        solve_prompt = build_directional_stimulus_solver_prompt(input_text, stimuli)
        solve_out = await self._generate(
            solve_prompt, temperature=SOLVER_TEMPERATURE, max_tokens=MAX_TOKENS
        )
        solve_text = solve_out.text.strip()

        return self._result(
            f"[Generator Prompt]:\n{gen_prompt}\n\n[Solver Prompt]:\n{solve_prompt}",
            DirectionalStimulusOutput(
                stimuli=stimuli,
                final_answer=first_present(solve_text, ANSWER_CHAIN) or UNKNOWN,
                justification=first_present(solve_text, JUSTIFICATION_CHAIN) or "",
                raw={"generator": gen_out.raw, "solver": solve_out.raw},
                raw_text=f"[Generator Output]:\n{gen_text}\n\n[Solver Output]:\n{solve_text}",
                usage={
                    "generator": gen_out.usage,
                    "solver": solve_out.usage,
                    "total_tokens": total_tokens(gen_out.usage) + total_tokens(solve_out.usage),
                },
            ),
        )
