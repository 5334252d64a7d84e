"""Prompt builders and input sanitisation."""

from __future__ import annotations

from promptlab.prompts.templates import (
    MAX_INPUT_CHARS,
    build_chain_of_thought_prompt,
    build_directional_stimuli_generator_prompt,
    build_directional_stimulus_solver_prompt,
    build_few_shot_prompt,
    build_pal_prompt,
    build_rag_prompt,
    build_react_prompt,
    build_reflexion_prompt,
    build_self_consistency_prompt,
    build_zero_shot_prompt,
    sanitize_input,
)

__all__ = [
    "MAX_INPUT_CHARS",
    "build_chain_of_thought_prompt",
    "build_directional_stimuli_generator_prompt",
    "build_directional_stimulus_solver_prompt",
    "build_few_shot_prompt",
    "build_pal_prompt",
    "build_rag_prompt",
    "build_react_prompt",
    "build_reflexion_prompt",
    "build_self_consistency_prompt",
    "build_zero_shot_prompt",
    "sanitize_input",
]
