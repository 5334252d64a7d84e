"""ReAct executor: a bounded reason-act-observe loop.

Each iteration sends the running transcript, parses one
``Thought`` / ``Action`` / ``Action Input`` step, runs the action through the
toolbox and appends the observation with a fresh ``Thought:`` cue. The loop
ends on ``finish``, on a response with neither thought nor action, or after
``max_iterations`` calls.

LLM call flow:
  1..max_iterations sequential calls, each with the whole transcript so far
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

import structlog

from promptlab.llm.gateway import ModelGateway
from promptlab.llm.types import total_tokens
from promptlab.prompts.templates import build_react_prompt
from promptlab.techniques.executors.base import TechniqueExecutor, TechniqueOutput, TechniqueResult
from promptlab.techniques.params import TechniqueParams
from promptlab.tools.toolbox import Toolbox

log = structlog.get_logger(__name__)

TEMPERATURE = 0.1
MAX_TOKENS = 800
NO_ANSWER = "Unable to determine answer"
FINISH_ACTION = "finish"

_THOUGHT = re.compile(r"Thought:\s*([\s\S]*?)(?=\nAction:|\Z)", re.IGNORECASE)
# A prefixed word such as "SubAction:" is not an action marker.
_ACTION = re.compile(r"(?<!\w)Action:\s*([\s\S]*?)(?=\nAction Input:|\Z)", re.IGNORECASE)
_ACTION_INPUT = re.compile(
    r"Action Input:\s*([\s\S]*?)(?=\nObservation:|\nThought:|\Z)", re.IGNORECASE
)


@dataclass
class ReActStep:
    thought: str
    action: str
    action_input: str
    observation: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.action.lower() == FINISH_ACTION


@dataclass(kw_only=True)
class ReActOutput(TechniqueOutput):
    steps: list[ReActStep] = field(default_factory=list)
    completed: bool = False
    iterations: int = 0
    reasoning: str = ""


def _group(pattern: re.Pattern[str], text: str) -> str:
    match = pattern.search(text)
    return match.group(1).strip() if match else ""


def parse_react_step(response: str) -> ReActStep | None:
    """Parse one step; ``None`` when the response has neither thought nor action."""
    thought = _group(_THOUGHT, response)
    action = _group(_ACTION, response)
    if not thought and not action:
        return None
    return ReActStep(thought=thought, action=action, action_input=_group(_ACTION_INPUT, response))


def format_react(steps: list[ReActStep]) -> str:
    blocks = []
    for index, step in enumerate(steps, start=1):
        block = (
            f"Step {index}:\nThought: {step.thought}\n"
            f"Action: {step.action} - {step.action_input}"
        )
        if step.observation:
            block += f"\nResult: {step.observation}"
        blocks.append(block)
    return "\n\n".join(blocks)


class ReActExecutor(TechniqueExecutor):
    technique = "react"

    def __init__(self, gateway: ModelGateway, toolbox: Toolbox) -> None:
        super().__init__(gateway)
        self._toolbox = toolbox

    async def _execute(self, input_text: str, params: TechniqueParams) -> TechniqueResult:
        prompt = build_react_prompt(input_text, params.tool_spec)
        transcript = prompt
        steps: list[ReActStep] = []
        final_answer = ""
        completed = False
        tokens = 0

        for iteration in range(params.max_iterations):
            out = await self._generate(
                transcript,
                temperature=params.temperature_or(TEMPERATURE),
                max_tokens=params.max_tokens_or(MAX_TOKENS),
            )
            tokens += total_tokens(out.usage)
            response = out.text.strip()

            step = parse_react_step(response)
            if step is None:
                final_answer = response
                log.debug("react.unstructured_response", iteration=iteration)
                break

            step.observation = await self._toolbox.run(step.action, step.action_input)
            steps.append(step)
            log.debug("react.step", iteration=iteration, action=step.action)

            if step.is_terminal:
                final_answer = step.action_input
                completed = True
                break

            transcript += (
                f"\n\nThought: {step.thought}\nAction: {step.action}\n"
                f"Action Input: {step.action_input}\nObservation: {step.observation}\n\nThought:"
            )

        if not final_answer and steps:
            last = steps[-1]
            final_answer = last.observation or last.action_input or NO_ANSWER
        if not final_answer:
            final_answer = NO_ANSWER

        log.info("react.finished", iterations=len(steps), completed=completed)
        return self._result(
            prompt,
            ReActOutput(
                steps=steps,
                final_answer=final_answer,
                completed=completed,
                iterations=len(steps),
                reasoning=format_react(steps),
                raw={"steps": [vars(s).copy() for s in steps], "iterations": len(steps)},
                raw_text=transcript,
                usage={"iterations": len(steps), "total_tokens": tokens},
            ),
        )
