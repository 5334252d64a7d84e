"""Prompt builders for every technique.

All builders are pure: they sanitise the embedded text, render a template and
return a single string. Section headers requested here are the ones the
executors parse back out, so the two sides must change together.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from typing import Any

MAX_INPUT_CHARS = 4000
MAX_EXAMPLE_TEXT_CHARS = 600
MAX_EXAMPLE_LABEL_CHARS = 200
MAX_EXAMPLE_SUMMARY_CHARS = 400
MAX_DOCUMENT_CHARS = 1500
MAX_FEW_SHOT_EXAMPLES = 3

_WHITESPACE_RUN = re.compile(r"\s+")

DEFAULT_ZERO_SHOT_INSTRUCTION = (
    "Answer the question from the user with a single output (text, number, ...) "
    "(no explanation, no bullets, no extra text, no code block)."
)
DEFAULT_FEW_SHOT_INSTRUCTION = "Perform the task shown in the examples."
DEFAULT_COT_INSTRUCTION = "Reason step-by-step, then give a concise final answer."
DEFAULT_PAL_INSTRUCTION = (
    "Write a Python function named `solution` that solves the problem and returns the answer."
)
DEFAULT_SELF_CONSISTENCY_INSTRUCTION = "You are solving this problem using self-consistency."
DEFAULT_REACT_TOOLS = "search, calculate, lookup, analyze"


def sanitize_input(text: str | None, max_len: int = MAX_INPUT_CHARS) -> str:
    """Collapse whitespace, trim and cap ``text`` at ``max_len`` characters.

    Idempotent: ``sanitize_input(sanitize_input(s)) == sanitize_input(s)``.
    """
    if not text:
        return ""
    cleaned = _WHITESPACE_RUN.sub(" ", text).strip()
    return cleaned[:max_len].rstrip()


def _instruction(value: str | None, default: str) -> str:
    return (value or "").strip() or default


# ---------------------------------------------------------------------------
# Single-call classification / answering
# ---------------------------------------------------------------------------


def _label_instruction(allowed_labels: Sequence[str] | None) -> str:
    if allowed_labels:
        return (
            "Return EXACTLY one of the following labels (case sensitive as written): "
            f"{', '.join(allowed_labels)}."
        )
    return "Return ONLY the final answer."


def build_zero_shot_prompt(
    input_text: str,
    instruction: str | None = None,
    allowed_labels: Sequence[str] | None = None,
) -> str:
    return (
        f"{_instruction(instruction, DEFAULT_ZERO_SHOT_INSTRUCTION)}\n\n"
        f'Text:\n"{sanitize_input(input_text)}"\n\n'
        f"{_label_instruction(allowed_labels)}\n"
        "IMPORTANT: Output must be ONLY the single label (no explanation, no bullets, "
        "no extra text, no code block).\n"
        'If you cannot determine a label, output "Unknown".\n'
    )


def _render_example(example: Mapping[str, Any]) -> str:
    text = sanitize_input(str(example.get("text") or ""), MAX_EXAMPLE_TEXT_CHARS)
    label = example.get("label")
    summary = example.get("summary")
    if label:
        return f'Text: "{text}"\nAnswer: {sanitize_input(str(label), MAX_EXAMPLE_LABEL_CHARS)}\n--\n'
    if summary:
        return f'Text: "{text}"\nSummary:\n{sanitize_input(str(summary), MAX_EXAMPLE_SUMMARY_CHARS)}\n--\n'
    return f'Text: "{text}"\nOutput:\n\n--\n'


def build_few_shot_prompt(
    input_text: str,
    examples: Sequence[Mapping[str, Any]] | None,
    instruction: str | None = None,
    allowed_labels: Sequence[str] | None = None,
) -> str:
    """Render up to three worked examples followed by the new input.

    Each example is label-style (``label``), summary-style (``summary``) or
    bare when it carries neither.
    """
    block = "".join(_render_example(e) for e in list(examples or [])[:MAX_FEW_SHOT_EXAMPLES])
    label_line = f"{_label_instruction(allowed_labels)}\n" if allowed_labels else ""
    return (
        f"{_instruction(instruction, DEFAULT_FEW_SHOT_INSTRUCTION)}\n\n"
        f"{block}\n"
        "Now apply the same format to this input:\n\n"
        f'Text:\n"{sanitize_input(input_text)}"\n\n'
        f"{label_line}"
        "IMPORTANT: Output must be ONLY the final answer (no explanations, no bullet points, "
        'no extra text). If unsure, return "Unknown".\n'
    )


# ---------------------------------------------------------------------------
# Reasoning formats
# ---------------------------------------------------------------------------


def build_chain_of_thought_prompt(input_text: str, instruction: str | None = None) -> str:
    return (
        f"{_instruction(instruction, DEFAULT_COT_INSTRUCTION)}\n\n"
        f'Problem:\n"{sanitize_input(input_text)}"\n\n'
        "Respond in exactly this format:\n"
        "REASONING:\n"
        "1. <first step>\n"
        "2. <second step>\n"
        "...\n"
        "FINAL_ANSWER: <concise final answer on one line>\n"
    )


def build_pal_prompt(input_text: str, instruction: str | None = None) -> str:
    return (
        f"{_instruction(instruction, DEFAULT_PAL_INSTRUCTION)}\n\n"
        f'Problem:\n"{sanitize_input(input_text)}"\n\n'
        "Rules:\n"
        "- Define a function `def solution():` that takes no arguments and RETURNS the answer.\n"
        "- Use only plain Python and the math, fractions, decimal, statistics, itertools, "
        "collections and datetime modules.\n"
        "- Do not read input, open files, access the network or print the result.\n"
        "- Use f-strings instead of str.format and avoid getattr and names starting with an underscore.\n\n"
        "Respond in exactly this format:\n"
        "PYTHON_CODE:\n"
        "```python\n"
        "def solution():\n"
        "    # compute the answer step by step\n"
        "    return answer\n"
        "```\n"
    )


def build_self_consistency_prompt(input_text: str, instruction: str | None = None) -> str:
    return (
        f"{_instruction(instruction, DEFAULT_SELF_CONSISTENCY_INSTRUCTION)}\n\n"
        f'Problem:\n"{sanitize_input(input_text)}"\n\n'
        "Generate at least 5 independent reasoning paths. Each path must solve the problem "
        "on its own, from scratch, and end with its own answer. Then compare the answers and "
        "choose the one most paths agree on.\n\n"
        "Respond in exactly this format:\n"
        "Reasoning Paths:\n"
        "1. <first reasoning path and its answer>\n"
        "2. <second reasoning path and its answer>\n"
        "3. <third reasoning path and its answer>\n"
        "4. <fourth reasoning path and its answer>\n"
        "5. <fifth reasoning path and its answer>\n\n"
        "Final Answer: <the majority answer>\n"
    )


def build_directional_stimuli_generator_prompt(input_text: str) -> str:
    return (
        "You write directional stimuli: short hints, keywords and focus points that steer "
        "another model toward a correct answer. Do NOT solve the problem yourself.\n\n"
        f'Problem:\n"{sanitize_input(input_text)}"\n\n'
        "Respond in exactly this format:\n"
        "Directional Stimuli:\n"
        "- <hint or keyword>\n"
        "- <hint or keyword>\n"
        "- <hint or keyword>\n"
    )


def build_directional_stimulus_solver_prompt(input_text: str, stimuli: str) -> str:
    return (
        "Solve the problem below. Use the directional stimuli as guidance.\n\n"
        f'Problem:\n"{sanitize_input(input_text)}"\n\n'
        f"Directional Stimuli:\n{sanitize_input(stimuli, 2000)}\n\n"
        "Respond in exactly this format:\n"
        "Answer: <concise answer>\n"
        "Justification: <how the stimuli led to the answer>\n"
    )


# ---------------------------------------------------------------------------
# Retrieval, tools and self-reflection
# ---------------------------------------------------------------------------


def build_rag_prompt(
    input_text: str,
    documents: Sequence[Any],
    *,
    reasoning_style: str = "analytical",
    include_retrieval_steps: bool = True,
    attached_files: Sequence[str] = (),
) -> str:
    """Embed retrieved passages (objects with ``source``/``content``/``relevance_score``)."""
    rendered = []
    for index, doc in enumerate(documents, start=1):
        rendered.append(
            f"[Document {index}] (Source: {doc.source}, relevance: {doc.relevance_score:g})\n"
            f"{sanitize_input(doc.content, MAX_DOCUMENT_CHARS)}"
        )
    context = "\n\n".join(rendered) if rendered else "(no documents retrieved)"

    if include_retrieval_steps:
        response_format = (
            "Respond in this format:\n"
            "DOCUMENT ANALYSIS: <which documents are relevant and what they say>\n"
            "REASONING: <how the evidence answers the question>\n"
            "Final Answer: <concise answer grounded in the documents>\n"
        )
    else:
        response_format = "Answer concisely, ending with a line starting with 'Final Answer:'.\n"

    prompt = (
        f"You are a retrieval-augmented assistant. Use a {reasoning_style.strip() or 'analytical'} "
        "reasoning style and ground every claim in the retrieved documents. If the documents "
        "do not contain the answer, say so.\n\n"
        f"Retrieved documents:\n{context}\n\n"
        f'Question:\n"{sanitize_input(input_text)}"\n\n'
        f"{response_format}"
    )
    if attached_files:
        prompt += (
            "\nAdditionally, analyze the following uploaded files that may be relevant to the query:\n"
            f"Files included: {', '.join(attached_files)}\n"
            "Please incorporate insights from these files into your response.\n"
        )
    return prompt


def build_react_prompt(input_text: str, tool_spec: str | None = None) -> str:
    tools = (tool_spec or "").strip() or DEFAULT_REACT_TOOLS
    return (
        "Answer the question by interleaving reasoning and actions.\n\n"
        f"Available tools: {tools}, finish\n"
        "- Use `finish` with the final answer as its input when you are done.\n\n"
        "Use exactly this format for each step, one step per response:\n"
        "Thought: <your reasoning about what to do next>\n"
        "Action: <one tool name>\n"
        "Action Input: <input for the tool>\n\n"
        "You will receive an Observation after each action.\n\n"
        f'Question: "{sanitize_input(input_text)}"\n\n'
        "Thought:"
    )


def build_reflexion_prompt(input_text: str, max_reflections: int = 3) -> str:
    return (
        "Solve the problem, then critique and improve your own solution.\n\n"
        f'Problem:\n"{sanitize_input(input_text)}"\n\n'
        f"Perform at most {max_reflections} reflection cycles. Stop early once the solution "
        "is correct.\n\n"
        "Respond in exactly this format:\n"
        "INITIAL_ATTEMPT:\n<your first solution>\n\n"
        "REFLECTION_1:\n<what is wrong or missing in the previous solution>\n\n"
        "REVISED_SOLUTION_1:\n<the improved solution>\n\n"
        "(repeat REFLECTION_n / REVISED_SOLUTION_n as needed)\n\n"
        "FINAL_ANSWER:\n<the final answer>\n"
    )
