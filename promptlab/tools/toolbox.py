"""Tool back ends for the ReAct loop.

A toolbox turns an ``Action`` / ``Action Input`` pair into an observation
string. Tools never raise: failures are described in the observation so the
model can react to them on the next turn.
"""

from __future__ import annotations

import ast
import operator
from abc import ABC, abstractmethod
from typing import Any

import structlog

from promptlab.config import Settings
from promptlab.documents.retrieval import retrieve
from promptlab.documents.store import DocumentStore

log = structlog.get_logger(__name__)

MAX_EXPONENT = 100
MAX_MAGNITUDE = 10**100
MAX_EXPRESSION_CHARS = 200
MAX_OBSERVATION_DOCUMENTS = 3
MAX_SNIPPET_CHARS = 300

_OPERATORS: dict[type, Any] = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
    ast.Pow: operator.pow,
    ast.USub: operator.neg,
    ast.UAdd: operator.pos,
}


class CalculationError(ValueError):
    pass


def _check_magnitude(value: int | float) -> int | float:
    if abs(value) > MAX_MAGNITUDE:
        raise CalculationError("result too large")
    return value


def _eval_node(node: ast.AST) -> int | float:
    if isinstance(node, ast.Expression):
        return _eval_node(node.body)
    if isinstance(node, ast.Constant) and type(node.value) in (int, float):
        return _check_magnitude(node.value)
    if isinstance(node, ast.UnaryOp) and type(node.op) in _OPERATORS:
        return _OPERATORS[type(node.op)](_eval_node(node.operand))
    if isinstance(node, ast.BinOp) and type(node.op) in _OPERATORS:
        left = _eval_node(node.left)
        right = _eval_node(node.right)
        if isinstance(node.op, ast.Pow) and abs(right) > MAX_EXPONENT:
            raise CalculationError("exponent too large")
        return _check_magnitude(_OPERATORS[type(node.op)](left, right))
    raise CalculationError(f"unsupported element {type(node).__name__}")


def safe_calculate(expression: str) -> int | float:
    """Evaluate pure arithmetic (numbers, + - * / // % **, parentheses) without eval().

    Raises:
        CalculationError: for anything else, division by zero or oversized values.
    """
    expr = expression.strip()
    if not expr or len(expr) > MAX_EXPRESSION_CHARS:
        raise CalculationError("expression is empty or too long")
    try:
        tree = ast.parse(expr, mode="eval")
        return _eval_node(tree)
    except SyntaxError as exc:
        raise CalculationError(f"invalid syntax: {exc.msg}") from exc
    except ZeroDivisionError as exc:
        raise CalculationError("division by zero") from exc
    except OverflowError as exc:
        raise CalculationError("numeric overflow") from exc


def _format_number(value: int | float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class Toolbox(ABC):
    """Maps a ReAct action to an observation."""

    name: str

    async def run(self, action: str, action_input: str) -> str:
        observation = await self._run(action.strip().lower(), action, action_input.strip())
        log.debug("tools.executed", toolbox=self.name, action=action, input_chars=len(action_input))
        return observation

    @abstractmethod
    async def _run(self, key: str, action: str, action_input: str) -> str:
        """Produce the observation for the normalised action ``key``."""


class SimulatedToolbox(Toolbox):
    """Deterministic canned observations; ``calculate`` does real arithmetic."""

    name = "simulated"

    async def _run(self, key: str, action: str, action_input: str) -> str:
        if key == "search":
            return self.search(action_input)
        if key == "lookup":
            return self.lookup(action_input)
        if key == "calculate":
            return self.calculate(action_input)
        if key == "analyze":
            return (
                f'Analysis of "{action_input}": Examined the data/information and identified key '
                "patterns, relationships, and insights relevant to the question."
            )
        if key == "finish":
            return f"Task completed with final answer: {action_input}"
        return (
            f'Executed {action} with input "{action_input}": Operation completed successfully '
            "with relevant results."
        )

    def search(self, query: str) -> str:
        return (
            f'Search results for "{query}": Found relevant information about {query}. This '
            "appears to be related to the query and provides context for analysis."
        )

    def lookup(self, term: str) -> str:
        return (
            f'Lookup result for "{term}": Found definition and relevant information that helps '
            "understand the context."
        )

    def calculate(self, expression: str) -> str:
        try:
            result = safe_calculate(expression)
        except CalculationError as exc:
            return f'Calculation for "{expression}" failed: {exc}.'
        return f"Calculation result: {expression} = {_format_number(result)}"


class DocumentToolbox(SimulatedToolbox):
    """Answers ``search`` and ``lookup`` from uploaded documents and the knowledge base."""

    name = "documents"

    def __init__(self, store: DocumentStore | None) -> None:
        self._store = store

    def _retrieve(self, query: str, limit: int) -> str:
        docs = retrieve(query, self._store, max_documents=limit)
        rendered = []
        for doc in docs:
            snippet = " ".join(doc.content.split())[:MAX_SNIPPET_CHARS]
            rendered.append(f"[{doc.source}] {snippet}")
        return "\n".join(rendered)

    def search(self, query: str) -> str:
        return f'Search results for "{query}":\n{self._retrieve(query, MAX_OBSERVATION_DOCUMENTS)}'

    def lookup(self, term: str) -> str:
        return f'Lookup result for "{term}":\n{self._retrieve(term, 1)}'


def build_toolbox(settings: Settings, store: DocumentStore | None = None) -> Toolbox:
    if settings.react_tool_backend == "documents":
        return DocumentToolbox(store)
    return SimulatedToolbox()
