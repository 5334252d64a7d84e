"""Technique dispatcher - maps a technique identifier to its executor.

The table is fixed at construction time: every ``TechniqueId`` has exactly
one executor, built from the injected collaborators. Unknown identifiers are
rejected before any model call is made.

    zero_shot             → ZeroShotExecutor
    few_shot              → FewShotExecutor
    chain_of_thought      → ChainOfThoughtExecutor
    self_consistency      → SelfConsistencyExecutor
    pal                   → PalExecutor            (+ sandboxed evaluator)
    directional_stimulus  → DirectionalStimulusExecutor
    react                 → ReActExecutor          (+ toolbox)
    reflexion             → ReflexionExecutor
    rag                   → RAGExecutor            (+ document store)
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum
from typing import Any

import structlog

from promptlab.documents.store import DocumentStore
from promptlab.llm.gateway import ModelGateway
from promptlab.sandbox.evaluator import SandboxedEvaluator
from promptlab.techniques.executors import (
    ChainOfThoughtExecutor,
    DirectionalStimulusExecutor,
    FewShotExecutor,
    PalExecutor,
    RAGExecutor,
    ReActExecutor,
    ReflexionExecutor,
    SelfConsistencyExecutor,
    TechniqueExecutor,
    TechniqueResult,
    ZeroShotExecutor,
)
from promptlab.techniques.params import TechniqueParams
from promptlab.telemetry.logging import bind_technique_context, unbind_technique_context
from promptlab.tools.toolbox import SimulatedToolbox, Toolbox

log = structlog.get_logger(__name__)


class TechniqueId(StrEnum):
    ZERO_SHOT = "zero_shot"
    FEW_SHOT = "few_shot"
    CHAIN_OF_THOUGHT = "chain_of_thought"
    SELF_CONSISTENCY = "self_consistency"
    PAL = "pal"
    DIRECTIONAL_STIMULUS = "directional_stimulus"
    REACT = "react"
    REFLEXION = "reflexion"
    RAG = "rag"


class UnsupportedTechniqueError(ValueError):
    """Raised for a technique identifier outside ``TechniqueId``."""

    def __init__(self, technique: str) -> None:
        super().__init__(f"Technique not supported: {technique!r}")
        self.technique = technique


def parse_technique_id(technique: str | TechniqueId) -> TechniqueId:
    try:
        return TechniqueId(str(technique).strip())
    except ValueError:
        raise UnsupportedTechniqueError(str(technique)) from None


class TechniqueDispatcher:
    """Routes a run request to the executor registered for its technique.

    Args:
        gateway:   Model Gateway shared by all executors.
        store:     Document store for retrieval augmentation (optional).
        evaluator: Sandboxed evaluator for program-aided reasoning.
        toolbox:   ReAct tool back end (defaults to the simulated one).
        model_name: Attached to every result; defaults to the gateway's model.
    """

    def __init__(
        self,
        gateway: ModelGateway,
        *,
        store: DocumentStore | None = None,
        evaluator: SandboxedEvaluator | None = None,
        toolbox: Toolbox | None = None,
        model_name: str | None = None,
    ) -> None:
        self._model_name = model_name or gateway.model_name
        evaluator = evaluator or SandboxedEvaluator()
        toolbox = toolbox or SimulatedToolbox()
        self._executors: dict[TechniqueId, TechniqueExecutor] = {
            TechniqueId.ZERO_SHOT: ZeroShotExecutor(gateway),
            TechniqueId.FEW_SHOT: FewShotExecutor(gateway),
            TechniqueId.CHAIN_OF_THOUGHT: ChainOfThoughtExecutor(gateway),
            TechniqueId.SELF_CONSISTENCY: SelfConsistencyExecutor(gateway),
            TechniqueId.PAL: PalExecutor(gateway, evaluator),
            TechniqueId.DIRECTIONAL_STIMULUS: DirectionalStimulusExecutor(gateway),
            TechniqueId.REACT: ReActExecutor(gateway, toolbox),
            TechniqueId.REFLEXION: ReflexionExecutor(gateway),
            TechniqueId.RAG: RAGExecutor(gateway, store),
        }

    @property
    def model_name(self) -> str:
        return self._model_name

    @property
    def techniques(self) -> list[TechniqueId]:
        return list(self._executors)

    def executor_for(self, technique: str | TechniqueId) -> TechniqueExecutor:
        return self._executors[parse_technique_id(technique)]

    async def dispatch(
        self,
        input_text: str,
        technique: str | TechniqueId,
        params: TechniqueParams | Mapping[str, Any] | None = None,
    ) -> TechniqueResult:
        """Run ``technique`` on ``input_text`` and attach the model name.

        Raises:
            UnsupportedTechniqueError: for an unknown identifier, before any model call.
        """
        technique_id = parse_technique_id(technique)
        executor = self._executors[technique_id]

        bind_technique_context(technique_id.value, self._model_name)
        try:
            log.info("dispatcher.dispatch", input_chars=len(input_text or ""))
            result = await executor.run(input_text, params)
        finally:
            unbind_technique_context()

        result.model = self._model_name
        return result
