"""Technique executors - one class per prompting technique."""

from __future__ import annotations

from promptlab.techniques.executors.base import TechniqueExecutor, TechniqueOutput, TechniqueResult
from promptlab.techniques.executors.chain_of_thought import ChainOfThoughtExecutor
from promptlab.techniques.executors.directional_stimulus import DirectionalStimulusExecutor
from promptlab.techniques.executors.few_shot import FewShotExecutor
from promptlab.techniques.executors.pal import PalExecutor
from promptlab.techniques.executors.rag import RAGExecutor
from promptlab.techniques.executors.react import ReActExecutor
from promptlab.techniques.executors.reflexion import ReflexionExecutor
from promptlab.techniques.executors.self_consistency import SelfConsistencyExecutor
from promptlab.techniques.executors.zero_shot import ZeroShotExecutor

__all__ = [
    "ChainOfThoughtExecutor",
    "DirectionalStimulusExecutor",
    "FewShotExecutor",
    "PalExecutor",
    "RAGExecutor",
    "ReActExecutor",
    "ReflexionExecutor",
    "SelfConsistencyExecutor",
    "TechniqueExecutor",
    "TechniqueOutput",
    "TechniqueResult",
    "ZeroShotExecutor",
]
