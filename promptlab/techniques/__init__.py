"""Prompting techniques: executors, parameters and the dispatcher.

Usage:
    from promptlab.techniques import TechniqueDispatcher

    dispatcher = TechniqueDispatcher(gateway, store=store)
    result = await dispatcher.dispatch("What is 7 * 6?", "pal")
    result.output.final_answer  # "42"
"""

from __future__ import annotations

from promptlab.techniques.dispatcher import (
    TechniqueDispatcher,
    TechniqueId,
    UnsupportedTechniqueError,
    parse_technique_id,
)
from promptlab.techniques.executors import TechniqueExecutor, TechniqueOutput, TechniqueResult
from promptlab.techniques.params import TechniqueParams

__all__ = [
    "TechniqueDispatcher",
    "TechniqueExecutor",
    "TechniqueId",
    "TechniqueOutput",
    "TechniqueParams",
    "TechniqueResult",
    "UnsupportedTechniqueError",
    "parse_technique_id",
]
