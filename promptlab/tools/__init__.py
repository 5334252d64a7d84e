"""ReAct tool back ends."""

from __future__ import annotations

from promptlab.tools.toolbox import (
    CalculationError,
    DocumentToolbox,
    SimulatedToolbox,
    Toolbox,
    build_toolbox,
    safe_calculate,
)

__all__ = [
    "CalculationError",
    "DocumentToolbox",
    "SimulatedToolbox",
    "Toolbox",
    "build_toolbox",
    "safe_calculate",
]
