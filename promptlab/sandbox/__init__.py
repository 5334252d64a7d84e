"""Sandboxed evaluation of generated programs."""

from __future__ import annotations

from promptlab.sandbox.evaluator import SandboxedEvaluator, SandboxResult

__all__ = ["SandboxResult", "SandboxedEvaluator"]
