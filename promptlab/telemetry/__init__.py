"""Telemetry package: structured logging with request and technique context."""

from __future__ import annotations

from promptlab.telemetry.logging import (
    RequestIdMiddleware,
    bind_technique_context,
    clear_context,
    configure_logging,
    unbind_technique_context,
)

__all__ = [
    "RequestIdMiddleware",
    "bind_technique_context",
    "clear_context",
    "configure_logging",
    "unbind_technique_context",
]
