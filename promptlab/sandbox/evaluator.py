"""Isolated execution of model-generated programs.

Each evaluation starts a fresh interpreter in isolated mode with an empty
environment and a throwaway working directory. POSIX resource limits cap CPU
time, address space and file writes; the parent enforces the wall-clock
timeout and kills the child when it expires.
"""

from __future__ import annotations

import asyncio
import json
import math
import sys
import tempfile
from dataclasses import dataclass
from pathlib import Path

import structlog

if sys.platform != "win32":
    import resource
else:
    resource = None

log = structlog.get_logger(__name__)

_RUNNER_SOURCE = Path(__file__).with_name("_runner.py").read_text(encoding="utf-8")
_MAX_STDERR_CHARS = 500


@dataclass(frozen=True)
class SandboxResult:
    value: str | None = None
    error: str | None = None
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None and self.value is not None


def _limit_resources(cpu_seconds: int, memory_bytes: int):
    def apply() -> None:
        limits = (
            (resource.RLIMIT_CPU, cpu_seconds),
            (resource.RLIMIT_AS, memory_bytes),
            (resource.RLIMIT_FSIZE, 0),
        )
        for limit, value in limits:
            try:
                resource.setrlimit(limit, (value, value))
            except (ValueError, OSError):
                # Not every platform allows lowering every limit.
                pass

    return apply


class SandboxedEvaluator:
    """Run ``solution()`` from untrusted source in a child interpreter.

    Args:
        timeout_ms: Wall-clock budget per evaluation.
        memory_limit_mb: Address-space cap for the child (POSIX only).
    """

    def __init__(self, timeout_ms: int = 1000, memory_limit_mb: int = 256) -> None:
        self._timeout_ms = timeout_ms
        self._memory_limit_mb = memory_limit_mb

    @property
    def timeout_ms(self) -> int:
        return self._timeout_ms

    async def evaluate(self, code: str) -> SandboxResult:
        """Execute ``code`` and return the stringified result of ``solution()``.

        Never raises for bad code: syntax errors, exceptions, a missing
        ``solution``, crashes and timeouts all come back as ``SandboxResult.error``.
        """
        if not code or not code.strip():
            return SandboxResult(error="No code to execute")

        preexec_fn = None
        if resource is not None:
            preexec_fn = _limit_resources(
                cpu_seconds=max(1, math.ceil(self._timeout_ms / 1000)) + 1,
                memory_bytes=self._memory_limit_mb * 1024 * 1024,
            )

        with tempfile.TemporaryDirectory(prefix="promptlab-sandbox-") as workdir:
            try:
                proc = await asyncio.create_subprocess_exec(
                    sys.executable,
                    "-I",
                    "-S",
                    "-c",
                    _RUNNER_SOURCE,
                    stdin=asyncio.subprocess.PIPE,
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.PIPE,
                    cwd=workdir,
                    env={},
                    preexec_fn=preexec_fn,
                )
            except OSError as exc:
                log.error("sandbox.spawn_failed", error=str(exc))
                return SandboxResult(error=f"Could not start sandbox: {exc}")

            try:
                stdout, stderr = await asyncio.wait_for(
                    proc.communicate(code.encode("utf-8")),
                    timeout=self._timeout_ms / 1000,
                )
            except TimeoutError:
                await self._kill(proc)
                log.warning("sandbox.timeout", timeout_ms=self._timeout_ms)
                return SandboxResult(
                    error=f"Execution timed out after {self._timeout_ms} ms",
                    timed_out=True,
                )

        return self._parse_output(proc.returncode, stdout, stderr)

    @staticmethod
    async def _kill(proc: asyncio.subprocess.Process) -> None:
        if proc.returncode is None:
            proc.kill()
        await proc.wait()

    @staticmethod
    def _parse_output(returncode: int | None, stdout: bytes, stderr: bytes) -> SandboxResult:
        lines = stdout.decode("utf-8", errors="replace").strip().splitlines()
        if lines:
            try:
                payload = json.loads(lines[-1])
            except json.JSONDecodeError:
                payload = None
            if isinstance(payload, dict):
                if payload.get("ok"):
                    return SandboxResult(value=str(payload.get("value", "")))
                return SandboxResult(error=str(payload.get("error") or "Unknown error"))

        detail = stderr.decode("utf-8", errors="replace").strip()[-_MAX_STDERR_CHARS:]
        log.warning("sandbox.no_result", returncode=returncode, stderr=detail)
        if returncode is not None and returncode < 0:
            return SandboxResult(error=f"Process terminated by signal {-returncode}")
        return SandboxResult(error=detail or f"Process exited with code {returncode} and no result")
