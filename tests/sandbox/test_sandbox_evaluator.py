"""Tests for the sandboxed evaluator.

These spawn real child interpreters, so every case keeps its program tiny.
"""

from __future__ import annotations

import sys

import pytest

from promptlab.sandbox.evaluator import SandboxedEvaluator, SandboxResult


@pytest.fixture
def evaluator() -> SandboxedEvaluator:
    return SandboxedEvaluator(timeout_ms=5000)


class TestSandboxSuccess:
    @pytest.mark.asyncio
    async def test_returns_stringified_solution(self, evaluator):
        result = await evaluator.evaluate("def solution():\n    return 7 * 6\n")

        assert result.ok
        assert result.value == "42"
        assert result.error is None

    @pytest.mark.asyncio
    async def test_allowed_module_import(self, evaluator):
        code = "import math\n\ndef solution():\n    return math.factorial(5)\n"
        result = await evaluator.evaluate(code)
        assert result.value == "120"

    @pytest.mark.asyncio
    async def test_print_is_a_no_op(self, evaluator):
        code = "def solution():\n    print('noise')\n    return 'quiet'\n"
        result = await evaluator.evaluate(code)
        assert result.value == "quiet"

    @pytest.mark.asyncio
    async def test_non_string_results_are_stringified(self, evaluator):
        result = await evaluator.evaluate("def solution():\n    return [1, 2]\n")
        assert result.value == "[1, 2]"


class TestSandboxFailures:
    @pytest.mark.asyncio
    async def test_empty_code(self, evaluator):
        result = await evaluator.evaluate("   ")
        assert result == SandboxResult(error="No code to execute")

    @pytest.mark.asyncio
    async def test_exception_is_reported(self, evaluator):
        result = await evaluator.evaluate("def solution():\n    return 1 / 0\n")

        assert not result.ok
        assert result.error.startswith("ZeroDivisionError")

    @pytest.mark.asyncio
    async def test_syntax_error(self, evaluator):
        result = await evaluator.evaluate("def solution(:\n")
        assert result.error.startswith("SyntaxError")

    @pytest.mark.asyncio
    async def test_missing_solution(self, evaluator):
        result = await evaluator.evaluate("x = 1\n")
        assert "solution" in result.error

    @pytest.mark.asyncio
    async def test_blocked_import(self, evaluator):
        code = "import os\n\ndef solution():\n    return os.getcwd()\n"
        result = await evaluator.evaluate(code)
        assert result.error.startswith("ImportError")

    @pytest.mark.asyncio
    async def test_open_is_unavailable(self, evaluator):
        code = "def solution():\n    return open('/etc/passwd').read()\n"
        result = await evaluator.evaluate(code)
        assert result.error.startswith("NameError")

    @pytest.mark.asyncio
    async def test_private_attribute_access_is_rejected(self, evaluator):
        code = "def solution():\n    return ().__class__.__bases__\n"
        result = await evaluator.evaluate(code)

        assert result.error.startswith("SyntaxError")
        assert "attribute '__class__'" in result.error


@pytest.mark.skipif(sys.platform == "win32", reason="relies on POSIX process control")
class TestSandboxTimeout:
    @pytest.mark.asyncio
    async def test_infinite_loop_times_out(self):
        evaluator = SandboxedEvaluator(timeout_ms=300)

        result = await evaluator.evaluate("def solution():\n    while True:\n        pass\n")

        assert result.timed_out is True
        assert result.error == "Execution timed out after 300 ms"
        assert not result.ok


class TestParseOutput:
    def test_last_json_line_wins(self):
        stdout = b'garbage\n{"ok": true, "value": "5"}\n'
        assert SandboxedEvaluator._parse_output(0, stdout, b"") == SandboxResult(value="5")

    def test_signal_termination(self):
        result = SandboxedEvaluator._parse_output(-9, b"", b"")
        assert result.error == "Process terminated by signal 9"

    def test_stderr_is_surfaced(self):
        result = SandboxedEvaluator._parse_output(1, b"", b"MemoryError\n")
        assert result.error == "MemoryError"


class TestSandboxIsolation:
    """Generated code must not reach the host through allowed modules or builtins."""

    @pytest.mark.asyncio
    async def test_private_module_reference_via_getattr(self, evaluator):
        code = (
            "import random\n\n"
            "def solution():\n"
            "    o = getattr(random, '_os')\n"
            "    return o.listdir('/root')\n"
        )
        result = await evaluator.evaluate(code)

        assert not result.ok
        assert result.value is None

    @pytest.mark.asyncio
    async def test_private_module_file_read(self, evaluator):
        code = (
            "import random\n\n"
            "def solution():\n"
            "    o = getattr(random, '_os')\n"
            "    return o.read(o.open('/etc/passwd', o.O_RDONLY), 40)\n"
        )
        result = await evaluator.evaluate(code)

        assert not result.ok

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", ["getattr", "setattr", "delattr", "type"])
    async def test_reflective_builtins_are_removed(self, evaluator, name):
        result = await evaluator.evaluate(f"def solution():\n    return {name}\n")
        assert result.error.startswith("NameError")

    @pytest.mark.asyncio
    async def test_underscore_string_literal_is_rejected(self, evaluator):
        code = "def solution():\n    return '_os'\n"
        result = await evaluator.evaluate(code)
        assert result.error.startswith("SyntaxError")

    @pytest.mark.asyncio
    async def test_format_attribute_walk_is_rejected(self, evaluator):
        code = "def solution():\n    return '{0.real}'.format(1)\n"
        result = await evaluator.evaluate(code)
        assert result.error.startswith("SyntaxError")

    @pytest.mark.asyncio
    async def test_generator_frame_is_rejected(self, evaluator):
        code = (
            "def solution():\n"
            "    g = (i for i in range(1))\n"
            "    return g.gi_frame\n"
        )
        result = await evaluator.evaluate(code)
        assert result.error.startswith("SyntaxError")

    @pytest.mark.asyncio
    async def test_imported_module_has_no_private_names(self, evaluator):
        code = (
            "import random\n\n"
            "def solution():\n"
            "    return sorted(n for n in dir(random) if n.startswith(chr(95)) and not n.endswith(chr(95)))\n"
        )
        result = await evaluator.evaluate(code)
        assert result.value == "[]"

    @pytest.mark.asyncio
    async def test_attribute_walking_helpers_are_hidden(self, evaluator):
        code = "import operator\n\ndef solution():\n    return operator.attrgetter\n"
        result = await evaluator.evaluate(code)
        assert result.error.startswith("AttributeError")

    @pytest.mark.asyncio
    async def test_public_module_api_still_works(self, evaluator):
        code = (
            "from collections import Counter\n"
            "import statistics\n\n"
            "def solution():\n"
            "    return statistics.mean(Counter('aab').values())\n"
        )
        result = await evaluator.evaluate(code)
        assert result.value == "1.5"
