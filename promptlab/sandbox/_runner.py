"""Child-process entry point for the sandboxed evaluator.

Reads program source from stdin, executes it against a restricted builtins
table, calls ``solution()`` and writes exactly one JSON line to stdout:
``{"ok": true, "value": "..."}`` or ``{"ok": false, "error": "Type: msg"}``.

This file is executed as a script (``python -I -S -c <source>``), never
imported by the parent, so it may only depend on the standard library.
"""

import ast
import builtins
import json
import sys
import types

ALLOWED_MODULES = frozenset(
    {
        "math",
        "cmath",
        "decimal",
        "fractions",
        "statistics",
        "itertools",
        "functools",
        "collections",
        "datetime",
        "re",
        "string",
        "operator",
        "random",
        "heapq",
        "bisect",
    }
)

BLOCKED_BUILTINS = frozenset(
    {
        "open",
        "input",
        "exec",
        "eval",
        "compile",
        "breakpoint",
        "globals",
        "locals",
        "vars",
        "help",
        "exit",
        "quit",
        "memoryview",
        "__import__",
        "getattr",
        "setattr",
        "delattr",
        "type",
    }
)

# Public names that still walk attributes by string.
HIDDEN_MODULE_NAMES = {
    "operator": frozenset({"attrgetter", "methodcaller"}),
    "string": frozenset({"Formatter"}),
}

BLOCKED_ATTRIBUTES = frozenset({"format", "format_map", "mro"})
# Frame, generator, coroutine and traceback internals reach the runner's globals.
BLOCKED_ATTRIBUTE_PREFIXES = ("_", "f_", "gi_", "cr_", "ag_", "tb_")

MAX_VALUE_CHARS = 10_000

_real_import = builtins.__import__
_stdout = sys.stdout


_views = {}


def _allowed(name):
    return name.split(".")[0] in ALLOWED_MODULES


def _public_view(module):
    """Return a stand-in module exposing only the public names of ``module``."""
    name = module.__name__
    view = _views.get(name)
    if view is not None:
        return view
    view = _views[name] = types.ModuleType(name)
    hidden = HIDDEN_MODULE_NAMES.get(name, frozenset())
    for key, value in vars(module).items():
        if key.startswith("_") or key in hidden:
            continue
        if isinstance(value, types.ModuleType):
            if not _allowed(value.__name__):
                continue
            value = _public_view(value)
        setattr(view, key, value)
    return view


def _restricted_import(name, globals=None, locals=None, fromlist=(), level=0):
    if level != 0 or not _allowed(name):
        raise ImportError(f"import of '{name}' is not allowed")
    return _public_view(_real_import(name, globals, locals, fromlist, level))


def _silent_print(*args, **kwargs):
    return None


def _check_source(tree):
    for node in ast.walk(tree):
        if isinstance(node, ast.Attribute) and (
            node.attr.startswith(BLOCKED_ATTRIBUTE_PREFIXES) or node.attr in BLOCKED_ATTRIBUTES
        ):
            raise SyntaxError(f"access to attribute '{node.attr}' is not allowed")
        if isinstance(node, ast.Constant) and isinstance(node.value, str):
            if node.value.startswith("_") or "__" in node.value:
                raise SyntaxError(f"private name literal {node.value!r} is not allowed")
        if isinstance(node, ast.Name) and node.id.startswith("__"):
            raise SyntaxError(f"use of name '{node.id}' is not allowed")


def _safe_builtins():
    table = {k: v for k, v in vars(builtins).items() if k not in BLOCKED_BUILTINS}
    table["__import__"] = _restricted_import
    table["print"] = _silent_print
    return table


def _emit(payload):
    _stdout.write(json.dumps(payload) + "\n")
    _stdout.flush()


def main():
    source = sys.stdin.read()
    try:
        tree = ast.parse(source, filename="<solution>", mode="exec")
        _check_source(tree)
        code = compile(tree, "<solution>", "exec")
        namespace = {"__builtins__": _safe_builtins(), "__name__": "__solution__"}
        exec(code, namespace)
        solution = namespace.get("solution")
        if not callable(solution):
            raise NameError("no callable 'solution' defined")
        value = str(solution())
    except BaseException as exc:
        message = str(exc) or exc.__class__.__name__
        _emit({"ok": False, "error": f"{exc.__class__.__name__}: {message}"})
        return
    _emit({"ok": True, "value": value[:MAX_VALUE_CHARS]})


main()
