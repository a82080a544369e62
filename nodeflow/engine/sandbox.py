"""
Restricted evaluation of user-supplied Python for the Code node.

User code runs in a worker thread against a whitelist of builtins and
deep-copied bindings. Imports and underscore-prefixed names or attributes are
rejected before execution, and a trace-function deadline aborts code that runs
past its time budget.
"""

from __future__ import annotations

import ast
import asyncio
import copy
import json
import logging
import math
import re
import sys
import time
from datetime import datetime, timedelta
from types import FrameType
from typing import Any, Callable

from ..core.exceptions import EvalError

logger = logging.getLogger(__name__)

_FILENAME = "<code-node>"
_ALLOWED_BINDINGS = frozenset({"items", "item", "input"})

SAFE_BUILTINS: dict[str, Any] = {
    "len": len,
    "str": str,
    "int": int,
    "float": float,
    "bool": bool,
    "list": list,
    "dict": dict,
    "tuple": tuple,
    "set": set,
    "range": range,
    "enumerate": enumerate,
    "zip": zip,
    "map": map,
    "filter": filter,
    "sorted": sorted,
    "reversed": reversed,
    "sum": sum,
    "min": min,
    "max": max,
    "abs": abs,
    "round": round,
    "any": any,
    "all": all,
    "isinstance": isinstance,
    "None": None,
    "True": True,
    "False": False,
    "Exception": Exception,
    "ValueError": ValueError,
    "KeyError": KeyError,
}

SAFE_MODULES: dict[str, Any] = {
    "json": json,
    "math": math,
    "re": re,
    "datetime": datetime,
    "timedelta": timedelta,
}


class InputHelper:
    """The `input` binding: accessors over the item batch."""

    def __init__(self, items: list[dict[str, Any]]) -> None:
        self._items = items

    def all(self) -> list[dict[str, Any]]:
        return self._items

    def first(self) -> dict[str, Any] | None:
        return self._items[0] if self._items else None

    def last(self) -> dict[str, Any] | None:
        return self._items[-1] if self._items else None


class _Deadline(BaseException):
    """Raised inside the worker thread when user code overruns its budget."""


def check_code(code: str) -> ast.Module:
    """Parse user code and reject constructs that could escape the sandbox."""
    try:
        tree = ast.parse(code, filename=_FILENAME)
    except SyntaxError as e:
        raise EvalError(f"Syntax error on line {e.lineno}: {e.msg}") from e

    for node in ast.walk(tree):
        if isinstance(node, (ast.Import, ast.ImportFrom)):
            raise EvalError("Imports are not allowed in code")
        if isinstance(node, (ast.Global, ast.Nonlocal)):
            raise EvalError("global/nonlocal statements are not allowed in code")
        if isinstance(node, ast.Attribute) and node.attr.startswith("_"):
            raise EvalError(f'Access to attribute "{node.attr}" is not allowed')
        if isinstance(node, ast.Name) and node.id.startswith("_"):
            raise EvalError(f'Use of name "{node.id}" is not allowed')
        if isinstance(node, ast.ExceptHandler) and (
            node.type is None
            or (isinstance(node.type, ast.Name) and node.type.id == "BaseException")
        ):
            raise EvalError("Bare except clauses are not allowed in code")
    return tree


def _wrap(tree: ast.Module) -> ast.Module:
    """
    Turn user code into a function body so `return` works.

    A lone expression is treated as the value to return.
    """
    body = tree.body
    if len(body) == 1 and isinstance(body[0], ast.Expr):
        body = [ast.Return(value=body[0].value)]
    module = ast.parse("def user_code():\n    pass\n", filename=_FILENAME)
    module.body[0].body = body or [ast.Pass()]
    return ast.fix_missing_locations(module)


def _make_tracer(deadline: float) -> Callable[..., Any]:
    def tracer(frame: FrameType, event: str, arg: Any) -> Callable[..., Any] | None:
        if frame.f_code.co_filename != _FILENAME:
            return None
        if time.monotonic() > deadline:
            raise _Deadline()
        return tracer

    return tracer


def _run(code_obj: Any, namespace: dict[str, Any], timeout: float) -> Any:
    exec(code_obj, namespace)
    user_code = namespace["user_code"]
    sys.settrace(_make_tracer(time.monotonic() + timeout))
    try:
        return user_code()
    except _Deadline:
        raise EvalError(f"Code execution timed out ({timeout:g} second limit)") from None
    finally:
        sys.settrace(None)


async def evaluate(code: str, bindings: dict[str, Any], timeout: float = 5.0) -> Any:
    """
    Evaluate user code against the given bindings.

    Only `items`, `item` and `input` are accepted as bindings; they are deep
    copied so user code cannot mutate engine state.

    Raises:
        EvalError: On rejected code, a runtime failure, or a timeout
    """
    unknown = set(bindings) - _ALLOWED_BINDINGS
    if unknown:
        raise EvalError(f"Unsupported bindings: {', '.join(sorted(unknown))}")

    tree = _wrap(check_code(code))
    code_obj = compile(tree, _FILENAME, "exec")

    copied = copy.deepcopy(bindings)
    if "input" not in copied and "items" in copied:
        copied["input"] = InputHelper(copied["items"])
    elif isinstance(copied.get("input"), list):
        copied["input"] = InputHelper(copied["input"])

    def log(*args: Any) -> None:
        logger.info("[Code Node] %s", " ".join(str(a) for a in args))

    namespace: dict[str, Any] = {
        "__builtins__": {**SAFE_BUILTINS, "print": log},
        **SAFE_MODULES,
        **copied,
    }

    loop = asyncio.get_running_loop()
    future = loop.run_in_executor(None, _run, code_obj, namespace, timeout)
    try:
        # Grace period lets the in-thread deadline fire first
        return await asyncio.wait_for(future, timeout=timeout + 1.0)
    except asyncio.TimeoutError:
        raise EvalError(f"Code execution timed out ({timeout:g} second limit)") from None
    except EvalError:
        raise
    except Exception as e:
        raise EvalError(f"Code execution failed: {e}") from e
