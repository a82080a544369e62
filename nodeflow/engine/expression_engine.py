"""
Expression engine for resolving {{ }} template expressions in node parameters.

Uses simpleeval for safe expression evaluation (no eval() or exec()).
"""

from __future__ import annotations

import json
import logging
import math
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from simpleeval import SimpleEval, DEFAULT_FUNCTIONS, DEFAULT_OPERATORS

from .types import NodeData, RunState

logger = logging.getLogger(__name__)

_EXPRESSION = re.compile(r"\{\{(.+?)\}\}")


@dataclass
class ExpressionContext:
    """Values visible to an expression."""

    json_data: dict[str, Any]  # $json
    input_data: list[NodeData]  # $input
    node_data: dict[str, dict[str, Any]] = field(default_factory=dict)  # $node
    execution: dict[str, Any] = field(default_factory=dict)  # $execution
    item_index: int = 0  # $itemIndex


class ExpressionEngine:
    """Resolves {{ }} expressions with a whitelist of helper functions."""

    def __init__(self) -> None:
        self.evaluator = SimpleEval()
        self.evaluator.operators = DEFAULT_OPERATORS.copy()
        self.evaluator.functions = {
            **DEFAULT_FUNCTIONS,
            "str": str,
            "int": int,
            "float": float,
            "bool": bool,
            "len": len,
            "lower": lambda s: str(s).lower(),
            "upper": lambda s: str(s).upper(),
            "trim": lambda s: str(s).strip(),
            "includes": lambda s, search: search in str(s),
            "first": lambda arr: arr[0] if arr else None,
            "last": lambda arr: arr[-1] if arr else None,
            "abs": abs,
            "min": min,
            "max": max,
            "sum": sum,
            "round": round,
            "floor": math.floor,
            "ceil": math.ceil,
            "now": lambda: datetime.now().isoformat(),
            "json_stringify": lambda v: json.dumps(v),
            "json_parse": lambda s: json.loads(s) if s else None,
            "is_empty": lambda v: v is None or v == "" or v == [] or v == {},
            "get": lambda d, key, default=None: d.get(key, default) if isinstance(d, dict) else default,
        }

    def resolve(self, value: Any, context: ExpressionContext) -> Any:
        """
        Resolve all {{ }} expressions in a value.

        Handles strings, dicts and lists recursively. A string that is exactly
        one expression keeps the evaluated type; mixed text is interpolated.
        """
        if isinstance(value, str):
            return self._resolve_string(value, context)
        if isinstance(value, list):
            return [self.resolve(item, context) for item in value]
        if isinstance(value, dict):
            return {key: self.resolve(val, context) for key, val in value.items()}
        return value

    def _resolve_string(self, string: str, context: ExpressionContext) -> Any:
        trimmed = string.strip()
        if trimmed.startswith("{{") and trimmed.endswith("}}"):
            inner = trimmed[2:-2]
            if "{{" not in inner and "}}" not in inner:
                return self._evaluate(inner.strip(), context)

        if "{{" not in string:
            return string

        return _EXPRESSION.sub(
            lambda match: self._stringify(self._evaluate(match.group(1).strip(), context)),
            string,
        )

    def _evaluate(self, expression: str, context: ExpressionContext) -> Any:
        try:
            self.evaluator.names = self._build_names(context)
            return self.evaluator.eval(self._transform_expression(expression))
        except Exception as e:
            logger.warning("Expression evaluation failed: %s (expression: %s)", e, expression)
            return f"[Expression Error: {e}]"

    def _transform_expression(self, expression: str) -> str:
        """Rewrite $-prefixed references into names simpleeval can look up."""
        result = re.sub(r'\$node\["([^"]+)"\]', lambda m: f'node_data["{m.group(1)}"]', expression)
        result = re.sub(r"\$json\.(\w+)", r'json_data.get("\1")', result)
        result = result.replace("$json", "json_data")
        result = result.replace("$input", "input_data")
        result = result.replace("$execution", "execution")
        result = result.replace("$itemIndex", "item_index")
        return result

    def _build_names(self, context: ExpressionContext) -> dict[str, Any]:
        return {
            "json_data": context.json_data,
            "input_data": [item.json for item in context.input_data],
            "node_data": context.node_data,
            "execution": context.execution,
            "item_index": context.item_index,
            "true": True,
            "false": False,
            "null": None,
        }

    def _stringify(self, value: Any) -> str:
        if value is None:
            return ""
        if isinstance(value, (dict, list)):
            return json.dumps(value)
        return str(value)

    @staticmethod
    def create_context(
        current_data: list[NodeData],
        run_state: RunState | None = None,
        execution_id: str = "",
        item_index: int = 0,
        mode: str = "manual",
    ) -> ExpressionContext:
        """Create expression context for one item of the current batch."""
        current_item = (
            current_data[item_index] if item_index < len(current_data) else NodeData(json={})
        )

        node_data: dict[str, dict[str, Any]] = {}
        if run_state is not None:
            for node_id, output in run_state.outputs.items():
                node_data[node_id] = {
                    "json": output.items[0].json if output.items else {},
                    "data": [d.json for d in output.items],
                }

        return ExpressionContext(
            json_data=current_item.json,
            input_data=current_data,
            node_data=node_data,
            execution={"id": execution_id, "mode": mode},
            item_index=item_index,
        )


# Singleton instance
expression_engine = ExpressionEngine()
