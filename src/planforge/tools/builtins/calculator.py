"""Calculator resource for exact arithmetic."""

from __future__ import annotations

import ast
import operator
from fractions import Fraction
from typing import Callable

from pydantic import BaseModel, Field

from planforge.context import ExecutionContext
from planforge.tools.base import Tool, ToolKind, ToolResult


class CalculatorInput(BaseModel):
    expression: str = Field(description="Arithmetic expression, e.g. 2^3 * (1/4)")


def _power(left: Fraction, right: Fraction) -> Fraction:
    if right.denominator != 1:
        raise ValueError("Exponent must be integer")
    return left ** int(right)


_OPERATORS: dict[type[ast.operator], Callable[[Fraction, Fraction], Fraction]] = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
    ast.Pow: _power,
    ast.BitXor: _power,
}


class CalculatorTool(Tool):
    name = "calculator"
    description = "Evaluate arithmetic expressions exactly, with fractions."
    kind = ToolKind.RESOURCE
    input_schema = CalculatorInput

    def run(self, data: BaseModel, context: ExecutionContext) -> ToolResult:
        payload = CalculatorInput.model_validate(data)
        value = evaluate_expression(payload.expression)
        if value.denominator == 1:
            return ToolResult(output=f"{payload.expression} = {value.numerator}")
        return ToolResult(output=f"{payload.expression} = {value} (~{float(value):.6g})")


def evaluate_expression(expression: str) -> Fraction:
    normalized = expression.replace("^", "**")
    tree = ast.parse(normalized, mode="eval")
    return _eval_node(tree.body)


def _eval_node(node: ast.AST) -> Fraction:
    if isinstance(node, ast.Constant) and isinstance(node.value, (int, float)):
        if isinstance(node.value, bool):
            raise ValueError("Only numeric constants are allowed")
        return Fraction(str(node.value))
    if isinstance(node, ast.UnaryOp) and isinstance(node.op, (ast.UAdd, ast.USub)):
        operand = _eval_node(node.operand)
        return operand if isinstance(node.op, ast.UAdd) else -operand
    if isinstance(node, ast.BinOp):
        apply = _OPERATORS.get(type(node.op))
        if apply is None:
            raise ValueError("Unsupported operator")
        return apply(_eval_node(node.left), _eval_node(node.right))
    raise ValueError("Unsupported expression")
