from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Sequence

from loguru import logger
from pydantic import BaseModel

from world_engine.engine.errors import ErrorCode, PathNotFound, TypeMismatch, WorldEngineError
from world_engine.engine.paths import locate
from world_engine.engine.values import is_number, strict_equals, value_kind
from world_engine.expressions.context import MISSING, EvaluationContext
from world_engine.expressions.parser import (
    Arithmetic,
    Comparison,
    Exists,
    Includes,
    Literal,
    Negate,
    Node,
    PathRef,
    parse_expression,
)


class Prereq(BaseModel):
    expr: str
    id: str | None = None


@dataclass(frozen=True)
class EvaluationResult:
    success: bool
    value: bool | int | float | None = None
    code: ErrorCode | None = None
    error: str | None = None


@dataclass(frozen=True)
class PrereqOutcome:
    expr: str
    passed: bool
    id: str | None = None
    code: ErrorCode | None = None
    error: str | None = None


@dataclass
class PrereqReport:
    all_passed: bool
    results: list[PrereqOutcome] = field(default_factory=list)


def _resolve(path: PathRef, context: EvaluationContext) -> Any:
    root_value = context.role_value(path.root)
    derived = context.derived_value(path.root, path.segments)
    if derived is not MISSING:
        return derived
    if not path.segments:
        return root_value
    return locate(root_value, list(path.segments), path.text).read()


def _exists(path: PathRef, context: EvaluationContext) -> bool:
    try:
        value = _resolve(path, context)
    except PathNotFound:
        return False
    return value is not None


def _numbers(op: str, left: Any, right: Any) -> tuple[Any, Any]:
    if not is_number(left) or not is_number(right):
        raise TypeMismatch(
            f"'{op}' requires numeric operands, got {value_kind(left).value} and {value_kind(right).value}"
        )
    return left, right


def _arithmetic(op: str, left: Any, right: Any) -> int | float:
    left, right = _numbers(op, left, right)
    if op == "+":
        return left + right
    if op == "-":
        return left - right
    if op == "*":
        return left * right
    return left / right if right != 0 else 0


def _compare(op: str, left: Any, right: Any) -> bool:
    if op == "==":
        return strict_equals(left, right)
    if op == "!=":
        return not strict_equals(left, right)

    both_numbers = is_number(left) and is_number(right)
    both_strings = isinstance(left, str) and isinstance(right, str)
    if not (both_numbers or both_strings):
        raise TypeMismatch(f"'{op}' cannot compare {value_kind(left).value} with {value_kind(right).value}")
    if op == ">":
        return left > right
    if op == "<":
        return left < right
    if op == ">=":
        return left >= right
    return left <= right


def _includes(haystack: Any, needle: Any) -> bool:
    if isinstance(haystack, list):
        return any(strict_equals(item, needle) for item in haystack)
    if isinstance(haystack, str):
        return str(needle) in haystack
    raise TypeMismatch(f"'includes' requires a sequence, got {value_kind(haystack).value}")


def _evaluate(node: Node, context: EvaluationContext) -> Any:
    if isinstance(node, Literal):
        return node.value
    if isinstance(node, PathRef):
        return _resolve(node, context)
    if isinstance(node, Negate):
        operand = _evaluate(node.operand, context)
        if not is_number(operand):
            raise TypeMismatch(f"Unary '-' requires a number, got {value_kind(operand).value}")
        return -operand
    if isinstance(node, Arithmetic):
        return _arithmetic(node.op, _evaluate(node.left, context), _evaluate(node.right, context))
    if isinstance(node, Comparison):
        return _compare(node.op, _evaluate(node.left, context), _evaluate(node.right, context))
    if isinstance(node, Exists):
        return _exists(node.path, context)
    if isinstance(node, Includes):
        haystack = _resolve(node.path, context)
        return _includes(haystack, _evaluate(node.needle, context))
    raise TypeError(f"Unknown expression node: {type(node).__name__}")


def evaluate_expression(expr: str, context: EvaluationContext) -> EvaluationResult:
    try:
        value = _evaluate(parse_expression(expr), context)
        if not isinstance(value, bool) and not is_number(value):
            raise TypeMismatch(f"Expression must yield a boolean or number, got {value_kind(value).value}")
    except WorldEngineError as exc:
        logger.bind(component="expression_evaluator").debug(
            "Expression failed expr={} code={} error={}", expr, exc.code.value, exc.message
        )
        return EvaluationResult(success=False, code=exc.code, error=exc.message)
    return EvaluationResult(success=True, value=value)


def evaluate_prereqs(prereqs: Sequence[Prereq | str], context: EvaluationContext) -> PrereqReport:
    results: list[PrereqOutcome] = []
    for prereq in prereqs:
        if not isinstance(prereq, Prereq):
            prereq = Prereq(expr=str(prereq))
        expr = prereq.expr
        result = evaluate_expression(expr, context)
        results.append(
            PrereqOutcome(
                expr=expr,
                passed=result.success and result.value is True,
                id=prereq.id,
                code=result.code,
                error=result.error,
            )
        )
    return PrereqReport(all_passed=all(item.passed for item in results), results=results)
