"""Prerequisite expression language: tokenizer, parser and interpreter."""

from world_engine.expressions.context import EvaluationContext
from world_engine.expressions.evaluator import (
    EvaluationResult,
    Prereq,
    PrereqOutcome,
    PrereqReport,
    evaluate_expression,
    evaluate_prereqs,
)
from world_engine.expressions.parser import parse_expression

__all__ = [
    "EvaluationContext",
    "EvaluationResult",
    "Prereq",
    "PrereqOutcome",
    "PrereqReport",
    "evaluate_expression",
    "evaluate_prereqs",
    "parse_expression",
]
