"""Path resolution and delta application over the entity graph."""

from world_engine.engine.deltas import (
    BatchDeltaResult,
    CommittedDelta,
    Delta,
    DeltaFailure,
    DeltaOp,
    DeltaResult,
    ValidationResult,
    apply_delta,
    apply_deltas,
    expand_deltas,
    validate_delta,
)
from world_engine.engine.errors import ErrorCode, WorldEngineError
from world_engine.engine.paths import FieldLocation, RoleBindings, expand_shorthand_path, read_path, resolve_path

__all__ = [
    "BatchDeltaResult",
    "CommittedDelta",
    "Delta",
    "DeltaFailure",
    "DeltaOp",
    "DeltaResult",
    "ErrorCode",
    "FieldLocation",
    "RoleBindings",
    "ValidationResult",
    "WorldEngineError",
    "apply_delta",
    "apply_deltas",
    "expand_deltas",
    "expand_shorthand_path",
    "read_path",
    "resolve_path",
    "validate_delta",
]
