"""Delta application against a caller-owned ``WorldState``.

Supported operators: set, add, subtract, multiply, append, remove and the
ledger-only transfer. Every failure comes back as a tagged result; a batch never
stops at the first failed delta and never rolls back the ones already applied.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable
import math

from loguru import logger
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from world_engine.engine.errors import (
    ErrorCode,
    InsufficientFunds,
    InvalidDelta,
    NoLedgerEntry,
    TypeMismatch,
    WorldEngineError,
)
from world_engine.engine.paths import (
    FieldLocation,
    LocationKind,
    RoleBindings,
    expand_shorthand_path,
    resolve_path,
    split_path,
)
from world_engine.engine.values import is_number, strict_equals, value_kind
from world_engine.state.models import LedgerEntry, Number, WorldState


class DeltaOp(str, Enum):
    SET = "set"
    ADD = "add"
    SUBTRACT = "subtract"
    MULTIPLY = "multiply"
    APPEND = "append"
    REMOVE = "remove"
    TRANSFER = "transfer"


_ARITHMETIC: dict[DeltaOp, Callable[[Number, Number], Number]] = {
    DeltaOp.ADD: lambda current, operand: current + operand,
    DeltaOp.SUBTRACT: lambda current, operand: current - operand,
    DeltaOp.MULTIPLY: lambda current, operand: current * operand,
}


class Delta(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    op: DeltaOp
    path: str = ""
    value: Any = None
    match: dict[str, Any] | None = None
    from_: str | None = Field(default=None, alias="from")
    to: str | None = None
    amount: Number | None = Field(default=None, validation_alias=AliasChoices("amount", "denarii"))


class CommittedDelta(Delta):
    scene_id: str | None = None
    reason: str | None = None


@dataclass
class DeltaResult:
    success: bool
    applied: CommittedDelta | None = None
    code: ErrorCode | None = None
    error: str | None = None


@dataclass
class DeltaFailure:
    delta: Delta
    code: ErrorCode
    error: str


@dataclass
class BatchDeltaResult:
    applied: list[CommittedDelta] = field(default_factory=list)
    failed: list[DeltaFailure] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.failed


@dataclass
class ValidationResult:
    valid: bool
    code: ErrorCode | None = None
    error: str | None = None


def _require_sequence(location: FieldLocation, op: DeltaOp) -> list[Any]:
    current = location.read()
    if not isinstance(current, list):
        raise TypeMismatch(f"'{op.value}' requires a sequence at {location.path}, got {value_kind(current).value}")
    return current


def _require_numbers(location: FieldLocation, op: DeltaOp, operand: Any) -> Number:
    current = location.read()
    if not is_number(current) or not is_number(operand):
        raise TypeMismatch(
            f"'{op.value}' requires numeric values at {location.path}, "
            f"got {value_kind(current).value} and {value_kind(operand).value}"
        )
    return current


def _coerce_item(location: FieldLocation, value: Any) -> Any:
    item_model = location.item_model()
    if item_model is None or isinstance(value, item_model):
        return value
    try:
        return item_model.model_validate(value)
    except ValidationError as exc:
        raise TypeMismatch(f"'append' value does not fit {item_model.__name__} at {location.path}: {exc}") from exc


def _coerce_replacement(location: FieldLocation, value: Any) -> Any:
    if location.kind is not LocationKind.SEQUENCE_INDEX:
        return value
    current = location.read()
    if not isinstance(current, BaseModel) or isinstance(value, type(current)):
        return value
    try:
        return type(current).model_validate(value)
    except ValidationError as exc:
        raise TypeMismatch(f"'set' value does not fit {type(current).__name__} at {location.path}: {exc}") from exc


def _match_pair(delta: Delta) -> tuple[str, Any] | None:
    if delta.match is None:
        return None
    if len(delta.match) != 1:
        raise InvalidDelta(f"'remove' match needs exactly one key/value pair, got {len(delta.match)}")
    return next(iter(delta.match.items()))


def _item_field(item: Any, key: str) -> tuple[bool, Any]:
    if isinstance(item, dict):
        return (key in item, item.get(key))
    if isinstance(item, BaseModel):
        for field_name, info in type(item).model_fields.items():
            if key in (field_name, info.alias):
                return (True, getattr(item, field_name))
        extra = item.model_extra or {}
        return (key in extra, extra.get(key))
    return (False, None)


def _removal_index(items: list[Any], delta: Delta) -> int | None:
    pair = _match_pair(delta)
    for index, item in enumerate(items):
        if pair is None:
            if strict_equals(item, delta.value):
                return index
            continue
        present, current = _item_field(item, pair[0])
        if present and strict_equals(current, pair[1]):
            return index
    return None


def _check_operation(location: FieldLocation, delta: Delta) -> None:
    if delta.op is DeltaOp.SET:
        _coerce_replacement(location, delta.value)
    elif delta.op in _ARITHMETIC:
        _require_numbers(location, delta.op, delta.value)
    elif delta.op is DeltaOp.APPEND:
        _require_sequence(location, delta.op)
        _coerce_item(location, delta.value)
    elif delta.op is DeltaOp.REMOVE:
        _require_sequence(location, delta.op)
        _match_pair(delta)


def _apply_operation(location: FieldLocation, delta: Delta) -> None:
    if delta.op is DeltaOp.SET:
        location.write(_coerce_replacement(location, delta.value))
    elif delta.op in _ARITHMETIC:
        current = _require_numbers(location, delta.op, delta.value)
        location.write(_ARITHMETIC[delta.op](current, delta.value))
    elif delta.op is DeltaOp.APPEND:
        items = _require_sequence(location, delta.op)
        items.append(_coerce_item(location, delta.value))
    elif delta.op is DeltaOp.REMOVE:
        items = _require_sequence(location, delta.op)
        index = _removal_index(items, delta)
        # No match is a silent no-op.
        if index is not None:
            del items[index]
    else:
        raise InvalidDelta(f"Operator '{delta.op.value}' cannot target a path")


def _rehearse_on_assets(state: WorldState, delta: Delta) -> None:
    """Runs an ``assets`` delta on a copy first; the live ledger is only touched when it stays consistent."""

    if split_path(delta.path)[0] != "assets":
        return
    trial = WorldState.model_construct(assets=state.assets.model_copy(deep=True))
    _apply_operation(resolve_path(trial, delta.path), delta)
    try:
        trial.assets.check_ledger()
    except ValueError as exc:
        raise InvalidDelta(f"Delta would break the cash ledger: {exc}") from exc


def _apply_path_delta(state: WorldState, delta: Delta) -> None:
    location = resolve_path(state, delta.path)
    _rehearse_on_assets(state, delta)
    _apply_operation(location, delta)


def _check_transfer(state: WorldState, delta: Delta) -> tuple[LedgerEntry, str, Number]:
    if not delta.from_ or not delta.to or delta.amount is None:
        raise InvalidDelta("Transfer requires from, to, and amount fields")
    if not is_number(delta.amount) or not math.isfinite(delta.amount) or delta.amount <= 0:
        raise InvalidDelta(f"Transfer amount must be a positive number, got {delta.amount!r}")

    source = state.assets.ledger_entry(delta.from_)
    if source is None:
        raise NoLedgerEntry(f"No ledger entry for: {delta.from_}")
    if source.denarii < delta.amount:
        raise InsufficientFunds(f"Insufficient funds: {delta.from_} has {source.denarii}, needs {delta.amount}")
    return source, delta.to, delta.amount


def _settle_transfer(state: WorldState, delta: Delta) -> None:
    source, holder, amount = _check_transfer(state, delta)

    source.denarii -= amount
    destination = state.assets.ledger_entry(holder)
    if destination is not None:
        destination.denarii += amount
    else:
        state.assets.cash_ledger.append(LedgerEntry(holder=holder, denarii=amount))


def _commit(delta: Delta, scene_id: str | None, reason: str | None) -> CommittedDelta:
    payload = delta.model_dump(by_alias=True)
    payload.update({"scene_id": scene_id, "reason": reason})
    return CommittedDelta.model_validate(payload)


def apply_delta(
    state: WorldState,
    delta: Delta,
    *,
    scene_id: str | None = None,
    reason: str | None = None,
) -> DeltaResult:
    delta_log = logger.bind(component="delta_engine", scene_id=scene_id or "-", path=delta.path or "-")
    try:
        if delta.op is DeltaOp.TRANSFER:
            _settle_transfer(state, delta)
        else:
            _apply_path_delta(state, delta)
    except WorldEngineError as exc:
        delta_log.debug("Delta rejected op={} code={} error={}", delta.op.value, exc.code.value, exc.message)
        return DeltaResult(success=False, code=exc.code, error=exc.message)

    delta_log.debug("Delta applied op={}", delta.op.value)
    return DeltaResult(success=True, applied=_commit(delta, scene_id, reason))


def apply_deltas(
    state: WorldState,
    deltas: list[Delta],
    *,
    scene_id: str | None = None,
    reason: str | None = None,
) -> BatchDeltaResult:
    batch = BatchDeltaResult()
    for delta in deltas:
        result = apply_delta(state, delta, scene_id=scene_id, reason=reason)
        if result.success and result.applied is not None:
            batch.applied.append(result.applied)
            continue
        batch.failed.append(
            DeltaFailure(
                delta=delta,
                code=result.code or ErrorCode.INVALID_DELTA,
                error=result.error or "Unknown error",
            )
        )

    batch_log = logger.bind(component="delta_engine", scene_id=scene_id or "-")
    batch_log.info("Delta batch completed applied={} failed={}", len(batch.applied), len(batch.failed))
    for failure in batch.failed:
        batch_log.warning(
            "Delta failed op={} path={} code={} error={}",
            failure.delta.op.value,
            failure.delta.path or "-",
            failure.code.value,
            failure.error,
        )
    return batch


def validate_delta(state: WorldState, delta: Delta) -> ValidationResult:
    """Checks a delta's preconditions without mutating the state."""

    try:
        if delta.op is DeltaOp.TRANSFER:
            _check_transfer(state, delta)
        else:
            _check_operation(resolve_path(state, delta.path), delta)
            _rehearse_on_assets(state, delta)
    except WorldEngineError as exc:
        return ValidationResult(valid=False, code=exc.code, error=exc.message)
    return ValidationResult(valid=True)


def expand_deltas(deltas: list[Delta], bindings: RoleBindings) -> list[Delta]:
    return [delta.model_copy(update={"path": expand_shorthand_path(delta.path, bindings)}) for delta in deltas]
