"""Story operator catalog: reusable moves with prerequisites and state effects."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, field_validator

from world_engine.engine.deltas import BatchDeltaResult, Delta, apply_deltas, expand_deltas
from world_engine.engine.paths import RoleBindings
from world_engine.expressions.context import EvaluationContext
from world_engine.expressions.evaluator import Prereq, PrereqReport, evaluate_prereqs
from world_engine.state.models import WorldState


class OperatorType(str, Enum):
    THRILLER = "thriller"
    SOAP = "soap"


class ConsequenceDelay(str, Enum):
    IMMEDIATE = "immediate"
    SAME_EPISODE = "same_episode"
    NEXT_EPISODE = "next_episode"


class SideEffectRisk(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    text: str = ""
    prob: float = Field(default=0.0, ge=0.0, le=1.0)
    consequence_operator: str | None = None
    consequence_delay: ConsequenceDelay = ConsequenceDelay.IMMEDIATE


class Operator(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    type: OperatorType
    tags: list[str] = Field(default_factory=list)
    prereqs: list[Prereq] = Field(default_factory=list)
    effects: list[Delta] = Field(default_factory=list)
    side_effect_risks: list[SideEffectRisk] = Field(default_factory=list)
    scene_suggestions: list[str] = Field(default_factory=list)
    allowed_inventions: dict[str, int] = Field(default_factory=dict)
    writer_guidance: str = ""

    @field_validator("prereqs", mode="before")
    @classmethod
    def _wrap_bare_exprs(cls, value: object) -> object:
        if isinstance(value, list):
            return [{"expr": item} if isinstance(item, str) else item for item in value]
        return value


class OperatorCatalog(BaseModel):
    operators: list[Operator] = Field(default_factory=list)

    def get(self, operator_id: str) -> Operator | None:
        return next((item for item in self.operators if item.id == operator_id), None)

    def by_type(self, operator_type: OperatorType | str) -> list[Operator]:
        wanted = OperatorType(operator_type)
        return [item for item in self.operators if item.type is wanted]

    def by_tags(self, tags: Iterable[str]) -> list[Operator]:
        """Operators carrying at least one of ``tags``."""
        wanted = set(tags)
        return [item for item in self.operators if wanted.intersection(item.tags)]


@dataclass
class OperatorResult:
    operator_id: str
    prereqs: PrereqReport
    deltas: BatchDeltaResult | None = None

    @property
    def success(self) -> bool:
        return self.prereqs.all_passed and self.deltas is not None and self.deltas.success


def _bind_transfer_parties(delta: Delta, bindings: RoleBindings) -> Delta:
    roles = {"actor": bindings.actor_id, "target": bindings.target_id}
    update = {}
    if delta.from_ in roles and roles[delta.from_]:
        update["from_"] = roles[delta.from_]
    if delta.to in roles and roles[delta.to]:
        update["to"] = roles[delta.to]
    return delta.model_copy(update=update) if update else delta


def apply_operator(
    state: WorldState,
    operator: Operator,
    bindings: RoleBindings,
    *,
    scene_id: str | None = None,
    reason: str | None = None,
) -> OperatorResult:
    """Checks the operator's prereqs for the bound roles and, only if all pass, applies its effects.

    Effect paths rooted at ``actor``/``target``/``relationship`` are expanded to the bound
    entities, and transfer parties named ``actor`` or ``target`` are replaced by their ids.
    """

    op_log = logger.bind(component="operators", scene_id=scene_id or "-")
    context = EvaluationContext.from_state(state, bindings)
    report = evaluate_prereqs(operator.prereqs, context)
    if not report.all_passed:
        failed = [item.id or item.expr for item in report.results if not item.passed]
        op_log.info("Operator blocked id={} failed_prereqs={}", operator.id, failed)
        return OperatorResult(operator_id=operator.id, prereqs=report)

    effects = [_bind_transfer_parties(delta, bindings) for delta in expand_deltas(operator.effects, bindings)]
    batch = apply_deltas(state, effects, scene_id=scene_id, reason=reason or f"operator:{operator.id}")
    op_log.info("Operator applied id={} applied={} failed={}", operator.id, len(batch.applied), len(batch.failed))
    return OperatorResult(operator_id=operator.id, prereqs=report, deltas=batch)
