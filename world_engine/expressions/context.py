from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from world_engine.engine.errors import ContextNotAvailable, UnknownContextRoot
from world_engine.engine.paths import RoleBindings, Segment
from world_engine.state.models import Character, Relationship, World, WorldState

ROLE_ROOTS: tuple[str, ...] = ("actor", "target", "world", "relationship")

# Sentinel for "no derived value, fall back to plain field lookup".
MISSING = object()


@dataclass
class EvaluationContext:
    """Role-bound view of the entity graph for one evaluation call.

    ``state`` is optional; when present, ``actor.offices``,
    ``actor.knowledge`` (and the ``target.`` equivalents) are derived from the
    asset and secret collections.
    """

    actor: Character | None = None
    target: Character | None = None
    world: World | None = None
    relationship: Relationship | None = None
    state: WorldState | None = None

    @classmethod
    def from_state(cls, state: WorldState, bindings: RoleBindings | None = None) -> "EvaluationContext":
        bindings = bindings or RoleBindings()
        actor = state.get_character(bindings.actor_id) if bindings.actor_id else None
        target = state.get_character(bindings.target_id) if bindings.target_id else None

        relationship = None
        if bindings.relationship_id:
            relationship = state.get_relationship_by_id(bindings.relationship_id)
        elif actor is not None and target is not None:
            relationship = state.get_relationship(actor.id, target.id)

        return cls(actor=actor, target=target, world=state.world, relationship=relationship, state=state)

    def role_value(self, root: str) -> Any:
        if root not in ROLE_ROOTS:
            raise UnknownContextRoot(f"Unknown context: {root}")
        value = getattr(self, root)
        if value is None:
            raise ContextNotAvailable(f"Context '{root}' is not available")
        return value

    def derived_value(self, root: str, segments: tuple[Segment, ...]) -> Any:
        if root not in ("actor", "target") or len(segments) != 1 or segments[0].index is not None:
            return MISSING

        character: Character = self.role_value(root)
        name = segments[0].name
        if name == "location":
            return character.status.location_id
        if name == "offices":
            if self.state is None:
                return []
            return [f"powers.{power}" for power in self.state.office_powers(character.id)]
        if name == "knowledge":
            if self.state is None:
                return []
            return [secret.id for secret in self.state.secrets_known_by(character.id)]
        return MISSING
