"""Entity graph models.

The graph is owned by the caller. Every model allows extra fields so that
document fields the engine does not know about survive a load/mutate/dump cycle
and stay addressable by dotted path.
"""

from __future__ import annotations

from typing import Any
import math

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from world_engine.config.schema import WorldConfig

Number = int | float


class EntityModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)


# World


class WorldTime(EntityModel):
    year_bce: int | None = None
    season: str | None = None
    day: int | None = None


class Location(EntityModel):
    id: str
    name: str = ""


class World(EntityModel):
    world_id: str = "world"
    time: WorldTime = Field(default_factory=WorldTime)
    locations: list[Location] = Field(default_factory=list)
    global_: dict[str, Number] = Field(default_factory=dict, alias="global")


# Factions


class Faction(EntityModel):
    id: str
    name: str = ""
    alignment: Number | None = None
    resources: Number | None = None
    stats: dict[str, Number] = Field(default_factory=dict)


# Characters


class CharacterStatus(EntityModel):
    alive: bool = True
    location_id: str | None = None
    injured: bool | None = None
    wanted: bool | None = None
    subpoenaed: bool | None = None


class Belief(EntityModel):
    id: str = ""
    text: str
    confidence: float = 0.5

    @field_validator("confidence")
    @classmethod
    def _confidence_range(cls, value: float) -> float:
        if not 0 <= value <= 1:
            raise ValueError("belief confidence must be between 0 and 1")
        return value


class Desire(EntityModel):
    id: str = ""
    text: str
    priority: float = 0.5


class Intention(EntityModel):
    id: str = ""
    operator_id: str = ""
    commitment: float = 0.5
    target: str | None = None


class BDI(EntityModel):
    beliefs: list[Belief] = Field(default_factory=list)
    desires: list[Desire] = Field(default_factory=list)
    intentions: list[Intention] = Field(default_factory=list)
    constraints: list[str] = Field(default_factory=list)


class Voice(EntityModel):
    tags: list[str] = Field(default_factory=list)
    tells: list[str] = Field(default_factory=list)


class Character(EntityModel):
    id: str
    name: str = ""
    archetype: str | None = None
    faction_id: str | None = None
    stats: dict[str, Number] = Field(default_factory=dict)
    status: CharacterStatus = Field(default_factory=CharacterStatus)
    bdi: BDI = Field(default_factory=BDI)
    emotional_state: dict[str, Any] = Field(default_factory=dict)
    voice: Voice = Field(default_factory=Voice)

    def is_principal(self, *, threshold: float, stats: list[str]) -> bool:
        if self.archetype:
            return True
        return any(self.stats.get(name, 0) >= threshold for name in stats)


# Relationships


class Relationship(EntityModel):
    id: str
    from_: str = Field(alias="from")
    to: str
    type: str = "ally"
    weights: dict[str, Number] = Field(default_factory=dict)
    flags: dict[str, bool] = Field(default_factory=dict)

    @property
    def key(self) -> str:
        return f"{self.from_}->{self.to}"

    def other_end(self, character_id: str) -> str:
        return self.to if self.from_ == character_id else self.from_

    def touches(self, character_id: str) -> bool:
        return character_id in (self.from_, self.to)


# Secrets


class SecretStats(EntityModel):
    legal_value: float = 0
    public_damage: float = 0
    credibility: float = 0


class SecretDecay(EntityModel):
    half_life_episodes: Number = 0
    applies_to: list[str] = Field(default_factory=list)
    last_decayed_episode: int = 0


class Secret(EntityModel):
    id: str
    subject_ids: list[str] = Field(default_factory=list)
    holders: list[str] = Field(default_factory=list)
    description: str = ""
    status: str = "active"
    stats: SecretStats = Field(default_factory=SecretStats)
    decay: SecretDecay | None = None

    @property
    def relevance_score(self) -> float:
        return self.stats.legal_value + self.stats.public_damage

    def involves(self, participant_ids: set[str]) -> bool:
        return bool(participant_ids.intersection(self.subject_ids) or participant_ids.intersection(self.holders))


# Assets


class LedgerEntry(EntityModel):
    model_config = ConfigDict(validate_assignment=True)

    holder: str
    denarii: Number = 0

    @field_validator("denarii")
    @classmethod
    def _non_negative(cls, value: Number) -> Number:
        if not math.isfinite(value) or value < 0:
            raise ValueError("ledger balances must be finite and non-negative")
        return value


class Network(EntityModel):
    id: str
    name: str = ""
    owner: str
    type: str = ""
    stats: dict[str, Number] = Field(default_factory=dict)
    upkeep_cost: Number | None = None


class Office(EntityModel):
    id: str
    name: str = ""
    owner: str
    type: str = ""
    powers: list[str] = Field(default_factory=list)


class Contract(EntityModel):
    id: str
    type: str = ""
    status: str = "pending"
    stakeholders: list[str] = Field(default_factory=list)


class GrainAsset(EntityModel):
    inventory_units: Number = 0
    controlled_by: list[str] = Field(default_factory=list)
    warehouse_locations: list[str] = Field(default_factory=list)


class Assets(EntityModel):
    model_config = ConfigDict(validate_assignment=True)

    grain: GrainAsset | None = None
    contracts: list[Contract] = Field(default_factory=list)
    cash_ledger: list[LedgerEntry] = Field(default_factory=list)
    networks: list[Network] = Field(default_factory=list)
    offices: list[Office] = Field(default_factory=list)

    @model_validator(mode="after")
    def _unique_holders(self) -> "Assets":
        self.check_ledger()
        return self

    def check_ledger(self) -> None:
        """Raises ``ValueError`` unless every holder has one well-formed entry."""

        seen: set[str] = set()
        for entry in self.cash_ledger:
            if not isinstance(entry, LedgerEntry):
                raise ValueError(f"cash_ledger holds a non-entry value: {entry!r}")
            if entry.holder in seen:
                raise ValueError(f"duplicate cash_ledger entry for holder: {entry.holder}")
            seen.add(entry.holder)

    def ledger_entry(self, holder: str) -> LedgerEntry | None:
        for entry in self.cash_ledger:
            if entry.holder == holder:
                return entry
        return None


# Threads


class ThreadCadence(EntityModel):
    max_episodes_without_progress: int = 3


class Thread(EntityModel):
    id: str
    priority: float = 0.5
    question: str = ""
    status: str = "open"
    advance_cadence: ThreadCadence = Field(default_factory=ThreadCadence)
    last_advanced_episode: int = 0
    episodes_since_progress: int = 0
    related_state_paths: list[str] = Field(default_factory=list)
    related_secrets: list[str] = Field(default_factory=list)

    @property
    def is_urgent(self) -> bool:
        return (
            self.status == "open"
            and self.episodes_since_progress >= self.advance_cadence.max_episodes_without_progress
        )


# Constraints


class ConstraintRule(EntityModel):
    id: str
    rule: str


class Constraints(EntityModel):
    hard_constraints: list[ConstraintRule] = Field(default_factory=list)
    soft_constraints: list[ConstraintRule] = Field(default_factory=list)


# Root

# Root key -> key of the list inside a per-root storage document.
_DOCUMENT_WRAPPERS = {
    "characters": "characters",
    "relationships": "edges",
    "secrets": "secrets",
    "threads": "threads",
    "factions": "factions",
    "assets": "assets",
}


class WorldState(EntityModel):
    world: World = Field(default_factory=World)
    characters: list[Character] = Field(default_factory=list)
    relationships: list[Relationship] = Field(default_factory=list)
    secrets: list[Secret] = Field(default_factory=list)
    assets: Assets = Field(default_factory=Assets)
    threads: list[Thread] = Field(default_factory=list)
    factions: list[Faction] = Field(default_factory=list)
    constraints: Constraints = Field(default_factory=Constraints)

    @model_validator(mode="before")
    @classmethod
    def _unwrap_documents(cls, data: object) -> object:
        # Storage keeps one document per root, e.g. {"relationships": {"edges": [...]}}.
        if not isinstance(data, dict):
            return data

        payload = dict(data)
        for root, inner in _DOCUMENT_WRAPPERS.items():
            value = payload.get(root)
            if isinstance(value, dict) and set(value) == {inner}:
                payload[root] = value[inner]
        return payload

    # Characters

    def get_character(self, character_id: str) -> Character | None:
        return next((item for item in self.characters if item.id == character_id), None)

    def characters_by_faction(self, faction_id: str) -> list[Character]:
        return [item for item in self.characters if item.faction_id == faction_id]

    def principals(self, config: WorldConfig | None = None) -> list[Character]:
        config = config or WorldConfig()
        return [
            item
            for item in self.characters
            if item.is_principal(threshold=config.principal_threshold, stats=config.principal_stats)
        ]

    # Relationships

    def get_relationship(self, from_id: str, to_id: str) -> Relationship | None:
        return next((edge for edge in self.relationships if edge.from_ == from_id and edge.to == to_id), None)

    def get_relationship_by_id(self, relationship_id: str) -> Relationship | None:
        return next((edge for edge in self.relationships if edge.id == relationship_id), None)

    def relationships_for(self, character_id: str) -> list[Relationship]:
        return [edge for edge in self.relationships if edge.touches(character_id)]

    # Factions, locations

    def get_faction(self, faction_id: str) -> Faction | None:
        return next((item for item in self.factions if item.id == faction_id), None)

    def get_location(self, location_id: str) -> Location | None:
        return next((item for item in self.world.locations if item.id == location_id), None)

    # Secrets

    def get_secret(self, secret_id: str) -> Secret | None:
        return next((item for item in self.secrets if item.id == secret_id), None)

    def secrets_known_by(self, character_id: str) -> list[Secret]:
        return [item for item in self.secrets if character_id in item.holders]

    def active_secrets(self) -> list[Secret]:
        return [item for item in self.secrets if item.status == "active"]

    # Threads

    def get_thread(self, thread_id: str) -> Thread | None:
        return next((item for item in self.threads if item.id == thread_id), None)

    def open_threads(self) -> list[Thread]:
        return [item for item in self.threads if item.status == "open"]

    def urgent_threads(self) -> list[Thread]:
        return [item for item in self.threads if item.is_urgent]

    # Assets

    def cash_balance(self, holder: str) -> Number:
        entry = self.assets.ledger_entry(holder)
        return entry.denarii if entry is not None else 0

    def offices_held_by(self, character_id: str) -> list[str]:
        return [office.id for office in self.assets.offices if office.owner == character_id]

    def office_powers(self, character_id: str) -> list[str]:
        return [power for office in self.assets.offices if office.owner == character_id for power in office.powers]
