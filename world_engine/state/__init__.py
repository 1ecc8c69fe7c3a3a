"""Entity graph models and snapshot helpers."""

from world_engine.state.models import (
    Assets,
    Belief,
    Character,
    Contract,
    Faction,
    LedgerEntry,
    Network,
    Office,
    Relationship,
    Secret,
    Thread,
    World,
    WorldState,
)
from world_engine.state.snapshot import dump_state, load_state, snapshot_state, state_fingerprint

__all__ = [
    "Assets",
    "Belief",
    "Character",
    "Contract",
    "Faction",
    "LedgerEntry",
    "Network",
    "Office",
    "Relationship",
    "Secret",
    "Thread",
    "World",
    "WorldState",
    "dump_state",
    "load_state",
    "snapshot_state",
    "state_fingerprint",
]
