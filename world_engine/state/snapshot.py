from __future__ import annotations

import orjson

from world_engine.domain.hashing import canonical_json, document_hash
from world_engine.state.models import WorldState


def snapshot_state(state: WorldState) -> WorldState:
    """Returns an independent deep copy, the only supported rollback point."""

    return state.model_copy(deep=True)


def state_fingerprint(state: WorldState) -> str:
    return document_hash(state.model_dump(mode="json", by_alias=True))


def dump_state(state: WorldState) -> bytes:
    return canonical_json(state.model_dump(mode="json", by_alias=True))


def load_state(payload: bytes | str) -> WorldState:
    return WorldState.model_validate(orjson.loads(payload))
