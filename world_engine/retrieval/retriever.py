"""k-hop subgraph extraction around a set of scene participants.

Relationship edges are walked as if undirected but reported in their stored
direction. Everything the downstream consumer sees is bounded by
``RetrieverConfig``.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from loguru import logger
from pydantic import BaseModel, Field

from world_engine.config.schema import RetrieverConfig
from world_engine.state.models import Character, Location, Number, Relationship, Thread, WorldState

# weight name -> (threshold, label); a weight must be strictly above the threshold.
_WEIGHT_DYNAMICS: tuple[tuple[str, float, str], ...] = (
    ("loyalty", 70, "strong loyalty"),
    ("fear", 50, "fear-based"),
    ("resentment", 60, "bitter resentment"),
    ("respect", 70, "mutual respect"),
    ("dependency", 60, "strong dependency"),
)
_FLAG_DYNAMICS: tuple[tuple[str, str], ...] = (
    ("public_feud", "public feud"),
    ("transactional", "transactional relationship"),
)


class RelationshipView(BaseModel):
    source: str
    target: str
    type: str
    dynamic: str
    weights: dict[str, Number] = Field(default_factory=dict)
    hop_distance: int


class AssetView(BaseModel):
    id: str
    status: str | None = None
    context: str = ""


class BeliefView(BaseModel):
    holder: str
    text: str


class SecretView(BaseModel):
    id: str
    holders: list[str] = Field(default_factory=list)
    summary: str = ""


class RetrievedSubgraph(BaseModel):
    note: str
    relationships: list[RelationshipView] = Field(default_factory=list)
    relevant_assets: list[AssetView] = Field(default_factory=list)
    relevant_beliefs: list[BeliefView] = Field(default_factory=list)
    relevant_secrets: list[SecretView] = Field(default_factory=list)


@dataclass
class WalkedEdge:
    edge: Relationship
    hop_distance: int


@dataclass
class ThreadContext:
    thread: Thread | None
    related_characters: list[str] = field(default_factory=list)
    related_secrets: list[str] = field(default_factory=list)


@dataclass
class SceneContext:
    subgraph: RetrievedSubgraph
    characters: list[Character]
    location: Location
    threads: list[Thread]


def relationship_dynamic(edge: Relationship) -> str:
    labels = [label for name, threshold, label in _WEIGHT_DYNAMICS if edge.weights.get(name, 0) > threshold]
    labels.extend(label for name, label in _FLAG_DYNAMICS if edge.flags.get(name))
    return ", ".join(labels) if labels else edge.type


def _strongest_weight(item: WalkedEdge) -> float:
    weights = item.edge.weights
    return max(weights.values()) if weights else float("-inf")


def walk_relationships(state: WorldState, seed_ids: list[str], *, max_hops: int) -> list[WalkedEdge]:
    """Breadth-first walk over edges touching the seeds, closest and strongest first."""

    visited: set[str] = set()
    seen_edges: set[str] = set()
    walked: list[WalkedEdge] = []

    frontier = list(dict.fromkeys(seed_ids))
    hop = 0
    while frontier and hop < max_hops:
        next_frontier: list[str] = []
        for character_id in frontier:
            if character_id in visited:
                continue
            visited.add(character_id)

            for edge in state.relationships_for(character_id):
                if edge.key in seen_edges:
                    continue
                seen_edges.add(edge.key)
                walked.append(WalkedEdge(edge=edge, hop_distance=hop + 1))

                other = edge.other_end(character_id)
                if other not in visited and other not in next_frontier:
                    next_frontier.append(other)

        frontier = next_frontier
        hop += 1

    # sorted() is stable, so equal keys keep traversal order.
    return sorted(walked, key=lambda item: (item.hop_distance, -_strongest_weight(item)))


def relevant_secrets(state: WorldState, participant_ids: list[str], *, config: RetrieverConfig) -> list[SecretView]:
    participants = set(participant_ids)
    candidates = [
        secret
        for secret in state.secrets
        if (config.include_inactive_secrets or secret.status == "active") and secret.involves(participants)
    ]
    candidates.sort(key=lambda secret: secret.relevance_score, reverse=True)
    return [
        SecretView(id=secret.id, holders=list(secret.holders), summary=secret.description)
        for secret in candidates[: config.max_secrets]
    ]


def relevant_beliefs(state: WorldState, participant_ids: list[str], *, config: RetrieverConfig) -> list[BeliefView]:
    beliefs: list[BeliefView] = []
    for character_id in participant_ids:
        character = state.get_character(character_id)
        if character is None:
            continue
        strongest = sorted(character.bdi.beliefs, key=lambda belief: belief.confidence, reverse=True)
        beliefs.extend(BeliefView(holder=character_id, text=belief.text) for belief in strongest[: config.max_beliefs])
    return beliefs


def relevant_assets(state: WorldState, participant_ids: list[str]) -> list[AssetView]:
    participants = set(participant_ids)
    assets: list[AssetView] = []

    for network in state.assets.networks:
        if network.owner in participants:
            assets.append(
                AssetView(
                    id=network.id,
                    status="active",
                    context=f"{network.name} ({network.type}) owned by {network.owner}",
                )
            )

    for office in state.assets.offices:
        if office.owner in participants:
            assets.append(
                AssetView(id=office.id, status="held", context=f"{office.name} with powers: {', '.join(office.powers)}")
            )

    for contract in state.assets.contracts:
        if participants.intersection(contract.stakeholders):
            assets.append(AssetView(id=contract.id, status=contract.status, context=f"{contract.type} contract"))

    return assets


def extract_subgraph(
    state: WorldState,
    participant_ids: list[str],
    *,
    config: RetrieverConfig | None = None,
) -> RetrievedSubgraph:
    config = config or RetrieverConfig()
    walked = walk_relationships(state, participant_ids, max_hops=config.max_hops)
    relationships = [
        RelationshipView(
            source=item.edge.from_,
            target=item.edge.to,
            type=item.edge.type,
            dynamic=relationship_dynamic(item.edge),
            weights=dict(item.edge.weights),
            hop_distance=item.hop_distance,
        )
        for item in walked[: config.max_relationships]
    ]

    subgraph = RetrievedSubgraph(
        note=f"k-hop extraction (k={config.max_hops} hops from {len(participant_ids)} participants)",
        relationships=relationships,
        relevant_assets=relevant_assets(state, participant_ids),
        relevant_beliefs=relevant_beliefs(state, participant_ids, config=config),
        relevant_secrets=relevant_secrets(state, participant_ids, config=config),
    )
    logger.bind(component="retriever").debug(
        "Extracted subgraph participants={} edges={}/{} secrets={} beliefs={} assets={}",
        len(participant_ids),
        len(subgraph.relationships),
        len(walked),
        len(subgraph.relevant_secrets),
        len(subgraph.relevant_beliefs),
        len(subgraph.relevant_assets),
    )
    return subgraph


def thread_context(state: WorldState, thread_id: str) -> ThreadContext:
    thread = state.get_thread(thread_id)
    if thread is None:
        return ThreadContext(thread=None)

    related_characters: list[str] = []
    for path in thread.related_state_paths:
        parts = path.split(".")
        if parts[0] == "characters" and len(parts) > 1 and parts[1] and parts[1] not in related_characters:
            related_characters.append(parts[1])

    return ThreadContext(
        thread=thread,
        related_characters=related_characters,
        related_secrets=list(thread.related_secrets),
    )


def build_scene_context(
    state: WorldState,
    participant_ids: list[str],
    thread_ids: list[str],
    location_id: str,
    *,
    config: RetrieverConfig | None = None,
) -> SceneContext:
    characters = [character for character in map(state.get_character, participant_ids) if character is not None]
    threads = [thread for thread in map(state.get_thread, thread_ids) if thread is not None]
    location = state.get_location(location_id) or Location(id=location_id)

    return SceneContext(
        subgraph=extract_subgraph(state, participant_ids, config=config),
        characters=characters,
        location=location,
        threads=threads,
    )
