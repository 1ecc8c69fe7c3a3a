from world_engine.retrieval.retriever import (
    RetrievedSubgraph,
    SceneContext,
    ThreadContext,
    build_scene_context,
    extract_subgraph,
    thread_context,
)

__all__ = [
    "RetrievedSubgraph",
    "SceneContext",
    "ThreadContext",
    "build_scene_context",
    "extract_subgraph",
    "thread_context",
]
