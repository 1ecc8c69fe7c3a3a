"""In-memory world state engine: path-addressed deltas, prerequisite
expressions and k-hop context retrieval."""

__version__ = "0.1.0"
