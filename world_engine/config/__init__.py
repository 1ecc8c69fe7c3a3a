"""Configuration loading and schema."""

from world_engine.config.loader import load_config
from world_engine.config.schema import AppConfigRoot, RetrieverConfig, WorldConfig

__all__ = ["AppConfigRoot", "RetrieverConfig", "WorldConfig", "load_config"]
