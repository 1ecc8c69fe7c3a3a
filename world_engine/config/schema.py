from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AppConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log_level: {value}")
        return level


class RetrieverConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    max_hops: int = 2
    max_relationships: int = 15
    max_secrets: int = 5
    max_beliefs: int = 3
    include_inactive_secrets: bool = False

    @field_validator("max_hops", "max_relationships", "max_secrets", "max_beliefs")
    @classmethod
    def _non_negative(cls, value: int) -> int:
        if value < 0:
            raise ValueError("retriever limits must be non-negative")
        return value


class WorldConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    principal_threshold: float = 60
    principal_stats: list[str] = Field(default_factory=lambda: ["auctoritas", "influence"])

    @field_validator("principal_stats")
    @classmethod
    def _non_empty_stats(cls, value: list[str]) -> list[str]:
        stats = [item.strip() for item in value if item.strip()]
        if not stats:
            raise ValueError("principal_stats must name at least one stat")
        return stats


class AppConfigRoot(BaseModel):
    model_config = ConfigDict(extra="forbid")

    app: AppConfig = AppConfig()
    retriever: RetrieverConfig = RetrieverConfig()
    world: WorldConfig = WorldConfig()
