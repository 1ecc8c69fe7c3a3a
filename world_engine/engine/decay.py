"""Episode-boundary half-life decay of secret stats."""

from __future__ import annotations

from dataclasses import dataclass, field

from loguru import logger

from world_engine.engine.values import is_number
from world_engine.state.models import Secret, WorldState

# A secret whose legal value and public damage both fall below this is inert.
INERT_THRESHOLD = 0.15


@dataclass
class SecretDecayResult:
    decayed: list[str] = field(default_factory=list)
    inert: list[str] = field(default_factory=list)


def decay_factor(half_life_episodes: float) -> float:
    return 0.5 ** (1 / half_life_episodes)


def _decay_secret(secret: Secret) -> bool:
    assert secret.decay is not None
    factor = decay_factor(secret.decay.half_life_episodes)
    stats = secret.stats
    extra = stats.model_extra or {}
    touched = False
    for name in secret.decay.applies_to:
        if name in type(stats).model_fields:
            setattr(stats, name, getattr(stats, name) * factor)
            touched = True
        elif is_number(extra.get(name)):
            extra[name] = extra[name] * factor
            touched = True
    return touched


def apply_secret_decay(state: WorldState, *, episode: int | None = None) -> SecretDecayResult:
    """Decays every active secret by one episode of its half-life.

    With ``episode`` set, a secret already decayed for that episode (or a later
    one) is skipped, so calling this twice at the same boundary is harmless.
    Secrets without a positive half-life never decay.
    """

    result = SecretDecayResult()
    for secret in state.secrets:
        if secret.status != "active" or secret.decay is None or secret.decay.half_life_episodes <= 0:
            continue
        if episode is not None:
            if secret.decay.last_decayed_episode >= episode:
                continue
            secret.decay.last_decayed_episode = episode

        if _decay_secret(secret):
            result.decayed.append(secret.id)
        if secret.stats.legal_value < INERT_THRESHOLD and secret.stats.public_damage < INERT_THRESHOLD:
            secret.status = "inert"
            result.inert.append(secret.id)

    logger.bind(component="secret_decay").info(
        "Secret decay applied episode={} decayed={} inert={}",
        episode if episode is not None else "-",
        len(result.decayed),
        len(result.inert),
    )
    return result
