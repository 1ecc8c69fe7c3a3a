from __future__ import annotations

import sys
from loguru import logger


_DEFAULT_CONTEXT = {
    "trace_id": "-",
    "component": "-",
    "scene_id": "-",
    "path": "-",
}


def _inject_default_context(record: dict) -> None:
    extra = record["extra"]
    for key, value in _DEFAULT_CONTEXT.items():
        extra.setdefault(key, value)


def setup_logging(level: str) -> None:
    """Configure loguru logging for host applications embedding the engine."""
    logger.remove()
    logger.configure(patcher=_inject_default_context)
    logger.add(
        sys.stderr,
        level=level,
        backtrace=True,
        diagnose=False,
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> "
            "| <level>{level:<8}</level> "
            "| trace={extra[trace_id]} component={extra[component]} scene={extra[scene_id]} path={extra[path]} "
            "| {message}"
        ),
    )
