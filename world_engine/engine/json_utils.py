"""Tolerant parsing of delta and prereq documents.

Documents usually arrive from a text generator, so code fences, stray control
characters, trailing commas and prose around the JSON payload are accepted.
"""

from __future__ import annotations

from typing import Any
import re

import orjson
from pydantic import ValidationError

from world_engine.engine.deltas import Delta
from world_engine.engine.errors import InvalidDelta
from world_engine.expressions.evaluator import Prereq

_DELTA_KEYS = ("effects", "deltas")
_PREREQ_KEYS = ("prereqs",)


def _strip_code_fence(text: str) -> str:
    stripped = text.strip()
    if stripped.startswith("```") and stripped.endswith("```"):
        lines = stripped.splitlines()
        if len(lines) >= 2:
            return "\n".join(lines[1:-1]).strip()
    return stripped


def _sanitize_json_text(text: str) -> str:
    cleaned = text.replace("\r\n", "\n").replace("\r", "\n")
    cleaned = re.sub(r"[\x00-\x08\x0B\x0C\x0E-\x1F]", "", cleaned)
    cleaned = re.sub(r",\s*([}\]])", r"\1", cleaned)
    return cleaned


def _outermost(candidate: str) -> str | None:
    spans = []
    for opening, closing in (("[", "]"), ("{", "}")):
        start, end = candidate.find(opening), candidate.rfind(closing)
        if start != -1 and end > start:
            spans.append((start, end))
    if not spans:
        return None
    start, end = min(spans)
    return candidate[start : end + 1]


def load_json_document(text: str) -> Any:
    if not text or not text.strip():
        raise InvalidDelta("Empty JSON text")

    candidate = _sanitize_json_text(_strip_code_fence(text))
    try:
        return orjson.loads(candidate)
    except orjson.JSONDecodeError as exc:
        embedded = _outermost(candidate)
        if embedded is None:
            raise InvalidDelta(f"Invalid JSON document: {exc}") from exc
        try:
            return orjson.loads(embedded)
        except orjson.JSONDecodeError as inner:
            raise InvalidDelta(f"Invalid JSON document: {inner}") from inner


def _document_items(payload: Any, keys: tuple[str, ...]) -> list[Any]:
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in keys:
            items = payload.get(key)
            if isinstance(items, list):
                return items
        raise InvalidDelta(f"Expected a JSON array or an object with one of: {', '.join(keys)}")
    raise InvalidDelta(f"Expected a JSON array, got {type(payload).__name__}")


def parse_deltas(text: str) -> list[Delta]:
    items = _document_items(load_json_document(text), _DELTA_KEYS)
    try:
        return [Delta.model_validate(item) for item in items]
    except ValidationError as exc:
        raise InvalidDelta(f"Invalid delta document: {exc}") from exc


def parse_prereqs(text: str) -> list[Prereq]:
    items = _document_items(load_json_document(text), _PREREQ_KEYS)
    try:
        return [Prereq(expr=item) if isinstance(item, str) else Prereq.model_validate(item) for item in items]
    except ValidationError as exc:
        raise InvalidDelta(f"Invalid prereq document: {exc}") from exc
