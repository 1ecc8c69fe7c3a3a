from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ValidationError


class ValueKind(str, Enum):
    NULL = "null"
    BOOLEAN = "boolean"
    NUMBER = "number"
    STRING = "string"
    SEQUENCE = "sequence"
    MAPPING = "mapping"
    ENTITY = "entity"
    OTHER = "other"


def value_kind(value: Any) -> ValueKind:
    if value is None:
        return ValueKind.NULL
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, (int, float)):
        return ValueKind.NUMBER
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, (list, tuple)):
        return ValueKind.SEQUENCE
    if isinstance(value, dict):
        return ValueKind.MAPPING
    if isinstance(value, BaseModel):
        return ValueKind.ENTITY
    return ValueKind.OTHER


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def strict_equals(left: Any, right: Any) -> bool:
    """Equality that never treats booleans as numbers."""

    if isinstance(left, bool) != isinstance(right, bool):
        return False
    if isinstance(left, BaseModel) and isinstance(right, dict):
        try:
            return left == type(left).model_validate(right)
        except ValidationError:
            return False
    return left == right
