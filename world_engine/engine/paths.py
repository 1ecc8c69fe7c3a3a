"""Dotted-path addressing into the entity graph.

``characters.char_varo.stats.wealth`` resolves the ``characters`` root, finds
the character whose ``id`` is ``char_varo`` by linear scan, then walks
``stats`` and stops on the ``wealth`` key. Resolution returns a typed
``FieldLocation`` handle; it never creates missing fields.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, get_args, get_origin
import re

from pydantic import BaseModel, ValidationError

from world_engine.engine.errors import MalformedPath, PathNotFound, TypeMismatch, UnknownRoot
from world_engine.state.models import WorldState

ROOTS: tuple[str, ...] = (
    "world",
    "characters",
    "relationships",
    "assets",
    "secrets",
    "threads",
    "factions",
    "constraints",
)

_INDEXED_SEGMENT = re.compile(r"^(?P<name>[A-Za-z_][A-Za-z0-9_]*)\[(?P<index>\d+|\"[^\"]*\"|'[^']*')\]$")


class LocationKind(str, Enum):
    ATTRIBUTE = "attribute"
    MAPPING_KEY = "mapping_key"
    SEQUENCE_INDEX = "sequence_index"


@dataclass(frozen=True)
class Segment:
    name: str
    index: int | str | None = None


@dataclass(frozen=True)
class FieldLocation:
    container: Any
    key: str | int
    kind: LocationKind
    path: str

    def read(self) -> Any:
        if self.kind is LocationKind.ATTRIBUTE:
            return getattr(self.container, str(self.key))
        return self.container[self.key]

    def write(self, value: Any) -> None:
        if self.kind is LocationKind.ATTRIBUTE:
            # Models with validate_assignment reject values that break their field rules.
            try:
                setattr(self.container, str(self.key), value)
            except ValidationError as exc:
                raise TypeMismatch(f"Value {value!r} rejected at {self.path}: {exc}") from exc
        else:
            self.container[self.key] = value

    def item_model(self) -> type[BaseModel] | None:
        """Model type of sequence items when the field is declared as ``list[SomeModel]``."""

        if self.kind is not LocationKind.ATTRIBUTE:
            return None
        info = type(self.container).model_fields.get(str(self.key))
        if info is None or get_origin(info.annotation) is not list:
            return None
        args = get_args(info.annotation)
        if args and isinstance(args[0], type) and issubclass(args[0], BaseModel):
            return args[0]
        return None


@dataclass(frozen=True)
class RoleBindings:
    actor_id: str | None = None
    target_id: str | None = None
    relationship_id: str | None = None


def parse_segment(raw: str, path: str) -> Segment:
    if not raw:
        raise MalformedPath(f"Empty segment in path: {path}")
    if "[" not in raw and "]" not in raw:
        return Segment(name=raw)

    match = _INDEXED_SEGMENT.match(raw)
    if match is None:
        raise MalformedPath(f"Malformed index accessor '{raw}' in path: {path}")
    index_text = match.group("index")
    if index_text[0] in {'"', "'"}:
        return Segment(name=match.group("name"), index=index_text[1:-1])
    return Segment(name=match.group("name"), index=int(index_text))


def split_path(path: str) -> list[str]:
    return path.strip().split(".")


def _model_field_name(model: BaseModel, name: str) -> str | None:
    fields = type(model).model_fields
    if name in fields:
        return name
    for field_name, info in fields.items():
        if info.alias == name:
            return field_name
    if name in (model.model_extra or {}):
        return name
    return None


def _find_entity_index(items: list[Any], entity_id: str) -> int | None:
    for index, item in enumerate(items):
        item_id = item.get("id") if isinstance(item, dict) else getattr(item, "id", None)
        if item_id == entity_id:
            return index
    return None


def child_location(current: Any, name: str, path: str) -> FieldLocation:
    """Location of field, key or entity id ``name`` directly under ``current``."""

    if isinstance(current, BaseModel):
        field_name = _model_field_name(current, name)
        if field_name is None:
            raise PathNotFound(f"No field '{name}' on {type(current).__name__} in path: {path}")
        return FieldLocation(container=current, key=field_name, kind=LocationKind.ATTRIBUTE, path=path)

    if isinstance(current, dict):
        if name not in current:
            raise PathNotFound(f"No key '{name}' in path: {path}")
        return FieldLocation(container=current, key=name, kind=LocationKind.MAPPING_KEY, path=path)

    if isinstance(current, list):
        index = _find_entity_index(current, name)
        if index is None:
            raise PathNotFound(f"No entity with id '{name}' in path: {path}")
        return FieldLocation(container=current, key=index, kind=LocationKind.SEQUENCE_INDEX, path=path)

    raise PathNotFound(f"Cannot look up '{name}' on {type(current).__name__} value in path: {path}")


def _step(current: Any, segment: Segment, path: str) -> FieldLocation:
    location = child_location(current, segment.name, path)
    if segment.index is None:
        return location

    value = location.read()
    if isinstance(segment.index, int):
        if not isinstance(value, list) or segment.index >= len(value):
            raise PathNotFound(f"Index {segment.index} out of range for '{segment.name}' in path: {path}")
        return FieldLocation(container=value, key=segment.index, kind=LocationKind.SEQUENCE_INDEX, path=path)
    return child_location(value, segment.index, path)


def locate(root_value: Any, segments: list[Segment], path: str) -> FieldLocation:
    if not segments:
        raise MalformedPath(f"Path needs at least one field after its root: {path}")

    current = root_value
    location = _step(current, segments[0], path)
    for segment in segments[1:]:
        current = location.read()
        location = _step(current, segment, path)
    return location


def resolve_path(state: WorldState, path: str) -> FieldLocation:
    parts = split_path(path)
    if len(parts) < 2:
        raise MalformedPath(f"Path needs a root and a field: {path}")

    root = parts[0]
    if root not in ROOTS:
        raise UnknownRoot(f"Unknown root '{root}' in path: {path}")

    segments = [parse_segment(part, path) for part in parts[1:]]
    return locate(getattr(state, root), segments, path)


def read_path(state: WorldState, path: str) -> Any:
    return resolve_path(state, path).read()


def write_path(state: WorldState, path: str, value: Any) -> None:
    resolve_path(state, path).write(value)


def expand_shorthand_path(path: str, bindings: RoleBindings) -> str:
    """Rewrites ``actor.``/``target.``/``relationship.`` paths to absolute ones.

    Unbound roles and absolute paths are returned unchanged.
    """

    if path.startswith("actor.") and bindings.actor_id:
        return f"characters.{bindings.actor_id}.{path[len('actor.'):]}"
    if path.startswith("target.") and bindings.target_id:
        return f"characters.{bindings.target_id}.{path[len('target.'):]}"
    if path.startswith("relationship.") and bindings.relationship_id:
        return f"relationships.{bindings.relationship_id}.{path[len('relationship.'):]}"
    return path
