from __future__ import annotations

import pytest

from world_engine.engine.deltas import DeltaOp, apply_deltas
from world_engine.engine.errors import ErrorCode, InvalidDelta
from world_engine.engine.json_utils import load_json_document, parse_deltas, parse_prereqs
from world_engine.expressions.context import EvaluationContext
from world_engine.expressions.evaluator import evaluate_prereqs
from world_engine.state.models import WorldState


def test_load_json_document_tolerates_fences_and_trailing_commas() -> None:
    text = '```json\n{"deltas": [{"op": "set", "path": "world.global.unrest", "value": 1,},],}\n```'

    assert load_json_document(text) == {"deltas": [{"op": "set", "path": "world.global.unrest", "value": 1}]}


def test_load_json_document_extracts_embedded_payload() -> None:
    text = 'Here are the effects:\n[{"op": "add", "path": "world.global.unrest", "value": 2}]\nDone.'

    assert load_json_document(text) == [{"op": "add", "path": "world.global.unrest", "value": 2}]


def test_load_json_document_rejects_garbage() -> None:
    with pytest.raises(InvalidDelta):
        load_json_document("")

    with pytest.raises(InvalidDelta) as exc_info:
        load_json_document("no json here")
    assert exc_info.value.code is ErrorCode.INVALID_DELTA


def test_parse_deltas_from_effects_document(world_state: WorldState) -> None:
    deltas = parse_deltas(
        """
        {"effects": [
            {"op": "transfer", "from": "char_varo", "to": "char_livia", "denarii": 300},
            {"op": "append", "path": "secrets.sec_grain.holders", "value": "char_livia"}
        ]}
        """
    )

    assert [item.op for item in deltas] == [DeltaOp.TRANSFER, DeltaOp.APPEND]
    assert deltas[0].from_ == "char_varo"
    assert deltas[0].amount == 300

    batch = apply_deltas(world_state, deltas)
    assert batch.success
    assert world_state.cash_balance("char_livia") == 300


def test_parse_deltas_rejects_unknown_operators_and_shapes() -> None:
    with pytest.raises(InvalidDelta):
        parse_deltas('[{"op": "divide", "path": "world.global.unrest", "value": 2}]')

    with pytest.raises(InvalidDelta):
        parse_deltas('{"changes": []}')

    with pytest.raises(InvalidDelta):
        parse_deltas('"set"')


def test_parse_prereqs_accepts_strings_and_objects(world_state: WorldState) -> None:
    prereqs = parse_prereqs(
        '{"prereqs": ["actor.stats.wealth > 50", {"id": "has_office", "expr": "actor.offices includes \'powers.games\'"}]}'
    )

    assert [item.id for item in prereqs] == [None, "has_office"]

    context = EvaluationContext(actor=world_state.get_character("char_varo"), state=world_state)
    assert evaluate_prereqs(prereqs, context).all_passed


def test_parse_prereqs_rejects_items_without_expr() -> None:
    with pytest.raises(InvalidDelta):
        parse_prereqs('[{"id": "broken"}]')
