from __future__ import annotations

import pytest

from world_engine.engine.errors import ErrorCode, ExpressionSyntaxError
from world_engine.engine.paths import RoleBindings
from world_engine.expressions.context import EvaluationContext
from world_engine.expressions.evaluator import Prereq, evaluate_expression, evaluate_prereqs
from world_engine.expressions.parser import Arithmetic, Comparison, Exists, Includes, Negate, parse_expression
from world_engine.expressions.tokenizer import TokenType, tokenize
from world_engine.state.models import WorldState


@pytest.fixture
def context(world_state: WorldState) -> EvaluationContext:
    return EvaluationContext.from_state(
        world_state, RoleBindings(actor_id="char_varo", target_id="char_quintus")
    )


def test_tokenizer_splits_operators_and_literals() -> None:
    tokens = tokenize("actor.stats.wealth >= 50 + 'x'")

    assert [token.type for token in tokens] == [
        TokenType.PATH,
        TokenType.COMPARE,
        TokenType.NUMBER,
        TokenType.ARITHMETIC,
        TokenType.STRING,
    ]
    assert tokens[-1].value == "x"


def test_parser_builds_tree_with_precedence() -> None:
    node = parse_expression("actor.stats.wealth + 2 * 3 > -1")

    assert isinstance(node, Comparison)
    assert isinstance(node.left, Arithmetic) and node.left.op == "+"
    assert isinstance(node.left.right, Arithmetic) and node.left.right.op == "*"
    assert isinstance(node.right, Negate)
    assert isinstance(parse_expression("actor.bdi exists"), Exists)
    assert isinstance(parse_expression("actor.offices includes 'powers.games'"), Includes)


def test_comparison_against_actor_stat(context: EvaluationContext) -> None:
    result = evaluate_expression("actor.stats.wealth > 50", context)

    assert result.success
    assert result.value is True


def test_unbound_target_is_reported(world_state: WorldState) -> None:
    context = EvaluationContext.from_state(world_state, RoleBindings(actor_id="char_varo"))

    result = evaluate_expression("target.stats.wealth > 50", context)

    assert not result.success
    assert result.code is ErrorCode.CONTEXT_NOT_AVAILABLE


def test_unknown_context_root(context: EvaluationContext) -> None:
    result = evaluate_expression("characters.char_varo.stats.wealth > 1", context)

    assert result.code is ErrorCode.UNKNOWN_CONTEXT_ROOT


@pytest.mark.parametrize(
    "expr",
    [
        "",
        "   ",
        "actor.stats.wealth = 50",
        "actor.stats.wealth @ 50",
        "actor.name == 'Gaius",
        "(actor.stats.wealth + 1 > 2",
        "actor.stats.wealth > 50 50",
        "actor.stats.wealth >",
        "!actor.stats.wealth",
        "actor..stats > 1",
    ],
)
def test_syntax_errors(context: EvaluationContext, expr: str) -> None:
    result = evaluate_expression(expr, context)

    assert not result.success
    assert result.code is ErrorCode.SYNTAX_ERROR


def test_parse_expression_raises_on_bad_input() -> None:
    with pytest.raises(ExpressionSyntaxError):
        parse_expression("1 +")


def test_arithmetic_and_parentheses(context: EvaluationContext) -> None:
    assert evaluate_expression("actor.stats.wealth - target.stats.wealth", context).value == 60
    assert evaluate_expression("(actor.stats.wealth + 20) / 2 == 50", context).value is True
    assert evaluate_expression("2 + 3 * 4", context).value == 14
    assert evaluate_expression("-actor.stats.wealth < 0", context).value is True
    assert evaluate_expression("1.5 * 2", context).value == 3.0


def test_division_by_zero_yields_zero(context: EvaluationContext) -> None:
    result = evaluate_expression("actor.stats.wealth / 0", context)

    assert result.success
    assert result.value == 0


def test_integer_literals_keep_full_precision(context: EvaluationContext) -> None:
    literal = parse_expression("12345678901234567891")

    assert literal.value == 12345678901234567891
    assert isinstance(parse_expression("3").value, int)
    assert isinstance(parse_expression("3.0").value, float)
    assert evaluate_expression("12345678901234567891 == 12345678901234567890", context).value is False
    assert evaluate_expression("12345678901234567891 - 12345678901234567890 == 1", context).value is True


def test_equality_is_strict(context: EvaluationContext) -> None:
    assert evaluate_expression("actor.status.alive == true", context).value is True
    assert evaluate_expression("actor.status.alive == 1", context).value is False
    assert evaluate_expression("actor.status.alive != 1", context).value is True
    assert evaluate_expression("actor.name == 'Gaius Varo'", context).value is True


def test_type_mismatches(context: EvaluationContext) -> None:
    for expr in [
        "actor.name + 1 > 0",
        "actor.name > 5",
        "actor.stats.wealth includes 8",
        "-actor.name == 1",
    ]:
        result = evaluate_expression(expr, context)
        assert result.code is ErrorCode.TYPE_MISMATCH, expr


def test_bare_value_must_be_boolean_or_number(context: EvaluationContext) -> None:
    assert evaluate_expression("actor.stats.wealth", context).value == 80
    assert evaluate_expression("actor.name", context).code is ErrorCode.TYPE_MISMATCH


def test_exists_and_missing_properties(context: EvaluationContext) -> None:
    assert evaluate_expression("actor.stats.wealth exists", context).value is True
    assert evaluate_expression("actor.stats.charisma exists", context).value is False
    assert evaluate_expression("actor.status.injured exists", context).value is False
    assert evaluate_expression("actor.stats.charisma > 1", context).code is ErrorCode.PATH_NOT_FOUND
    assert evaluate_expression("actor.stats.charisma includes 1", context).code is ErrorCode.PATH_NOT_FOUND


def test_includes_on_sequences_and_strings(context: EvaluationContext) -> None:
    assert evaluate_expression("actor.voice.tags includes 'clipped'", context).value is True
    assert evaluate_expression("actor.voice.tags includes 'florid'", context).value is False
    assert evaluate_expression("actor.name includes 'Varo'", context).value is True


def test_derived_role_properties(context: EvaluationContext) -> None:
    assert evaluate_expression("actor.offices includes 'powers.grain_distribution'", context).value is True
    assert evaluate_expression("target.offices includes 'powers.games'", context).value is False
    assert evaluate_expression("actor.knowledge includes 'sec_debt'", context).value is True
    assert evaluate_expression("target.knowledge includes 'sec_grain'", context).value is True
    assert evaluate_expression("actor.location == 'loc_forum'", context).value is True


def test_relationship_and_world_roots(context: EvaluationContext) -> None:
    assert context.relationship is not None
    assert context.relationship.id == "rel_varo_quintus"
    assert evaluate_expression("relationship.weights.fear > 50", context).value is True
    assert evaluate_expression("relationship.flags.transactional == true", context).value is True
    assert evaluate_expression("world.global.unrest < 40", context).value is True


def test_relationship_bound_by_id(world_state: WorldState) -> None:
    context = EvaluationContext.from_state(
        world_state, RoleBindings(actor_id="char_quintus", relationship_id="rel_quintus_livia")
    )

    assert evaluate_expression("relationship.weights.resentment > 60", context).value is True
    assert evaluate_expression("target.stats.influence > 0", context).code is ErrorCode.CONTEXT_NOT_AVAILABLE


def test_context_without_state_has_empty_derived_lists(world_state: WorldState) -> None:
    context = EvaluationContext(actor=world_state.get_character("char_varo"))

    assert evaluate_expression("actor.offices includes 'powers.games'", context).value is False
    assert evaluate_expression("world.global.unrest > 0", context).code is ErrorCode.CONTEXT_NOT_AVAILABLE


def test_evaluation_is_deterministic(context: EvaluationContext) -> None:
    expr = "actor.stats.wealth * 2 - target.stats.wealth >= 140"
    results = {evaluate_expression(expr, context) for _ in range(5)}

    assert len(results) == 1


def test_evaluate_prereqs_reports_every_outcome(context: EvaluationContext) -> None:
    report = evaluate_prereqs(
        [
            "actor.stats.wealth > 50",
            Prereq(id="p2", expr="target.stats.wealth > 50"),
            "actor.stats.wealth",
            "actor.stats.wealth >",
        ],
        context,
    )

    assert not report.all_passed
    assert [item.passed for item in report.results] == [True, False, False, False]
    assert report.results[1].code is None
    assert report.results[2].code is None
    assert report.results[3].code is ErrorCode.SYNTAX_ERROR
    assert report.results[1].expr == "target.stats.wealth > 50"
    assert [item.id for item in report.results] == [None, "p2", None, None]


def test_evaluate_prereqs_all_pass_and_empty(context: EvaluationContext) -> None:
    assert evaluate_prereqs([], context).all_passed
    assert evaluate_prereqs(["actor.stats.wealth > 50", "actor.bdi exists"], context).all_passed
