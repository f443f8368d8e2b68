"""Test enable-rule evaluation and failure tracking."""
import pytest

from menuengine.catalog.enums import MetadataField, OptionPlacement, OptionQualifier, ProductLocation
from menuengine.catalog.models import OptionSelection
from menuengine.core.errors import CatalogIntegrityError, EvaluationError
from menuengine.expressions import (
    Compare,
    CompareOperator,
    Conditional,
    EvaluationContext,
    HasAnyOfModifierType,
    HasOption,
    Literal,
    Logical,
    LogicalOperator,
    ProductMetadata,
    all_of,
    any_of,
    evaluate,
    evaluate_with_tracking,
    iter_modifier_type_references,
    iter_option_references,
    negate,
)

PEPPERONI = HasOption("toppings", "pepperoni")
SAUSAGE = HasOption("toppings", "sausage")
RED_SAUCE = HasOption("sauce", "red-sauce")


def context(catalog, *selections):
    return EvaluationContext(selections=selections, product_id="pizza", catalog=catalog)


def test_literal():
    assert evaluate(Literal(True), EvaluationContext()).passed
    assert evaluate(Literal(3), EvaluationContext()).value == 3


def test_has_option(catalog):
    ctx = context(catalog, OptionSelection("toppings", "pepperoni", OptionPlacement.LEFT, OptionQualifier.HEAVY))
    assert evaluate(PEPPERONI, ctx).passed
    assert evaluate(HasOption("toppings", "pepperoni", OptionPlacement.LEFT), ctx).passed
    assert not evaluate(HasOption("toppings", "pepperoni", OptionPlacement.RIGHT), ctx).passed
    assert not evaluate(HasOption("toppings", "pepperoni", qualifier=OptionQualifier.LITE), ctx).passed
    assert not evaluate(SAUSAGE, ctx).passed


def test_unplaced_selection_is_ignored(catalog):
    ctx = context(catalog, OptionSelection("toppings", "pepperoni", OptionPlacement.NONE))
    assert not evaluate(PEPPERONI, ctx).passed
    assert not evaluate(HasAnyOfModifierType("toppings"), ctx).passed


def test_has_option_with_wrong_type_is_integrity_error(catalog):
    with pytest.raises(CatalogIntegrityError):
        evaluate(HasOption("sauce", "pepperoni"), context(catalog))
    with pytest.raises(CatalogIntegrityError):
        evaluate(HasOption("toppings", "pineapple"), context(catalog))


def test_product_metadata_sums_per_half(catalog):
    ctx = context(
        catalog,
        OptionSelection("toppings", "pepperoni", OptionPlacement.LEFT, OptionQualifier.HEAVY),
        OptionSelection("toppings", "sausage"),
    )
    assert evaluate(ProductMetadata(MetadataField.WEIGHT, ProductLocation.LEFT), ctx).value == 3
    assert evaluate(ProductMetadata(MetadataField.WEIGHT, ProductLocation.RIGHT), ctx).value == 1
    assert evaluate(ProductMetadata(MetadataField.FLAVOR, ProductLocation.LEFT), ctx).value == 2


def test_product_metadata_needs_catalog():
    with pytest.raises(EvaluationError):
        evaluate(ProductMetadata(MetadataField.FLAVOR, ProductLocation.LEFT), EvaluationContext())


def test_compare_across_kinds_raises():
    with pytest.raises(EvaluationError):
        evaluate(Compare(CompareOperator.EQ, Literal(1), Literal("1")), EvaluationContext())
    with pytest.raises(EvaluationError):
        evaluate(Compare(CompareOperator.LT, Literal(True), Literal(False)), EvaluationContext())
    assert evaluate(Compare(CompareOperator.NEQ, Literal(True), Literal(False)), EvaluationContext()).passed
    assert evaluate(Compare(CompareOperator.GTE, Literal(2), Literal(1.5)), EvaluationContext()).passed


def test_logical_needs_booleans():
    with pytest.raises(EvaluationError):
        evaluate(all_of(Literal(1)), EvaluationContext())
    with pytest.raises(EvaluationError):
        evaluate(Conditional(Literal("yes"), Literal(True), Literal(False)), EvaluationContext())


def test_logical_arity():
    with pytest.raises(ValueError):
        Logical(LogicalOperator.NOT, (Literal(True), Literal(False)))
    with pytest.raises(ValueError):
        Logical(LogicalOperator.AND, ())


def test_evaluate_short_circuits():
    broken = Compare(CompareOperator.EQ, Literal(1), Literal("x"))
    assert evaluate(all_of(Literal(False), broken), EvaluationContext()).value is False
    assert evaluate(any_of(Literal(True), broken), EvaluationContext()).value is True


def test_conditional_picks_branch():
    expr = Conditional(Literal(False), Literal(1), Literal(2))
    assert evaluate(expr, EvaluationContext()).value == 2


def test_tracking_and_reports_first_failure(catalog):
    expr = all_of(PEPPERONI, RED_SAUCE, SAUSAGE)
    value, trace = evaluate_with_tracking(expr, context(catalog, OptionSelection("toppings", "pepperoni")))
    assert value is False
    assert trace == (RED_SAUCE,)


def test_tracking_or_reports_every_branch(catalog):
    expr = any_of(PEPPERONI, all_of(SAUSAGE, RED_SAUCE))
    result = evaluate_with_tracking(expr, context(catalog))
    assert not result.passed
    assert result.trace == (Logical(LogicalOperator.OR, (PEPPERONI, SAUSAGE)),)


def test_tracking_single_failed_or_branch_is_unwrapped(catalog):
    result = evaluate_with_tracking(any_of(PEPPERONI), context(catalog))
    assert result.trace == (PEPPERONI,)


def test_tracking_not(catalog):
    expr = negate(HasAnyOfModifierType("sauce"))
    result = evaluate_with_tracking(expr, context(catalog, OptionSelection("sauce", "red-sauce")))
    assert result.trace == (expr,)
    assert evaluate_with_tracking(expr, context(catalog)).trace == ()


def test_tracking_compare_and_conditional(catalog):
    weight = ProductMetadata(MetadataField.WEIGHT, ProductLocation.LEFT)
    limit = Compare(CompareOperator.LTE, weight, Literal(0))
    expr = Conditional(HasAnyOfModifierType("toppings"), limit, Literal(True))
    result = evaluate_with_tracking(expr, context(catalog, OptionSelection("toppings", "sausage")))
    assert result.value is False
    assert result.trace == (limit,)


def test_tracking_passes_with_empty_trace(catalog):
    result = evaluate_with_tracking(all_of(PEPPERONI), context(catalog, OptionSelection("toppings", "pepperoni")))
    assert result.passed
    assert result.trace == ()


def test_tracking_matches_plain_value(catalog):
    ctx = context(catalog, OptionSelection("sauce", "white-sauce"))
    for expr in (
        all_of(PEPPERONI, RED_SAUCE),
        any_of(negate(RED_SAUCE), SAUSAGE),
        Conditional(RED_SAUCE, Literal(False), HasAnyOfModifierType("sauce")),
    ):
        assert evaluate(expr, ctx).value == evaluate_with_tracking(expr, ctx).value


def test_reference_iteration():
    expr = all_of(PEPPERONI, any_of(HasAnyOfModifierType("sauce"), negate(RED_SAUCE)))
    assert list(iter_option_references(expr)) == [("toppings", "pepperoni"), ("sauce", "red-sauce")]
    assert list(iter_modifier_type_references(expr)) == ["toppings", "sauce", "sauce"]
