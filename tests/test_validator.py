"""Test catalog integrity validation."""
from dataclasses import replace

import pytest

from menuengine.catalog.models import ModifierOption
from menuengine.catalog.validator import ensure_valid, validate_snapshot
from menuengine.core.errors import CatalogIntegrityError
from menuengine.expressions import HasAnyOfModifierType, HasOption, all_of


def test_sample_catalog_is_valid(catalog):
    assert validate_snapshot(catalog) == []
    ensure_valid(catalog)


def test_dangling_expression_references(catalog, make_snapshot):
    broken = replace(
        catalog.option("anchovy"),
        enable=all_of(HasOption("sauce", "pesto"), HasOption("crust", "red-sauce"), HasAnyOfModifierType("cheese")),
    )
    problems = validate_snapshot(make_snapshot(broken))
    assert problems == [
        "option anchovy: expression references unknown modifier type cheese",
        "option anchovy: expression references unknown option pesto",
        "option anchovy: expression references option red-sauce under crust, but it belongs to sauce",
    ]


def test_option_type_mismatches(catalog, make_snapshot):
    orphan = ModifierOption(id="olive", modifier_type_id="toppings", display_name="Olive")
    unknown_type = ModifierOption(id="ranch", modifier_type_id="dips", display_name="Ranch")
    problems = validate_snapshot(make_snapshot(orphan, unknown_type))
    assert "option olive: not listed by modifier type toppings" in problems
    assert "option ranch: unknown modifier type dips" in problems


def test_modifier_type_bounds(catalog, make_snapshot):
    crust = replace(catalog.modifier_type("crust"), min_selected=2, option_ids=("thin", "gluten-free", "deep-dish"))
    problems = validate_snapshot(make_snapshot(crust))
    assert "modifier type crust: min_selected 2 exceeds max_selected 1" in problems
    assert "modifier type crust: unknown option deep-dish" in problems


def test_ensure_valid_raises_with_every_problem(catalog, make_snapshot):
    crust = replace(catalog.modifier_type("crust"), min_selected=-1)
    with pytest.raises(CatalogIntegrityError) as exc:
        ensure_valid(make_snapshot(crust))
    assert exc.value.details["problems"] == ["modifier type crust: min_selected is negative"]
    assert exc.value.details["version_id"] == "v1"
