"""Shared catalog fixtures: a small pizzeria menu."""
from datetime import datetime

import pytest

from menuengine.catalog.enums import DisplayAs, ModifierDisplayClass
from menuengine.catalog.models import (
    DisabledInterval,
    ModifierOption,
    ModifierType,
    ProductDefinition,
    ProductModifier,
)
from menuengine.catalog.snapshot import CatalogSnapshot
from menuengine.core.money import Money
from menuengine.expressions.nodes import HasOption, Literal

# Wednesday evening
SERVICE_TIME = datetime(2024, 5, 1, 18, 0)

MODIFIER_TYPES = (
    ModifierType(
        id="crust",
        name="Crust",
        option_ids=("thin", "gluten-free"),
        min_selected=1,
        max_selected=1,
        display_class=ModifierDisplayClass.SINGLE_SELECT,
        empty_display_as=DisplayAs.YOUR_CHOICE_OF,
        template_string="crust",
        ordinal=0,
    ),
    ModifierType(
        id="sauce",
        name="Sauce",
        option_ids=("red-sauce", "white-sauce"),
        max_selected=1,
        display_class=ModifierDisplayClass.SINGLE_SELECT,
        ordinal=1,
    ),
    ModifierType(
        id="toppings",
        name="Toppings",
        option_ids=("pepperoni", "sausage", "mushroom", "truffle", "anchovy"),
        max_selected=3,
        ordinal=2,
    ),
)

OPTIONS = (
    ModifierOption(id="thin", modifier_type_id="crust", display_name="Thin Crust", shortcode="THIN"),
    ModifierOption(
        id="gluten-free",
        modifier_type_id="crust",
        display_name="Gluten Free Crust",
        shortcode="GF",
        price=Money(200),
    ),
    ModifierOption(id="red-sauce", modifier_type_id="sauce", display_name="Red Sauce"),
    ModifierOption(id="white-sauce", modifier_type_id="sauce", display_name="White Sauce"),
    ModifierOption(
        id="pepperoni",
        modifier_type_id="toppings",
        display_name="Pepperoni",
        shortcode="P",
        price=Money(150),
        flavor_factor=1,
        bake_factor=1,
        can_split=True,
        allow_heavy=True,
    ),
    ModifierOption(
        id="sausage",
        modifier_type_id="toppings",
        display_name="Sausage",
        shortcode="S",
        price=Money(200),
        flavor_factor=1,
        bake_factor=1,
        can_split=True,
        excluded_fulfillments=frozenset({"delivery"}),
    ),
    ModifierOption(
        id="mushroom",
        modifier_type_id="toppings",
        display_name="Mushroom",
        shortcode="M",
        price=Money(100),
        flavor_factor=1,
        bake_factor=1,
        can_split=True,
    ),
    ModifierOption(
        id="truffle",
        modifier_type_id="toppings",
        display_name="Truffle",
        price=Money(500),
        enable=Literal(False),
        disabled=DisabledInterval.blanket(),
    ),
    ModifierOption(
        id="anchovy",
        modifier_type_id="toppings",
        display_name="Anchovy",
        price=Money(150),
        flavor_factor=1,
        enable=HasOption("sauce", "red-sauce"),
    ),
)

PRODUCTS = (
    ProductDefinition(
        id="pizza",
        display_name="Pizza",
        shortcode="PZ",
        price=Money(1500),
        description="Hand-stretched pizza on {crust}",
        modifiers=(
            ProductModifier("crust"),
            ProductModifier("sauce"),
            ProductModifier("toppings"),
        ),
        flavor_max=5,
        bake_max=5,
        bake_differential=2,
    ),
    ProductDefinition(id="soda", display_name="Soda", price=Money(250)),
)


def build_snapshot(*replacements, version_id="v1"):
    """The pizzeria catalog with some entities swapped for modified copies."""
    products = {p.id: p for p in PRODUCTS}
    modifier_types = {t.id: t for t in MODIFIER_TYPES}
    options = {o.id: o for o in OPTIONS}
    for entity in replacements:
        if isinstance(entity, ProductDefinition):
            products[entity.id] = entity
        elif isinstance(entity, ModifierType):
            modifier_types[entity.id] = entity
        else:
            options[entity.id] = entity
    return CatalogSnapshot(
        version_id=version_id,
        as_of=SERVICE_TIME,
        products=products,
        modifier_types=modifier_types,
        options=options,
    )


@pytest.fixture
def at():
    return SERVICE_TIME


@pytest.fixture
def catalog():
    return build_snapshot()


@pytest.fixture
def make_snapshot():
    return build_snapshot


@pytest.fixture
def catalog_document():
    """The same kind of menu as plain data, as an editor would publish it."""
    return {
        "currency": "USD",
        "modifier_types": [
            {
                "id": "crust",
                "name": "Crust",
                "option_ids": ["thin", "gluten-free"],
                "min_selected": 1,
                "max_selected": 1,
                "display_class": "SINGLE_SELECT",
                "empty_display_as": "YOUR_CHOICE_OF",
            },
            {
                "id": "toppings",
                "name": "Toppings",
                "option_ids": ["pepperoni", "olive"],
                "max_selected": 2,
                "ordinal": 1,
            },
        ],
        "options": [
            {"id": "thin", "modifier_type_id": "crust", "display_name": "Thin Crust"},
            {"id": "gluten-free", "modifier_type_id": "crust", "display_name": "Gluten Free Crust", "price": 200},
            {
                "id": "pepperoni",
                "modifier_type_id": "toppings",
                "display_name": "Pepperoni",
                "price": 150,
                "can_split": True,
            },
            {
                "id": "olive",
                "modifier_type_id": "toppings",
                "display_name": "Olive",
                "price": 100,
                "enable": {
                    "kind": "logical",
                    "op": "NOT",
                    "children": [{"kind": "has_option", "modifier_type_id": "crust", "option_id": "gluten-free"}],
                },
            },
        ],
        "products": [
            {
                "id": "pizza",
                "display_name": "Pizza",
                "price": 1500,
                "modifiers": [{"modifier_type_id": "crust"}, {"modifier_type_id": "toppings"}],
            }
        ],
    }
