"""Test catalog document and order request schemas."""
import json
from decimal import Decimal

import pytest

from menuengine.catalog.enums import ModifierDisplayClass, OptionPlacement
from menuengine.catalog.schemas import load_catalog_document, parse_catalog_document
from menuengine.core.errors import CatalogIntegrityError, ValidationError
from menuengine.core.money import Money
from menuengine.expressions import HasOption, Logical, LogicalOperator
from menuengine.orders import CardPayment, CashPayment, ManualPercentageDiscount, price_order
from menuengine.orders.schemas import parse_order_request


def test_catalog_document_to_snapshot(catalog_document):
    snapshot = parse_catalog_document(catalog_document).to_snapshot(version_id="v7")
    assert snapshot.version_id == "v7"
    assert snapshot.product("pizza").price == Money(1500)
    assert snapshot.modifier_type("crust").display_class == ModifierDisplayClass.SINGLE_SELECT
    assert snapshot.modifier_type("toppings").option_ids == ("pepperoni", "olive")
    assert snapshot.option("olive").enable == Logical(
        LogicalOperator.NOT, (HasOption("crust", "gluten-free"),)
    )


def test_nested_expressions():
    expr = {
        "kind": "conditional",
        "cond": {"kind": "has_any", "modifier_type_id": "sauce"},
        "then": {
            "kind": "compare",
            "op": "LTE",
            "left": {"kind": "product_metadata", "field": "FLAVOR", "location": "LEFT"},
            "right": {"kind": "literal", "value": 3},
        },
        "otherwise": {"kind": "literal", "value": True},
    }
    document = parse_catalog_document(
        {"options": [{"id": "x", "modifier_type_id": "t", "display_name": "X", "enable": expr}]}
    )
    enable = document.options[0].to_domain().enable
    assert enable.then.right.value == 3
    assert enable.otherwise.value is True


def test_malformed_catalog_document():
    with pytest.raises(CatalogIntegrityError) as exc:
        parse_catalog_document({"products": [{"id": "pizza", "price": "cheap"}]})
    assert exc.value.details["errors"]

    with pytest.raises(CatalogIntegrityError):
        parse_catalog_document(
            {"options": [{"id": "x", "modifier_type_id": "t", "display_name": "X", "enable": {"kind": "nope"}}]}
        )


def test_not_with_two_operands_is_integrity_error(catalog_document):
    catalog_document["options"][1]["enable"] = {
        "kind": "logical",
        "op": "NOT",
        "children": [{"kind": "literal", "value": True}, {"kind": "literal", "value": False}],
    }
    with pytest.raises(CatalogIntegrityError):
        parse_catalog_document(catalog_document)


def test_illegal_toggle_is_integrity_error():
    document = parse_catalog_document(
        {"modifier_types": [{"id": "t", "name": "T", "option_ids": ["a"], "display_class": "TOGGLE"}]}
    )
    with pytest.raises(CatalogIntegrityError):
        document.to_snapshot()


def test_load_catalog_document(tmp_path, catalog_document):
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps(catalog_document))
    assert len(load_catalog_document(path).options) == 4

    path.write_text("{not json")
    with pytest.raises(CatalogIntegrityError):
        load_catalog_document(path)


def test_order_request_to_domain(catalog, at):
    request = parse_order_request(
        {
            "lines": [
                {
                    "product_id": "pizza",
                    "quantity": 2,
                    "category_id": "pizzas",
                    "selections": [
                        {"modifier_type_id": "crust", "option_id": "thin"},
                        {"modifier_type_id": "toppings", "option_id": "pepperoni", "placement": "LEFT"},
                    ],
                }
            ],
            "discounts": [{"method": "manual_percentage", "percentage": "0.10"}],
            "payments": [
                {"method": "cash", "amount_tendered": 2000},
                {"method": "card", "token": "tok"},
            ],
            "tip": {"amount": 300},
        }
    )
    inputs = request.to_domain(catalog, at)
    entry = inputs.cart[0]
    assert entry.quantity == 2
    assert entry.product.selections[1].placement == OptionPlacement.LEFT
    assert entry.price == Money(1650)
    assert inputs.discounts == (ManualPercentageDiscount(Decimal("0.10")),)
    assert isinstance(inputs.payments[0], CashPayment)
    assert inputs.payments[1] == CardPayment("tok")
    assert inputs.tip.amount == Money(300)
    assert inputs.catalog_version == "v1"

    totals = price_order(
        inputs.cart, inputs.discounts, inputs.payments, "0.1", tip=inputs.tip, catalog_version=inputs.catalog_version
    )
    assert totals.balance == Money(0)


@pytest.mark.parametrize(
    "data",
    [
        {"lines": [{"product_id": "pizza", "quantity": 0}]},
        {"discounts": [{"method": "coupon", "amount": 100}]},
        {"discounts": [{"method": "manual_percentage", "percentage": "1.5"}]},
        {"payments": [{"method": "cash", "amount_tendered": -1}]},
        {"tip": {"percentage": "0.2", "amount": 100}},
        {"tip": {}},
    ],
)
def test_malformed_order_request(data):
    with pytest.raises(ValidationError):
        parse_order_request(data)
