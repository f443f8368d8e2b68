"""Test the order monetary pipeline."""
from dataclasses import replace
from decimal import Decimal

import pytest
from structlog.testing import capture_logs

from menuengine.catalog.models import OptionSelection, ProductInstance
from menuengine.core.config import EngineConfig, PricingConfig
from menuengine.core.errors import ValidationError
from menuengine.core.money import Money
from menuengine.orders import (
    CardPayment,
    CashPayment,
    CreditCodeDiscount,
    ManualAmountDiscount,
    ManualPercentageDiscount,
    StoreCreditPayment,
    TipSelection,
    price_order,
    price_order_with_config,
)
from menuengine.orders.pipeline import compute_discounts_applied, compute_payments_applied, order_payments
from menuengine.products.cart import rebuild_cart

TAX = Decimal("0.0875")
TWENTY_PERCENT = TipSelection.of_percentage("0.20")


@pytest.fixture
def cart(catalog, at):
    """Two thin-crust pizzas: a 3000 subtotal."""
    pizza = ProductInstance("pizza", (OptionSelection("crust", "thin"),))
    return rebuild_cart([(pizza, 2, "pizzas")], catalog, at)


def test_reference_order(cart):
    totals = price_order(cart, (), (), TAX, tip=TWENTY_PERCENT)
    assert totals.cart_subtotal == Money(3000)
    assert totals.tax_amount == Money(263)
    assert totals.has_bankers_rounding_skew
    assert totals.tip_basis == Money(3263)
    assert totals.tip_amount == Money(653)
    assert totals.total == Money(3916)
    assert totals.balance == Money(3916)
    assert totals.catalog_version == "v1"


def test_total_is_exact_sum(cart):
    totals = price_order(cart, [ManualAmountDiscount(Money(450))], (), TAX, tip=TWENTY_PERCENT)
    assert totals.total == totals.subtotal_after_discount + totals.tax_amount + totals.tip_amount


def test_repeated_calls_are_identical(cart):
    args = (cart, [ManualPercentageDiscount("0.15")], [StoreCreditPayment("SC1", Money(500))], TAX)
    assert price_order(*args, tip=TWENTY_PERCENT) == price_order(*args, tip=TWENTY_PERCENT)


def test_discounts_are_clamped_in_order(cart):
    discounts = [CreditCodeDiscount("A", Money(1000)), CreditCodeDiscount("B", Money(3000))]
    totals = price_order(cart, discounts, (), TAX, service_fee=Money(500))
    assert totals.subtotal_pre_discount == Money(3500)
    assert [d.amount for d in totals.discounts_applied] == [Money(1000), Money(2500)]
    assert totals.discounts_amount == Money(3500)
    assert totals.tax_amount == Money(0)


def test_discount_order_decides_which_is_clamped():
    subtotal = Money(3500)
    small, large = ManualAmountDiscount(Money(1000)), ManualAmountDiscount(Money(3000))
    forward = compute_discounts_applied(subtotal, [small, large])
    backward = compute_discounts_applied(subtotal, [large, small])
    assert [d.amount for d in forward] == [Money(1000), Money(2500)]
    assert [d.amount for d in backward] == [Money(3000), Money(500)]


def test_percentage_discount_applies_to_remainder():
    applied = compute_discounts_applied(
        Money(3000), [ManualAmountDiscount(Money(1000)), ManualPercentageDiscount("0.10")]
    )
    assert [d.amount for d in applied] == [Money(1000), Money(200)]


def test_fully_consumed_discounts_are_dropped():
    applied = compute_discounts_applied(
        Money(3000), [ManualAmountDiscount(Money(3000)), CreditCodeDiscount("LATE", Money(500))]
    )
    assert len(applied) == 1


def test_gratuity_charged_on_pre_discount_subtotal(cart):
    totals = price_order(cart, [ManualAmountDiscount(Money(1000))], (), "0.10", "0.10")
    assert totals.gratuity_service_charge == Money(300)
    assert totals.subtotal_after_discount == Money(2300)
    assert totals.tax_amount == Money(230)


def test_payment_order_and_tip_shares(cart):
    payments = [CashPayment(Money(5000)), StoreCreditPayment("SC1", Money(1000))]
    totals = price_order(cart, (), payments, TAX, tip=TWENTY_PERCENT)
    store_credit, cash = totals.payments_applied
    assert isinstance(store_credit.instruction, StoreCreditPayment)
    assert store_credit.amount == Money(1000)
    assert store_credit.tip_amount == Money(167)
    assert cash.amount == Money(2916)
    assert cash.tip_amount == Money(486)
    assert cash.change == Money(2084)
    assert totals.balance == Money(0)
    assert not totals.is_overpaid


def test_card_token_pays_remainder(cart):
    totals = price_order(cart, (), [StoreCreditPayment("SC1", Money(916))], TAX, tip=TWENTY_PERCENT, card_token="tok")
    store_credit, card = totals.payments_applied
    assert isinstance(card.instruction, CardPayment)
    assert card.amount == Money(3000)
    assert store_credit.tip_amount + card.tip_amount == Money(653)
    assert totals.balance == Money(0)


def test_explicit_card_instruction_wins_over_token():
    ordered = order_payments([CardPayment("explicit", Money(100))], card_token="tok")
    assert [p.token for p in ordered] == ["explicit"]


def test_payments_against_settled_total():
    applied = compute_payments_applied(Money(0), Money(0), [StoreCreditPayment("SC1", Money(500))])
    assert applied[0].amount == Money(0)
    assert applied[0].tip_amount == Money(0)


def test_partial_payment_leaves_balance(cart):
    totals = price_order(cart, (), [CardPayment("tok", Money(1000))], TAX)
    assert totals.payments_amount == Money(1000)
    assert totals.balance == Money(2263)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"discounts": [ManualAmountDiscount(Money(-1))]},
        {"discounts": [ManualAmountDiscount(Money(100, "EUR"))]},
        {"discounts": [ManualPercentageDiscount("1.5")]},
        {"payments": [StoreCreditPayment("SC1", Money(-5))]},
        {"tax_rate": "1.2"},
        {"tip": TipSelection.of_amount(Money(-100))},
    ],
)
def test_invalid_instructions(cart, kwargs):
    args = {"discounts": (), "payments": (), "tax_rate": TAX, **kwargs}
    with pytest.raises(ValidationError) as exc:
        price_order(cart, args.pop("discounts"), args.pop("payments"), args.pop("tax_rate"), **args)
    assert exc.value.code == "VALIDATION_ERROR"


def test_non_positive_quantity_is_invalid(cart):
    with pytest.raises(ValidationError):
        price_order([replace(cart[0], quantity=0)], (), (), TAX)


def test_tip_selection_needs_one_value():
    with pytest.raises(ValueError):
        TipSelection()
    with pytest.raises(ValueError):
        TipSelection(percentage=Decimal("0.1"), amount=Money(100))


def test_tip_minimum_on_large_orders(cart):
    pricing = PricingConfig(autograt_threshold=2)
    totals = price_order(cart, (), (), TAX, pricing=pricing, main_category_ids=["pizzas"])
    assert totals.main_category_product_count == 2
    assert totals.tip_minimum == Money(653)

    small = price_order(cart, (), (), TAX, main_category_ids=["pizzas"])
    assert small.tip_minimum == Money(0)


def test_empty_cart_uses_requested_currency():
    totals = price_order((), (), (), "0.1", currency="EUR")
    assert totals.total == Money(0, "EUR")
    assert totals.catalog_version is None


def test_price_order_with_config(cart):
    config = EngineConfig(pricing=PricingConfig(tax_rate=TAX))
    totals = price_order_with_config(config, cart, (), (), tip=TWENTY_PERCENT)
    assert totals.total == Money(3916)


def test_to_dict(cart):
    totals = price_order(cart, [CreditCodeDiscount("A", Money(100))], [CashPayment(Money(5000))], TAX)
    data = totals.to_dict()
    assert data["total"] == {"amount": 3154, "currency": "USD"}
    assert data["discounts_applied"][0]["code"] == "A"
    assert data["payments_applied"][0]["change"] == {"amount": 1846, "currency": "USD"}


def test_pricing_is_logged(cart):
    with capture_logs() as logs:
        price_order(cart, (), (), TAX)
    events = [entry for entry in logs if entry["event"] == "order_priced"]
    assert events and events[0]["total"] == 3263
