"""Order monetary pipeline.

A strict left-to-right reduction from a priced cart to a balance:

    cart subtotal -> + service fee -> - discounts -> + gratuity -> tax
    -> tip -> total -> payments -> balance

Each stage is a pure function of the previous stage's output and its own
inputs, and rounds at most once. Discount and payment instructions are
consumed in the order given; a request larger than what remains is clamped,
never rejected. Malformed instructions raise ValidationError before any
stage runs.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterable, Optional, Sequence

from menuengine.core.config import EngineConfig, PricingConfig
from menuengine.core.errors import ValidationError
from menuengine.core.logging import get_logger
from menuengine.core.money import (
    DEFAULT_CURRENCY,
    Money,
    Rate,
    has_half_cent_skew,
    round_half_away_from_zero,
    sum_money,
    to_decimal,
)
from menuengine.orders.instructions import (
    AppliedDiscount,
    AppliedPayment,
    CardPayment,
    CashPayment,
    Discount,
    ManualPercentageDiscount,
    Payment,
    StoreCreditPayment,
    TipSelection,
)
from menuengine.products.cart import CartEntry, count_in_categories

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class OrderTotals:
    """Every intermediate and final amount of one pipeline run."""

    cart_subtotal: Money
    service_fee: Money
    subtotal_pre_discount: Money
    discounts_applied: tuple
    discounts_amount: Money
    gratuity_service_charge: Money
    subtotal_after_discount: Money
    tax_amount: Money
    has_bankers_rounding_skew: bool
    tip_basis: Money
    tip_minimum: Money
    tip_amount: Money
    total: Money
    payments_applied: tuple
    payments_amount: Money
    balance_signed: Money
    main_category_product_count: int = 0
    catalog_version: Optional[str] = None

    @property
    def balance(self) -> Money:
        """Amount still due, never negative."""
        return self.balance_signed.clamp_non_negative()

    @property
    def is_overpaid(self) -> bool:
        return self.balance_signed.is_negative

    def to_dict(self) -> dict[str, Any]:
        return {
            "cart_subtotal": self.cart_subtotal.to_dict(),
            "service_fee": self.service_fee.to_dict(),
            "subtotal_pre_discount": self.subtotal_pre_discount.to_dict(),
            "discounts_applied": [d.to_dict() for d in self.discounts_applied],
            "discounts_amount": self.discounts_amount.to_dict(),
            "gratuity_service_charge": self.gratuity_service_charge.to_dict(),
            "subtotal_after_discount": self.subtotal_after_discount.to_dict(),
            "tax_amount": self.tax_amount.to_dict(),
            "has_bankers_rounding_skew": self.has_bankers_rounding_skew,
            "tip_basis": self.tip_basis.to_dict(),
            "tip_minimum": self.tip_minimum.to_dict(),
            "tip_amount": self.tip_amount.to_dict(),
            "total": self.total.to_dict(),
            "payments_applied": [p.to_dict() for p in self.payments_applied],
            "payments_amount": self.payments_amount.to_dict(),
            "balance": self.balance.to_dict(),
            "balance_signed": self.balance_signed.to_dict(),
            "is_overpaid": self.is_overpaid,
            "main_category_product_count": self.main_category_product_count,
            "catalog_version": self.catalog_version,
        }


# ---------------------------------------------------------------------------
# Stages
# ---------------------------------------------------------------------------

def compute_cart_subtotal(cart: Iterable[CartEntry], currency: str = DEFAULT_CURRENCY) -> Money:
    return sum_money((entry.line_total for entry in cart), currency)


def compute_subtotal_pre_discount(cart_subtotal: Money, service_fee: Money) -> Money:
    return cart_subtotal + service_fee


def compute_discounts_applied(subtotal_pre_discount: Money, discounts: Sequence[Discount]) -> tuple:
    """Consume discounts in order against the pre-discount subtotal.

    Percentage discounts take their share of what remains, not of the
    original subtotal. Discounts that end up applying nothing are dropped.
    """
    remaining = subtotal_pre_discount
    applied = []
    for discount in discounts:
        if isinstance(discount, ManualPercentageDiscount):
            amount = remaining.scale(discount.percentage)
        else:
            amount = discount.amount.min(remaining)
        if amount.is_zero:
            continue
        remaining = remaining - amount
        applied.append(AppliedDiscount(discount, amount))
    return tuple(applied)


def compute_gratuity_service_charge(rate: Rate, subtotal_pre_discount: Money) -> Money:
    return subtotal_pre_discount.scale(rate)


def compute_subtotal_after_discount(subtotal_pre_discount: Money, discounts_amount: Money, gratuity: Money) -> Money:
    """Gratuity is added back: it is charged on the pre-discount subtotal."""
    return subtotal_pre_discount - discounts_amount + gratuity


def compute_tax_amount(subtotal_after_discount: Money, tax_rate: Rate) -> Money:
    return subtotal_after_discount.scale(tax_rate)


def compute_tip_basis(subtotal_pre_discount: Money, tax_amount: Money) -> Money:
    """Tips are figured on the undiscounted amount plus tax."""
    return subtotal_pre_discount + tax_amount


def compute_tip_value(tip: Optional[TipSelection], basis: Money) -> Money:
    if tip is None:
        return Money.zero(basis.currency)
    if tip.is_percentage:
        return basis.scale(tip.percentage)
    return tip.amount


def compute_tip_minimum(
    basis: Money,
    main_category_count: int,
    allow_tipping: bool,
    autograt_threshold: int,
    suggested_rate: Rate,
) -> Money:
    """Suggested tip enforced on large orders; zero otherwise."""
    if allow_tipping and main_category_count >= autograt_threshold:
        return compute_tip_value(TipSelection.of_percentage(suggested_rate, is_suggestion=True), basis)
    return Money.zero(basis.currency)


def compute_total(subtotal_after_discount: Money, tax_amount: Money, tip_amount: Money) -> Money:
    return subtotal_after_discount + tax_amount + tip_amount


def order_payments(payments: Sequence[Payment], card_token: Optional[str] = None) -> list[Payment]:
    """Store credit, then cash, then card, each group in caller order.

    With a card token and no card instruction, a card payment for the
    remainder is appended.
    """
    store_credit = [p for p in payments if isinstance(p, StoreCreditPayment)]
    cash = [p for p in payments if isinstance(p, CashPayment)]
    cards = [p for p in payments if isinstance(p, CardPayment)]
    if card_token and not cards:
        cards = [CardPayment(token=card_token)]
    return store_credit + cash + cards


def compute_payments_applied(
    total: Money,
    tip: Money,
    payments: Sequence[Payment],
    card_token: Optional[str] = None,
) -> tuple:
    """Consume payments against the total, splitting the tip pro rata.

    Each payment carries ``round(remaining_tip * applied / remaining)`` of the
    tip; a payment that settles the remainder carries all of what is left.
    """
    remaining = total
    remaining_tip = tip
    applied = []
    for payment in order_payments(payments, card_token):
        if isinstance(payment, CardPayment) and payment.amount is None:
            amount = remaining.clamp_non_negative()
        else:
            amount = payment.amount.min(remaining).clamp_non_negative()

        if remaining.amount <= 0:
            tip_share = Money.zero(tip.currency)
        elif amount == remaining:
            tip_share = remaining_tip
        else:
            tip_share = Money(
                round_half_away_from_zero(Decimal(remaining_tip.amount) * amount.amount / remaining.amount),
                tip.currency,
            )

        change = payment.amount_tendered - amount if isinstance(payment, CashPayment) else None
        applied.append(AppliedPayment(payment, amount, tip_share, change))
        remaining = remaining - amount
        remaining_tip = remaining_tip - tip_share
    return tuple(applied)


def compute_balance(total: Money, paid: Money) -> Money:
    """Signed balance; negative means overpaid."""
    return total - paid


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def _invalid(message: str, **details: Any) -> ValidationError:
    logger.warning("order_validation_failed", reason=message, **details)
    return ValidationError(message, details)


def _check_money(label: str, value: Money, currency: str) -> None:
    if value.currency != currency:
        raise _invalid(f"{label} currency {value.currency} differs from order currency {currency}", field=label)
    if value.is_negative:
        raise _invalid(f"{label} must not be negative", field=label, amount=value.amount)


def _check_rate(label: str, rate: Decimal) -> None:
    if rate < 0 or rate > 1:
        raise _invalid(f"{label} must be between 0 and 1", field=label, rate=str(rate))


def validate_order_inputs(
    cart: Sequence[CartEntry],
    discounts: Sequence[Discount],
    payments: Sequence[Payment],
    currency: str,
    tip: Optional[TipSelection] = None,
    service_fee: Optional[Money] = None,
    rates: Optional[dict[str, Decimal]] = None,
) -> None:
    """Raise ValidationError for the first malformed input."""
    for index, entry in enumerate(cart):
        if isinstance(entry.quantity, bool) or not isinstance(entry.quantity, int) or entry.quantity <= 0:
            raise _invalid("Cart quantity must be a positive integer", line=index, quantity=entry.quantity)
        if entry.price.currency != currency:
            raise _invalid(
                f"Cart line currency {entry.price.currency} differs from order currency {currency}",
                line=index,
            )
    for index, discount in enumerate(discounts):
        if isinstance(discount, ManualPercentageDiscount):
            _check_rate(f"discount[{index}].percentage", discount.percentage)
        else:
            _check_money(f"discount[{index}].amount", discount.amount, currency)
    for index, payment in enumerate(payments):
        if isinstance(payment, CashPayment):
            _check_money(f"payment[{index}].amount_tendered", payment.amount_tendered, currency)
        elif payment.amount is not None:
            _check_money(f"payment[{index}].amount", payment.amount, currency)
    if tip is not None:
        if tip.is_percentage:
            _check_rate("tip.percentage", tip.percentage)
        else:
            _check_money("tip.amount", tip.amount, currency)
    if service_fee is not None:
        _check_money("service_fee", service_fee, currency)
    for label, rate in (rates or {}).items():
        _check_rate(label, rate)


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------

def _cart_catalog_version(cart: Sequence[CartEntry]) -> Optional[str]:
    versions = {entry.metadata.catalog_version for entry in cart}
    return versions.pop() if len(versions) == 1 else None


def price_order(
    cart: Sequence[CartEntry],
    discounts: Sequence[Discount],
    payments: Sequence[Payment],
    tax_rate: Rate,
    gratuity_rate: Optional[Rate] = None,
    *,
    tip: Optional[TipSelection] = None,
    service_fee: Optional[Money] = None,
    card_token: Optional[str] = None,
    currency: Optional[str] = None,
    main_category_ids: Iterable[str] = (),
    pricing: Optional[PricingConfig] = None,
    catalog_version: Optional[str] = None,
) -> OrderTotals:
    """Run every stage and bundle the results.

    The order currency comes from the cart, then ``currency``, then
    ``pricing.currency``. Calling twice with equal inputs gives equal totals.
    """
    pricing = pricing or PricingConfig()
    cart = tuple(cart)
    discounts = tuple(discounts)
    payments = tuple(payments)
    if cart:
        order_currency = cart[0].price.currency
    else:
        order_currency = currency or pricing.currency
    tax = to_decimal(tax_rate)
    gratuity = to_decimal(gratuity_rate) if gratuity_rate is not None else pricing.gratuity_rate

    validate_order_inputs(
        cart,
        discounts,
        payments,
        order_currency,
        tip=tip,
        service_fee=service_fee,
        rates={"tax_rate": tax, "gratuity_rate": gratuity},
    )

    cart_subtotal = compute_cart_subtotal(cart, order_currency)
    fee = service_fee if service_fee is not None else Money.zero(order_currency)
    subtotal_pre_discount = compute_subtotal_pre_discount(cart_subtotal, fee)
    discounts_applied = compute_discounts_applied(subtotal_pre_discount, discounts)
    discounts_amount = sum_money((d.amount for d in discounts_applied), order_currency)
    gratuity_charge = compute_gratuity_service_charge(gratuity, subtotal_pre_discount)
    subtotal_after_discount = compute_subtotal_after_discount(subtotal_pre_discount, discounts_amount, gratuity_charge)
    tax_amount = compute_tax_amount(subtotal_after_discount, tax)
    tip_basis = compute_tip_basis(subtotal_pre_discount, tax_amount)
    main_count = count_in_categories(cart, main_category_ids)
    tip_minimum = compute_tip_minimum(
        tip_basis,
        main_count,
        pricing.allow_tipping,
        pricing.autograt_threshold,
        pricing.suggested_tip_rate,
    )
    tip_amount = compute_tip_value(tip, tip_basis)
    total = compute_total(subtotal_after_discount, tax_amount, tip_amount)
    payments_applied = compute_payments_applied(total, tip_amount, payments, card_token)
    payments_amount = sum_money((p.amount for p in payments_applied), order_currency)

    totals = OrderTotals(
        cart_subtotal=cart_subtotal,
        service_fee=fee,
        subtotal_pre_discount=subtotal_pre_discount,
        discounts_applied=discounts_applied,
        discounts_amount=discounts_amount,
        gratuity_service_charge=gratuity_charge,
        subtotal_after_discount=subtotal_after_discount,
        tax_amount=tax_amount,
        has_bankers_rounding_skew=has_half_cent_skew(subtotal_after_discount.amount, tax),
        tip_basis=tip_basis,
        tip_minimum=tip_minimum,
        tip_amount=tip_amount,
        total=total,
        payments_applied=payments_applied,
        payments_amount=payments_amount,
        balance_signed=compute_balance(total, payments_amount),
        main_category_product_count=main_count,
        catalog_version=catalog_version if catalog_version is not None else _cart_catalog_version(cart),
    )
    logger.info(
        "order_priced",
        total=totals.total.amount,
        balance=totals.balance_signed.amount,
        discounts=len(discounts_applied),
        payments=len(payments_applied),
        catalog_version=totals.catalog_version,
    )
    return totals


def price_order_with_config(
    config: EngineConfig,
    cart: Sequence[CartEntry],
    discounts: Sequence[Discount],
    payments: Sequence[Payment],
    **kwargs: Any,
) -> OrderTotals:
    """``price_order`` with rates and thresholds taken from ``config.pricing``."""
    pricing = config.pricing
    return price_order(
        cart,
        discounts,
        payments,
        pricing.tax_rate,
        pricing.gratuity_rate,
        currency=pricing.currency,
        pricing=pricing,
        **kwargs,
    )
