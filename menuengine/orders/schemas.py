"""Pydantic schemas for order requests.

An order request is what a storefront sends: cart lines as product
instances, plus discount, payment and tip instructions. ``to_domain``
rebuilds the cart against a catalog snapshot and returns the frozen inputs
for ``price_order``.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Annotated, Literal, Optional, Union

import pydantic
from pydantic import BaseModel, Field

from menuengine.catalog.enums import OptionPlacement, OptionQualifier
from menuengine.catalog.models import OptionSelection, ProductInstance
from menuengine.catalog.snapshot import CatalogSnapshot
from menuengine.core.errors import ValidationError
from menuengine.core.money import DEFAULT_CURRENCY, Money
from menuengine.orders.instructions import (
    CardPayment,
    CashPayment,
    CreditCodeDiscount,
    ManualAmountDiscount,
    ManualPercentageDiscount,
    StoreCreditPayment,
    TipSelection,
)
from menuengine.products.cart import rebuild_cart


# ---------------------------------------------------------------------------
# Cart lines
# ---------------------------------------------------------------------------

class OptionSelectionSchema(BaseModel):
    modifier_type_id: str
    option_id: str
    placement: OptionPlacement = OptionPlacement.WHOLE
    qualifier: OptionQualifier = OptionQualifier.REGULAR

    def to_domain(self) -> OptionSelection:
        return OptionSelection(self.modifier_type_id, self.option_id, self.placement, self.qualifier)


class OrderLineSchema(BaseModel):
    product_id: str
    selections: list[OptionSelectionSchema] = Field(default_factory=list)
    quantity: int = Field(1, gt=0)
    category_id: Optional[str] = None

    def to_instance(self) -> ProductInstance:
        return ProductInstance(self.product_id, tuple(s.to_domain() for s in self.selections))


# ---------------------------------------------------------------------------
# Instructions (discriminated on ``method``)
# ---------------------------------------------------------------------------

class CreditCodeDiscountSchema(BaseModel):
    method: Literal["credit_code_amount"] = "credit_code_amount"
    code: str
    amount: int = Field(..., ge=0)
    created_at: Optional[datetime] = None


class ManualAmountDiscountSchema(BaseModel):
    method: Literal["manual_amount"] = "manual_amount"
    amount: int = Field(..., ge=0)
    reason: str = ""
    created_at: Optional[datetime] = None


class ManualPercentageDiscountSchema(BaseModel):
    method: Literal["manual_percentage"] = "manual_percentage"
    percentage: Decimal = Field(..., ge=0, le=1)
    reason: str = ""
    created_at: Optional[datetime] = None


DiscountSchema = Annotated[
    Union[CreditCodeDiscountSchema, ManualAmountDiscountSchema, ManualPercentageDiscountSchema],
    Field(discriminator="method"),
]


class StoreCreditPaymentSchema(BaseModel):
    method: Literal["store_credit"] = "store_credit"
    code: str
    amount: int = Field(..., ge=0)
    created_at: Optional[datetime] = None


class CashPaymentSchema(BaseModel):
    method: Literal["cash"] = "cash"
    amount_tendered: int = Field(..., ge=0)
    created_at: Optional[datetime] = None


class CardPaymentSchema(BaseModel):
    method: Literal["card"] = "card"
    token: str
    amount: Optional[int] = Field(None, ge=0)
    created_at: Optional[datetime] = None


PaymentSchema = Annotated[
    Union[StoreCreditPaymentSchema, CashPaymentSchema, CardPaymentSchema],
    Field(discriminator="method"),
]


class TipSchema(BaseModel):
    percentage: Optional[Decimal] = Field(None, ge=0, le=1)
    amount: Optional[int] = Field(None, ge=0)

    @pydantic.model_validator(mode="after")
    def check_exactly_one(self):
        if (self.percentage is None) == (self.amount is None):
            raise ValueError("tip needs exactly one of percentage or amount")
        return self


# ---------------------------------------------------------------------------
# Request
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class OrderInputs:
    """Frozen arguments for ``price_order``."""

    cart: tuple
    discounts: tuple
    payments: tuple
    tip: Optional[TipSelection]
    card_token: Optional[str]
    catalog_version: Optional[str]


class OrderRequest(BaseModel):
    currency: str = Field(DEFAULT_CURRENCY, min_length=3, max_length=3)
    lines: list[OrderLineSchema] = Field(default_factory=list)
    discounts: list[DiscountSchema] = Field(default_factory=list)
    payments: list[PaymentSchema] = Field(default_factory=list)
    tip: Optional[TipSchema] = None
    card_token: Optional[str] = None
    fulfillment_id: Optional[str] = None

    def _money(self, amount: int) -> Money:
        return Money(amount, self.currency)

    def discounts_to_domain(self) -> tuple:
        discounts = []
        for d in self.discounts:
            if isinstance(d, CreditCodeDiscountSchema):
                discounts.append(CreditCodeDiscount(d.code, self._money(d.amount), d.created_at))
            elif isinstance(d, ManualAmountDiscountSchema):
                discounts.append(ManualAmountDiscount(self._money(d.amount), d.reason, d.created_at))
            else:
                discounts.append(ManualPercentageDiscount(d.percentage, d.reason, d.created_at))
        return tuple(discounts)

    def payments_to_domain(self) -> tuple:
        payments = []
        for p in self.payments:
            if isinstance(p, StoreCreditPaymentSchema):
                payments.append(StoreCreditPayment(p.code, self._money(p.amount), p.created_at))
            elif isinstance(p, CashPaymentSchema):
                payments.append(CashPayment(self._money(p.amount_tendered), p.created_at))
            else:
                amount = self._money(p.amount) if p.amount is not None else None
                payments.append(CardPayment(p.token, amount, p.created_at))
        return tuple(payments)

    def tip_to_domain(self) -> Optional[TipSelection]:
        if self.tip is None:
            return None
        if self.tip.percentage is not None:
            return TipSelection.of_percentage(self.tip.percentage)
        return TipSelection.of_amount(self._money(self.tip.amount))

    def to_domain(self, snapshot: CatalogSnapshot, at_time: datetime) -> OrderInputs:
        """Rebuild the cart against ``snapshot`` and convert every instruction."""
        cart = rebuild_cart(
            ((line.to_instance(), line.quantity, line.category_id) for line in self.lines),
            snapshot,
            at_time,
            self.fulfillment_id,
        )
        return OrderInputs(
            cart=cart,
            discounts=self.discounts_to_domain(),
            payments=self.payments_to_domain(),
            tip=self.tip_to_domain(),
            card_token=self.card_token,
            catalog_version=snapshot.version_id,
        )


def parse_order_request(data: dict) -> OrderRequest:
    """Validate a plain-data order request, raising the engine's ValidationError."""
    try:
        return OrderRequest.model_validate(data)
    except pydantic.ValidationError as exc:
        raise ValidationError(
            "Order request is malformed",
            {"errors": exc.errors(include_url=False, include_context=False)},
        ) from exc
