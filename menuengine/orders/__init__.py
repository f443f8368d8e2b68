"""
Orders: the monetary pipeline from a priced cart to a balance.

- instructions: discount, payment and tip instructions and applied entries
- pipeline: the stage functions, price_order and OrderTotals
- schemas: pydantic order requests
"""
from menuengine.orders.instructions import (
    AppliedDiscount,
    AppliedPayment,
    CardPayment,
    CashPayment,
    CreditCodeDiscount,
    ManualAmountDiscount,
    ManualPercentageDiscount,
    StoreCreditPayment,
    TipSelection,
)
from menuengine.orders.pipeline import OrderTotals, price_order, price_order_with_config

__all__ = [
    # Instructions
    "AppliedDiscount",
    "AppliedPayment",
    "CardPayment",
    "CashPayment",
    "CreditCodeDiscount",
    "ManualAmountDiscount",
    "ManualPercentageDiscount",
    "StoreCreditPayment",
    "TipSelection",
    # Pipeline
    "OrderTotals",
    "price_order",
    "price_order_with_config",
]
