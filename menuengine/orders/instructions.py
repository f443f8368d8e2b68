"""Discount and payment instructions, and the ledger entries they become.

Instructions say what the customer asked for; the pipeline decides how much
of each is actually consumed and records that as an ``AppliedDiscount`` or
``AppliedPayment``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional, Union

from menuengine.core.money import Money, to_decimal


class DiscountMethod(str, Enum):
    CREDIT_CODE_AMOUNT = "credit_code_amount"
    MANUAL_AMOUNT = "manual_amount"
    MANUAL_PERCENTAGE = "manual_percentage"


class PaymentMethod(str, Enum):
    STORE_CREDIT = "store_credit"
    CASH = "cash"
    CARD = "card"


# ---------------------------------------------------------------------------
# Discounts
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CreditCodeDiscount:
    code: str
    amount: Money
    created_at: Optional[datetime] = None
    method = DiscountMethod.CREDIT_CODE_AMOUNT


@dataclass(frozen=True)
class ManualAmountDiscount:
    amount: Money
    reason: str = ""
    created_at: Optional[datetime] = None
    method = DiscountMethod.MANUAL_AMOUNT


@dataclass(frozen=True)
class ManualPercentageDiscount:
    percentage: Decimal
    reason: str = ""
    created_at: Optional[datetime] = None
    method = DiscountMethod.MANUAL_PERCENTAGE

    def __post_init__(self):
        object.__setattr__(self, "percentage", to_decimal(self.percentage))


Discount = Union[CreditCodeDiscount, ManualAmountDiscount, ManualPercentageDiscount]


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class StoreCreditPayment:
    code: str
    amount: Money
    created_at: Optional[datetime] = None
    method = PaymentMethod.STORE_CREDIT


@dataclass(frozen=True)
class CashPayment:
    amount_tendered: Money
    created_at: Optional[datetime] = None
    method = PaymentMethod.CASH

    @property
    def amount(self) -> Money:
        return self.amount_tendered


@dataclass(frozen=True)
class CardPayment:
    """A card charge. ``amount`` None means charge whatever remains."""

    token: str
    amount: Optional[Money] = None
    created_at: Optional[datetime] = None
    method = PaymentMethod.CARD


Payment = Union[StoreCreditPayment, CashPayment, CardPayment]


# ---------------------------------------------------------------------------
# Tips
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TipSelection:
    """Either a percentage of the tip basis or a fixed amount."""

    percentage: Optional[Decimal] = None
    amount: Optional[Money] = None
    is_suggestion: bool = False

    def __post_init__(self):
        if (self.percentage is None) == (self.amount is None):
            raise ValueError("TipSelection needs exactly one of percentage or amount")
        if self.percentage is not None:
            object.__setattr__(self, "percentage", to_decimal(self.percentage))

    @classmethod
    def of_percentage(cls, percentage, is_suggestion: bool = False) -> "TipSelection":
        return cls(percentage=to_decimal(percentage), is_suggestion=is_suggestion)

    @classmethod
    def of_amount(cls, amount: Money) -> "TipSelection":
        return cls(amount=amount)

    @property
    def is_percentage(self) -> bool:
        return self.percentage is not None


# ---------------------------------------------------------------------------
# Ledger entries
# ---------------------------------------------------------------------------

def _instruction_dict(instruction: Any) -> dict[str, Any]:
    data: dict[str, Any] = {"method": instruction.method.value}
    for name in ("code", "reason", "token"):
        if hasattr(instruction, name):
            data[name] = getattr(instruction, name)
    if isinstance(instruction, ManualPercentageDiscount):
        data["percentage"] = str(instruction.percentage)
    elif isinstance(instruction, CashPayment):
        data["amount_tendered"] = instruction.amount_tendered.to_dict()
    elif instruction.amount is not None:
        data["requested"] = instruction.amount.to_dict()
    if instruction.created_at is not None:
        data["created_at"] = instruction.created_at.isoformat()
    return data


@dataclass(frozen=True)
class AppliedDiscount:
    instruction: Discount
    amount: Money

    def to_dict(self) -> dict[str, Any]:
        return {**_instruction_dict(self.instruction), "amount": self.amount.to_dict()}


@dataclass(frozen=True)
class AppliedPayment:
    instruction: Payment
    amount: Money
    tip_amount: Money
    change: Optional[Money] = None  # cash only

    def to_dict(self) -> dict[str, Any]:
        data = {
            **_instruction_dict(self.instruction),
            "amount": self.amount.to_dict(),
            "tip_amount": self.tip_amount.to_dict(),
        }
        if self.change is not None:
            data["change"] = self.change.to_dict()
        return data
