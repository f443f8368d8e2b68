"""Fixed-point currency arithmetic.

Money is an integer count of minor units (cents) plus an ISO 4217 code.
Arithmetic never yields a fractional minor unit: anything that multiplies by
a rate goes through ``round_half_away_from_zero`` exactly once.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Union

DEFAULT_CURRENCY = "USD"

Rate = Union[Decimal, int, float, str]


def to_decimal(rate: Rate) -> Decimal:
    """Convert a rate to Decimal, going through str so 0.0875 stays 0.0875."""
    if isinstance(rate, Decimal):
        return rate
    if isinstance(rate, bool):
        raise TypeError("rate must be numeric, not bool")
    return Decimal(str(rate))


def round_half_away_from_zero(value: Decimal) -> int:
    """The one rounding rule used by every pricing stage."""
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def has_half_cent_skew(amount: int, rate: Rate) -> bool:
    """True when amount * rate lands exactly on .5 of a minor unit.

    That is the only case where half-up and banker's rounding disagree.
    """
    product = Decimal(amount) * to_decimal(rate)
    return abs(product % 1) == Decimal("0.5")


@dataclass(frozen=True)
class Money:
    """An amount of minor units in a single currency."""

    amount: int
    currency: str = DEFAULT_CURRENCY

    def __post_init__(self):
        if isinstance(self.amount, bool) or not isinstance(self.amount, int):
            raise TypeError(f"Money amount must be an int of minor units, got {self.amount!r}")
        if not self.currency:
            raise ValueError("Money currency is required")

    @classmethod
    def zero(cls, currency: str = DEFAULT_CURRENCY) -> "Money":
        return cls(0, currency)

    # -- Arithmetic --

    def _check_currency(self, other: "Money") -> None:
        if not isinstance(other, Money):
            raise TypeError(f"Cannot combine Money with {type(other).__name__}")
        if other.currency != self.currency:
            raise ValueError(f"Currency mismatch: {self.currency} vs {other.currency}")

    def __add__(self, other: "Money") -> "Money":
        self._check_currency(other)
        return Money(self.amount + other.amount, self.currency)

    def __sub__(self, other: "Money") -> "Money":
        self._check_currency(other)
        return Money(self.amount - other.amount, self.currency)

    def __mul__(self, quantity: int) -> "Money":
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise TypeError("Money can only be multiplied by an integer quantity; use scale() for rates")
        return Money(self.amount * quantity, self.currency)

    __rmul__ = __mul__

    def __neg__(self) -> "Money":
        return Money(-self.amount, self.currency)

    def scale(self, rate: Rate) -> "Money":
        """Multiply by a rate and round once, half away from zero."""
        return Money(round_half_away_from_zero(Decimal(self.amount) * to_decimal(rate)), self.currency)

    def min(self, other: "Money") -> "Money":
        self._check_currency(other)
        return self if self.amount <= other.amount else other

    def clamp_non_negative(self) -> "Money":
        return self if self.amount >= 0 else Money(0, self.currency)

    # -- Predicates --

    @property
    def is_zero(self) -> bool:
        return self.amount == 0

    @property
    def is_negative(self) -> bool:
        return self.amount < 0

    # -- Display --

    def to_display_string(self, show_currency_unit: bool = True) -> str:
        sign = "-" if self.amount < 0 else ""
        whole, cents = divmod(abs(self.amount), 100)
        unit = "$" if show_currency_unit else ""
        return f"{sign}{unit}{whole}.{cents:02d}"

    def to_dict(self) -> dict:
        return {"amount": self.amount, "currency": self.currency}


def sum_money(values, currency: str = DEFAULT_CURRENCY) -> Money:
    """Sum an iterable of Money starting from zero in ``currency``."""
    total = Money.zero(currency)
    for value in values:
        total = total + value
    return total
