"""Enable states for modifier options.

A closed set of frozen variants: ``Enabled`` or one of the disabled reasons.
Reasons compare by value, so tests can assert on them directly, and every
renderer handles exactly this set.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Union

from menuengine.expressions.render import explain_failure

if TYPE_CHECKING:
    from menuengine.catalog.snapshot import CatalogSnapshot


@dataclass(frozen=True)
class Enabled:
    @property
    def is_enabled(self) -> bool:
        return True


@dataclass(frozen=True)
class _Disabled:
    @property
    def is_enabled(self) -> bool:
        return False


@dataclass(frozen=True)
class TimeDisabled(_Disabled):
    pass


@dataclass(frozen=True)
class BlanketDisabled(_Disabled):
    pass


@dataclass(frozen=True)
class FlavorLimitExceeded(_Disabled):
    pass


@dataclass(frozen=True)
class WeightLimitExceeded(_Disabled):
    pass


@dataclass(frozen=True)
class FulfillmentTypeDisabled(_Disabled):
    channel_id: str


@dataclass(frozen=True)
class SplittingNotAllowed(_Disabled):
    pass


@dataclass(frozen=True)
class SplitDifferentialExceeded(_Disabled):
    pass


@dataclass(frozen=True)
class MaximumOfTypeExceeded(_Disabled):
    pass


@dataclass(frozen=True)
class FunctionConstraintFailed(_Disabled):
    """The enable expression was false (or could not be evaluated)."""

    trace: tuple = ()
    error: Optional[str] = None


DisabledReason = Union[
    TimeDisabled,
    BlanketDisabled,
    FlavorLimitExceeded,
    WeightLimitExceeded,
    FulfillmentTypeDisabled,
    SplittingNotAllowed,
    SplitDifferentialExceeded,
    MaximumOfTypeExceeded,
    FunctionConstraintFailed,
]

EnableState = Union[Enabled, DisabledReason]


def describe_reason(reason: EnableState, catalog: Optional["CatalogSnapshot"] = None) -> str:
    """One sentence for the tooltip next to a disabled option."""
    if isinstance(reason, Enabled):
        return "available"
    if isinstance(reason, TimeDisabled):
        return "not available at this time"
    if isinstance(reason, BlanketDisabled):
        return "currently unavailable"
    if isinstance(reason, FlavorLimitExceeded):
        return "would exceed the maximum flavor for this item"
    if isinstance(reason, WeightLimitExceeded):
        return "would exceed the maximum weight for this item"
    if isinstance(reason, FulfillmentTypeDisabled):
        return f"not available for fulfillment {reason.channel_id}"
    if isinstance(reason, SplittingNotAllowed):
        return "cannot be placed on half of this item"
    if isinstance(reason, SplitDifferentialExceeded):
        return "would make the two halves too uneven"
    if isinstance(reason, MaximumOfTypeExceeded):
        return "maximum number of selections reached"
    if isinstance(reason, FunctionConstraintFailed):
        if reason.error is not None:
            return "not available with the current selection"
        return explain_failure(reason.trace, catalog) or "not available with the current selection"
    raise TypeError(f"Unknown enable state: {type(reason).__name__}")
