"""Catalog domain models.

Frozen dataclasses for the catalog entities the engine reads: products,
modifier types, modifier options, and a customer's product instance.
Collections are tuples and frozensets so every model is hashable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from menuengine.catalog.enums import DisplayAs, ModifierDisplayClass, OptionPlacement, OptionQualifier
from menuengine.core.errors import CatalogIntegrityError
from menuengine.core.logging import get_logger
from menuengine.core.money import Money
from menuengine.expressions.nodes import Expression

logger = get_logger(__name__)


def _freeze(instance, name: str, kind=tuple) -> None:
    value = getattr(instance, name)
    if not isinstance(value, kind):
        object.__setattr__(instance, name, kind(value))


# ---------------------------------------------------------------------------
# Availability
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DisabledInterval:
    """Explicit disabled period. ``start > end`` means disabled indefinitely."""

    start: datetime
    end: datetime

    @property
    def is_indefinite(self) -> bool:
        return self.start > self.end

    def contains(self, at: datetime) -> bool:
        return self.start <= at <= self.end

    @classmethod
    def blanket(cls) -> "DisabledInterval":
        return cls(datetime.max, datetime.min)


@dataclass(frozen=True)
class AvailabilityWindow:
    """Recurring daily window in minutes since midnight, both ends inclusive.

    A window whose start is after its end wraps past midnight. ``weekdays``
    holds ISO weekday numbers (Monday=1); empty means every day.
    """

    start_minute: int
    end_minute: int
    weekdays: frozenset = frozenset()

    def __post_init__(self):
        _freeze(self, "weekdays", frozenset)
        for minute in (self.start_minute, self.end_minute):
            if not 0 <= minute < 24 * 60:
                raise ValueError(f"Window minute {minute} outside 0..1439")

    def contains(self, at: datetime) -> bool:
        if self.weekdays and at.isoweekday() not in self.weekdays:
            return False
        minute = at.hour * 60 + at.minute
        if self.start_minute <= self.end_minute:
            return self.start_minute <= minute <= self.end_minute
        return minute >= self.start_minute or minute <= self.end_minute


# ---------------------------------------------------------------------------
# Catalog entities
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ModifierOption:
    id: str
    modifier_type_id: str
    display_name: str
    price: Money = field(default_factory=Money.zero)
    shortcode: str = ""
    description: str = ""
    flavor_factor: float = 0
    bake_factor: float = 0
    can_split: bool = False
    allow_heavy: bool = False
    allow_lite: bool = False
    allow_on_the_side: bool = False
    enable: Optional[Expression] = None
    disabled: Optional[DisabledInterval] = None
    availability: tuple = ()
    excluded_fulfillments: frozenset = frozenset()
    omit_from_name: bool = False
    omit_from_shortname: bool = False
    ordinal: int = 0

    def __post_init__(self):
        _freeze(self, "availability")
        _freeze(self, "excluded_fulfillments", frozenset)
        if not self.shortcode:
            object.__setattr__(self, "shortcode", self.display_name)

    def price_for(self, qualifier: OptionQualifier) -> Money:
        return self.price * 2 if qualifier == OptionQualifier.HEAVY else self.price

    def bake_for(self, qualifier: OptionQualifier) -> float:
        return self.bake_factor * 2 if qualifier == OptionQualifier.HEAVY else self.bake_factor

    @property
    def advanced_option_eligible(self) -> bool:
        return self.can_split or self.allow_heavy or self.allow_lite or self.allow_on_the_side


@dataclass(frozen=True)
class ModifierType:
    id: str
    name: str
    option_ids: tuple = ()
    display_name: str = ""
    min_selected: int = 0
    max_selected: Optional[int] = None  # None is unbounded
    display_class: ModifierDisplayClass = ModifierDisplayClass.MULTI_SELECT
    hidden: bool = False
    omit_section_if_no_available_options: bool = False
    omit_options_if_not_available: bool = False
    empty_display_as: DisplayAs = DisplayAs.OMIT
    template_string: str = ""
    multiple_item_separator: str = " + "
    non_empty_group_prefix: str = ""
    non_empty_group_suffix: str = ""
    ordinal: int = 0

    def __post_init__(self):
        _freeze(self, "option_ids")
        if not self.display_name:
            object.__setattr__(self, "display_name", self.name)
        if self.display_class == ModifierDisplayClass.TOGGLE and not (
            self.min_selected == 1 and self.max_selected == 1 and len(self.option_ids) == 2
        ):
            logger.error("illegal_toggle_modifier_type", modifier_type_id=self.id)
            raise CatalogIntegrityError(
                f"Modifier type {self.id} cannot be a toggle: needs min=max=1 and exactly two options",
                {
                    "modifier_type_id": self.id,
                    "min_selected": self.min_selected,
                    "max_selected": self.max_selected,
                    "option_count": len(self.option_ids),
                },
            )

    @property
    def is_single_select(self) -> bool:
        return self.max_selected == 1


@dataclass(frozen=True)
class ProductModifier:
    """A modifier type attached to a product."""

    modifier_type_id: str
    enable: Optional[Expression] = None
    excluded_fulfillments: frozenset = frozenset()

    def __post_init__(self):
        _freeze(self, "excluded_fulfillments", frozenset)


@dataclass(frozen=True)
class ProductDefinition:
    id: str
    display_name: str
    price: Money = field(default_factory=Money.zero)
    shortcode: str = ""
    description: str = ""
    modifiers: tuple = ()
    flavor_max: Optional[float] = None
    bake_max: Optional[float] = None
    bake_differential: Optional[float] = None
    show_name_of_base_product: bool = True
    excluded_fulfillments: frozenset = frozenset()

    def __post_init__(self):
        _freeze(self, "modifiers")
        _freeze(self, "excluded_fulfillments", frozenset)
        if not self.shortcode:
            object.__setattr__(self, "shortcode", self.display_name)

    def modifier(self, modifier_type_id: str) -> Optional[ProductModifier]:
        for modifier in self.modifiers:
            if modifier.modifier_type_id == modifier_type_id:
                return modifier
        return None

    @property
    def modifier_type_ids(self) -> tuple:
        return tuple(m.modifier_type_id for m in self.modifiers)


# ---------------------------------------------------------------------------
# Customer selections
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class OptionSelection:
    modifier_type_id: str
    option_id: str
    placement: OptionPlacement = OptionPlacement.WHOLE
    qualifier: OptionQualifier = OptionQualifier.REGULAR


@dataclass(frozen=True)
class ProductInstance:
    """A base product plus the customer's ordered option selections."""

    product_id: str
    selections: tuple = ()

    def __post_init__(self):
        _freeze(self, "selections")

    def selections_for(self, modifier_type_id: str) -> tuple:
        return tuple(s for s in self.selections if s.modifier_type_id == modifier_type_id)

    def selection_of(self, option_id: str) -> Optional[OptionSelection]:
        for selection in self.selections:
            if selection.option_id == option_id and selection.placement != OptionPlacement.NONE:
                return selection
        return None
