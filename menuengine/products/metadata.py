"""Derived metadata for a configured product.

``generate_metadata`` decides, for every option the product can take and for
each placement (whole, left, right), whether selecting it there is allowed and
if not, why. Structural checks run first and the enable expressions last, so a
customer never sees an expression explanation for an option that is simply
unavailable right now.

The result is a new frozen value on every call; nothing is cached or mutated.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Mapping, Optional

from menuengine.catalog.availability import check_disabled, is_disabled_for_fulfillment
from menuengine.catalog.enums import DisplayAs, OptionPlacement, OptionQualifier
from menuengine.catalog.models import ModifierOption, ModifierType, ProductDefinition, ProductInstance, ProductModifier
from menuengine.catalog.snapshot import CatalogSnapshot
from menuengine.core.errors import CatalogIntegrityError, EvaluationError
from menuengine.core.logging import get_logger
from menuengine.core.money import Money
from menuengine.expressions.evaluator import EvaluationContext, evaluate_with_tracking
from menuengine.expressions.nodes import Expression
from menuengine.products import naming
from menuengine.products.reasons import (
    Enabled,
    EnableState,
    FlavorLimitExceeded,
    FulfillmentTypeDisabled,
    FunctionConstraintFailed,
    MaximumOfTypeExceeded,
    SplitDifferentialExceeded,
    SplittingNotAllowed,
    WeightLimitExceeded,
)

logger = get_logger(__name__)

LEFT, RIGHT = 0, 1

CANDIDATE_PLACEMENTS = (OptionPlacement.WHOLE, OptionPlacement.LEFT, OptionPlacement.RIGHT)

_PLACEMENT_INDEX = {
    OptionPlacement.NONE: 0,
    OptionPlacement.LEFT: 1,
    OptionPlacement.RIGHT: 2,
    OptionPlacement.WHOLE: 3,
}

# Per-half change in selection count, indexed [current placement][candidate placement].
# Evaluating an option at the placement it already has is a removal.
DELTA_MATRIX = (
    ((0, 0), (1, 0), (0, 1), (1, 1)),  # NONE
    ((-1, 0), (-1, 0), (-1, 1), (0, 1)),  # LEFT
    ((0, -1), (1, -1), (0, -1), (1, 0)),  # RIGHT
    ((-1, -1), (0, -1), (-1, 0), (-1, -1)),  # WHOLE
)


def placement_delta(current: OptionPlacement, candidate: OptionPlacement) -> tuple:
    return DELTA_MATRIX[_PLACEMENT_INDEX[current]][_PLACEMENT_INDEX[candidate]]


def _sides(placement: OptionPlacement) -> tuple:
    if placement == OptionPlacement.WHOLE:
        return (LEFT, RIGHT)
    if placement == OptionPlacement.LEFT:
        return (LEFT,)
    if placement == OptionPlacement.RIGHT:
        return (RIGHT,)
    return ()


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class OptionState:
    placement: OptionPlacement
    qualifier: OptionQualifier
    enable_whole: EnableState
    enable_left: EnableState
    enable_right: EnableState

    @property
    def enable(self) -> EnableState:
        """State at the option's current split placement, else whole."""
        if self.placement == OptionPlacement.LEFT:
            return self.enable_left
        if self.placement == OptionPlacement.RIGHT:
            return self.enable_right
        return self.enable_whole

    @property
    def is_selected(self) -> bool:
        return self.placement != OptionPlacement.NONE


@dataclass(frozen=True)
class ModifierTypeState:
    has_selectable: bool
    meets_minimum: bool
    is_displayed: bool
    options: Mapping[str, OptionState] = field(default_factory=dict)
    displayed_option_ids: tuple = ()  # options listed to the customer, in type order

    def __post_init__(self):
        object.__setattr__(self, "options", MappingProxyType(dict(self.options)))


@dataclass(frozen=True)
class ModifierDisplayList:
    """(modifier type id, option id) pairs per section; option id "" is an unmet required type."""

    whole: tuple = ()
    left: tuple = ()
    right: tuple = ()


@dataclass(frozen=True)
class ProductMetadata:
    product_id: str
    name: str
    shortname: str
    description: str
    price: Money
    modifier_map: Mapping[str, ModifierTypeState]
    incomplete: bool
    advanced_option_eligible: bool
    advanced_option_selected: bool
    is_split: bool
    bake_count: tuple
    flavor_count: tuple
    exhaustive_modifiers: ModifierDisplayList = field(default_factory=ModifierDisplayList)
    additional_modifiers: ModifierDisplayList = field(default_factory=ModifierDisplayList)
    catalog_version: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "modifier_map", MappingProxyType(dict(self.modifier_map)))

    def enable_states(self) -> dict[str, dict[str, EnableState]]:
        """modifier type id -> option id -> state at the option's current placement."""
        return {
            type_id: {option_id: state.enable for option_id, state in type_state.options.items()}
            for type_id, type_state in self.modifier_map.items()
        }

    def option_state(self, modifier_type_id: str, option_id: str) -> OptionState:
        return self.modifier_map[modifier_type_id].options[option_id]


# ---------------------------------------------------------------------------
# Selection checks
# ---------------------------------------------------------------------------

def _integrity_error(message: str, **details) -> CatalogIntegrityError:
    logger.error("invalid_product_selection", reason=message, **details)
    return CatalogIntegrityError(message, details)


def _check_selections(instance: ProductInstance, product: ProductDefinition, snapshot: CatalogSnapshot) -> None:
    for selection in instance.selections:
        if product.modifier(selection.modifier_type_id) is None:
            raise _integrity_error(
                "Selection uses a modifier type not attached to the product",
                product_id=product.id,
                modifier_type_id=selection.modifier_type_id,
            )
        modifier_type = snapshot.modifier_type(selection.modifier_type_id)
        option = snapshot.option(selection.option_id)
        if option.modifier_type_id != modifier_type.id or option.id not in modifier_type.option_ids:
            raise _integrity_error(
                "Selected option does not belong to its modifier type",
                option_id=option.id,
                modifier_type_id=modifier_type.id,
            )


@dataclass(frozen=True)
class _Tally:
    price: Money
    bake: tuple
    flavor: tuple
    is_split: bool


def _tally(instance: ProductInstance, product: ProductDefinition, snapshot: CatalogSnapshot) -> _Tally:
    price = product.price
    bake = [0, 0]
    flavor = [0, 0]
    is_split = False
    for selection in instance.selections:
        if selection.placement == OptionPlacement.NONE:
            continue
        option = snapshot.option(selection.option_id)
        price = price + option.price_for(selection.qualifier)
        for side in _sides(selection.placement):
            bake[side] += option.bake_for(selection.qualifier)
            flavor[side] += option.flavor_factor
        is_split = is_split or selection.placement.is_split
    return _Tally(price, tuple(bake), tuple(flavor), is_split)


def _expression_state(expr: Optional[Expression], context: EvaluationContext, owner: str) -> EnableState:
    if expr is None:
        return Enabled()
    try:
        result = evaluate_with_tracking(expr, context)
        if not isinstance(result.value, bool):
            raise EvaluationError(
                f"Enable expression must be boolean, got {type(result.value).__name__}",
                {"value": result.value},
            )
    except EvaluationError as exc:
        logger.warning("enable_expression_failed", owner=owner, error=exc.message)
        return FunctionConstraintFailed(trace=(expr,), error=exc.message)
    if result.passed:
        return Enabled()
    return FunctionConstraintFailed(trace=result.trace)


class _OptionChecker:
    """Runs the ordered checks for one product instance."""

    def __init__(
        self,
        product: ProductDefinition,
        tally: _Tally,
        context: EvaluationContext,
        at_time: datetime,
        fulfillment_id: Optional[str],
    ):
        self.product = product
        self.tally = tally
        self.context = context
        self.at_time = at_time
        self.fulfillment_id = fulfillment_id

    def option_states(
        self,
        option: ModifierOption,
        modifier_type: ModifierType,
        product_modifier: ProductModifier,
        type_state: EnableState,
        selected_counts: tuple,
        current: OptionPlacement,
        qualifier: OptionQualifier,
    ) -> dict:
        time_state = check_disabled(option.disabled, option.availability, self.at_time)
        channel_blocked = any(
            is_disabled_for_fulfillment(excluded, self.fulfillment_id)
            for excluded in (
                self.product.excluded_fulfillments,
                product_modifier.excluded_fulfillments,
                option.excluded_fulfillments,
            )
        )
        expression_state: Optional[EnableState] = None

        states = {}
        for candidate in CANDIDATE_PLACEMENTS:
            if candidate.is_split and not option.can_split:
                states[candidate] = SplittingNotAllowed()
                continue
            if not time_state.is_enabled:
                states[candidate] = time_state
                continue
            if channel_blocked:
                states[candidate] = FulfillmentTypeDisabled(self.fulfillment_id)
                continue
            structural = self._structural(option, modifier_type, selected_counts, current, candidate, qualifier)
            if structural is not None:
                states[candidate] = structural
                continue
            if not type_state.is_enabled:
                states[candidate] = type_state
                continue
            if expression_state is None:
                expression_state = _expression_state(option.enable, self.context, f"option {option.id}")
            states[candidate] = expression_state
        return states

    def _structural(
        self,
        option: ModifierOption,
        modifier_type: ModifierType,
        selected_counts: tuple,
        current: OptionPlacement,
        candidate: OptionPlacement,
        qualifier: OptionQualifier,
    ) -> Optional[EnableState]:
        delta = placement_delta(current, candidate)
        bake_factor = option.bake_for(qualifier if current != OptionPlacement.NONE else OptionQualifier.REGULAR)
        flavor_after = tuple(self.tally.flavor[s] + option.flavor_factor * delta[s] for s in (LEFT, RIGHT))
        bake_after = tuple(self.tally.bake[s] + bake_factor * delta[s] for s in (LEFT, RIGHT))

        # a half only fails a limit when the change adds to it
        if self.product.flavor_max is not None and any(
            delta[s] > 0 and flavor_after[s] > self.product.flavor_max for s in (LEFT, RIGHT)
        ):
            return FlavorLimitExceeded()
        if self.product.bake_max is not None and any(
            delta[s] > 0 and bake_after[s] > self.product.bake_max for s in (LEFT, RIGHT)
        ):
            return WeightLimitExceeded()
        if (
            candidate.is_split
            and self.product.bake_differential is not None
            and abs(bake_after[LEFT] - bake_after[RIGHT]) > self.product.bake_differential
        ):
            return SplitDifferentialExceeded()
        if modifier_type.max_selected is not None and not modifier_type.is_single_select:
            if any(
                delta[s] > 0 and selected_counts[s] + delta[s] > modifier_type.max_selected for s in (LEFT, RIGHT)
            ):
                return MaximumOfTypeExceeded()
        return None


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def generate_metadata(
    instance: ProductInstance,
    snapshot: CatalogSnapshot,
    at_time: datetime,
    fulfillment_id: Optional[str] = None,
) -> ProductMetadata:
    """Compute price, name, option availability and completeness for ``instance``.

    Raises CatalogIntegrityError when the instance refers to anything the
    snapshot does not have or that is not attached to the product.
    """
    product = snapshot.product(instance.product_id)
    _check_selections(instance, product, snapshot)
    tally = _tally(instance, product, snapshot)
    context = EvaluationContext(
        selections=instance.selections,
        product_id=product.id,
        current_time=at_time,
        fulfillment_id=fulfillment_id,
        catalog=snapshot,
    )
    checker = _OptionChecker(product, tally, context, at_time, fulfillment_id)

    modifier_map: dict[str, ModifierTypeState] = {}
    whole, left, right = [], [], []
    incomplete = False
    advanced_eligible = False
    advanced_selected = False

    attached = sorted(
        ((snapshot.modifier_type(m.modifier_type_id), m) for m in product.modifiers),
        key=lambda pair: pair[0].ordinal,
    )
    for modifier_type, product_modifier in attached:
        selections = instance.selections_for(modifier_type.id)
        placed = {s.option_id: s for s in selections if s.placement != OptionPlacement.NONE}
        selected_counts = [0, 0]
        for selection in placed.values():
            for side in _sides(selection.placement):
                selected_counts[side] += 1

        type_state = _expression_state(product_modifier.enable, context, f"modifier type {modifier_type.id}")

        options: dict[str, OptionState] = {}
        has_selectable = False
        for option_id in modifier_type.option_ids:
            option = snapshot.option(option_id)
            selection = placed.get(option_id)
            current = selection.placement if selection else OptionPlacement.NONE
            qualifier = selection.qualifier if selection else OptionQualifier.REGULAR
            states = checker.option_states(
                option, modifier_type, product_modifier, type_state, tuple(selected_counts), current, qualifier
            )
            option_state = OptionState(
                placement=current,
                qualifier=qualifier,
                enable_whole=states[OptionPlacement.WHOLE],
                enable_left=states[OptionPlacement.LEFT],
                enable_right=states[OptionPlacement.RIGHT],
            )
            options[option_id] = option_state
            split_enabled = option_state.enable_left.is_enabled or option_state.enable_right.is_enabled
            advanced_eligible = advanced_eligible or split_enabled or (
                option_state.enable_whole.is_enabled and option.advanced_option_eligible
            )
            has_selectable = has_selectable or split_enabled or option_state.enable_whole.is_enabled
            logger.debug(
                "option_state",
                product_id=product.id,
                option_id=option_id,
                whole=type(option_state.enable_whole).__name__,
                left=type(option_state.enable_left).__name__,
                right=type(option_state.enable_right).__name__,
            )

        enabled_counts = [0, 0]
        for selection in selections:
            if selection.placement == OptionPlacement.NONE:
                continue
            entry = (modifier_type.id, selection.option_id)
            if selection.placement == OptionPlacement.WHOLE:
                whole.append(entry)
            elif selection.placement == OptionPlacement.LEFT:
                left.append(entry)
                advanced_selected = True
            else:
                right.append(entry)
                advanced_selected = True
            if selection.qualifier != OptionQualifier.REGULAR:
                advanced_selected = True
            if options[selection.option_id].enable.is_enabled:
                for side in _sides(selection.placement):
                    enabled_counts[side] += 1

        minimum = modifier_type.min_selected
        short = (enabled_counts[LEFT] < minimum, enabled_counts[RIGHT] < minimum)
        meets_minimum = not any(short)
        if not meets_minimum:
            incomplete = True
            if modifier_type.empty_display_as != DisplayAs.OMIT and has_selectable:
                placeholder = (modifier_type.id, "")
                if all(short):
                    whole.append(placeholder)
                elif short[LEFT]:
                    left.append(placeholder)
                else:
                    right.append(placeholder)

        modifier_map[modifier_type.id] = ModifierTypeState(
            has_selectable=has_selectable,
            meets_minimum=meets_minimum,
            is_displayed=not modifier_type.hidden
            and not (modifier_type.omit_section_if_no_available_options and not has_selectable),
            options=options,
            displayed_option_ids=tuple(
                option_id
                for option_id, state in options.items()
                if not modifier_type.omit_options_if_not_available
                or state.is_selected
                or any(s.is_enabled for s in (state.enable_whole, state.enable_left, state.enable_right))
            ),
        )

    exhaustive = ModifierDisplayList(tuple(whole), tuple(left), tuple(right))
    additional = ModifierDisplayList(
        tuple(e for e in whole if e[1]),
        tuple(e for e in left if e[1]),
        tuple(e for e in right if e[1]),
    )
    name = naming.compose_name(product, additional.whole, additional.left, additional.right, snapshot)
    shortname = naming.compose_name(
        product, additional.whole, additional.left, additional.right, snapshot, short=True
    )
    metadata = ProductMetadata(
        product_id=product.id,
        name=naming.fill_templates(name, product, exhaustive.whole, snapshot),
        shortname=naming.fill_templates(shortname, product, exhaustive.whole, snapshot),
        description=naming.fill_templates(product.description, product, exhaustive.whole, snapshot),
        price=tally.price,
        modifier_map=modifier_map,
        incomplete=incomplete,
        advanced_option_eligible=advanced_eligible,
        advanced_option_selected=advanced_selected,
        is_split=tally.is_split,
        bake_count=tally.bake,
        flavor_count=tally.flavor,
        exhaustive_modifiers=exhaustive,
        additional_modifiers=additional,
        catalog_version=snapshot.version_id,
    )
    logger.debug(
        "product_metadata_generated",
        product_id=product.id,
        price=metadata.price.amount,
        incomplete=metadata.incomplete,
    )
    return metadata
