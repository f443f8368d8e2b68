"""Customer-facing names, descriptions and price hints for configured products.

Names are composed from the base product and the selected options in
selection order. ``{template}`` placeholders in a product's name or
description are filled from the modifier type whose ``template_string``
matches.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Sequence

from menuengine.catalog.enums import DisplayAs
from menuengine.catalog.models import ModifierType, ProductDefinition
from menuengine.catalog.snapshot import CatalogSnapshot
from menuengine.core.money import Money

if TYPE_CHECKING:
    from menuengine.products.metadata import ProductMetadata

TEMPLATE_PATTERN = re.compile(r"\{[A-Za-z0-9]+\}")
EMPTY_HALF = "∅"
NAME_SEPARATOR = " + "


# ---------------------------------------------------------------------------
# Option labels
# ---------------------------------------------------------------------------

def list_choices(modifier_type: ModifierType, snapshot: CatalogSnapshot) -> str:
    """``A or B`` for two choices, ``A, B, or C`` for more."""
    choices = [snapshot.option(option_id).display_name for option_id in modifier_type.option_ids]
    if len(choices) < 3:
        return " or ".join(choices)
    return ", ".join(choices[:-1]) + ", or " + choices[-1]


def placeholder_label(modifier_type: ModifierType, snapshot: CatalogSnapshot) -> str:
    """Label for a required type with nothing selected yet."""
    if modifier_type.empty_display_as == DisplayAs.YOUR_CHOICE_OF:
        return f"Your choice of {modifier_type.display_name or modifier_type.name}"
    if modifier_type.empty_display_as == DisplayAs.LIST_CHOICES:
        return list_choices(modifier_type, snapshot)
    return ""


def _entry_label(entry: tuple, snapshot: CatalogSnapshot, respect_omit: bool) -> str:
    modifier_type_id, option_id = entry
    if option_id == "":
        return placeholder_label(snapshot.modifier_type(modifier_type_id), snapshot)
    option = snapshot.option(option_id)
    if respect_omit and option.omit_from_name:
        return ""
    return option.display_name


# ---------------------------------------------------------------------------
# Names
# ---------------------------------------------------------------------------

def _components(entries: Sequence[tuple], snapshot: CatalogSnapshot, short: bool) -> list[str]:
    components = []
    for _, option_id in entries:
        if option_id == "":
            continue
        option = snapshot.option(option_id)
        if short and not option.omit_from_shortname:
            components.append(option.shortcode)
        elif not short and not option.omit_from_name:
            components.append(option.display_name)
    return components


def compose_name(
    product: ProductDefinition,
    whole: Sequence[tuple],
    left: Sequence[tuple],
    right: Sequence[tuple],
    snapshot: CatalogSnapshot,
    short: bool = False,
) -> str:
    """Base name plus whole additions, then ``(left | right)`` for split items."""
    components = _components(whole, snapshot, short)
    left_components = _components(left, snapshot, short)
    right_components = _components(right, snapshot, short)
    is_split = bool(left or right)

    base = product.shortcode if short else product.display_name
    parts = []
    if product.show_name_of_base_product or not (components or is_split):
        parts.append(base)
    parts.extend(components)
    if is_split:
        left_text = NAME_SEPARATOR.join(left_components) or EMPTY_HALF
        right_text = NAME_SEPARATOR.join(right_components) or EMPTY_HALF
        parts.append(f"({left_text} | {right_text})")
    return NAME_SEPARATOR.join(parts)


def fill_templates(
    text: str,
    product: ProductDefinition,
    whole: Sequence[tuple],
    snapshot: CatalogSnapshot,
) -> str:
    """Replace ``{template}`` placeholders; unmatched placeholders become empty."""
    if not TEMPLATE_PATTERN.search(text):
        return text
    values: dict[str, str] = {}
    for modifier in product.modifiers:
        modifier_type = snapshot.modifier_type(modifier.modifier_type_id)
        if not modifier_type.template_string:
            continue
        labels = [
            _entry_label(entry, snapshot, respect_omit=False)
            for entry in whole
            if entry[0] == modifier_type.id
        ]
        labels = [label for label in labels if label]
        if labels:
            values["{" + modifier_type.template_string + "}"] = (
                modifier_type.non_empty_group_prefix
                + modifier_type.multiple_item_separator.join(labels)
                + modifier_type.non_empty_group_suffix
            )
    return TEMPLATE_PATTERN.sub(lambda match: values.get(match.group(0), ""), text)


# ---------------------------------------------------------------------------
# Display helpers
# ---------------------------------------------------------------------------

def display_option_sections(metadata: "ProductMetadata", snapshot: CatalogSnapshot) -> list[tuple[str, str]]:
    """Option summary per section, e.g. ``[("Whole", "Pepperoni + Your choice of Crust")]``."""
    sections = []
    for title, entries in (
        ("Whole", metadata.exhaustive_modifiers.whole),
        ("Left", metadata.exhaustive_modifiers.left),
        ("Right", metadata.exhaustive_modifiers.right),
    ):
        if not entries:
            continue
        labels = [_entry_label(entry, snapshot, respect_omit=True) for entry in entries]
        sections.append((title, NAME_SEPARATOR.join(label for label in labels if label)))
    return sections


def compute_potential_prices(metadata: "ProductMetadata", snapshot: CatalogSnapshot) -> list[Money]:
    """Every price the product can still reach by completing its required types.

    Only single selections of whole-enabled options on types below their
    minimum are considered; the result is sorted and de-duplicated.
    """
    groups: list[set[int]] = []
    for modifier_type_id, type_state in metadata.modifier_map.items():
        if type_state.meets_minimum:
            continue
        prices = {
            option.price.amount
            for option in snapshot.options_for_type(modifier_type_id)
            if type_state.options[option.id].enable_whole.is_enabled
        }
        groups.append(prices)

    combined = {0}
    for prices in groups:
        combined = {total + price for total in combined for price in prices}
    base = metadata.price
    return [Money(base.amount + extra, base.currency) for extra in sorted(combined)]
