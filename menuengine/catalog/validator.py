"""Catalog integrity checks.

Run once when a catalog is published so that dangling references surface at
load time instead of in the middle of pricing a customer's order.
"""

from typing import Optional

from menuengine.catalog.snapshot import CatalogSnapshot
from menuengine.core.errors import CatalogIntegrityError
from menuengine.core.logging import get_logger
from menuengine.expressions.nodes import Expression, iter_modifier_type_references, iter_option_references

logger = get_logger(__name__)


def _expression_problems(owner: str, expr: Optional[Expression], snapshot: CatalogSnapshot) -> list[str]:
    if expr is None:
        return []
    problems = []
    for modifier_type_id in iter_modifier_type_references(expr):
        if modifier_type_id not in snapshot.modifier_types:
            problems.append(f"{owner}: expression references unknown modifier type {modifier_type_id}")
    for modifier_type_id, option_id in iter_option_references(expr):
        option = snapshot.find_option(option_id)
        if option is None:
            problems.append(f"{owner}: expression references unknown option {option_id}")
        elif option.modifier_type_id != modifier_type_id:
            problems.append(
                f"{owner}: expression references option {option_id} under {modifier_type_id}, "
                f"but it belongs to {option.modifier_type_id}"
            )
    return problems


def validate_snapshot(snapshot: CatalogSnapshot) -> list[str]:
    """Return every integrity problem found, in a stable order. Empty means valid."""
    problems: list[str] = []

    for type_id, modifier_type in snapshot.modifier_types.items():
        if modifier_type.min_selected < 0:
            problems.append(f"modifier type {type_id}: min_selected is negative")
        if modifier_type.max_selected is not None and modifier_type.min_selected > modifier_type.max_selected:
            problems.append(
                f"modifier type {type_id}: min_selected {modifier_type.min_selected} "
                f"exceeds max_selected {modifier_type.max_selected}"
            )
        for option_id in modifier_type.option_ids:
            option = snapshot.find_option(option_id)
            if option is None:
                problems.append(f"modifier type {type_id}: unknown option {option_id}")
            elif option.modifier_type_id != type_id:
                problems.append(f"modifier type {type_id}: option {option_id} belongs to {option.modifier_type_id}")

    for option_id, option in snapshot.options.items():
        modifier_type = snapshot.find_modifier_type(option.modifier_type_id)
        if modifier_type is None:
            problems.append(f"option {option_id}: unknown modifier type {option.modifier_type_id}")
        elif option_id not in modifier_type.option_ids:
            problems.append(f"option {option_id}: not listed by modifier type {option.modifier_type_id}")
        problems.extend(_expression_problems(f"option {option_id}", option.enable, snapshot))

    for product_id, product in snapshot.products.items():
        for modifier in product.modifiers:
            if modifier.modifier_type_id not in snapshot.modifier_types:
                problems.append(f"product {product_id}: unknown modifier type {modifier.modifier_type_id}")
            problems.extend(
                _expression_problems(f"product {product_id} modifier {modifier.modifier_type_id}", modifier.enable, snapshot)
            )

    return problems


def ensure_valid(snapshot: CatalogSnapshot) -> None:
    """Raise CatalogIntegrityError listing every problem, if any."""
    problems = validate_snapshot(snapshot)
    if problems:
        logger.error("catalog_validation_failed", version_id=snapshot.version_id, problem_count=len(problems))
        raise CatalogIntegrityError(
            f"Catalog has {len(problems)} integrity problem(s)",
            {"problems": problems, "version_id": snapshot.version_id},
        )
