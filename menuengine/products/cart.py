"""Cart entries: priced product metadata with a quantity and a category."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from menuengine.catalog.models import ProductInstance
from menuengine.catalog.snapshot import CatalogSnapshot
from menuengine.core.money import Money
from menuengine.products.metadata import ProductMetadata, generate_metadata


@dataclass(frozen=True)
class CartEntry:
    product: ProductInstance
    metadata: ProductMetadata
    quantity: int = 1
    category_id: Optional[str] = None

    @property
    def price(self) -> Money:
        return self.metadata.price

    @property
    def line_total(self) -> Money:
        return self.metadata.price * self.quantity


def rebuild_cart(
    lines: Iterable[tuple],
    snapshot: CatalogSnapshot,
    at_time: datetime,
    fulfillment_id: Optional[str] = None,
) -> tuple:
    """Regenerate metadata for ``(instance, quantity, category_id)`` lines.

    Called whenever the service time or fulfillment changes; the previous
    metadata is never reused.
    """
    return tuple(
        CartEntry(
            product=instance,
            metadata=generate_metadata(instance, snapshot, at_time, fulfillment_id),
            quantity=quantity,
            category_id=category_id,
        )
        for instance, quantity, category_id in lines
    )


def group_cart_by_category(cart: Iterable[CartEntry]) -> dict[Optional[str], list[CartEntry]]:
    """Entries grouped by category, categories in first-seen order."""
    groups: dict[Optional[str], list[CartEntry]] = {}
    for entry in cart:
        groups.setdefault(entry.category_id, []).append(entry)
    return groups


def count_in_categories(cart: Iterable[CartEntry], category_ids: Iterable[str]) -> int:
    """Total quantity of entries whose category is in ``category_ids``."""
    wanted = frozenset(category_ids)
    return sum(entry.quantity for entry in cart if entry.category_id in wanted)
