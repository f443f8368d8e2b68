"""Immutable view of the catalog at one instant."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

from menuengine.catalog.models import ModifierOption, ModifierType, ProductDefinition
from menuengine.core.errors import CatalogIntegrityError
from menuengine.core.logging import get_logger

logger = get_logger(__name__)


def _read_only(mapping: Mapping) -> MappingProxyType:
    if isinstance(mapping, MappingProxyType):
        return mapping
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class CatalogSnapshot:
    """Products, modifier types and options valid at ``as_of``.

    Lookups by id raise CatalogIntegrityError for missing entries: a caller
    asking for an id the catalog does not have is a defect, not user input.
    The ``find_*`` variants return None instead.
    """

    version_id: Optional[str] = None
    as_of: Optional[datetime] = None
    products: Mapping[str, ProductDefinition] = field(default_factory=dict)
    modifier_types: Mapping[str, ModifierType] = field(default_factory=dict)
    options: Mapping[str, ModifierOption] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "products", _read_only(self.products))
        object.__setattr__(self, "modifier_types", _read_only(self.modifier_types))
        object.__setattr__(self, "options", _read_only(self.options))

    @classmethod
    def from_entities(
        cls,
        products: Iterable[ProductDefinition] = (),
        modifier_types: Iterable[ModifierType] = (),
        options: Iterable[ModifierOption] = (),
        version_id: Optional[str] = None,
        as_of: Optional[datetime] = None,
    ) -> "CatalogSnapshot":
        return cls(
            version_id=version_id,
            as_of=as_of,
            products={p.id: p for p in products},
            modifier_types={t.id: t for t in modifier_types},
            options={o.id: o for o in options},
        )

    # -- Lookups --

    def _missing(self, kind: str, entity_id: str):
        logger.error("catalog_reference_missing", kind=kind, entity_id=entity_id, version_id=self.version_id)
        return CatalogIntegrityError(
            f"Unknown {kind} {entity_id!r} in catalog version {self.version_id}",
            {"kind": kind, "entity_id": entity_id, "version_id": self.version_id},
        )

    def product(self, product_id: str) -> ProductDefinition:
        try:
            return self.products[product_id]
        except KeyError:
            raise self._missing("product", product_id) from None

    def modifier_type(self, modifier_type_id: str) -> ModifierType:
        try:
            return self.modifier_types[modifier_type_id]
        except KeyError:
            raise self._missing("modifier_type", modifier_type_id) from None

    def option(self, option_id: str) -> ModifierOption:
        try:
            return self.options[option_id]
        except KeyError:
            raise self._missing("option", option_id) from None

    def find_product(self, product_id: str) -> Optional[ProductDefinition]:
        return self.products.get(product_id)

    def find_modifier_type(self, modifier_type_id: str) -> Optional[ModifierType]:
        return self.modifier_types.get(modifier_type_id)

    def find_option(self, option_id: str) -> Optional[ModifierOption]:
        return self.options.get(option_id)

    def options_for_type(self, modifier_type_id: str) -> tuple:
        """Options of a modifier type in the type's declared order."""
        modifier_type = self.modifier_type(modifier_type_id)
        return tuple(self.option(option_id) for option_id in modifier_type.option_ids)
