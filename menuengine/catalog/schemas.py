"""Pydantic schemas for catalog documents.

A catalog document is the plain-data form a catalog editor publishes. The
schemas validate shape and ranges; ``to_domain`` converts to the frozen
engine models, and ``validator.ensure_valid`` checks cross references.
"""

from datetime import datetime
from pathlib import Path
from typing import Annotated, Literal, Optional, Union

import pydantic
from pydantic import BaseModel, Field

from menuengine.catalog.enums import (
    DisplayAs,
    MetadataField,
    ModifierDisplayClass,
    OptionPlacement,
    OptionQualifier,
    ProductLocation,
)
from menuengine.catalog.models import (
    AvailabilityWindow,
    DisabledInterval,
    ModifierOption,
    ModifierType,
    ProductDefinition,
    ProductModifier,
)
from menuengine.catalog.snapshot import CatalogSnapshot
from menuengine.core.errors import CatalogIntegrityError
from menuengine.core.money import DEFAULT_CURRENCY, Money
from menuengine.expressions import nodes


# ---------------------------------------------------------------------------
# Expressions (discriminated on ``kind``)
# ---------------------------------------------------------------------------

class LiteralSchema(BaseModel):
    kind: Literal["literal"] = "literal"
    value: Union[bool, int, float, str]

    def to_domain(self) -> nodes.Literal:
        return nodes.Literal(self.value)


class HasOptionSchema(BaseModel):
    kind: Literal["has_option"] = "has_option"
    modifier_type_id: str
    option_id: str
    placement: Optional[OptionPlacement] = None
    qualifier: Optional[OptionQualifier] = None

    def to_domain(self) -> nodes.HasOption:
        return nodes.HasOption(self.modifier_type_id, self.option_id, self.placement, self.qualifier)


class HasAnyOfModifierTypeSchema(BaseModel):
    kind: Literal["has_any"] = "has_any"
    modifier_type_id: str

    def to_domain(self) -> nodes.HasAnyOfModifierType:
        return nodes.HasAnyOfModifierType(self.modifier_type_id)


class ProductMetadataSchema(BaseModel):
    kind: Literal["product_metadata"] = "product_metadata"
    field: MetadataField
    location: ProductLocation

    def to_domain(self) -> nodes.ProductMetadata:
        return nodes.ProductMetadata(self.field, self.location)


class LogicalSchema(BaseModel):
    kind: Literal["logical"] = "logical"
    op: nodes.LogicalOperator
    children: list["ExpressionSchema"] = Field(..., min_length=1)

    @pydantic.model_validator(mode="after")
    def check_not_arity(self):
        if self.op == nodes.LogicalOperator.NOT and len(self.children) != 1:
            raise ValueError(f"NOT takes exactly one operand, got {len(self.children)}")
        return self

    def to_domain(self) -> nodes.Logical:
        return nodes.Logical(self.op, tuple(child.to_domain() for child in self.children))


class CompareSchema(BaseModel):
    kind: Literal["compare"] = "compare"
    op: nodes.CompareOperator
    left: "ExpressionSchema"
    right: "ExpressionSchema"

    def to_domain(self) -> nodes.Compare:
        return nodes.Compare(self.op, self.left.to_domain(), self.right.to_domain())


class ConditionalSchema(BaseModel):
    kind: Literal["conditional"] = "conditional"
    cond: "ExpressionSchema"
    then: "ExpressionSchema"
    otherwise: "ExpressionSchema"

    def to_domain(self) -> nodes.Conditional:
        return nodes.Conditional(self.cond.to_domain(), self.then.to_domain(), self.otherwise.to_domain())


ExpressionSchema = Annotated[
    Union[
        LiteralSchema,
        HasOptionSchema,
        HasAnyOfModifierTypeSchema,
        ProductMetadataSchema,
        LogicalSchema,
        CompareSchema,
        ConditionalSchema,
    ],
    Field(discriminator="kind"),
]

LogicalSchema.model_rebuild()
CompareSchema.model_rebuild()
ConditionalSchema.model_rebuild()


# ---------------------------------------------------------------------------
# Availability
# ---------------------------------------------------------------------------

class DisabledIntervalSchema(BaseModel):
    start: datetime
    end: datetime

    def to_domain(self) -> DisabledInterval:
        return DisabledInterval(self.start, self.end)


class AvailabilityWindowSchema(BaseModel):
    start_minute: int = Field(..., ge=0, le=1439)
    end_minute: int = Field(..., ge=0, le=1439)
    weekdays: list[Annotated[int, Field(ge=1, le=7)]] = Field(default_factory=list)

    def to_domain(self) -> AvailabilityWindow:
        return AvailabilityWindow(self.start_minute, self.end_minute, frozenset(self.weekdays))


# ---------------------------------------------------------------------------
# Catalog entities
# ---------------------------------------------------------------------------

class ModifierOptionSchema(BaseModel):
    id: str = Field(..., min_length=1)
    modifier_type_id: str
    display_name: str
    price: int = 0  # minor units, may be negative
    shortcode: str = ""
    description: str = ""
    flavor_factor: float = Field(0, ge=0)
    bake_factor: float = Field(0, ge=0)
    can_split: bool = False
    allow_heavy: bool = False
    allow_lite: bool = False
    allow_on_the_side: bool = False
    enable: Optional[ExpressionSchema] = None
    disabled: Optional[DisabledIntervalSchema] = None
    availability: list[AvailabilityWindowSchema] = Field(default_factory=list)
    excluded_fulfillments: list[str] = Field(default_factory=list)
    omit_from_name: bool = False
    omit_from_shortname: bool = False
    ordinal: int = 0

    def to_domain(self, currency: str = DEFAULT_CURRENCY) -> ModifierOption:
        return ModifierOption(
            id=self.id,
            modifier_type_id=self.modifier_type_id,
            display_name=self.display_name,
            price=Money(self.price, currency),
            shortcode=self.shortcode,
            description=self.description,
            flavor_factor=self.flavor_factor,
            bake_factor=self.bake_factor,
            can_split=self.can_split,
            allow_heavy=self.allow_heavy,
            allow_lite=self.allow_lite,
            allow_on_the_side=self.allow_on_the_side,
            enable=self.enable.to_domain() if self.enable is not None else None,
            disabled=self.disabled.to_domain() if self.disabled is not None else None,
            availability=tuple(w.to_domain() for w in self.availability),
            excluded_fulfillments=frozenset(self.excluded_fulfillments),
            omit_from_name=self.omit_from_name,
            omit_from_shortname=self.omit_from_shortname,
            ordinal=self.ordinal,
        )


class ModifierTypeSchema(BaseModel):
    id: str = Field(..., min_length=1)
    name: str
    option_ids: list[str] = Field(default_factory=list)
    display_name: str = ""
    min_selected: int = Field(0, ge=0)
    max_selected: Optional[int] = Field(None, ge=0)
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

    def to_domain(self) -> ModifierType:
        return ModifierType(**{**self.model_dump(), "option_ids": tuple(self.option_ids)})


class ProductModifierSchema(BaseModel):
    modifier_type_id: str
    enable: Optional[ExpressionSchema] = None
    excluded_fulfillments: list[str] = Field(default_factory=list)

    def to_domain(self) -> ProductModifier:
        return ProductModifier(
            modifier_type_id=self.modifier_type_id,
            enable=self.enable.to_domain() if self.enable is not None else None,
            excluded_fulfillments=frozenset(self.excluded_fulfillments),
        )


class ProductSchema(BaseModel):
    id: str = Field(..., min_length=1)
    display_name: str
    price: int = Field(0, ge=0)
    shortcode: str = ""
    description: str = ""
    modifiers: list[ProductModifierSchema] = Field(default_factory=list)
    flavor_max: Optional[float] = Field(None, ge=0)
    bake_max: Optional[float] = Field(None, ge=0)
    bake_differential: Optional[float] = Field(None, ge=0)
    show_name_of_base_product: bool = True
    excluded_fulfillments: list[str] = Field(default_factory=list)

    def to_domain(self, currency: str = DEFAULT_CURRENCY) -> ProductDefinition:
        return ProductDefinition(
            id=self.id,
            display_name=self.display_name,
            price=Money(self.price, currency),
            shortcode=self.shortcode,
            description=self.description,
            modifiers=tuple(m.to_domain() for m in self.modifiers),
            flavor_max=self.flavor_max,
            bake_max=self.bake_max,
            bake_differential=self.bake_differential,
            show_name_of_base_product=self.show_name_of_base_product,
            excluded_fulfillments=frozenset(self.excluded_fulfillments),
        )


class CatalogDocument(BaseModel):
    """A complete catalog as published by an editor."""

    currency: str = Field(DEFAULT_CURRENCY, min_length=3, max_length=3)
    products: list[ProductSchema] = Field(default_factory=list)
    modifier_types: list[ModifierTypeSchema] = Field(default_factory=list)
    options: list[ModifierOptionSchema] = Field(default_factory=list)

    def to_snapshot(self, version_id: Optional[str] = None, as_of: Optional[datetime] = None) -> CatalogSnapshot:
        return CatalogSnapshot.from_entities(
            products=[p.to_domain(self.currency) for p in self.products],
            modifier_types=[t.to_domain() for t in self.modifier_types],
            options=[o.to_domain(self.currency) for o in self.options],
            version_id=version_id,
            as_of=as_of,
        )


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

def parse_catalog_document(data: dict) -> CatalogDocument:
    try:
        return CatalogDocument.model_validate(data)
    except pydantic.ValidationError as exc:
        raise CatalogIntegrityError(
            "Catalog document is malformed",
            {"errors": exc.errors(include_url=False, include_context=False)},
        ) from exc


def load_catalog_document(path: Union[str, Path]) -> CatalogDocument:
    """Read and validate a JSON catalog document."""
    try:
        return CatalogDocument.model_validate_json(Path(path).read_text())
    except pydantic.ValidationError as exc:
        raise CatalogIntegrityError(
            f"Catalog document {path} is malformed",
            {"errors": exc.errors(include_url=False, include_context=False)},
        ) from exc
