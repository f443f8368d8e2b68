"""Catalog enumerations shared by expressions, products, and orders."""

from enum import Enum


class OptionPlacement(str, Enum):
    """Where an option sits on the product."""

    NONE = "NONE"
    LEFT = "LEFT"
    RIGHT = "RIGHT"
    WHOLE = "WHOLE"

    @property
    def is_split(self) -> bool:
        return self in (OptionPlacement.LEFT, OptionPlacement.RIGHT)


class OptionQualifier(str, Enum):
    """How much of an option, or whether it goes on the side."""

    REGULAR = "REGULAR"
    LITE = "LITE"
    HEAVY = "HEAVY"
    OTS = "OTS"  # on the side


class ProductLocation(str, Enum):
    """One half of a splittable product."""

    LEFT = "LEFT"
    RIGHT = "RIGHT"


class MetadataField(str, Enum):
    """Weight attribute of an option used for limit checks."""

    FLAVOR = "FLAVOR"
    WEIGHT = "WEIGHT"  # the "bake" factor


class DisplayAs(str, Enum):
    """How a modifier type with nothing selected is shown in names."""

    OMIT = "OMIT"
    YOUR_CHOICE_OF = "YOUR_CHOICE_OF"
    LIST_CHOICES = "LIST_CHOICES"


class ModifierDisplayClass(str, Enum):
    SINGLE_SELECT = "SINGLE_SELECT"
    MULTI_SELECT = "MULTI_SELECT"
    TOGGLE = "TOGGLE"


class CatalogEntityKind(str, Enum):
    """Kinds of rows held by the temporal catalog store."""

    PRODUCT = "product"
    MODIFIER_TYPE = "modifier_type"
    OPTION = "option"
