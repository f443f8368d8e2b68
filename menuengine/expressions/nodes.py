"""Expression tree for catalog enable rules.

Catalog authors attach these trees to modifier options (and to a product's
modifier types) to say when a customization is allowed. The tree is a closed
set of frozen node types; ``Expression`` is their union and every consumer
dispatches over exactly these kinds.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Optional, Union

from menuengine.catalog.enums import MetadataField, OptionPlacement, OptionQualifier, ProductLocation

Scalar = Union[bool, int, float, str]


class LogicalOperator(str, Enum):
    AND = "AND"
    OR = "OR"
    NOT = "NOT"


class CompareOperator(str, Enum):
    EQ = "EQ"
    NEQ = "NEQ"
    LT = "LT"
    LTE = "LTE"
    GT = "GT"
    GTE = "GTE"


# ---------------------------------------------------------------------------
# Node types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Literal:
    value: Scalar


@dataclass(frozen=True)
class HasOption:
    """True if the option is selected, optionally at a placement/qualifier."""

    modifier_type_id: str
    option_id: str
    placement: Optional[OptionPlacement] = None
    qualifier: Optional[OptionQualifier] = None


@dataclass(frozen=True)
class HasAnyOfModifierType:
    """True if any option of the modifier type is selected."""

    modifier_type_id: str


@dataclass(frozen=True)
class ProductMetadata:
    """Sum of the flavor or bake factor on one half of the product."""

    field: MetadataField
    location: ProductLocation


@dataclass(frozen=True)
class Logical:
    op: LogicalOperator
    children: tuple

    def __post_init__(self):
        if not isinstance(self.children, tuple):
            object.__setattr__(self, "children", tuple(self.children))
        if self.op == LogicalOperator.NOT and len(self.children) != 1:
            raise ValueError(f"NOT takes exactly one operand, got {len(self.children)}")
        if len(self.children) == 0:
            raise ValueError(f"{self.op.value} needs at least one operand")


@dataclass(frozen=True)
class Compare:
    op: CompareOperator
    left: "Expression"
    right: "Expression"


@dataclass(frozen=True)
class Conditional:
    cond: "Expression"
    then: "Expression"
    otherwise: "Expression"


Expression = Union[Literal, HasOption, HasAnyOfModifierType, ProductMetadata, Logical, Compare, Conditional]


# ---------------------------------------------------------------------------
# Constructors
# ---------------------------------------------------------------------------

def all_of(*children: Expression) -> Logical:
    return Logical(LogicalOperator.AND, children)


def any_of(*children: Expression) -> Logical:
    return Logical(LogicalOperator.OR, children)


def negate(child: Expression) -> Logical:
    return Logical(LogicalOperator.NOT, (child,))


# ---------------------------------------------------------------------------
# Traversal
# ---------------------------------------------------------------------------

def iter_nodes(expr: Expression) -> Iterator[Expression]:
    """Pre-order walk in declaration order."""
    yield expr
    if isinstance(expr, Logical):
        for child in expr.children:
            yield from iter_nodes(child)
    elif isinstance(expr, Compare):
        yield from iter_nodes(expr.left)
        yield from iter_nodes(expr.right)
    elif isinstance(expr, Conditional):
        yield from iter_nodes(expr.cond)
        yield from iter_nodes(expr.then)
        yield from iter_nodes(expr.otherwise)
    elif not isinstance(expr, (Literal, HasOption, HasAnyOfModifierType, ProductMetadata)):
        raise TypeError(f"Unknown expression node: {type(expr).__name__}")


def iter_option_references(expr: Expression) -> Iterator[tuple[str, str]]:
    """Yield (modifier_type_id, option_id) for every HasOption in the tree."""
    for node in iter_nodes(expr):
        if isinstance(node, HasOption):
            yield node.modifier_type_id, node.option_id


def iter_modifier_type_references(expr: Expression) -> Iterator[str]:
    """Yield every modifier type id the tree mentions."""
    for node in iter_nodes(expr):
        if isinstance(node, (HasOption, HasAnyOfModifierType)):
            yield node.modifier_type_id
