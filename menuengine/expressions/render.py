"""Rendering of expression trees and failure traces.

``to_expression_string`` is the compact form catalog editors see;
``to_human_readable`` and ``explain_failure`` produce the customer-facing
sentences. Both resolve ids through an optional catalog snapshot and fall back
to the raw id when a name is unknown.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Sequence

from menuengine.catalog.enums import OptionPlacement, OptionQualifier, ProductLocation
from menuengine.expressions.nodes import (
    Compare,
    CompareOperator,
    Conditional,
    Expression,
    HasAnyOfModifierType,
    HasOption,
    Literal,
    Logical,
    LogicalOperator,
    ProductMetadata,
)

if TYPE_CHECKING:
    from menuengine.catalog.snapshot import CatalogSnapshot


COMPARE_SYMBOLS = {
    CompareOperator.EQ: "==",
    CompareOperator.NEQ: "!=",
    CompareOperator.LT: "<",
    CompareOperator.LTE: "<=",
    CompareOperator.GT: ">",
    CompareOperator.GTE: ">=",
}

COMPARE_WORDS = {
    CompareOperator.EQ: "equals",
    CompareOperator.NEQ: "does not equal",
    CompareOperator.LT: "is less than",
    CompareOperator.LTE: "is less than or equal to",
    CompareOperator.GT: "is greater than",
    CompareOperator.GTE: "is greater than or equal to",
}

PLACEMENT_WORDS = {
    OptionPlacement.LEFT: "on the left",
    OptionPlacement.RIGHT: "on the right",
    OptionPlacement.WHOLE: "on the whole",
    OptionPlacement.NONE: "not selected",
}


# ---------------------------------------------------------------------------
# Name resolution
# ---------------------------------------------------------------------------

def _type_name(modifier_type_id: str, catalog: Optional["CatalogSnapshot"]) -> str:
    if catalog is None:
        return modifier_type_id
    modifier_type = catalog.find_modifier_type(modifier_type_id)
    return modifier_type.name if modifier_type is not None else modifier_type_id


def _option_name(option_id: str, catalog: Optional["CatalogSnapshot"]) -> str:
    if catalog is None:
        return option_id
    option = catalog.find_option(option_id)
    return option.display_name if option is not None else option_id


def _literal(value) -> str:
    if isinstance(value, bool):
        return "True" if value else "False"
    return str(value)


# ---------------------------------------------------------------------------
# Machine form
# ---------------------------------------------------------------------------

def to_expression_string(expr: Expression, catalog: Optional["CatalogSnapshot"] = None) -> str:
    """Compact form, e.g. ``(Toppings.Pepperoni AND NOT (ANY Sauce))``."""
    if isinstance(expr, Literal):
        return _literal(expr.value)
    if isinstance(expr, HasOption):
        text = f"{_type_name(expr.modifier_type_id, catalog)}.{_option_name(expr.option_id, catalog)}"
        if expr.placement is not None:
            text += f"@{expr.placement.value}"
        if expr.qualifier is not None:
            text += f"~{expr.qualifier.value}"
        return text
    if isinstance(expr, HasAnyOfModifierType):
        return f"ANY {_type_name(expr.modifier_type_id, catalog)}"
    if isinstance(expr, ProductMetadata):
        return f":{expr.field.value}@{expr.location.value}"
    if isinstance(expr, Logical):
        if expr.op == LogicalOperator.NOT:
            return f"NOT ({to_expression_string(expr.children[0], catalog)})"
        joiner = f" {expr.op.value} "
        return "(" + joiner.join(to_expression_string(c, catalog) for c in expr.children) + ")"
    if isinstance(expr, Compare):
        left = to_expression_string(expr.left, catalog)
        right = to_expression_string(expr.right, catalog)
        return f"({left} {COMPARE_SYMBOLS[expr.op]} {right})"
    if isinstance(expr, Conditional):
        return (
            f"IF({to_expression_string(expr.cond, catalog)}) "
            f"{{ {to_expression_string(expr.then, catalog)} }} "
            f"ELSE {{ {to_expression_string(expr.otherwise, catalog)} }}"
        )
    raise TypeError(f"Unknown expression node: {type(expr).__name__}")


# ---------------------------------------------------------------------------
# Natural language
# ---------------------------------------------------------------------------

def _option_phrase(expr: HasOption, catalog: Optional["CatalogSnapshot"]) -> str:
    name = _option_name(expr.option_id, catalog)
    if expr.qualifier == OptionQualifier.LITE:
        name = f"lite {name}"
    elif expr.qualifier == OptionQualifier.HEAVY:
        name = f"heavy {name}"
    elif expr.qualifier == OptionQualifier.OTS:
        name = f"{name} on the side"
    if expr.placement in (OptionPlacement.LEFT, OptionPlacement.RIGHT):
        name = f"{name} {PLACEMENT_WORDS[expr.placement]}"
    return name


def _logical_phrase(expr: Logical, catalog: Optional["CatalogSnapshot"]) -> str:
    if expr.op == LogicalOperator.NOT:
        child = expr.children[0]
        if isinstance(child, HasAnyOfModifierType):
            return f"no {_type_name(child.modifier_type_id, catalog)} modifiers are selected"
        return f"not {to_human_readable(child, catalog)}"
    parts = []
    for child in expr.children:
        text = to_human_readable(child, catalog)
        if isinstance(child, Logical) and child.op not in (expr.op, LogicalOperator.NOT):
            text = f"({text})"
        parts.append(text)
    return f" {expr.op.value.lower()} ".join(parts)


def to_human_readable(expr: Expression, catalog: Optional["CatalogSnapshot"] = None) -> str:
    """Sentence form, e.g. ``Pepperoni and no Sauce modifiers are selected``."""
    if isinstance(expr, Literal):
        return _literal(expr.value)
    if isinstance(expr, HasOption):
        return _option_phrase(expr, catalog)
    if isinstance(expr, HasAnyOfModifierType):
        return f"any {_type_name(expr.modifier_type_id, catalog)} modifiers selected"
    if isinstance(expr, ProductMetadata):
        side = "left" if expr.location == ProductLocation.LEFT else "right"
        return f"{expr.field.value.lower()} on the {side}"
    if isinstance(expr, Logical):
        return _logical_phrase(expr, catalog)
    if isinstance(expr, Compare):
        left = to_human_readable(expr.left, catalog)
        right = to_human_readable(expr.right, catalog)
        return f"{left} {COMPARE_WORDS[expr.op]} {right}"
    if isinstance(expr, Conditional):
        return (
            f"if {to_human_readable(expr.cond, catalog)} "
            f"then {to_human_readable(expr.then, catalog)}, "
            f"otherwise {to_human_readable(expr.otherwise, catalog)}"
        )
    raise TypeError(f"Unknown expression node: {type(expr).__name__}")


def explain_failure(trace: Sequence[Expression], catalog: Optional["CatalogSnapshot"] = None) -> str:
    """Turn a failure trace into ``requires X and Y``; empty trace gives ``""``."""
    if not trace:
        return ""
    parts = []
    for expr in trace:
        text = to_human_readable(expr, catalog)
        if isinstance(expr, Logical) and expr.op == LogicalOperator.OR:
            text = f"({text})"
        parts.append(text)
    return "requires " + " and ".join(parts)
