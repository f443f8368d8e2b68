"""Recursive-descent evaluation of enable expressions.

Two entry points share one set of node rules:

- ``evaluate`` returns the value with an empty trace and short-circuits.
- ``evaluate_with_tracking`` also returns the failure trace: the ordered
  sub-expressions that made the overall result false. Rendering that trace
  (see ``render.explain_failure``) gives the "requires X and Y" text shown to
  customers, so the trace only depends on (expr, context) and children are
  always visited in declaration order.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Iterator, Optional

from menuengine.catalog.enums import MetadataField, OptionPlacement, OptionQualifier, ProductLocation
from menuengine.core.errors import CatalogIntegrityError, EvaluationError
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
    Scalar,
)

if TYPE_CHECKING:
    from menuengine.catalog.models import OptionSelection
    from menuengine.catalog.snapshot import CatalogSnapshot


# ---------------------------------------------------------------------------
# Context and result
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class EvaluationContext:
    """Everything an expression may look at. Read-only."""

    selections: tuple = ()
    product_id: Optional[str] = None
    current_time: Optional[datetime] = None
    fulfillment_id: Optional[str] = None
    catalog: Optional["CatalogSnapshot"] = None

    def __post_init__(self):
        if not isinstance(self.selections, tuple):
            object.__setattr__(self, "selections", tuple(self.selections))

    def active_selections(self) -> Iterator["OptionSelection"]:
        for selection in self.selections:
            if selection.placement != OptionPlacement.NONE:
                yield selection


@dataclass(frozen=True)
class EvaluationResult:
    value: Scalar
    trace: tuple = ()

    @property
    def passed(self) -> bool:
        return self.value is True

    def __iter__(self):
        yield self.value
        yield self.trace


# ---------------------------------------------------------------------------
# Leaf helpers
# ---------------------------------------------------------------------------

def _scalar_kind(value: Scalar) -> str:
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "str"
    raise EvaluationError(f"Unsupported scalar {value!r}", {"type": type(value).__name__})


def _require_bool(value: Scalar, where: str) -> bool:
    if not isinstance(value, bool):
        raise EvaluationError(
            f"{where} expects a boolean operand, got {type(value).__name__}",
            {"value": value},
        )
    return value


def _resolve_option(node: HasOption, context: EvaluationContext) -> None:
    if context.catalog is None:
        return
    option = context.catalog.option(node.option_id)
    if option.modifier_type_id != node.modifier_type_id:
        raise CatalogIntegrityError(
            f"Option {node.option_id} does not belong to modifier type {node.modifier_type_id}",
            {"option_id": node.option_id, "modifier_type_id": node.modifier_type_id},
        )


def _has_option(node: HasOption, context: EvaluationContext) -> bool:
    _resolve_option(node, context)
    for selection in context.active_selections():
        if selection.modifier_type_id != node.modifier_type_id or selection.option_id != node.option_id:
            continue
        if node.placement is not None and selection.placement != node.placement:
            continue
        if node.qualifier is not None and selection.qualifier != node.qualifier:
            continue
        return True
    return False


def _has_any_of_type(node: HasAnyOfModifierType, context: EvaluationContext) -> bool:
    if context.catalog is not None:
        context.catalog.modifier_type(node.modifier_type_id)
    return any(s.modifier_type_id == node.modifier_type_id for s in context.active_selections())


def _product_metadata(node: ProductMetadata, context: EvaluationContext):
    if context.catalog is None:
        raise EvaluationError("ProductMetadata needs a catalog to resolve option factors")
    side = OptionPlacement.LEFT if node.location == ProductLocation.LEFT else OptionPlacement.RIGHT
    total = 0
    for selection in context.active_selections():
        if selection.placement not in (side, OptionPlacement.WHOLE):
            continue
        option = context.catalog.option(selection.option_id)
        if node.field == MetadataField.FLAVOR:
            total += option.flavor_factor
        else:
            factor = option.bake_factor
            total += factor * 2 if selection.qualifier == OptionQualifier.HEAVY else factor
    return total


def _compare(op: CompareOperator, left: Scalar, right: Scalar) -> bool:
    left_kind, right_kind = _scalar_kind(left), _scalar_kind(right)
    if left_kind != right_kind:
        raise EvaluationError(
            f"Cannot compare {left_kind} with {right_kind}",
            {"op": op.value, "left": left, "right": right},
        )
    if op == CompareOperator.EQ:
        return left == right
    if op == CompareOperator.NEQ:
        return left != right
    if left_kind == "bool":
        raise EvaluationError(f"Ordering comparison {op.value} is not defined for booleans", {"op": op.value})
    if op == CompareOperator.LT:
        return left < right
    if op == CompareOperator.LTE:
        return left <= right
    if op == CompareOperator.GT:
        return left > right
    if op == CompareOperator.GTE:
        return left >= right
    raise EvaluationError(f"Unknown comparison operator {op!r}")


# ---------------------------------------------------------------------------
# Plain evaluation
# ---------------------------------------------------------------------------

def _value(expr: Expression, context: EvaluationContext) -> Scalar:
    if isinstance(expr, Literal):
        return expr.value
    if isinstance(expr, HasOption):
        return _has_option(expr, context)
    if isinstance(expr, HasAnyOfModifierType):
        return _has_any_of_type(expr, context)
    if isinstance(expr, ProductMetadata):
        return _product_metadata(expr, context)
    if isinstance(expr, Logical):
        if expr.op == LogicalOperator.NOT:
            return not _require_bool(_value(expr.children[0], context), "NOT")
        if expr.op == LogicalOperator.AND:
            for child in expr.children:
                if not _require_bool(_value(child, context), "AND"):
                    return False
            return True
        if expr.op == LogicalOperator.OR:
            for child in expr.children:
                if _require_bool(_value(child, context), "OR"):
                    return True
            return False
        raise EvaluationError(f"Unknown logical operator {expr.op!r}")
    if isinstance(expr, Compare):
        return _compare(expr.op, _value(expr.left, context), _value(expr.right, context))
    if isinstance(expr, Conditional):
        if _require_bool(_value(expr.cond, context), "IF"):
            return _value(expr.then, context)
        return _value(expr.otherwise, context)
    raise TypeError(f"Unknown expression node: {type(expr).__name__}")


def evaluate(expr: Expression, context: EvaluationContext) -> EvaluationResult:
    """Evaluate ``expr``; the returned trace is always empty."""
    return EvaluationResult(_value(expr, context))


# ---------------------------------------------------------------------------
# Tracking evaluation
# ---------------------------------------------------------------------------

def _minimal_failure(child: Expression, trace: tuple) -> Expression:
    if not trace:
        return child
    if len(trace) == 1:
        return trace[0]
    return Logical(LogicalOperator.AND, trace)


def _track(expr: Expression, context: EvaluationContext) -> tuple:
    if isinstance(expr, Literal):
        return expr.value, ((expr,) if expr.value is False else ())
    if isinstance(expr, HasOption):
        value = _has_option(expr, context)
        return value, (() if value else (expr,))
    if isinstance(expr, HasAnyOfModifierType):
        value = _has_any_of_type(expr, context)
        return value, (() if value else (expr,))
    if isinstance(expr, ProductMetadata):
        return _product_metadata(expr, context), ()
    if isinstance(expr, Logical):
        if expr.op == LogicalOperator.NOT:
            value, _ = _track(expr.children[0], context)
            result = not _require_bool(value, "NOT")
            return result, (() if result else (expr,))
        if expr.op == LogicalOperator.AND:
            for child in expr.children:
                value, trace = _track(child, context)
                if not _require_bool(value, "AND"):
                    return False, (trace or (child,))
            return True, ()
        if expr.op == LogicalOperator.OR:
            failures = []
            succeeded = False
            for child in expr.children:
                value, trace = _track(child, context)
                if _require_bool(value, "OR"):
                    succeeded = True
                else:
                    failures.append(_minimal_failure(child, trace))
            if succeeded:
                return True, ()
            if len(failures) == 1:
                return False, (failures[0],)
            return False, (Logical(LogicalOperator.OR, tuple(failures)),)
        raise EvaluationError(f"Unknown logical operator {expr.op!r}")
    if isinstance(expr, Compare):
        left, _ = _track(expr.left, context)
        right, _ = _track(expr.right, context)
        value = _compare(expr.op, left, right)
        return value, (() if value else (expr,))
    if isinstance(expr, Conditional):
        cond, _ = _track(expr.cond, context)
        branch = expr.then if _require_bool(cond, "IF") else expr.otherwise
        return _track(branch, context)
    raise TypeError(f"Unknown expression node: {type(expr).__name__}")


def evaluate_with_tracking(expr: Expression, context: EvaluationContext) -> EvaluationResult:
    """Evaluate ``expr`` and collect the sub-expressions responsible for a false result."""
    value, trace = _track(expr, context)
    return EvaluationResult(value, tuple(trace))
