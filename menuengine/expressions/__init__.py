"""
Enable-rule expressions.

- nodes: the closed set of expression node types
- evaluator: plain and failure-tracking evaluation
- render: machine and human readable rendering of trees and failure traces
"""
from menuengine.expressions.evaluator import (
    EvaluationContext,
    EvaluationResult,
    evaluate,
    evaluate_with_tracking,
)
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
    all_of,
    any_of,
    iter_modifier_type_references,
    iter_option_references,
    negate,
)
from menuengine.expressions.render import (
    explain_failure,
    to_expression_string,
    to_human_readable,
)

__all__ = [
    # Nodes
    "Compare",
    "CompareOperator",
    "Conditional",
    "Expression",
    "HasAnyOfModifierType",
    "HasOption",
    "Literal",
    "Logical",
    "LogicalOperator",
    "ProductMetadata",
    "all_of",
    "any_of",
    "negate",
    "iter_modifier_type_references",
    "iter_option_references",
    # Evaluation
    "EvaluationContext",
    "EvaluationResult",
    "evaluate",
    "evaluate_with_tracking",
    # Rendering
    "explain_failure",
    "to_expression_string",
    "to_human_readable",
]
