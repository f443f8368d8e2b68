"""
menuengine: catalog rules and order pricing for a restaurant storefront.

The engine is a set of pure functions over an immutable catalog snapshot:

- generate_metadata: option availability, price and name for a configured product
- evaluate / evaluate_with_tracking: enable-rule expressions with failure traces
- price_order: cart, discounts, tax, tip and payments reduced to a balance
- TemporalCatalogStore: versioned catalog history with point-in-time snapshots
"""
from menuengine.catalog.models import (
    AvailabilityWindow,
    DisabledInterval,
    ModifierOption,
    ModifierType,
    OptionSelection,
    ProductDefinition,
    ProductInstance,
    ProductModifier,
)
from menuengine.catalog.snapshot import CatalogSnapshot
from menuengine.catalog.store import TemporalCatalogStore, as_of, create_version, publish_catalog
from menuengine.core import (
    CatalogIntegrityError,
    EngineConfig,
    EngineError,
    EvaluationError,
    Money,
    ValidationError,
)
from menuengine.expressions import EvaluationContext, evaluate, evaluate_with_tracking, explain_failure
from menuengine.orders import OrderTotals, price_order, price_order_with_config
from menuengine.products.cart import CartEntry, rebuild_cart
from menuengine.products.metadata import ProductMetadata, generate_metadata

__version__ = "0.1.0"

__all__ = [
    # Catalog
    "AvailabilityWindow",
    "CatalogSnapshot",
    "DisabledInterval",
    "ModifierOption",
    "ModifierType",
    "OptionSelection",
    "ProductDefinition",
    "ProductInstance",
    "ProductModifier",
    "TemporalCatalogStore",
    "as_of",
    "create_version",
    "publish_catalog",
    # Core
    "CatalogIntegrityError",
    "EngineConfig",
    "EngineError",
    "EvaluationError",
    "Money",
    "ValidationError",
    # Expressions
    "EvaluationContext",
    "evaluate",
    "evaluate_with_tracking",
    "explain_failure",
    # Products
    "CartEntry",
    "ProductMetadata",
    "generate_metadata",
    "rebuild_cart",
    # Orders
    "OrderTotals",
    "price_order",
    "price_order_with_config",
]
