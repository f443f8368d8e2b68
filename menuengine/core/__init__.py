"""
Engine primitives shared by every component.

- Money: fixed-point currency arithmetic
- Errors: CatalogIntegrityError, EvaluationError, ValidationError
- Logging: structlog configuration
- Config: frozen dataclass configuration
"""
from menuengine.core.config import EngineConfig, LoggingConfig, PricingConfig
from menuengine.core.errors import (
    CatalogIntegrityError,
    EngineError,
    EvaluationError,
    ValidationError,
)
from menuengine.core.money import (
    DEFAULT_CURRENCY,
    Money,
    has_half_cent_skew,
    round_half_away_from_zero,
    sum_money,
)

__all__ = [
    # Config
    "EngineConfig",
    "LoggingConfig",
    "PricingConfig",
    # Errors
    "CatalogIntegrityError",
    "EngineError",
    "EvaluationError",
    "ValidationError",
    # Money
    "DEFAULT_CURRENCY",
    "Money",
    "has_half_cent_skew",
    "round_half_away_from_zero",
    "sum_money",
]
