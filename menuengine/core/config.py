"""Dataclass-based engine configuration.

Each section is a frozen dataclass with sensible defaults. The host process
builds one ``EngineConfig`` (usually via ``from_env``) and passes it to the
configuration-driven entry points; the engine itself never reads the
environment on its own.
"""

import os
from dataclasses import dataclass, field, replace
from decimal import Decimal


# ---------------------------------------------------------------------------
# Nested config sections
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PricingConfig:
    """Order pricing rates and thresholds."""

    currency: str = "USD"
    tax_rate: Decimal = Decimal("0.1035")
    gratuity_rate: Decimal = Decimal("0")  # service charge on pre-discount subtotal
    allow_tipping: bool = True
    autograt_threshold: int = 5  # main-category items before a tip minimum applies
    suggested_tip_rate: Decimal = Decimal("0.20")


@dataclass(frozen=True)
class LoggingConfig:
    """Log output settings."""

    level: str = "info"
    json_output: bool = True


# ---------------------------------------------------------------------------
# Top-level config
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class EngineConfig:
    """Complete configuration for the rules and pricing engine.

    Usage::

        config = EngineConfig.from_env()
        totals = price_order_with_config(config, cart, discounts, payments)
    """

    pricing: PricingConfig = field(default_factory=PricingConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def default(cls) -> "EngineConfig":
        """Create config with all defaults."""
        return cls()

    @classmethod
    def from_env(cls, prefix: str = "MENUENGINE_") -> "EngineConfig":
        """Create config from environment variables.

        Example: MENUENGINE_TAX_RATE=0.0875
        """
        pricing = PricingConfig()
        pricing_overrides = {}
        currency = os.getenv(f"{prefix}CURRENCY")
        if currency:
            pricing_overrides["currency"] = currency.upper()
        tax_rate = os.getenv(f"{prefix}TAX_RATE")
        if tax_rate:
            pricing_overrides["tax_rate"] = Decimal(tax_rate)
        gratuity_rate = os.getenv(f"{prefix}GRATUITY_RATE")
        if gratuity_rate:
            pricing_overrides["gratuity_rate"] = Decimal(gratuity_rate)
        allow_tipping = os.getenv(f"{prefix}ALLOW_TIPPING")
        if allow_tipping:
            pricing_overrides["allow_tipping"] = allow_tipping.lower() == "true"
        threshold = os.getenv(f"{prefix}AUTOGRAT_THRESHOLD")
        if threshold:
            pricing_overrides["autograt_threshold"] = int(threshold)
        suggested_tip = os.getenv(f"{prefix}SUGGESTED_TIP_RATE")
        if suggested_tip:
            pricing_overrides["suggested_tip_rate"] = Decimal(suggested_tip)

        log = LoggingConfig()
        log_overrides = {}
        level = os.getenv(f"{prefix}LOG_LEVEL")
        if level:
            log_overrides["level"] = level.lower()
        json_output = os.getenv(f"{prefix}LOG_JSON")
        if json_output:
            log_overrides["json_output"] = json_output.lower() == "true"

        return cls(
            pricing=replace(pricing, **pricing_overrides),
            logging=replace(log, **log_overrides),
        )
