"""Test engine configuration."""
from decimal import Decimal

from menuengine.core.config import EngineConfig


def test_defaults():
    config = EngineConfig.default()
    assert config.pricing.currency == "USD"
    assert config.pricing.allow_tipping
    assert config.logging.json_output


def test_from_env(monkeypatch):
    monkeypatch.setenv("MENUENGINE_TAX_RATE", "0.0875")
    monkeypatch.setenv("MENUENGINE_CURRENCY", "cad")
    monkeypatch.setenv("MENUENGINE_AUTOGRAT_THRESHOLD", "8")
    monkeypatch.setenv("MENUENGINE_ALLOW_TIPPING", "false")
    monkeypatch.setenv("MENUENGINE_LOG_LEVEL", "DEBUG")
    config = EngineConfig.from_env()
    assert config.pricing.tax_rate == Decimal("0.0875")
    assert config.pricing.currency == "CAD"
    assert config.pricing.autograt_threshold == 8
    assert not config.pricing.allow_tipping
    assert config.logging.level == "debug"
    assert config.pricing.suggested_tip_rate == Decimal("0.20")


def test_from_env_custom_prefix(monkeypatch):
    monkeypatch.setenv("STORE_GRATUITY_RATE", "0.18")
    assert EngineConfig.from_env(prefix="STORE_").pricing.gratuity_rate == Decimal("0.18")
