"""Test structured logging setup."""
import pytest
import structlog

from menuengine.core.config import LoggingConfig
from menuengine.core.logging import (
    add_component,
    bind_catalog_version,
    configure_logging,
    configure_logging_from_config,
    get_logger,
)


@pytest.fixture
def reset_structlog():
    structlog.contextvars.clear_contextvars()
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


def test_add_component():
    event = add_component(None, "info", {"logger": "menuengine.orders.pipeline", "event": "x"})
    assert event["component"] == "orders"
    assert "component" not in add_component(None, "info", {"logger": "other", "event": "x"})


def test_configure_logging(reset_structlog):
    configure_logging("debug", json_output=False)
    assert structlog.is_configured()


def test_configure_logging_from_config(reset_structlog):
    configure_logging_from_config(LoggingConfig(level="warning", json_output=False))
    assert structlog.is_configured()


def test_bind_catalog_version(reset_structlog):
    bind_catalog_version("v3")
    assert structlog.contextvars.get_contextvars() == {"catalog_version": "v3"}
    bind_catalog_version(None)
    assert structlog.contextvars.get_contextvars() == {}


def test_get_logger():
    assert get_logger("menuengine.test") is not None
