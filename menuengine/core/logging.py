"""Structured logging for the engine.

Engine modules call ``get_logger(__name__)`` at import time; nothing is
emitted until the host process calls ``configure_logging``. Before that,
structlog's defaults apply.
"""

import logging
import sys
from typing import Any, Dict

import structlog

from menuengine.core.config import LoggingConfig


def add_component(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Add the engine component (second segment of the logger name)."""
    logger_name = event_dict.get("logger", "")
    parts = logger_name.split(".")
    if len(parts) > 1 and parts[0] == "menuengine":
        event_dict["component"] = parts[1]
    return event_dict


def configure_logging(log_level: str = "info", json_output: bool = True) -> None:
    """Configure structlog over the standard library logging backend."""
    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            add_component,
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
    )


def configure_logging_from_config(config: LoggingConfig) -> None:
    """Apply the ``logging`` section of an ``EngineConfig``."""
    configure_logging(config.level, json_output=config.json_output)


def bind_catalog_version(version_id: str | None) -> None:
    """Attach the catalog version to every log line in the current context."""
    if version_id is None:
        structlog.contextvars.unbind_contextvars("catalog_version")
    else:
        structlog.contextvars.bind_contextvars(catalog_version=version_id)


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)
