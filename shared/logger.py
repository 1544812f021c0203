"""
Structured logging configuration using structlog.
Services call configure_logging() once at startup and get_logger() wherever they log.
"""

import logging
import os
import sys
from typing import Any, Optional

import structlog
from structlog.types import EventDict, Processor

# Environment configuration
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
SERVICE_NAME = os.getenv("SERVICE_NAME", "sentiment-analyzer")
SERVICE_VERSION = os.getenv("SERVICE_VERSION", "1.0.0")

SENSITIVE_KEYS = {
    "password",
    "token",
    "api_key",
    "secret",
    "auth",
    "authorization",
}


def add_service_context(
    logger: Any, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add service-level context to all log entries"""
    event_dict["service"] = SERVICE_NAME
    event_dict["version"] = SERVICE_VERSION
    event_dict["environment"] = ENVIRONMENT
    return event_dict


def filter_sensitive_data(
    logger: Any, method_name: str, event_dict: EventDict
) -> EventDict:
    """Mask values whose key looks like a credential"""

    def mask_value(key: str, value: Any) -> Any:
        if isinstance(key, str) and any(
            sensitive in key.lower() for sensitive in SENSITIVE_KEYS
        ):
            return "[REDACTED]"
        return value

    def mask_dict(d: EventDict) -> EventDict:
        return {
            k: mask_value(k, mask_dict(v) if isinstance(v, dict) else v)
            for k, v in d.items()
        }

    return mask_dict(event_dict)


def build_processors(environment: str = ENVIRONMENT) -> list[Processor]:
    """Processor chain: console output in development, JSON elsewhere"""
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        add_service_context,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        filter_sensitive_data,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if environment == "development":
        processors.append(structlog.dev.ConsoleRenderer(colors=True))
    else:
        # Loki-friendly
        processors.append(structlog.processors.JSONRenderer(sort_keys=True))

    return processors


def configure_logging(level: Optional[str] = None):
    """Configure structlog and the standard library root logger"""
    structlog.configure(
        processors=build_processors(),
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )

    log_level = (level or LOG_LEVEL).upper()
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level, logging.INFO),
    )

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """Get a configured logger instance"""
    return structlog.get_logger(name)
