"""
core/logging.py
---------------
Structured logging using structlog.
DEBUG=true  → human-readable console output, DEBUG level
DEBUG=false → JSON at LOG_LEVEL (for log aggregators like Datadog, CloudWatch)

Third-party clients that log every HTTP round-trip (openai/httpx, mlflow)
are held at WARNING outside DEBUG so classifier traffic doesn't drown out
ticket and invite events.
"""

import logging
import sys

import structlog

from upkeep.core.config import settings

_NOISY_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "httpx", "openai", "mlflow")


def _resolve_level() -> int:
    if settings.DEBUG:
        return logging.DEBUG
    level = logging.getLevelName(settings.LOG_LEVEL.upper())
    return level if isinstance(level, int) else logging.INFO


def configure_logging() -> None:
    log_level = _resolve_level()

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )

    if not settings.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if settings.DEBUG:
        processors.append(structlog.dev.ConsoleRenderer())
    else:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = __name__):
    return structlog.get_logger(name)
