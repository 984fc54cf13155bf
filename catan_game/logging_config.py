"""
Structured logging configuration for the game engine and CLI.

Events go through stdlib ``logging``, so they land on whatever stream the
host application (or ``configure_logging``) attached to the root logger.
"""
import logging
import sys

import structlog


def configure_logging(environment: str = "development", level: int | None = None):
    """Configure structured logging based on environment."""
    if level is None:
        level = logging.INFO if environment == "production" else logging.DEBUG

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=level,
        force=True,
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer() if environment == "production" else structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    return structlog.get_logger()


def _configure_library_defaults() -> None:
    # Without configure_logging the stdlib root level applies (WARNING unless
    # the host says otherwise), so engine info/debug events stay quiet.
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            structlog.processors.KeyValueRenderer(key_order=["event"]),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str = None):
    """Get a configured logger instance."""
    if not structlog.is_configured():
        _configure_library_defaults()
    if name:
        return structlog.get_logger(name)
    return structlog.get_logger()
