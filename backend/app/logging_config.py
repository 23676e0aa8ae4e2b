"""
Structured Logging — structlog setup shared by every module.
"""
import logging

import structlog


def configure_logging(level: str = "INFO", json_output: bool = True) -> None:
    """Configure structlog once at process start."""
    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def mask(value: str | None, visible: int = 4) -> str:
    """Mask a secret for log output, keeping the first few characters."""
    if not value:
        return "MISSING"
    return value[:visible] + "..."
