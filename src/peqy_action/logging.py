"""Structured logging configuration for Peqy Action.

This module configures structlog with support for:
- JSON and console output formats
- Redaction of registered secrets from every log event
- Pull request context binding

The logging system integrates structlog with Python's stdlib logging
for the stdout handler, while using structlog exclusively for actual
log emission.

Example usage:
    >>> from peqy_action.config import LoggingConfig
    >>> from peqy_action.logging import setup_logging, get_logger, register_secret
    >>>
    >>> setup_logging(LoggingConfig(level="INFO", format="console"))
    >>> register_secret(api_key)
    >>> logger = get_logger(__name__)
    >>> logger.info("api_request_attempt", attempt=1)
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from peqy_action.config import LoggingConfig

REDACTED = "***"

_secrets: set[str] = set()


def register_secret(secret: str) -> None:
    """Register a value that must never appear in log output.

    Args:
        secret: Secret value to redact; empty values are ignored
    """
    if secret and secret.strip():
        _secrets.add(secret)


def clear_secrets() -> None:
    """Forget every registered secret."""
    _secrets.clear()


def redact(value: Any) -> Any:
    """Replace registered secrets inside strings, dicts and lists."""
    if isinstance(value, str):
        # Longest first so a secret containing another is fully masked
        for secret in sorted(_secrets, key=len, reverse=True):
            value = value.replace(secret, REDACTED)
        return value
    if isinstance(value, dict):
        return {k: redact(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return type(value)(redact(v) for v in value)
    return value


def mask_secrets(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Redact registered secrets from a log event.

    Args:
        logger: Logger instance (unused, required by structlog protocol)
        method_name: Log method name (unused, required by structlog protocol)
        event_dict: Current event dictionary to scrub

    Returns:
        Event dictionary with every registered secret replaced by ``***``
    """
    if not _secrets:
        return event_dict
    return {key: redact(value) for key, value in event_dict.items()}


def bind_pull_request_context(owner: str, repo: str, pr: int) -> None:
    """Bind pull request identity to all subsequent logs.

    Args:
        owner: Repository owner
        repo: Repository name
        pr: Pull request number
    """
    structlog.contextvars.bind_contextvars(repository=f"{owner}/{repo}", pr=pr)


def setup_logging(config: LoggingConfig) -> None:
    """Configure structlog with the given configuration.

    Args:
        config: Logging configuration

    Example:
        >>> setup_logging(LoggingConfig(level="DEBUG", format="json"))
    """
    log_level = getattr(logging, config.level)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    root_logger.addHandler(handler)

    if config.format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:  # console
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.contextvars.merge_contextvars,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            # Must run last before rendering so nothing is added afterwards
            mask_secrets,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=False,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance.

    Args:
        name: Logger name (typically __name__ of the calling module)

    Returns:
        Configured structlog BoundLogger instance
    """
    return structlog.get_logger(name)
