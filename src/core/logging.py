"""Logging and tracing for the engagement engine.

Modules log through `logging.getLogger(__name__)` with `%s` arguments and
structured `extra=` fields. Logfire picks those records up and attaches
them to the span of the engine stage that emitted them, so a single
recompute shows up as one trace: streak, achievements, challenges,
notifications, commit.

    logger.info("Challenge completed", extra={"challenge_id": challenge.id})

    with span("challenge_service.roll_day"):
        ...
"""

import logging

import logfire

from src.core.config import settings


def configure_logfire() -> None:
    """Configure Logfire for the engine process.

    Spans and records are only exported when a token is configured;
    otherwise they stay in the local log output.
    """
    logfire.configure(
        token=settings.logfire_token,
        service_name="together",
        service_version="0.1.0",
        environment="production",
        send_to_logfire="if-token-present",
    )

    logger = logging.getLogger(__name__)
    logger.info("Logfire configured successfully")


def span(name: str) -> logfire.LogfireSpan:
    """Open a span named `<module>.<operation>` around one engine stage."""
    return logfire.span(name)


def log_with_context(
    logger: logging.Logger,
    level: str,
    message: str,
    **context: object,
) -> None:
    """Log message at level with context as structured fields.

    Args:
        logger: Logger instance to use
        level: Log level name ("debug", "info", "warning", "error", "critical")
        message: Log message
        **context: Fields such as operation, key or category
    """
    log_method = getattr(logger, level.lower())
    log_method(message, extra=context)


def log_with_partner_context(
    logger: logging.Logger,
    level: str,
    message: str,
    partner_id: str | None = None,
    **extra: object,
) -> None:
    """Log an event attributed to one partner (an award, unlock, completion or redemption).

    The partner_id field is omitted when no partner is known, so records
    for partnership-wide events do not carry an empty value.
    """
    context = {"partner_id": partner_id, **extra} if partner_id else extra
    log_with_context(logger, level, message, **context)
