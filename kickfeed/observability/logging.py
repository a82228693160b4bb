"""
Structured logging for kickfeed.

kickfeed is a library, so it never configures logging on import. A host
application calls ``setup_logging()`` once; afterwards every module logger
(``structlog.get_logger(__name__)``) renders JSON in production and a
colored console view elsewhere. Events carry a ``component`` field derived
from the logger name (``feed``, ``transport``, ``translation``...), and
fields bound with ``bind_context`` (e.g. feed_session, language).
"""

import logging
import sys

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from kickfeed.config.settings import Settings, get_settings

PACKAGE_LOGGER = "kickfeed"

_NOISY_LOGGERS = ("httpx", "httpcore", "asyncio")


def _add_component(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Tag kickfeed events with the subpackage that emitted them."""
    name = event_dict.get("logger") or ""
    parts = name.split(".")
    if len(parts) > 1 and parts[0] == PACKAGE_LOGGER:
        event_dict.setdefault("component", parts[1])
    return event_dict


def _processors(production: bool) -> list[Processor]:
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        _add_component,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if production:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))
    return processors


def setup_logging(settings: Settings | None = None, level: str | None = None) -> None:
    """
    Configure structured logging for the host application.

    Args:
        settings: Settings to read environment and log level from
        level: Overrides ``settings.log_level`` for the kickfeed loggers;
            ``settings.debug`` forces DEBUG when no override is given

    Usage:
        setup_logging()
        logger = structlog.get_logger("kickfeed.feed")
        logger.info("Feed loaded", articles=20, cursor="abc")
    """
    settings = settings or get_settings()
    if level is None:
        level = "DEBUG" if settings.debug else settings.log_level
    log_level = getattr(logging, level.upper())

    structlog.configure(
        processors=_processors(settings.is_production),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(log_level)
    if not package_logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter("%(message)s"))
        package_logger.addHandler(handler)
        package_logger.propagate = False

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger; kickfeed modules pass ``__name__``."""
    return structlog.get_logger(name)


def bind_context(**kwargs) -> None:
    """Bind fields to every subsequent log event in this context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
