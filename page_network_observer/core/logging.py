"""Logging configuration for the network observation core."""

import logging
import sys
from pathlib import Path
from typing import List, Optional
import structlog

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _processors(json_logs: bool) -> List:
    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]
    if json_logs:
        processors += [
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))
    return processors


def configure_structlog(json_logs: bool = False, cache_loggers: bool = False) -> None:
    """
    Route structlog through the standard library loggers.

    Levels and handlers are then decided by stdlib logging, so nothing is
    printed until an application configures a handler.
    """
    structlog.configure(
        processors=_processors(json_logs),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=cache_loggers,
    )


def quiet_noisy_loggers() -> None:
    """Keep third-party loggers at WARNING."""
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("playwright").setLevel(logging.WARNING)


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    json_logs: bool = False
) -> logging.Logger:
    """
    Set up logging configuration for the package.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file path for logging
        json_logs: Whether to output JSON formatted logs

    Returns:
        Configured logger instance
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    configure_structlog(json_logs=json_logs, cache_loggers=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(numeric_level)
    if not json_logs:
        console_handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
        root_logger.addHandler(file_handler)

    quiet_noisy_loggers()

    logger = logging.getLogger("page_network_observer")
    logger.setLevel(numeric_level)

    return logger


def get_logger(name: str = "page_network_observer") -> structlog.stdlib.BoundLogger:
    """
    Get a structlog logger instance.

    Args:
        name: Logger name (usually module name)

    Returns:
        Bound logger instance
    """
    return structlog.get_logger(name)


def log_network_event(event_type: str, **details):
    """
    Log network events with consistent formatting.

    Args:
        event_type: Type of network event
        **details: Additional event details
    """
    logger = get_logger("page_network_observer.network")
    logger.debug(f"Network event: {event_type}", event_type=event_type, **details)


def log_protocol_violation(signal: str, error: Exception):
    """
    Log a lifecycle signal that was dropped because it broke the protocol.

    Args:
        signal: Name of the raw signal
        error: The error describing the violation
    """
    logger = get_logger("page_network_observer.tracker")
    logger.warning(
        f"Dropped signal '{signal}'",
        signal=signal,
        error=str(error),
        error_type=type(error).__name__,
    )


if not structlog.is_configured():
    configure_structlog()
