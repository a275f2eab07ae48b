"""Predicate Coverage Structured Logging

Provides structured logging for catalog loading, hit tracking and report
persistence. Uses structlog for consistent, analyzable log output.
"""

import logging
import sys
from datetime import UTC, datetime
from pathlib import Path

import structlog
from structlog.types import EventDict, Processor, WrappedLogger


def add_timestamp(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Processor to add ISO-formatted timestamp to log entries.

    Args:
        logger: The wrapped logger instance
        method_name: The name of the method being called
        event_dict: The event dictionary to process

    Returns:
        Event dictionary with timestamp added

    """
    event_dict["timestamp"] = datetime.now(UTC).isoformat()
    return event_dict


def add_location_context(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Processor to render Location values as ``class:line`` strings.

    Args:
        logger: The wrapped logger instance
        method_name: The name of the method being called
        event_dict: The event dictionary to process

    Returns:
        Event dictionary with locations rendered

    """
    for key, value in event_dict.items():
        if hasattr(value, "class_name") and hasattr(value, "line_number"):
            event_dict[key] = f"{value.class_name}:{value.line_number}"
    return event_dict


ERROR_STAGES = {
    "CATALOG_LOAD": "catalog",
    "TARGET_LOAD": "target",
    "REPORT_PERSIST": "report",
}


def add_failure_stage(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Processor to tag failure events with the pipeline stage that failed.

    Events carrying an ``error_code`` (or named after a known failure) get a
    ``stage`` key so catalog, target and report problems can be filtered
    apart in the log stream.
    """
    code = event_dict.get("error_code")
    if code is None:
        event = str(event_dict.get("event", ""))
        if event.startswith("catalog_load"):
            code = "CATALOG_LOAD"
        elif event.startswith("target_load"):
            code = "TARGET_LOAD"
    if code in ERROR_STAGES:
        event_dict.setdefault("error_code", code)
        event_dict.setdefault("stage", ERROR_STAGES[code])
    return event_dict


def configure_logging(
    log_level: str = "INFO", json_format: bool = True, log_file: Path | None = None
) -> None:
    """Configure structlog for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Whether to output JSON format (True) or human-readable (False)
        log_file: Optional file path to write logs to

    Example:
        >>> configure_logging(log_level="DEBUG", json_format=False)
        >>> logger = get_logger("predicate_coverage")
        >>> logger.info("catalog_loaded", predicates=12)

    """
    for handler in logging.root.handlers[:]:
        logging.root.removeHandler(handler)

    # Log lines go to stderr so they never interleave with the dashboard.
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, log_level.upper()),
        force=True,
    )

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_timestamp,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        add_location_context,
        add_failure_stage,
    ]

    if json_format:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(getattr(logging, log_level.upper()))
        file_handler.setFormatter(logging.Formatter("%(message)s"))
        logging.root.addHandler(file_handler)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a configured structlog logger.

    Args:
        name: Logger name (typically module name using __name__)

    Returns:
        Configured structlog BoundLogger instance

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("snapshot_written", path="coverage.json")

    """
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger
