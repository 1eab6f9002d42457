"""
Structured logging utilities for the Artemis Cloud system tests.

This module provides current-test tracking, structured log formatting and
test separators so that interleaved suite logs can be attributed to the test
that produced them.
"""

import json
import logging
from contextvars import ContextVar
from datetime import UTC, datetime

# Context variable holding the name of the test currently executing
current_test: ContextVar[str] = ContextVar("current_test", default="")

SEPARATOR_CHAR = "="
SEPARATOR_LENGTH = 76

# Third-party loggers that flood the output at DEBUG
NOISY_LOGGERS = ("kubernetes", "urllib3", "websocket")


class CurrentTestFilter(logging.Filter):
    """Logging filter that adds the current test name to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        """
        Add the current test name to the log record.

        Args:
            record: The log record to process

        Returns:
            True to allow the record to be processed
        """
        record.test_name = current_test.get() or "-"
        return True


class StructuredFormatter(logging.Formatter):
    """
    Structured JSON formatter for suite logs.

    Formats log records as one JSON object per line for CI log aggregation.
    """

    structured_fields = (
        "namespace",
        "resource_type",
        "resource_name",
        "operation",
        "duration",
    )

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "test_name": getattr(record, "test_name", ""),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for field in self.structured_fields:
            if hasattr(record, field):
                log_data[field] = getattr(record, field)

        return json.dumps(log_data, default=str)


def set_current_test(test_name: str) -> str:
    """
    Set the test name for the current context.

    Args:
        test_name: Name (node id) of the running test

    Returns:
        The test name that was set
    """
    current_test.set(test_name)
    return test_name


def get_current_test() -> str:
    """Get the current test name, or empty string if none is running."""
    return current_test.get("")


def setup_test_logging(
    log_level: str = "",
    enable_json_formatting: bool = False,
) -> None:
    """
    Set up logging for the suite.

    An empty log level keeps whatever level the root logger already has, so
    pytest's own ``log_level`` option stays in charge.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR) or empty
        enable_json_formatting: Whether to use JSON formatting
    """
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        if getattr(handler, "_artemis_systemtests", False):
            root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler._artemis_systemtests = True  # type: ignore[attr-defined]

    if enable_json_formatting:
        formatter: logging.Formatter = StructuredFormatter()
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(test_name)s - %(name)s - %(levelname)s - %(message)s"
        )

    handler.setFormatter(formatter)
    handler.addFilter(CurrentTestFilter())
    root_logger.addHandler(handler)

    if log_level:
        level = getattr(logging, log_level.upper(), logging.INFO)
        root_logger.setLevel(level)
        logging.getLogger("artemis_systemtests").setLevel(level)
        root_logger.info(f"All logging changed to level: {logging.getLevelName(level)}")
    else:
        root_logger.debug("Not setting log level at all.")

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def log_test_separator(logger: logging.Logger, test_name: str, phase: str) -> None:
    """
    Log a visual separator marking the start or end of a test.

    Args:
        logger: Logger to write to
        test_name: Name of the test
        phase: "STARTED" or "FINISHED"
    """
    logger.info(SEPARATOR_CHAR * SEPARATOR_LENGTH)
    logger.info(f"{test_name} {phase}")
    logger.info(SEPARATOR_CHAR * SEPARATOR_LENGTH)
