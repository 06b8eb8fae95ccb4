"""Logging setup for the unimock framework."""

import logging
import sys

LOGGER_NAME = "unimock"

_TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_JSON_FORMAT = '{"time": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s"}'


def configure_logging(log_level: str, log_format: str, stream: bool = False) -> logging.Logger:
    """Configure the framework logger.

    Only the ``unimock`` logger is touched; the host test runner keeps
    control of the root logger and of log capture.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_format: Log format (json, text).
        stream: If True, attach a stdout handler (once).

    Returns:
        The configured logger.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, log_level, logging.WARNING))

    if stream and not any(
        getattr(handler, "_unimock_handler", False) for handler in logger.handlers
    ):
        format_str = _JSON_FORMAT if log_format == "json" else _TEXT_FORMAT
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(format_str))
        handler._unimock_handler = True  # type: ignore[attr-defined]
        logger.addHandler(handler)

    return logger


__all__ = ["LOGGER_NAME", "configure_logging"]
