"""Logging helpers shared by the HTTP adapters and the entry point."""

import logging

LOGGER_NAME = "promdoc"

_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return the package logger or one of its children."""
    if name is None:
        return logging.getLogger(LOGGER_NAME)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")


def log_exception(message: str, **attributes: str | int | float | bool) -> None:
    """Log the exception currently being handled, with its traceback.

    Args:
        message: The log message
        **attributes: Additional structured fields, passed as `extra`
    """
    get_logger().exception(message, extra=attributes)


def configure_logging(level: str = "INFO") -> None:
    """Attach a stream handler to the package logger.

    Calling it again only updates the level.
    """
    logger = get_logger()
    logger.setLevel(level.upper())
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_LOG_FORMAT))
        logger.addHandler(handler)
