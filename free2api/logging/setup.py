"""Logging configuration for the gateway."""

import logging
import sys

LOGGER_NAME = "free2api"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: str | int = logging.INFO) -> logging.Logger:
    """Attach a single stdout handler to the gateway logger at `level`.

    Safe to call again (e.g. once the config has been read); earlier
    handlers are replaced rather than stacked.
    """
    gateway_logger = logging.getLogger(LOGGER_NAME)
    gateway_logger.setLevel(level)
    gateway_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    gateway_logger.addHandler(handler)

    # pytest's caplog and uvicorn's root handlers still see records
    gateway_logger.propagate = True
    return gateway_logger


def preview(text: str, limit: int = 100) -> str:
    """Shorten text for a single log line, escaping newlines."""
    return text[:limit].replace("\n", "\\n")


# Global logger instance
logger = setup_logging()
