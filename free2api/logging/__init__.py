"""Logging module for the gateway."""

from .setup import logger, preview, setup_logging

__all__ = [
    "logger",
    "preview",
    "setup_logging",
]
