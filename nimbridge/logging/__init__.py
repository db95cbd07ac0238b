"""Logging module for the gateway."""

from .setup import logger, setup_logging

__all__ = [
    "logger",
    "setup_logging",
]
