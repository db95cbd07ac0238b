"""Logging configuration for the gateway."""

import logging
import sys


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Set up logging with proper handlers and formatters."""
    logger = logging.getLogger("nim-bridge")
    resolved_level = logging.getLevelName(str(level).upper())
    if not isinstance(resolved_level, int):
        resolved_level = logging.INFO
    logger.setLevel(resolved_level)

    # Clear any existing handlers
    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(resolved_level)

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # Propagate so pytest's caplog and uvicorn's root handlers still see records
    logger.propagate = True

    return logger


# Global logger instance
logger = setup_logging()
