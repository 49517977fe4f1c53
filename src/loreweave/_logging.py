"""Logging configuration for loreweave.

Usage in other modules:
    import logging
    log = logging.getLogger(__name__)

The log level can be configured via the LOREWEAVE_LOG_LEVEL environment variable:
    - DEBUG: Skipped markers, skipped corpus files, store writes
    - INFO: General operational messages (default)
    - WARNING: Unexpected situations that were handled
    - ERROR: Errors that prevented an operation
"""

import logging
import os
import sys

PACKAGE_LOGGER = "loreweave"


def configure_logging() -> None:
    """Configure logging for the loreweave package.

    Call this once at application startup (the CLI does it in its group callback).
    Subsequent calls are no-ops.
    """
    root_logger = logging.getLogger(PACKAGE_LOGGER)

    # Skip if already configured (has handlers)
    if root_logger.handlers:
        return

    level_name = os.environ.get("LOREWEAVE_LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    # Use a clean format: [level] logger: message
    formatter = logging.Formatter(
        fmt="[%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler.setFormatter(formatter)

    root_logger.setLevel(level)
    root_logger.addHandler(handler)

    # Prevent propagation to root logger (avoids duplicate messages)
    root_logger.propagate = False


def set_quiet_mode(quiet: bool) -> None:
    """Raise the package log level to ERROR while quiet mode is on."""
    root_logger = logging.getLogger(PACKAGE_LOGGER)
    if quiet:
        root_logger.setLevel(logging.ERROR)
        for handler in root_logger.handlers:
            handler.setLevel(logging.ERROR)
        return

    level_name = os.environ.get("LOREWEAVE_LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    root_logger.setLevel(level)
    for handler in root_logger.handlers:
        handler.setLevel(level)
