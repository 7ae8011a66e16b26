"""Log handler wiring for the CLI and the server.

Everything under ``frameshop.*`` logs through the one package logger
configured here; library modules only call ``logging.getLogger(__name__)``.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from frameshop.config.settings import LoggingConfig

PACKAGE_LOGGER = "frameshop"


def setup_logging(config: LoggingConfig | None = None) -> None:
    """Point the ``frameshop`` logger at stderr and, optionally, a file.

    Safe to call more than once: handlers installed by an earlier call
    are closed and replaced. The log file's directory is created if
    missing.

    Args:
        config: The ``logging`` settings section; defaults to INFO on stderr.
    """
    config = config or LoggingConfig()

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(getattr(logging, config.level.upper(), logging.INFO))

    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(config.format)
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if config.file:
        log_path = Path(config.file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path))

    for handler in handlers:
        handler.setFormatter(formatter)
        package_logger.addHandler(handler)

    package_logger.debug(
        "Logging to %s at %s", ", ".join(type(h).__name__ for h in handlers), config.level
    )
