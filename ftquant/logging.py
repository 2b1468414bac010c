"""Logging for ftquant.

Every module logs through ``get_logger(__name__)``, so records from the
analysis stages land under one hierarchy:

- ``ftquant.analysis.risk``: run start and end, per-tree status and failures;
- ``ftquant.analysis.pdag`` and ``ftquant.analysis.products``: graph and
  product counts with timings (DEBUG);
- ``ftquant.analysis.probability``: approximation warnings;
- ``ftquant.model.ccf``: CCF group expansion (DEBUG).

Only the ``ftquant`` logger owns a handler. It writes to stdout and
propagates, so pytest's ``caplog`` sees every record. The level comes from
`set_global_log_level` or, at the start of each analysis run, from the
``FTQUANT_LOG_LEVEL`` environment variable.
"""

import logging
import os
import sys
from typing import Optional

ROOT_LOGGER_NAME = "ftquant"

#: Environment variable read by `level_from_env`.
LOG_LEVEL_ENV = "FTQUANT_LOG_LEVEL"

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_configured = False


def setup_root_logger(
    level: int = logging.INFO,
    format_string: Optional[str] = None,
    handler: Optional[logging.Handler] = None,
) -> None:
    """Attach the stdout handler to the ``ftquant`` logger.

    Runs once per process; later calls return immediately.

    Args:
        level: Initial level of the ``ftquant`` logger.
        format_string: Record format; `DEFAULT_FORMAT` when None.
        handler: Handler to install instead of a stdout stream handler.
    """
    global _configured

    if _configured:
        return

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    if handler is None:
        handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(format_string or DEFAULT_FORMAT))
    root_logger.addHandler(handler)
    root_logger.propagate = True

    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Return the logger for a module of the package.

    Args:
        name: Dotted module name, normally ``__name__``.

    Returns:
        A handler-less logger whose level follows the ``ftquant`` logger.
    """
    setup_root_logger()
    logger = logging.getLogger(name)
    logger.setLevel(logging.NOTSET)
    return logger


def set_global_log_level(level: int) -> None:
    """Set the level of the ``ftquant`` logger and its handlers."""
    setup_root_logger()
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(level)
    for handler in root_logger.handlers:
        handler.setLevel(level)


def level_from_env(variable: str = LOG_LEVEL_ENV) -> Optional[int]:
    """Return the logging level named by an environment variable, if set.

    Args:
        variable: Environment variable holding a level name like "DEBUG".

    Returns:
        The numeric level, INFO for an unknown name, or None when the
        variable is unset or empty.
    """
    env_level = os.getenv(variable)
    if not env_level:
        return None
    return getattr(logging, env_level.upper(), logging.INFO)


def enable_debug_logging() -> None:
    """Show per-stage timings and graph sizes."""
    set_global_log_level(logging.DEBUG)


def disable_debug_logging() -> None:
    """Return to INFO: run summaries, warnings, and per-tree failures."""
    set_global_log_level(logging.INFO)


setup_root_logger()
