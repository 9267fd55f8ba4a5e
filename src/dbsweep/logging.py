# src/dbsweep/logging.py
"""
Logging helpers for dbsweep.

Every module gets its logger through `get_logger(__name__)` so that all
output lives under the single ``dbsweep`` namespace. The CLI calls
`configure_logging()` once; library users are free to configure the
``dbsweep`` logger themselves.

Environment:
  - DBSWEEP_LOG_LEVEL: DEBUG | INFO | WARNING | ERROR (default: WARNING)
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Optional

ROOT_LOGGER = "dbsweep"

_configured = False


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a logger inside the dbsweep namespace."""
    if not name or name == ROOT_LOGGER:
        return logging.getLogger(ROOT_LOGGER)
    if name.startswith(ROOT_LOGGER + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def configure_logging(verbose: bool = False, level: Optional[str] = None, force: bool = False) -> None:
    """
    Install a single stderr handler on the dbsweep root logger.

    Subsequent calls are no-ops unless force=True.
    """
    global _configured

    if _configured and not force:
        return

    if verbose:
        effective = "DEBUG"
    else:
        effective = (level or os.getenv("DBSWEEP_LOG_LEVEL") or "WARNING").upper()

    logger = logging.getLogger(ROOT_LOGGER)
    for h in list(logger.handlers):
        logger.removeHandler(h)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)-8s [%(threadName)s] %(name)s: %(message)s")
    )
    logger.addHandler(handler)
    logger.setLevel(getattr(logging, effective, logging.WARNING))
    logger.propagate = False

    _configured = True


def log_exception(logger: logging.Logger, message: str, exc: BaseException) -> None:
    """
    Log a failure without drowning the console.

    The one-line summary goes out at WARNING; the traceback only at DEBUG.
    """
    logger.warning("%s: %s", message, exc)
    logger.debug("%s (traceback)", message, exc_info=exc)
