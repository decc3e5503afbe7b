"""Centralized logging setup for the enrollment portal.

All modules log through named standard-library loggers; the root logger
gets a single stdout handler so uvicorn, the CLI and tests share one format.
"""

import logging
import sys

# Third-party loggers that are chatty at INFO.
_QUIET_LOGGERS: tuple[str, ...] = ("pymongo", "twilio.http_client", "PIL")


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger with the portal's standard format.

    Calling this more than once is a no-op so that the API server and the
    CLI can both invoke it unconditionally.

    Args:
        level: Logging level name. Unknown names fall back to INFO.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    root = logging.getLogger()

    if root.handlers:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    root.addHandler(handler)
    root.setLevel(numeric_level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))


def get_logger(name: str) -> logging.Logger:
    """Return the logger for a module, normally called with ``__name__``."""
    return logging.getLogger(name)
