"""
Logging setup for the Portcullis backend.

Modules log through ``logging.getLogger(__name__)``; this module only
installs the root handler once at application startup.
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """
    Configure the root logger with a single stream handler.

    Safe to call more than once (e.g. when tests create several apps).
    """
    root = logging.getLogger()
    root.setLevel(level.upper())

    for handler in root.handlers:
        if getattr(handler, "_portcullis", False):
            return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._portcullis = True  # type: ignore[attr-defined]
    root.addHandler(handler)
