"""Logging setup for the bookmark-vault CLI.

Records from the bookmark_vault package go to one stream handler. The HTTP
libraries log every request line, so they are held at WARNING unless
debugging.
"""

import logging
import sys

PACKAGE_LOGGER = "bookmark_vault"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
QUIET_LOGGERS = ("httpx", "httpcore")


def setup_logging(debug: bool = False, stream=None) -> logging.Handler:
    """Route package logs to stream (stderr by default) and return the handler.

    Calling it again replaces the handler installed by the previous call.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(logging.DEBUG if debug else logging.INFO)
    for old in list(logger.handlers):
        logger.removeHandler(old)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(handler)

    library_level = logging.DEBUG if debug else logging.WARNING
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(library_level)
    return handler
