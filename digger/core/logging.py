"""
Logging setup for the digger client and its command line.
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: int | str = logging.INFO, *, quiet_http: bool = True) -> None:
    """
    Configure root logging for the process.

    httpx logs every request at INFO; a poll loop would flood the output,
    so its loggers are raised to WARNING unless ``quiet_http`` is False.
    """
    logging.basicConfig(
        format=LOG_FORMAT,
        level=level,
        stream=sys.stdout,
    )
    if quiet_http:
        for name in ("httpx", "httpcore"):
            logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with the given name."""
    return logging.getLogger(name)
