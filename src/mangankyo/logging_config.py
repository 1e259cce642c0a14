"""
Logging setup for the command line tools.
"""
import logging
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def setup_logging(level: int = logging.INFO, log_file: Optional[str] = None) -> logging.Logger:
    """
    Route ``mangankyo.*`` records to stderr, and to ``log_file`` if given.

    Calling it again replaces the handlers from the previous call.
    """
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    logger = logging.getLogger("mangankyo")
    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt="%H:%M:%S")
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.setLevel(level)
    return logger
