import logging
import os
import sys

LOGGER_NAME = "Multitrack"
LEVEL_ENV = "MULTITRACK_LOG_LEVEL"


def setup_logger(level=None):
    """
    Configure the shared engine logger.

    The console level comes from `level`, then MULTITRACK_LOG_LEVEL, then INFO.
    Calling it again only updates the level.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)

    if level is None:
        level = os.environ.get(LEVEL_ENV, "INFO").upper()

    if not logger.handlers:
        # Console Handler
        ch = logging.StreamHandler(sys.stdout)
        ch.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
        logger.addHandler(ch)

    for handler in logger.handlers:
        handler.setLevel(level)

    return logger

logger = setup_logger()
