"""
Logging setup for command line runs.
"""

import sys

from loguru import logger

from configs.default_config import CONSOLE_LOG_FORMAT, LOG_FORMAT


def configure_logging(verbose=False, log_file=None):
    """
    Replace loguru's default handler with the console (and optional file) sinks.

    Args:
        verbose (bool): Log DEBUG messages to the console instead of INFO and up.
        log_file (str, optional): Also write DEBUG and up to this file.
    """
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "INFO", format=CONSOLE_LOG_FORMAT)
    if log_file:
        logger.add(log_file, level="DEBUG", format=LOG_FORMAT)
