"""
colorextract Logging
Configures the loguru sink and hands out request-scoped loggers.
"""
import sys
from typing import Optional

from loguru import logger

from colorextract.config import config

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level} | {message} | {extra}"

_configured = False


def configure_logging(level: Optional[str] = None) -> None:
    """Replace loguru's default handler with a single stdout sink."""
    global _configured
    logger.remove()
    logger.add(sys.stdout, format=LOG_FORMAT, level=level or config.LOG_LEVEL)
    _configured = True


def get_logger(request_id: Optional[str] = None):
    """
    Get the service logger.

    When request_id is given it is bound once and appears in the extra
    fields of every record the returned logger emits.
    """
    if not _configured:
        configure_logging()
    if request_id is None:
        return logger
    return logger.bind(request_id=request_id)
