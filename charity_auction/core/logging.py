import sys
from loguru import logger
from charity_auction.core.config import settings


def configure_logging(level: str = None):
    """Route loguru output to stderr at the configured level"""
    logger.remove()
    logger.add(
        sys.stderr,
        level=(level or settings.log_level).upper(),
        backtrace=settings.debug,
        diagnose=settings.debug,
    )
