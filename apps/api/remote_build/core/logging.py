from loguru import logger
import sys

from remote_build.core.config import settings

def setup_logging(level: str | None = None):
    logger.remove()
    logger.add(sys.stdout, level=level or settings.LOG_LEVEL)
    return logger
