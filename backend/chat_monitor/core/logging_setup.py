import sys
from typing import Optional
from loguru import logger


def configure_logging(level: str = "INFO", log_file: Optional[str] = None, json: bool = False) -> None:
    """Replace loguru's default sink with one at the configured level"""
    logger.remove()
    logger.add(sys.stderr, level=level.upper(), serialize=json, backtrace=False, diagnose=False)
    if log_file:
        logger.add(
            log_file,
            level=level.upper(),
            serialize=json,
            rotation="10 MB",
            retention=5,
            enqueue=True,
        )
