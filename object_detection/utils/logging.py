import sys
from typing import Optional

from loguru import logger

TEXT_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>"
)


def setup_logging(level: str = "INFO", json_logs: bool = False, log_file: Optional[str] = None) -> None:
    """Replace loguru's default sink with a stderr sink and an optional rotating file sink."""
    level = level.upper()
    logger.remove()
    if json_logs:
        logger.add(sys.stderr, level=level, serialize=True)
    else:
        logger.add(sys.stderr, format=TEXT_FORMAT, level=level)

    if log_file:
        logger.add(
            log_file,
            rotation="50 MB",
            retention="10 days",
            level=level,
            serialize=json_logs,
        )
