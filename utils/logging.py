import sys

from loguru import logger

LOG_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)


def setup_logging(level: str = "INFO") -> None:
    """Replace loguru's default sink with a stderr sink at `level`."""
    logger.remove()
    try:
        logger.add(sys.stderr, level=level.upper(), format=LOG_FORMAT)
    except ValueError:
        logger.add(sys.stderr, level="INFO", format=LOG_FORMAT)
        logger.warning(f"Unknown log level '{level}', falling back to INFO.")
