"""Loguru configuration shared by the API process and the Celery worker."""

import sys
from pathlib import Path

from loguru import logger

from cronhooks.config import settings

DEV_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)
PROD_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} | {message}"


def setup_logging(
    level: str | None = None,
    log_file: str | Path | None = None,
    rotation: str = "50 MB",
    retention: str = "7 days",
) -> None:
    """Replace loguru's default sink with ours.

    Call once at process start (API lifespan, worker init).
    """
    logger.remove()

    level = level or settings.log_level
    log_file = log_file or settings.log_file
    dev = settings.is_development

    logger.add(
        sys.stderr,
        level=level,
        format=DEV_FORMAT if dev else PROD_FORMAT,
        colorize=dev,
        diagnose=dev,
        enqueue=True,
        catch=True,
    )

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(log_file),
            level=level,
            format=PROD_FORMAT,
            rotation=rotation,
            retention=retention,
            enqueue=True,
            catch=True,
        )

    logger.info("Logging initialized level={} environment={}", level, settings.environment)
