"""Centralized logging configuration."""

import sys

from loguru import logger as loguru_logger

from src.config import settings


# Constants for extra fields
LAYER = 'layer'


# Log format configuration
log_format = ' | '.join(
    (
        '<lk>{time:YYYY-MM-DD HH:mm:ss.SSS}</>',
        '<lvl>{level:<8}</>',
        f'<lg>{{extra[{LAYER}]}}</> <c>{{name}}::{{function}}:{{line}}</>',
        '{message}',
    )
)

# Configure logger
loguru_logger.remove()  # Drop the default handler so only the custom format is emitted
logger = loguru_logger.bind(**{LAYER: ''})

# Add console output
logger.add(sys.stdout, format=log_format, level=settings.LOG_LEVEL)

# Add file output with daily rotation and compression
if settings.LOG_DIR:
    logger.add(
        f'{settings.LOG_DIR}/{{time:YYYY-MM-DD}}.log',
        format=log_format,
        level=settings.LOG_LEVEL,
        rotation='1 day',
        retention='30 days',
        compression='zip',
        enqueue=True,
    )
