"""Centralized logging configuration."""

import sys

from loguru import logger

from src.config import settings


log_format = ' | '.join(
    (
        '<lk>{time:YYYY-MM-DD HH:mm:ss.SSS}</>',
        '<lvl>{level:<8}</>',
        '<c>{name}::{function}:{line}</>',
        '{message}',
    )
)

# Remove default handler to avoid duplicate output
logger.remove()
logger.add(sys.stderr, format=log_format, level=settings.LOG_LEVEL)


def mask_phone(phone: str) -> str:
    """Keep only the last four digits of a phone number for log lines"""
    if not phone:
        return ''
    return '*' * max(len(phone) - 4, 0) + phone[-4:]
