# core/notifier.py
from typing import Callable

from .logger import get_logger

logger = get_logger("storefront.notify")

# Fire-and-forget sink for user-facing messages (toasts, CLI stderr, ...)
Notifier = Callable[[str], None]


def log_notifier(message: str) -> None:
    logger.info("%s", message)
