"""User-facing error notifications."""

import logging
from typing import Protocol

logger = logging.getLogger(__name__)

# Prefix of every user-visible error message
ERROR_TAG = "[CoffeeScript]"


def format_error(error: object) -> str:
    """Render an error as a single tagged line."""
    text = " ".join(str(error).split())
    return f"{ERROR_TAG} {text}"


class NotifierProtocol(Protocol):
    """Channel that shows errors to the user."""

    def show_error(self, message: str) -> None:
        ...


class LoggingNotifier:
    """Notifier that writes messages to the log and counts them."""

    def __init__(self) -> None:
        self.error_count = 0

    def show_error(self, message: str) -> None:
        self.error_count += 1
        logger.error(message)
