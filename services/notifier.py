"""Notification collaborator for user-facing feedback messages."""

from __future__ import annotations

import logging
from collections import deque
from typing import Deque, List, Protocol

from models.session_models import Notification

LOGGER = logging.getLogger(__name__)


class Notifier(Protocol):
    def notify(self, message: str, kind: str) -> None: ...


class LoggingNotifier:
    """Log notifications and keep the most recent ones for display."""

    def __init__(self, max_items: int = 10) -> None:
        self._recent: Deque[Notification] = deque(maxlen=max_items)

    def notify(self, message: str, kind: str) -> None:
        level = logging.WARNING if kind == "error" else logging.INFO
        LOGGER.log(level, "Notification (%s): %s", kind, message)
        self._recent.append(Notification(message=message, kind=kind))

    def recent(self) -> List[Notification]:
        return list(self._recent)
