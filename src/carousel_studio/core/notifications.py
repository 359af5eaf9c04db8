"""User-facing notifications.

Errors caught at an operation boundary are not re-raised to the user; they are
recorded here, keyed to the slot or action they belong to (``slot-2``,
``batch``, ``ideas``, ``export``), and shown by the front end.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Literal

logger = logging.getLogger(__name__)

Level = Literal["info", "error"]


def slot_key(index: int) -> str:
    """Notification key for the slot at 0-based ``index``."""
    return f"slot-{index + 1}"


@dataclass(frozen=True)
class Notification:
    key: str
    level: Level
    message: str
    created_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["created_at"] = self.created_at.isoformat()
        return data


class Notifier:
    """In-memory list of notifications waiting to be shown."""

    def __init__(self) -> None:
        self._items: list[Notification] = []

    def notify(self, key: str, message: str, level: Level = "info") -> Notification:
        note = Notification(key=key, level=level, message=message)
        self._items.append(note)
        return note

    def info(self, key: str, message: str) -> Notification:
        return self.notify(key, message, "info")

    def error(self, key: str, message: str) -> Notification:
        logger.warning(f"[{key}] {message}")
        return self.notify(key, message, "error")

    def pending(self) -> list[Notification]:
        return list(self._items)

    def errors(self) -> list[Notification]:
        return [n for n in self._items if n.level == "error"]

    def drain(self) -> list[Notification]:
        """Return all pending notifications and clear the list."""
        items, self._items = self._items, []
        return items
