"""
Append-only game log.

The player-facing record of what happened. Writers never read it back
for control flow. Each entry is mirrored to the standard logger so
developer output and the in-game log stay in step.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

logger = logging.getLogger(__name__)


class LogCategory(str, Enum):
    SYSTEM = "system"
    PHASE = "phase"
    CHALLENGE = "challenge"
    THREAT = "threat"
    COMPANION = "companion"
    RESOURCE = "resource"
    CRAFTING = "crafting"
    JOURNEY = "journey"
    SEASON = "season"


@dataclass
class LogEntry:
    message: str
    highlight: bool = False
    category: LogCategory = LogCategory.SYSTEM
    details: dict = field(default_factory=dict)
    turn: int = 0
    timestamp: datetime = field(default_factory=datetime.now)

    def __str__(self) -> str:
        marker = "!" if self.highlight else " "
        return f"{marker}[T{self.turn}] {self.message}"


class GameLog:
    """Bounded, append-only list of log entries (oldest dropped first)."""

    def __init__(self, limit: int = 100):
        self._entries: list[LogEntry] = []
        self._limit = limit
        self.turn = 0  # Stamped onto new entries; kept current by the controller

    def log(
        self,
        message: str,
        highlight: bool = False,
        category: LogCategory = LogCategory.SYSTEM,
        details: dict | None = None,
    ) -> LogEntry:
        entry = LogEntry(
            message=message,
            highlight=highlight,
            category=category,
            details=details or {},
            turn=self.turn,
        )
        self._entries.append(entry)
        if len(self._entries) > self._limit:
            self._entries = self._entries[-self._limit :]

        level = logging.WARNING if highlight else logging.INFO
        logger.log(level, "[%s] %s", category.value, message)
        return entry

    @property
    def entries(self) -> list[LogEntry]:
        return list(self._entries)

    def recent(self, count: int = 10) -> list[LogEntry]:
        return self._entries[-count:] if count > 0 else []

    def by_category(self, category: LogCategory) -> list[LogEntry]:
        return [e for e in self._entries if e.category == category]

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
