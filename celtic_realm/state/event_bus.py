"""
Publish/subscribe channel for things that happen during a journey.

Systems announce changes (threat rising, the wheel turning, a companion
walking away) and front ends listen. Delivery is synchronous, in the
order listeners were added. The rules never depend on anyone listening.

    bus = get_event_bus()
    bus.on(EventType.SEASON_CHANGED, lambda e: print(e.data["after"]))
    bus.emit(EventType.SEASON_CHANGED, before="samhain", after="winters_depth")
"""

import logging
from collections import defaultdict, deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable

logger = logging.getLogger(__name__)


class EventType(Enum):
    CHALLENGE_RESOLVED = "challenge.resolved"

    THREAT_CHANGED = "threat.changed"
    MANIFESTATION = "threat.manifestation"
    MANIFESTATION_PREVENTED = "threat.prevented"

    COMPANION_BONDED = "companion.bonded"
    COMPANION_FED = "companion.fed"
    COMPANION_STATE_CHANGED = "companion.state_changed"
    COMPANION_LEFT = "companion.left"

    PHASE_CHANGED = "phase.changed"
    TURN_STARTED = "turn.started"

    SEASON_CHANGED = "season.changed"
    LANDSCAPE_ENTERED = "landscape.entered"
    ITEM_CRAFTED = "item.crafted"

    GAME_OVER = "game.over"


@dataclass
class GameEvent:
    """One announcement; ``data`` holds whatever the emitting system passed."""

    type: EventType
    data: dict = field(default_factory=dict)
    session_id: str = ""
    turn: int = 0
    timestamp: datetime = field(default_factory=datetime.now)

    def __str__(self) -> str:
        return f"T{self.turn} {self.type.value} {self.data}"


EventHandler = Callable[[GameEvent], None]


class EventBus:
    """
    Synchronous listeners keyed by event type, plus a rolling record of
    the last ``history_limit`` events for tests and debugging.

    A listener that raises is logged and skipped so one broken front end
    cannot stall a turn.
    """

    def __init__(self, history_limit: int = 100):
        self._listeners: defaultdict[EventType, list[EventHandler]] = defaultdict(list)
        self._history: deque[GameEvent] = deque(maxlen=history_limit)

    def on(self, event_type: EventType, handler: EventHandler) -> None:
        listeners = self._listeners[event_type]
        if handler not in listeners:
            listeners.append(handler)

    def off(self, event_type: EventType, handler: EventHandler) -> None:
        listeners = self._listeners.get(event_type, [])
        if handler in listeners:
            listeners.remove(handler)

    def emit(self, event_type: EventType, session_id: str = "", turn: int = 0, **data) -> GameEvent:
        """Record the event, then hand it to each listener in turn."""
        event = GameEvent(type=event_type, data=data, session_id=session_id, turn=turn)
        self._history.append(event)

        for handler in tuple(self._listeners.get(event_type, ())):
            try:
                handler(event)
            except Exception:
                logger.exception("Listener failed on %s", event_type.value)
        return event

    def clear(self) -> None:
        self._listeners.clear()
        self._history.clear()

    def get_history(self, event_type: EventType | None = None) -> list[GameEvent]:
        return [e for e in self._history if event_type is None or e.type == event_type]

    def listener_count(self, event_type: EventType) -> int:
        return len(self._listeners.get(event_type, ()))


_shared_bus: EventBus | None = None


def get_event_bus() -> EventBus:
    """The process-wide bus systems fall back to when none is injected."""
    global _shared_bus
    if _shared_bus is None:
        _shared_bus = EventBus()
    return _shared_bus


def reset_event_bus() -> None:
    """Drop the shared bus so the next caller starts clean."""
    global _shared_bus
    _shared_bus = None
