"""State management for Celtic Realm sessions."""

from .schema import (
    SEASON_ORDER,
    ActiveEffect,
    ChallengeCategory,
    ChallengeSpec,
    CompanionBondState,
    CompanionPhase,
    Complexity,
    EffectKind,
    GameResult,
    ManifestationKind,
    OutcomeTier,
    Season,
    SessionState,
    Severity,
    ThreatState,
    TurnPhase,
    next_season,
)
from .catalog import Catalog, CatalogError
from .event_bus import (
    EventBus,
    EventType,
    GameEvent,
    get_event_bus,
    reset_event_bus,
)
from .game_log import GameLog, LogCategory, LogEntry

__all__ = [
    # Schema
    "SEASON_ORDER",
    "ActiveEffect",
    "ChallengeCategory",
    "ChallengeSpec",
    "CompanionBondState",
    "CompanionPhase",
    "Complexity",
    "EffectKind",
    "GameResult",
    "ManifestationKind",
    "OutcomeTier",
    "Season",
    "SessionState",
    "Severity",
    "ThreatState",
    "TurnPhase",
    "next_season",
    # Catalog
    "Catalog",
    "CatalogError",
    # Events
    "EventBus",
    "EventType",
    "GameEvent",
    "get_event_bus",
    "reset_event_bus",
    # Log
    "GameLog",
    "LogCategory",
    "LogEntry",
]
