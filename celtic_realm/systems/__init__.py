"""Game systems: each owns one slice of the rules and mutates the session."""

from .seasons import SEASON_DATA, SeasonSystem, season_name
from .inventory import GatherResult, InventorySystem
from .threat import (
    OTHERWORLDLY_MANIFESTATIONS,
    THREAT_EVENTS,
    ManifestationResult,
    ThreatEvent,
    ThreatSystem,
    eligible_events,
)
from .companions import CompanionSystem, UpkeepReport
from .challenges import ChallengeEngine, CategoryStrategy, get_strategy
from .journey import JourneySystem
from .crafting import CraftCheck, CraftingSystem, CraftResult
from .victory import StandardVictoryEvaluator, Verdict, VictoryEvaluator
from .turns import (
    NEXT_PHASE,
    AvoidResult,
    InvalidPhaseError,
    TurnController,
    TurnError,
)

__all__ = [
    # Seasons
    "SEASON_DATA",
    "SeasonSystem",
    "season_name",
    # Inventory
    "GatherResult",
    "InventorySystem",
    # Threat
    "OTHERWORLDLY_MANIFESTATIONS",
    "THREAT_EVENTS",
    "ManifestationResult",
    "ThreatEvent",
    "ThreatSystem",
    "eligible_events",
    # Companions
    "CompanionSystem",
    "UpkeepReport",
    # Challenges
    "ChallengeEngine",
    "CategoryStrategy",
    "get_strategy",
    # Journey / crafting
    "JourneySystem",
    "CraftCheck",
    "CraftingSystem",
    "CraftResult",
    # Victory
    "StandardVictoryEvaluator",
    "Verdict",
    "VictoryEvaluator",
    # Turns
    "NEXT_PHASE",
    "AvoidResult",
    "InvalidPhaseError",
    "TurnController",
    "TurnError",
]
