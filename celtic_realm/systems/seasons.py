"""
Season system for the Wheel of the Year.

Owns the season order, seasonal resource abundance/scarcity, passive
healing odds, and season transitions. A transition resets the
once-per-season ritual and may add threat if the player is unprepared.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..state.event_bus import EventBus, EventType, get_event_bus
from ..state.game_log import GameLog, LogCategory
from ..state.schema import Season, SessionState, next_season
from ..tools.dice import Dice

if TYPE_CHECKING:
    from .threat import ThreatSystem

logger = logging.getLogger(__name__)


# ─── Configuration ───────────────────────────────────────────

SEASON_DATA: dict[Season, dict] = {
    Season.SAMHAIN: {
        "name": "Samhain",
        "heal_chance": 0.25,
        "ritual_reduction": 2,
        "preparation": ["barrow_dust", "ogham_sticks"],
        "abundance": ["barrow_dust", "standing_stone_chips"],
        "scarcity": ["woven_reeds", "rowan_wood"],
    },
    Season.WINTERS_DEPTH: {
        "name": "Winter's Depth",
        "heal_chance": 0.10,
        "ritual_reduction": 1,
        "preparation": ["woven_reeds", "forge_cinders"],
        "abundance": ["forge_cinders", "bog_iron"],
        "scarcity": ["sacred_water", "horse_hair"],
    },
    Season.IMBOLC: {
        "name": "Imbolc",
        "heal_chance": 0.75,
        "ritual_reduction": 3,
        "preparation": ["rowan_wood", "silver_mistletoe"],
        "abundance": ["silver_mistletoe", "sacred_water"],
        "scarcity": ["barrow_dust", "forge_cinders"],
    },
    Season.BELTANE: {
        "name": "Beltane",
        "heal_chance": 0.40,
        "ritual_reduction": 2,
        "preparation": ["oak_galls", "amber_shards"],
        "abundance": ["rowan_wood", "oak_galls"],
        "scarcity": ["standing_stone_chips", "amber_shards"],
    },
    Season.LUGHNASADH: {
        "name": "Lughnasadh",
        "heal_chance": 0.50,
        "ritual_reduction": 3,
        "preparation": ["sacred_water", "horse_hair"],
        "abundance": ["horse_hair", "woven_reeds", "ogham_sticks"],
        "scarcity": ["bog_iron", "silver_mistletoe"],
    },
}


def season_name(season: Season) -> str:
    return SEASON_DATA[season]["name"]


class SeasonSystem:
    """
    Seasonal rules bound to one session.

    The threat system is optional so the season wheel can be used
    on its own; when present it is told about every transition.
    """

    def __init__(
        self,
        session: SessionState,
        log: GameLog,
        dice: Dice,
        threat: "ThreatSystem | None" = None,
        bus: EventBus | None = None,
    ):
        self._session = session
        self._log = log
        self._dice = dice
        self._threat = threat
        self._bus = bus or get_event_bus()

    def set_threat_system(self, threat: "ThreatSystem") -> None:
        self._threat = threat

    @property
    def current(self) -> Season:
        return self._session.season

    def is_abundant(self, resource_id: str) -> bool:
        return resource_id in SEASON_DATA[self.current]["abundance"]

    def is_scarce(self, resource_id: str) -> bool:
        return resource_id in SEASON_DATA[self.current]["scarcity"]

    def preparation_items(self, season: Season | None = None) -> list[str]:
        return list(SEASON_DATA[season or self.current]["preparation"])

    def advance_season(self, reason: str = "") -> Season:
        """Turn the wheel to the next season."""
        old = self._session.season
        new = next_season(old)
        self._session.season = new

        message = f"The season turns from {season_name(old)} to {season_name(new)}."
        if reason:
            message = f"{message} ({reason})"
        self._log.log(message, highlight=True, category=LogCategory.SEASON)
        self._bus.emit(
            EventType.SEASON_CHANGED,
            session_id=self._session.id,
            turn=self._session.turn,
            before=old.value,
            after=new.value,
            reason=reason,
        )

        if self._threat is not None:
            self._threat.on_season_change(new)
        return new

    def passive_heal(self) -> int:
        """
        Season-dependent chance to recover 1 health.

        Returns:
            Health recovered (0 or 1)
        """
        session = self._session
        if session.health <= 0 or session.health >= session.max_health:
            return 0

        chance = SEASON_DATA[self.current]["heal_chance"]
        if not self._dice.chance(chance):
            return 0

        session.health += 1
        self._log.log(
            f"The gentle touch of {season_name(self.current)} restores 1 health.",
            category=LogCategory.SEASON,
            details={"health": session.health},
        )
        return 1
