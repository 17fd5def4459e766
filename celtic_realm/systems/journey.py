"""
Journey system: movement along the landscape path.

The path is a fixed sequence of landscape ids. Entering a landscape
records it in the visited set (idempotent), applies its entry effects,
and turns the season every few newly visited landscapes.
"""

from __future__ import annotations

import logging

from ..config import EngineConfig, resolve_config
from ..state.catalog import Catalog
from ..state.event_bus import EventBus, EventType, get_event_bus
from ..state.game_log import GameLog, LogCategory
from ..state.schema import ChallengeSpec, LandscapeCard, SessionState
from .seasons import SeasonSystem

logger = logging.getLogger(__name__)


class JourneySystem:
    """Moves the player along the journey path."""

    def __init__(
        self,
        session: SessionState,
        catalog: Catalog,
        log: GameLog,
        seasons: SeasonSystem,
        config: EngineConfig | None = None,
        bus: EventBus | None = None,
    ):
        self._session = session
        self._catalog = catalog
        self._log = log
        self._seasons = seasons
        self._config = resolve_config(config)
        self._bus = bus or get_event_bus()

    @property
    def current_landscape(self) -> LandscapeCard | None:
        lid = self._session.current_landscape
        return self._catalog.get_landscape(lid) if lid else None

    @property
    def next_landscape_id(self) -> str | None:
        position = self._session.journey_position + 1
        path = self._session.journey_path
        return path[position] if 0 <= position < len(path) else None

    @property
    def has_unexplored_path(self) -> bool:
        return self.next_landscape_id is not None

    @property
    def is_complete(self) -> bool:
        """True once every landscape on the path has been visited."""
        path = self._session.journey_path
        visited = set(self._session.visited_landscapes)
        return bool(path) and all(lid in visited for lid in path)

    def start(self, path: list[str] | None = None) -> bool:
        """Set the path and enter its first landscape."""
        path = list(path) if path is not None else self._catalog.journey_path
        path = [lid for lid in path if self._catalog.get_landscape(lid) is not None]
        if not path:
            logger.warning("Journey path has no known landscapes")
            return False

        self._session.journey_path = path
        self._session.journey_position = 0
        self._log.log(
            f"Your journey begins. {len(path)} landscapes lie ahead.",
            highlight=True,
            category=LogCategory.JOURNEY,
        )
        return self.enter_landscape(path[0])

    def move_to_next_landscape(self) -> str | None:
        """
        Advance one step along the path.

        Returns:
            The landscape id entered, or None at the end of the path
        """
        next_id = self.next_landscape_id
        if next_id is None:
            self._log.log("There is no further path to follow.", category=LogCategory.JOURNEY)
            return None
        self._session.journey_position += 1
        self.enter_landscape(next_id)
        return next_id

    def enter_landscape(self, landscape_id: str) -> bool:
        """
        Enter a landscape and apply its entry effects.

        Entry effects fire on every entry, including revisits. The season
        turns only when a new visit makes the count a multiple of
        ``season_change_every``.
        """
        landscape = self._catalog.get_landscape(landscape_id)
        if landscape is None:
            logger.warning("Unknown landscape: %s", landscape_id)
            return False

        session = self._session
        session.current_landscape = landscape_id
        newly_visited = session.add_visited_landscape(landscape_id)

        self._log.log(
            f"You arrive at {landscape.name}.",
            category=LogCategory.JOURNEY,
            details={"landscape": landscape_id, "first_visit": newly_visited},
        )
        self._apply_entry_effects(landscape)
        self._bus.emit(
            EventType.LANDSCAPE_ENTERED,
            session_id=session.id,
            turn=session.turn,
            landscape=landscape_id,
            first_visit=newly_visited,
        )

        every = self._config["season_change_every"]
        if newly_visited and every > 0 and len(session.visited_landscapes) % every == 0:
            self._seasons.advance_season(reason="the journey carries you onward")
        return True

    def _apply_entry_effects(self, landscape: LandscapeCard) -> None:
        session = self._session
        if landscape.healing and 0 < session.health < session.max_health:
            healed = min(landscape.healing, session.max_health - session.health)
            session.health += healed
            self._log.log(
                f"The waters of {landscape.name} restore {healed} health.",
                category=LogCategory.JOURNEY,
            )
        unbonded = [c for c in landscape.companions if c not in session.companions]
        if unbonded:
            self._log.log(
                f"Animals watch you here: {', '.join(unbonded)}.",
                category=LogCategory.JOURNEY,
            )

    def current_challenge(self) -> ChallengeSpec | None:
        landscape = self.current_landscape
        return ChallengeSpec.from_landscape(landscape) if landscape else None
