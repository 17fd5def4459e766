"""
Game engine facade.

Builds one session and wires every system around it. Front ends talk to
GameEngine; the systems never know about each other beyond what is
passed to their constructors.

Usage:
    engine = GameEngine(rng=random.Random(7))
    engine.advance_phase()                 # → character selection
    engine.select_character("hedge_witch")
    while not engine.is_over:
        engine.advance_phase()
"""

from __future__ import annotations

import logging

from .config import EngineConfig, resolve_config
from .rules.modifiers import ChallengeContext
from .rules.outcome import ChallengeOutcome
from .state.catalog import Catalog
from .state.event_bus import EventBus, get_event_bus
from .state.game_log import GameLog
from .state.schema import ChallengeSpec, Season, SessionState, TurnPhase
from .systems.challenges import ChallengeEngine
from .systems.companions import CompanionSystem
from .systems.crafting import CraftCheck, CraftingSystem, CraftResult
from .systems.inventory import GatherResult, InventorySystem
from .systems.journey import JourneySystem
from .systems.seasons import SeasonSystem
from .systems.threat import ThreatSystem
from .systems.turns import AvoidResult, TurnController
from .systems.victory import Verdict, VictoryEvaluator
from .tools.dice import Dice, RandomSource

logger = logging.getLogger(__name__)


class GameEngine:
    """
    One playthrough: session state plus the systems that act on it.

    Args:
        catalog: Card catalog; the bundled one if omitted
        rng: Random source for every roll; the random module if omitted
        config: Overrides for rule constants
        evaluator: Victory/defeat evaluator; the standard rules if omitted
        journey_path: Landscape ids to walk; the catalog's path if omitted
        bus: Event bus; the shared one if omitted
    """

    def __init__(
        self,
        catalog: Catalog | None = None,
        rng: RandomSource | None = None,
        config: EngineConfig | None = None,
        evaluator: VictoryEvaluator | None = None,
        journey_path: list[str] | None = None,
        bus: EventBus | None = None,
    ):
        self.config = resolve_config(config)
        self.catalog = catalog or Catalog()
        self.bus = bus or get_event_bus()
        self.dice = Dice(rng)
        self.log = GameLog(limit=self.config["log_limit"])
        self.session = SessionState(season=Season(self.config["start_season"]))

        # Leaves first; seasons learns about threat once it exists
        self.seasons = SeasonSystem(self.session, self.log, self.dice, bus=self.bus)
        self.inventory = InventorySystem(
            self.session, self.catalog, self.log, self.dice, self.seasons,
        )
        self.threat = ThreatSystem(
            self.session, self.log, self.dice, self.inventory,
            config=self.config, bus=self.bus,
        )
        self.seasons.set_threat_system(self.threat)
        self.threat.set_season_advancer(lambda reason: self.seasons.advance_season(reason))

        self.companions = CompanionSystem(
            self.session, self.catalog, self.log, self.inventory,
            config=self.config, bus=self.bus,
        )
        self.challenges = ChallengeEngine(
            self.session, self.catalog, self.log, self.dice,
            self.threat, self.inventory, bus=self.bus,
        )
        self.journey = JourneySystem(
            self.session, self.catalog, self.log, self.seasons,
            config=self.config, bus=self.bus,
        )
        self.crafting = CraftingSystem(
            self.session, self.catalog, self.log, self.inventory, self.threat, bus=self.bus,
        )
        self.turns = TurnController(
            self.session,
            self.catalog,
            self.log,
            seasons=self.seasons,
            threat=self.threat,
            inventory=self.inventory,
            companions=self.companions,
            challenges=self.challenges,
            journey=self.journey,
            crafting=self.crafting,
            evaluator=evaluator,
            journey_path=journey_path,
            config=self.config,
            bus=self.bus,
        )
        logger.debug("Engine ready for session %s", self.session.id)

    @property
    def is_over(self) -> bool:
        return self.session.phase == TurnPhase.GAME_OVER

    # ─── Challenges ──────────────────────────────────────────────

    def resolve(
        self,
        challenge: ChallengeSpec,
        context: ChallengeContext | None = None,
    ) -> ChallengeOutcome:
        return self.challenges.resolve(challenge, context)

    def get_last_outcome(self) -> ChallengeOutcome | None:
        return self.challenges.get_last_outcome()

    def avoid_challenge(self, resource_ids: list[str] | None = None) -> AvoidResult:
        return self.turns.avoid_challenge(resource_ids)

    # ─── Phases ──────────────────────────────────────────────────

    def advance_phase(self) -> TurnPhase:
        return self.turns.advance()

    def set_phase(self, phase: TurnPhase) -> TurnPhase:
        return self.turns.set_phase(phase)

    def get_current_phase(self) -> TurnPhase:
        return self.turns.phase

    def can_advance_to(self, phase: TurnPhase) -> bool:
        return self.turns.can_advance_to(phase)

    def evaluate(self) -> Verdict:
        """Ask the evaluator about the session without changing phase."""
        return self.turns.evaluator.evaluate(self.session)

    # ─── Threat ──────────────────────────────────────────────────

    def add_threat_tokens(self, amount: int, reason: str = "") -> int:
        return self.threat.add_threat_tokens(amount, reason)

    def remove_threat_tokens(self, amount: int, reason: str = "") -> int:
        return self.threat.remove_threat_tokens(amount, reason)

    def visit_sacred_site(self) -> int:
        """Seek the blessing of the current landscape, if it is sacred."""
        if not self.session.current_landscape:
            return 0
        return self.threat.visit_sacred_site(self.session.current_landscape)

    def use_protective_resource(self, resource_id: str) -> bool:
        return self.threat.use_protective_resource(resource_id)

    def perform_seasonal_ritual(self) -> int:
        return self.threat.perform_seasonal_ritual()

    def make_offering(self, resource_id: str) -> bool:
        return self.threat.make_offering(resource_id)

    # ─── Companions ──────────────────────────────────────────────

    def bond_companion(self, companion_id: str, resource_id: str) -> bool:
        return self.companions.bond(companion_id, resource_id)

    def feed_companion(self, companion_id: str, resource_id: str) -> bool:
        return self.companions.feed(companion_id, resource_id)

    def release_companion(self, companion_id: str) -> bool:
        return self.companions.release(companion_id)

    # ─── Character, resources, crafting ──────────────────────────

    def select_character(self, character_id: str) -> bool:
        return self.turns.select_character(character_id)

    def gather(self, resource_id: str) -> GatherResult:
        return self.turns.gather(resource_id)

    def can_craft(self, item_id: str) -> CraftCheck:
        return self.crafting.can_craft(item_id)

    def craft(self, item_id: str) -> CraftResult:
        return self.turns.craft(item_id)

    def rest(self) -> int:
        return self.turns.rest()
