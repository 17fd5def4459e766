"""
Turn-phase controller for Celtic Realm.

Owns the phase state machine and sequences each turn:

    SETUP → CHARACTER_SELECTION → SEASONAL_ASSESSMENT → THREAT_LEVEL_CHECK
    → LANDSCAPE_CHALLENGE → CHALLENGE_RESOLUTION → RESOURCE_MANAGEMENT
    → ANIMAL_COMPANION → CRAFTING → JOURNEY_PROGRESSION → EXPLORATION
    → (back to SEASONAL_ASSESSMENT)

GAME_OVER is absorbing and can be entered from any phase once the
victory evaluator returns a verdict.

Design principles:
- The controller sequences and delegates; the systems do the rules.
- Entering a phase runs that phase's work synchronously, to completion.
- Leaving EXPLORATION is the turn boundary: otherworldly check, journey
  step, verdict, then the next turn begins.
- Each phase change is emitted on the EventBus.

Usage:
    controller = TurnController(session, log, systems...)
    controller.advance()                       # SETUP → CHARACTER_SELECTION
    controller.select_character("hedge_witch")
    controller.advance()                       # → SEASONAL_ASSESSMENT
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable

from ..config import EngineConfig, resolve_config
from ..rules.outcome import ChallengeOutcome
from ..state.catalog import Catalog
from ..state.event_bus import EventBus, EventType, get_event_bus
from ..state.game_log import GameLog, LogCategory
from ..state.schema import ChallengeSpec, GameResult, SessionState, TurnPhase
from .challenges import ChallengeEngine
from .companions import CompanionSystem, UpkeepReport
from .crafting import CraftingSystem, CraftResult
from .inventory import GatherResult, InventorySystem
from .journey import JourneySystem
from .seasons import SeasonSystem
from .threat import ManifestationResult, ThreatSystem
from .victory import StandardVictoryEvaluator, Verdict, VictoryEvaluator

logger = logging.getLogger(__name__)


# Fixed successor of every phase. GAME_OVER has none.
NEXT_PHASE: dict[TurnPhase, TurnPhase] = {
    TurnPhase.SETUP: TurnPhase.CHARACTER_SELECTION,
    TurnPhase.CHARACTER_SELECTION: TurnPhase.SEASONAL_ASSESSMENT,
    TurnPhase.SEASONAL_ASSESSMENT: TurnPhase.THREAT_LEVEL_CHECK,
    TurnPhase.THREAT_LEVEL_CHECK: TurnPhase.LANDSCAPE_CHALLENGE,
    TurnPhase.LANDSCAPE_CHALLENGE: TurnPhase.CHALLENGE_RESOLUTION,
    TurnPhase.CHALLENGE_RESOLUTION: TurnPhase.RESOURCE_MANAGEMENT,
    TurnPhase.RESOURCE_MANAGEMENT: TurnPhase.ANIMAL_COMPANION,
    TurnPhase.ANIMAL_COMPANION: TurnPhase.CRAFTING,
    TurnPhase.CRAFTING: TurnPhase.JOURNEY_PROGRESSION,
    TurnPhase.JOURNEY_PROGRESSION: TurnPhase.EXPLORATION,
    TurnPhase.EXPLORATION: TurnPhase.SEASONAL_ASSESSMENT,
}


def format_phase(phase: TurnPhase) -> str:
    """Human-readable phase name, e.g. 'Landscape Challenge'."""
    return phase.value.replace("_", " ").title()


class TurnError(Exception):
    """Error during turn processing."""
    pass


class InvalidPhaseError(TurnError):
    """Attempted operation not valid in current phase."""
    def __init__(self, current: TurnPhase, attempted: str):
        self.current = current
        self.attempted = attempted
        super().__init__(
            f"Cannot {attempted} during {current.value} phase."
        )


@dataclass
class AvoidResult:
    success: bool
    spent: list[str] = field(default_factory=list)
    reason: str = ""


class TurnController:
    """
    Sequences the turn. Delegates, never resolves.

    Responsibilities:
    - Phase state machine with a fixed successor table
    - Phase entry work and the turn boundary
    - Phase-bound player actions
    - Event emission for every phase change

    NOT responsible for:
    - Challenge rules (ChallengeEngine)
    - Threat accounting (ThreatSystem)
    - Companion loyalty (CompanionSystem)
    - Deciding who won (VictoryEvaluator)
    """

    def __init__(
        self,
        session: SessionState,
        catalog: Catalog,
        log: GameLog,
        seasons: SeasonSystem,
        threat: ThreatSystem,
        inventory: InventorySystem,
        companions: CompanionSystem,
        challenges: ChallengeEngine,
        journey: JourneySystem,
        crafting: CraftingSystem,
        evaluator: VictoryEvaluator | None = None,
        journey_path: list[str] | None = None,
        config: EngineConfig | None = None,
        bus: EventBus | None = None,
    ):
        self._session = session
        self._catalog = catalog
        self._log = log
        self._seasons = seasons
        self._threat = threat
        self._inventory = inventory
        self._companions = companions
        self._challenges = challenges
        self._journey = journey
        self._crafting = crafting
        self._config = resolve_config(config)
        self._evaluator: VictoryEvaluator = evaluator or StandardVictoryEvaluator(self._config)
        self._journey_path = journey_path
        self._bus = bus or get_event_bus()

        # Per-turn working state
        self._staged_challenge: ChallengeSpec | None = None
        self._challenge_avoided = False
        self._last_manifestation: ManifestationResult | None = None
        self._last_upkeep: UpkeepReport | None = None

        self._entry_handlers: dict[TurnPhase, Callable[[], None]] = {
            TurnPhase.SEASONAL_ASSESSMENT: self._enter_seasonal_assessment,
            TurnPhase.THREAT_LEVEL_CHECK: self._enter_threat_level_check,
            TurnPhase.LANDSCAPE_CHALLENGE: self._enter_landscape_challenge,
            TurnPhase.CHALLENGE_RESOLUTION: self._enter_challenge_resolution,
            TurnPhase.RESOURCE_MANAGEMENT: self._enter_resource_management,
            TurnPhase.ANIMAL_COMPANION: self._enter_animal_companion,
            TurnPhase.CRAFTING: self._enter_crafting,
            TurnPhase.JOURNEY_PROGRESSION: self._enter_journey_progression,
            TurnPhase.EXPLORATION: self._enter_exploration,
        }
        self._log.turn = session.turn

    @property
    def phase(self) -> TurnPhase:
        """Current phase of the turn state machine."""
        return self._session.phase

    current_phase = phase

    @property
    def session(self) -> SessionState:
        return self._session

    @property
    def staged_challenge(self) -> ChallengeSpec | None:
        return self._staged_challenge

    @property
    def last_manifestation(self) -> ManifestationResult | None:
        return self._last_manifestation

    @property
    def last_upkeep(self) -> UpkeepReport | None:
        return self._last_upkeep

    def get_last_outcome(self) -> ChallengeOutcome | None:
        return self._challenges.get_last_outcome()

    @property
    def evaluator(self) -> VictoryEvaluator:
        return self._evaluator

    def set_evaluator(self, evaluator: VictoryEvaluator) -> None:
        """Register the victory/defeat evaluator."""
        self._evaluator = evaluator

    def _require_phase(self, phase: TurnPhase, attempted: str) -> None:
        if self._session.phase != phase:
            raise InvalidPhaseError(self._session.phase, attempted)

    # ─── Phase machine ───────────────────────────────────────────

    def can_advance_to(self, phase: TurnPhase) -> bool:
        """Whether the controller may enter ``phase`` right now."""
        session = self._session
        if session.phase == TurnPhase.GAME_OVER:
            return False
        if phase == TurnPhase.JOURNEY_PROGRESSION and session.health <= 0:
            return False
        if session.phase == TurnPhase.CHARACTER_SELECTION and not session.has_character:
            return False
        return True

    def advance(self) -> TurnPhase:
        """
        Move to the next phase and run its entry work.

        Returns:
            The phase the controller is in afterwards
        """
        current = self._session.phase
        if current == TurnPhase.GAME_OVER:
            return current

        target = NEXT_PHASE[current]
        if not self.can_advance_to(target):
            self._log.log(
                f"Cannot advance to {format_phase(target)} yet.",
                category=LogCategory.PHASE,
            )
            if target == TurnPhase.JOURNEY_PROGRESSION:
                verdict = self._evaluator.evaluate(self._session)
                if verdict.is_over:
                    self._end_game(verdict)
            return self._session.phase

        if current == TurnPhase.CHARACTER_SELECTION and self._session.journey_position < 0:
            self._journey.start(self._journey_path)

        if current == TurnPhase.EXPLORATION:
            verdict = self._turn_boundary()
            if verdict.is_over:
                self._end_game(verdict)
                return self._session.phase

        self._enter(target)
        return self._session.phase

    def set_phase(self, phase: TurnPhase) -> TurnPhase:
        """Jump directly to a phase and run its entry work."""
        if self._session.phase == TurnPhase.GAME_OVER:
            self._log.log("The game is over.", category=LogCategory.PHASE)
            return self._session.phase
        if phase == TurnPhase.GAME_OVER:
            self._end_game(self._evaluator.evaluate(self._session))
            return self._session.phase
        self._enter(phase)
        return self._session.phase

    def _enter(self, phase: TurnPhase) -> None:
        before = self._session.phase
        self._session.phase = phase
        self._log.log(
            f"{format_phase(phase)} phase.",
            category=LogCategory.PHASE,
        )
        self._bus.emit(
            EventType.PHASE_CHANGED,
            session_id=self._session.id,
            turn=self._session.turn,
            before=before.value,
            after=phase.value,
        )
        handler = self._entry_handlers.get(phase)
        if handler is not None:
            handler()

    def _turn_boundary(self) -> Verdict:
        """End the current turn; start the next unless the game is decided."""
        session = self._session

        self._threat.process_end_of_turn()
        if self._journey.has_unexplored_path:
            self._journey.move_to_next_landscape()

        verdict = self._evaluator.evaluate(session)
        if verdict.is_over:
            return verdict

        session.turn += 1
        session.has_gathered = False
        session.has_crafted = False
        session.has_rested = False
        self._threat.reset_turn()
        self._log.turn = session.turn
        self._bus.emit(EventType.TURN_STARTED, session_id=session.id, turn=session.turn)
        return verdict

    def _end_game(self, verdict: Verdict) -> None:
        session = self._session
        if not verdict.is_over:
            # Forced end without a decided verdict
            verdict = Verdict(GameResult.DEFEAT, "The journey was abandoned.")
        session.result = verdict.result
        session.result_reason = verdict.reason
        before = session.phase
        session.phase = TurnPhase.GAME_OVER
        self._log.log(
            f"{verdict.result.value.upper()}: {verdict.reason}",
            highlight=True,
            category=LogCategory.PHASE,
        )
        self._bus.emit(
            EventType.PHASE_CHANGED,
            session_id=session.id,
            turn=session.turn,
            before=before.value,
            after=TurnPhase.GAME_OVER.value,
        )
        self._bus.emit(
            EventType.GAME_OVER,
            session_id=session.id,
            turn=session.turn,
            result=verdict.result.value,
            reason=verdict.reason,
        )

    # ─── Phase entry work ────────────────────────────────────────

    def _enter_seasonal_assessment(self) -> None:
        self._seasons.passive_heal()
        for effect in self._session.tick_effects():
            self._log.log(
                f"{effect.description or effect.id} fades.",
                category=LogCategory.SEASON,
            )

    def _enter_threat_level_check(self) -> None:
        self._last_manifestation = self._threat.check_for_manifestation()

    def _enter_landscape_challenge(self) -> None:
        self._challenge_avoided = False
        self._staged_challenge = self._journey.current_challenge()
        if self._staged_challenge is not None:
            self._log.log(
                f"Challenge ahead: {self._staged_challenge.name} "
                f"({self._staged_challenge.category}, difficulty {self._staged_challenge.base_difficulty}).",
                category=LogCategory.CHALLENGE,
            )

    def _enter_challenge_resolution(self) -> None:
        challenge = self._staged_challenge
        self._staged_challenge = None
        if challenge is None or self._challenge_avoided:
            return
        self._challenges.resolve(challenge)

    def _enter_resource_management(self) -> None:
        self._session.has_gathered = False

    def _enter_animal_companion(self) -> None:
        self._last_upkeep = self._companions.upkeep()

    def _enter_crafting(self) -> None:
        self._session.has_crafted = False

    def _enter_journey_progression(self) -> None:
        self._session.has_rested = False

    def _enter_exploration(self) -> None:
        next_id = self._journey.next_landscape_id
        landscape = self._catalog.get_landscape(next_id) if next_id else None
        if landscape is not None:
            self._log.log(f"The path ahead leads to {landscape.name}.", category=LogCategory.JOURNEY)

    # ─── Player actions ──────────────────────────────────────────

    def select_character(self, character_id: str) -> bool:
        """Choose the character; sets health, capacity and starting items."""
        self._require_phase(TurnPhase.CHARACTER_SELECTION, "select a character")
        character = self._catalog.get_character(character_id)
        if character is None:
            logger.warning("Unknown character: %s", character_id)
            return False

        session = self._session
        session.character_id = character.id
        session.health = character.health
        session.max_health = character.health
        session.resource_capacity = character.resource_capacity
        session.inventory = list(character.starting_items)[: character.resource_capacity]
        self._log.log(
            f"You will journey as the {character.name}.",
            highlight=True,
            category=LogCategory.SYSTEM,
        )
        return True

    def avoid_challenge(self, resource_ids: list[str] | None = None) -> AvoidResult:
        """Spend resources to bypass the staged landscape challenge."""
        self._require_phase(TurnPhase.LANDSCAPE_CHALLENGE, "avoid a challenge")
        if self._staged_challenge is None or self._challenge_avoided:
            return AvoidResult(False, reason="There is no challenge to avoid.")

        cost = self._config["avoid_challenge_cost"]
        spent = self._inventory.spend(cost, resource_ids)
        if spent is None:
            self._log.log(
                f"You need {cost} resources to find a way around.",
                category=LogCategory.CHALLENGE,
            )
            return AvoidResult(False, reason=f"Need {cost} resources")

        self._challenge_avoided = True
        self._log.log(
            f"You spend {', '.join(spent)} to avoid {self._staged_challenge.name}.",
            category=LogCategory.CHALLENGE,
        )
        return AvoidResult(True, spent=spent)

    def gather(self, resource_id: str) -> GatherResult:
        self._require_phase(TurnPhase.RESOURCE_MANAGEMENT, "gather resources")
        return self._inventory.gather(resource_id)

    def craft(self, item_id: str) -> CraftResult:
        self._require_phase(TurnPhase.CRAFTING, "craft")
        return self._crafting.craft(item_id)

    def rest(self) -> int:
        """Rest on the road: recover 1 health, once per turn."""
        self._require_phase(TurnPhase.JOURNEY_PROGRESSION, "rest")
        session = self._session
        if session.has_rested or session.health >= session.max_health:
            return 0
        session.health += 1
        session.has_rested = True
        self._log.log("You rest by the roadside and recover 1 health.", category=LogCategory.JOURNEY)
        return 1
