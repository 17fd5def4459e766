"""
Challenge resolution engine.

resolve(challenge) runs the same pipeline for every category:

1. Snapshot season, threat, roster and effects (ChallengeContext)
2. Compute difficulty and bonus from the snapshot (before rolling)
3. Roll a d8 and classify into success / partial / failure
4. Apply the uniform side effects (blessing or threat on exceptional results)
5. Apply the category strategy's rewards and penalties

Category strategies are plain data: a table mapping each category to a
bundle of pure functions. Agility and unknown categories use physical.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from ..rules.modifiers import ChallengeContext, compute_breakdown
from ..rules.outcome import ChallengeOutcome, classify_outcome
from ..state.catalog import Catalog
from ..state.event_bus import EventBus, EventType, get_event_bus
from ..state.game_log import GameLog, LogCategory
from ..state.schema import (
    ChallengeCategory,
    ChallengeSpec,
    EffectKind,
    OutcomeTier,
    SessionState,
)
from ..tools.dice import Dice
from .inventory import InventorySystem
from .threat import ThreatSystem

logger = logging.getLogger(__name__)


# ─── Strategies ──────────────────────────────────────────────

@dataclass(frozen=True)
class StrategyEffects:
    """What a category strategy asks the engine to apply."""
    resources: int = 0
    experience: int = 0
    threat_removed: int = 0
    health_lost: int = 0
    resources_lost: int = 0


# (tier, exceptional, rewarded) -> effects
OutcomeFn = Callable[[OutcomeTier, bool, bool], StrategyEffects]


@dataclass(frozen=True)
class CategoryStrategy:
    name: str
    reward_types: frozenset[str]  # Resource types this category yields
    outcome: OutcomeFn


def _physical_outcome(tier: OutcomeTier, exceptional: bool, rewarded: bool) -> StrategyEffects:
    if tier == OutcomeTier.SUCCESS:
        return StrategyEffects(resources=2 if rewarded else 0)
    if tier == OutcomeTier.PARTIAL_SUCCESS:
        return StrategyEffects(resources=1 if rewarded else 0)
    return StrategyEffects(health_lost=1)


def _mental_outcome(tier: OutcomeTier, exceptional: bool, rewarded: bool) -> StrategyEffects:
    if tier == OutcomeTier.SUCCESS:
        experience = (1 if rewarded else 0) + (1 if exceptional else 0)
        return StrategyEffects(experience=experience)
    if tier == OutcomeTier.FAILURE:
        return StrategyEffects(resources_lost=1)
    return StrategyEffects()


def _spiritual_outcome(tier: OutcomeTier, exceptional: bool, rewarded: bool) -> StrategyEffects:
    if tier == OutcomeTier.SUCCESS and rewarded:
        return StrategyEffects(threat_removed=1)
    return StrategyEffects()


def _social_outcome(tier: OutcomeTier, exceptional: bool, rewarded: bool) -> StrategyEffects:
    if tier == OutcomeTier.SUCCESS:
        return StrategyEffects(resources=2 if rewarded else 0)
    if tier == OutcomeTier.PARTIAL_SUCCESS:
        return StrategyEffects(resources=1 if rewarded else 0)
    return StrategyEffects()


PHYSICAL_STRATEGY = CategoryStrategy(
    "physical", frozenset({"crafting_base", "protective"}), _physical_outcome,
)

STRATEGIES: dict[ChallengeCategory, CategoryStrategy] = {
    ChallengeCategory.PHYSICAL: PHYSICAL_STRATEGY,
    ChallengeCategory.AGILITY: PHYSICAL_STRATEGY,
    ChallengeCategory.MENTAL: CategoryStrategy("mental", frozenset(), _mental_outcome),
    ChallengeCategory.SPIRITUAL: CategoryStrategy("spiritual", frozenset(), _spiritual_outcome),
    ChallengeCategory.SOCIAL: CategoryStrategy(
        "social", frozenset({"binding", "protective"}), _social_outcome,
    ),
}


def get_strategy(category: ChallengeCategory | str) -> CategoryStrategy:
    """Strategy for a category; anything unrecognized falls back to physical."""
    try:
        return STRATEGIES[ChallengeCategory(category)]
    except (ValueError, KeyError):
        return PHYSICAL_STRATEGY


# ─── Engine ──────────────────────────────────────────────────

class ChallengeEngine:
    """
    Resolves challenges against the session and applies their effects.

    Only the most recent outcome is kept.
    """

    def __init__(
        self,
        session: SessionState,
        catalog: Catalog,
        log: GameLog,
        dice: Dice,
        threat: ThreatSystem,
        inventory: InventorySystem,
        bus: EventBus | None = None,
    ):
        self._session = session
        self._catalog = catalog
        self._log = log
        self._dice = dice
        self._threat = threat
        self._inventory = inventory
        self._bus = bus or get_event_bus()
        self._last_outcome: ChallengeOutcome | None = None

    def get_last_outcome(self) -> ChallengeOutcome | None:
        return self._last_outcome

    def build_context(self) -> ChallengeContext:
        return ChallengeContext.from_session(self._session, self._catalog)

    def resolve(
        self,
        challenge: ChallengeSpec,
        context: ChallengeContext | None = None,
    ) -> ChallengeOutcome:
        """
        Resolve a challenge.

        Args:
            challenge: The obstacle being attempted
            context: Snapshot to resolve against; taken from the session if omitted

        Returns:
            ChallengeOutcome with the roll, classification and applied effects
        """
        context = context or self.build_context()
        breakdown = compute_breakdown(challenge, context)

        roll = self._dice.roll_d8()
        total = roll + breakdown.bonus
        tier, exceptional = classify_outcome(roll, total, breakdown.difficulty)

        outcome = ChallengeOutcome(
            challenge_name=challenge.name,
            category=breakdown.category,
            result=tier,
            exceptional=exceptional,
            roll=roll,
            bonus_total=breakdown.bonus,
            total=total,
            difficulty=breakdown.difficulty,
            breakdown=breakdown,
        )

        self._log.log(
            f"{challenge.name}: rolled {roll} + {breakdown.bonus} = {total} "
            f"vs {breakdown.difficulty}: {outcome.narrative}.",
            highlight=exceptional,
            category=LogCategory.CHALLENGE,
            details={"category": breakdown.category.value, "roll": roll},
        )

        self._apply_uniform_effects(outcome)
        self._apply_strategy(outcome, challenge)

        self._last_outcome = outcome
        self._bus.emit(
            EventType.CHALLENGE_RESOLVED,
            session_id=self._session.id,
            turn=self._session.turn,
            challenge=challenge.name,
            result=tier.value,
            exceptional=exceptional,
            roll=roll,
            total=total,
            difficulty=breakdown.difficulty,
        )
        return outcome

    def _apply_uniform_effects(self, outcome: ChallengeOutcome) -> None:
        if not outcome.exceptional:
            return
        if outcome.result == OutcomeTier.SUCCESS:
            self._session.blessing_tokens += 1
            outcome.blessing_gained = 1
            self._log.log(
                "Your exceptional success earns a blessing token.",
                highlight=True,
                category=LogCategory.CHALLENGE,
            )
        elif outcome.result == OutcomeTier.FAILURE:
            before = self._threat.tokens
            self._threat.add_threat_tokens(1, reason="exceptional failure")
            outcome.threat_added = self._threat.tokens - before

    def _reward_resources(self, challenge: ChallengeSpec, types: frozenset[str], count: int) -> list[str]:
        """Cycle deterministically through the challenge's matching rewards."""
        if count <= 0 or not challenge.reward_resources:
            return []
        candidates = [
            rid for rid in challenge.reward_resources
            if (card := self._catalog.get_resource(rid)) is not None and card.type in types
        ] or list(challenge.reward_resources)
        return [candidates[i % len(candidates)] for i in range(count)]

    def _apply_strategy(self, outcome: ChallengeOutcome, challenge: ChallengeSpec) -> None:
        strategy = get_strategy(outcome.category)
        effects = strategy.outcome(outcome.result, outcome.exceptional, challenge.resource_reward)
        session = self._session

        if effects.resources:
            hindrance = sum(
                e.strength for e in session.effects_of_kind(EffectKind.LANDSCAPE_EFFECT)
            )
            count = max(0, effects.resources - hindrance)
            rewards = self._reward_resources(challenge, strategy.reward_types, count)
            gained = self._inventory.add_resources(rewards)
            outcome.resources_gained = gained
            outcome.rewards_forfeited = len(rewards) - len(gained)
            if gained:
                self._log.log(
                    f"Collected {len(gained)} resources: {', '.join(gained)}.",
                    category=LogCategory.RESOURCE,
                )

        if effects.experience:
            session.experience += effects.experience
            outcome.experience_gained = effects.experience
            self._log.log(
                f"Your insight deepens. You gain {effects.experience} experience.",
                category=LogCategory.CHALLENGE,
            )

        if effects.threat_removed:
            before = self._threat.tokens
            self._threat.remove_threat_tokens(effects.threat_removed, reason="spiritual connection")
            outcome.threat_removed = before - self._threat.tokens

        if effects.health_lost:
            lost = min(effects.health_lost, max(0, session.health))
            session.health -= lost
            outcome.health_lost = lost
            if lost:
                self._log.log(
                    f"The ordeal costs you {lost} health.",
                    highlight=True,
                    category=LogCategory.CHALLENGE,
                )

        if effects.resources_lost:
            outcome.resources_lost = self._inventory.remove_random(effects.resources_lost)
            if outcome.resources_lost:
                self._log.log(
                    f"In your confusion you lose {', '.join(outcome.resources_lost)}.",
                    category=LogCategory.RESOURCE,
                )
