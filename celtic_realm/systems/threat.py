"""
Threat & manifestation system.

Threat tokens accumulate from failures, crafting and unprepared season
changes. The derived threat level (tokens // 3) gates which random
events can fire; from 10 tokens the otherworldly table is consulted at
the end of every turn.

Nothing here raises. Bad amounts are ignored, exhausted limits are
logged, and a prevention effect skips manifestations without a roll.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from ..config import EngineConfig, resolve_config
from ..state.event_bus import EventBus, EventType, get_event_bus
from ..state.game_log import GameLog, LogCategory
from ..state.schema import (
    ActiveEffect,
    Complexity,
    EffectKind,
    ManifestationKind,
    Season,
    SessionState,
    Severity,
)
from ..tools.dice import Dice
from .inventory import InventorySystem
from .seasons import SEASON_DATA, season_name

logger = logging.getLogger(__name__)


# ─── Effect ids ──────────────────────────────────────────────

PREVENTION_EFFECT_ID = "threat_prevention"
WARD_EFFECT_ID = "threat_prevention_rowan"

ONGOING_EFFECT_IDS: dict[ManifestationKind, str] = {
    ManifestationKind.CHALLENGE_DIFFICULTY: "threat_challenge_difficulty",
    ManifestationKind.COMPANION_EFFECT: "threat_companion_effect",
    ManifestationKind.LANDSCAPE_EFFECT: "threat_landscape_effect",
    ManifestationKind.SEASONAL_SHIFT: "threat_seasonal_shift",
}

ONGOING_EFFECT_KINDS: dict[ManifestationKind, EffectKind] = {
    ManifestationKind.CHALLENGE_DIFFICULTY: EffectKind.CHALLENGE_DIFFICULTY,
    ManifestationKind.COMPANION_EFFECT: EffectKind.COMPANION_EFFECT,
    ManifestationKind.LANDSCAPE_EFFECT: EffectKind.LANDSCAPE_EFFECT,
    ManifestationKind.SEASONAL_SHIFT: EffectKind.SEASONAL_SHIFT,
}


# ─── Tables ──────────────────────────────────────────────────

@dataclass(frozen=True)
class ThreatEvent:
    """One row of a manifestation table."""
    id: str
    name: str
    severity: Severity
    kind: ManifestationKind
    strength: int
    duration: int
    description: str = ""
    counter_resource: str | None = None  # Consumed to negate the event
    challenge_type: str | None = None    # Scopes a difficulty effect
    requires_offering: bool = False      # Lingers until an offering is made
    duration_die: int | None = None      # Duration rolled on this die instead


THREAT_EVENTS: list[ThreatEvent] = [
    # Minor
    ThreatEvent("unsettling_whispers", "Unsettling Whispers", Severity.MINOR,
                ManifestationKind.CHALLENGE_DIFFICULTY, 1, 2,
                "Voices on the wind unsettle your concentration."),
    ThreatEvent("sudden_chill", "Sudden Chill", Severity.MINOR,
                ManifestationKind.HEALTH_LOSS, 1, 1,
                "An unnatural cold seeps into your bones."),
    ThreatEvent("misplaced_supplies", "Misplaced Supplies", Severity.MINOR,
                ManifestationKind.RESOURCE_LOSS, 1, 1,
                "Something from your pack has gone missing."),
    # Moderate
    ThreatEvent("otherworldly_fog", "Otherworldly Fog", Severity.MODERATE,
                ManifestationKind.LANDSCAPE_EFFECT, 2, 3,
                "A thick fog rolls in, hiding the land's bounty."),
    ThreatEvent("animal_unrest", "Animal Unrest", Severity.MODERATE,
                ManifestationKind.COMPANION_EFFECT, 2, 2,
                "Your companions grow restless and skittish."),
    ThreatEvent("weakening_boundaries", "Weakening Boundaries", Severity.MODERATE,
                ManifestationKind.CHALLENGE_DIFFICULTY, 2, 3,
                "The boundary between worlds thins, making every trial harder."),
    # Major
    ThreatEvent("seasonal_disruption", "Seasonal Disruption", Severity.MAJOR,
                ManifestationKind.SEASONAL_SHIFT, 3, 4,
                "The Wheel of the Year lurches forward."),
    ThreatEvent("otherworldly_manifestation", "Otherworldly Manifestation", Severity.MAJOR,
                ManifestationKind.HEALTH_LOSS, 3, 3,
                "A powerful entity from beyond drains your life force."),
    ThreatEvent("resource_blight", "Resource Blight", Severity.MAJOR,
                ManifestationKind.RESOURCE_LOSS, 3, 4,
                "A creeping blight spoils your gathered resources."),
]

# Indexed by a d8 roll (1-based)
OTHERWORLDLY_MANIFESTATIONS: list[ThreatEvent] = [
    ThreatEvent("mist_wraith", "Mist Wraith", Severity.MAJOR,
                ManifestationKind.LANDSCAPE_EFFECT, 2, 3,
                "A wraith of mist clings to the land.",
                counter_resource="amber_shards"),
    ThreatEvent("barrow_wight", "Barrow Wight", Severity.MAJOR,
                ManifestationKind.HEALTH_LOSS, 2, 3,
                "A wight rises from its barrow and drains your strength."),
    ThreatEvent("faerie_enticement", "Faerie Enticement", Severity.MAJOR,
                ManifestationKind.CHALLENGE_DIFFICULTY, 2, 2,
                "Faerie glamours cloud your thoughts.",
                challenge_type="mental"),
    ThreatEvent("wild_hunt", "The Wild Hunt", Severity.MAJOR,
                ManifestationKind.CHALLENGE_DIFFICULTY, 3, 1,
                "The Wild Hunt rides, and every step becomes a chase.",
                challenge_type="physical", duration_die=4),
    ThreatEvent("ancient_guardian", "Ancient Guardian", Severity.MAJOR,
                ManifestationKind.LANDSCAPE_EFFECT, 3, 2,
                "An ancient guardian bars the land until appeased.",
                requires_offering=True),
    ThreatEvent("boundary_collapse", "Boundary Collapse", Severity.MAJOR,
                ManifestationKind.SEASONAL_SHIFT, 3, 4,
                "The boundary between seasons collapses."),
    ThreatEvent("spirit_possession", "Spirit Possession", Severity.MAJOR,
                ManifestationKind.COMPANION_EFFECT, 3, 3,
                "A spirit takes hold of your companions."),
    ThreatEvent("cosmic_imbalance", "Cosmic Imbalance", Severity.MAJOR,
                ManifestationKind.CHALLENGE_DIFFICULTY, 2, 4,
                "The balance of the cosmos tilts against you."),
]

# Sacred sites: landscape id -> (min, max) tokens removed
SACRED_SITES: dict[str, tuple[int, int]] = {
    "moonlit_loch": (1, 3),
    "druids_sanctuary": (2, 2),
}

CRAFTING_THREAT: dict[Complexity, int] = {
    Complexity.SIMPLE: 0,
    Complexity.COMPLEX: 1,
    Complexity.ADVANCED: 2,
    Complexity.LEGENDARY: 3,
}

SEVERITY_BY_LEVEL: dict[int, set[Severity]] = {
    1: {Severity.MINOR},
    2: {Severity.MINOR, Severity.MODERATE},
    3: {Severity.MINOR, Severity.MODERATE, Severity.MAJOR},
}


def eligible_events(level: int) -> list[ThreatEvent]:
    """Events that can fire at a threat level; the set only widens with level."""
    if level <= 0:
        return []
    severities = SEVERITY_BY_LEVEL[min(level, 3)]
    return [e for e in THREAT_EVENTS if e.severity in severities]


@dataclass
class ManifestationResult:
    """What a manifestation attempt did."""
    event: ThreatEvent | None = None
    prevented: bool = False
    countered: bool = False
    health_lost: int = 0
    resources_lost: list[str] | None = None
    effect_id: str | None = None
    season_advanced: bool = False

    @property
    def fired(self) -> bool:
        return self.event is not None and not self.prevented


# ─── Threat System ───────────────────────────────────────────

class ThreatSystem:
    """
    Threat accumulator and manifestation tables for one session.

    The season advancer is pluggable so a major seasonal shift can turn
    the wheel without this module owning the season system.
    """

    def __init__(
        self,
        session: SessionState,
        log: GameLog,
        dice: Dice,
        inventory: InventorySystem,
        config: EngineConfig | None = None,
        bus: EventBus | None = None,
    ):
        self._session = session
        self._log = log
        self._dice = dice
        self._inventory = inventory
        self._config = resolve_config(config)
        self._bus = bus or get_event_bus()
        self._season_advancer: Callable[[str], object] | None = None

        session.threat.reduction_cap = self._config["threat_reduction_cap"]
        session.threat.level_divisor = self._config["threat_level_divisor"]

    def set_season_advancer(self, advancer: Callable[[str], object]) -> None:
        """Register the callable that advances the season (takes a reason)."""
        self._season_advancer = advancer

    @property
    def tokens(self) -> int:
        return self._session.threat.tokens

    @property
    def threat_level(self) -> int:
        return self._session.threat.level

    def _emit_change(self, before: int, reason: str) -> None:
        self._bus.emit(
            EventType.THREAT_CHANGED,
            session_id=self._session.id,
            turn=self._session.turn,
            before=before,
            after=self.tokens,
            level=self.threat_level,
            reason=reason,
        )

    # ─── Accumulation ────────────────────────────────────────────

    def add_threat_tokens(self, amount: int, reason: str = "") -> int:
        """
        Add threat tokens.

        A rowan ward absorbs one token of the addition and is used up.

        Returns:
            New token total
        """
        if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
            return self.tokens

        if self._session.remove_effect(WARD_EFFECT_ID) is not None:
            amount -= 1
            self._log.log(
                "Your rowan ward absorbs the gathering darkness.",
                category=LogCategory.THREAT,
            )
            if amount <= 0:
                return self.tokens

        threat = self._session.threat
        before = threat.tokens
        threat.tokens += amount
        self._log.log(
            f"Threat increases by {amount} (now {threat.tokens}).",
            highlight=threat.level > 0,
            category=LogCategory.THREAT,
            details={"amount": amount, "reason": reason},
        )
        self._emit_change(before, reason)
        return threat.tokens

    def remove_threat_tokens(self, amount: int, reason: str = "") -> int:
        """
        Remove threat tokens, at most ``reduction_cap`` per turn.

        Any excess over the remaining allowance is dropped and logged.

        Returns:
            New token total
        """
        if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
            return self.tokens

        threat = self._session.threat
        remaining = threat.reduction_remaining
        if remaining <= 0:
            self._log.log(
                "Maximum threat reduction reached for this turn.",
                category=LogCategory.THREAT,
            )
            return threat.tokens

        removed = min(amount, remaining, threat.tokens)
        if removed <= 0:
            return threat.tokens

        before = threat.tokens
        threat.tokens -= removed
        threat.reduction_used_this_turn += removed

        if amount > remaining:
            self._log.log(
                f"Reduced {removed} threat tokens (limit reached for this turn).",
                category=LogCategory.THREAT,
                details={"requested": amount, "removed": removed},
            )
        else:
            self._log.log(
                f"Threat decreases by {removed} (now {threat.tokens}).",
                category=LogCategory.THREAT,
                details={"reason": reason},
            )
        self._emit_change(before, reason)
        return threat.tokens

    def reset_turn(self) -> None:
        """Start-of-turn reset of the reduction allowance."""
        self._session.threat.reduction_used_this_turn = 0

    # ─── Manifestations ──────────────────────────────────────────

    def is_prevented(self) -> bool:
        return self._session.has_effect(PREVENTION_EFFECT_ID)

    def _log_prevented(self, what: str) -> ManifestationResult:
        self._log.log(
            f"Your protections hold; the {what} is prevented.",
            category=LogCategory.THREAT,
        )
        self._bus.emit(
            EventType.MANIFESTATION_PREVENTED,
            session_id=self._session.id,
            turn=self._session.turn,
            what=what,
        )
        return ManifestationResult(prevented=True)

    def check_for_manifestation(self) -> ManifestationResult:
        """
        Threat-level check: maybe fire a random event.

        Chance is 15% per threat level. Nothing is rolled at level 0 or
        while a prevention effect is active.
        """
        level = self.threat_level
        if level <= 0:
            return ManifestationResult()
        if self.is_prevented():
            return self._log_prevented("threat event")

        chance = self._config["manifestation_chance_per_level"] * level
        if not self._dice.chance(chance):
            return ManifestationResult()

        event = self._dice.pick(eligible_events(level))
        return self.apply_manifestation(event)

    def process_end_of_turn(self) -> ManifestationResult:
        """
        End-of-turn pass: from the threshold on, an otherworldly
        manifestation is drawn with a fresh d8 every turn.
        """
        if self.tokens < self._config["otherworldly_threshold"]:
            return ManifestationResult()
        if self.is_prevented():
            return self._log_prevented("otherworldly manifestation")

        index = self._dice.roll_d8()
        index = max(1, min(index, len(OTHERWORLDLY_MANIFESTATIONS)))
        event = OTHERWORLDLY_MANIFESTATIONS[index - 1]
        self._log.log(
            f"The veil tears open: {event.name}!",
            highlight=True,
            category=LogCategory.THREAT,
            details={"roll": index},
        )
        return self.apply_manifestation(event, at_turn_end=True)

    def apply_manifestation(self, event: ThreatEvent, at_turn_end: bool = False) -> ManifestationResult:
        """
        Apply an event immediately or as an ongoing effect.

        Effects raised at the end of a turn run their full duration from
        the next turn on.
        """
        session = self._session
        result = ManifestationResult(event=event)

        if event.counter_resource and self._inventory.remove_resource(event.counter_resource):
            result.countered = True
            self._log.log(
                f"You ward off the {event.name} with {event.counter_resource}.",
                highlight=True,
                category=LogCategory.THREAT,
            )
            self._emit_manifestation(result)
            return result

        self._log.log(
            f"{event.name}: {event.description}",
            highlight=True,
            category=LogCategory.THREAT,
            details={"kind": event.kind.value, "strength": event.strength},
        )

        if event.kind == ManifestationKind.HEALTH_LOSS:
            lost = min(event.strength, max(0, session.health))
            session.health -= lost
            result.health_lost = lost
        elif event.kind == ManifestationKind.RESOURCE_LOSS:
            result.resources_lost = self._inventory.remove_random(event.strength)
        else:
            duration = event.duration
            if event.duration_die:
                duration = self._dice.roll_die(event.duration_die)
            effect = ActiveEffect(
                id=ONGOING_EFFECT_IDS[event.kind],
                kind=ONGOING_EFFECT_KINDS[event.kind],
                strength=event.strength,
                duration=duration,
                category=event.challenge_type,
                source=event.id,
                description=event.description,
                requires_offering=event.requires_offering,
                pending=at_turn_end,
            )
            session.add_effect(effect)
            result.effect_id = effect.id

            if (
                event.kind == ManifestationKind.SEASONAL_SHIFT
                and event.severity == Severity.MAJOR
                and self._season_advancer is not None
            ):
                self._season_advancer(event.name)
                result.season_advanced = True

        self._emit_manifestation(result)
        return result

    def _emit_manifestation(self, result: ManifestationResult) -> None:
        self._bus.emit(
            EventType.MANIFESTATION,
            session_id=self._session.id,
            turn=self._session.turn,
            event=result.event.id if result.event else None,
            name=result.event.name if result.event else None,
            countered=result.countered,
        )

    # ─── Mitigations ─────────────────────────────────────────────

    def add_prevention_effect(self, duration: int, strength: int = 1) -> None:
        self._session.add_effect(ActiveEffect(
            id=PREVENTION_EFFECT_ID,
            kind=EffectKind.PREVENTION,
            strength=strength,
            duration=max(1, duration),
            source="prevention",
            description="Protected from threat manifestations",
        ))
        self._log.log(
            f"You are now protected from threats for {duration} turns.",
            highlight=True,
            category=LogCategory.THREAT,
        )

    def visit_sacred_site(self, landscape_id: str) -> int:
        """
        Seek the blessing of a sacred site.

        Returns:
            Tokens actually removed
        """
        site = SACRED_SITES.get(landscape_id)
        if site is None:
            self._log.log("This place holds no particular sanctity.", category=LogCategory.THREAT)
            return 0
        low, high = site
        before = self.tokens
        self.remove_threat_tokens(self._dice.roll_range(low, high), reason=f"sacred site {landscape_id}")
        return before - self.tokens

    def use_protective_resource(self, resource_id: str) -> bool:
        """
        Use sacred water (removes 1 token) or rowan wood (wards the next gain).

        Returns:
            True if the resource was used
        """
        if resource_id not in ("sacred_water", "rowan_wood"):
            return False
        threat = self._session.threat
        if resource_id == "sacred_water" and (threat.reduction_remaining <= 0 or threat.tokens <= 0):
            self._log.log(
                "The sacred water would find nothing to cleanse this turn.",
                category=LogCategory.THREAT,
            )
            return False
        if not self._inventory.remove_resource(resource_id):
            return False

        if resource_id == "sacred_water":
            self.remove_threat_tokens(1, reason="sacred water")
            self._log.log("Sacred water purifies the corruption.", category=LogCategory.THREAT)
        else:
            self._session.add_effect(ActiveEffect(
                id=WARD_EFFECT_ID,
                kind=EffectKind.WARD,
                strength=1,
                duration=99,
                source="rowan_wood",
                description="Prevents 1 threat token of the next accumulation",
            ))
            self._log.log("A rowan ward is set against the dark.", category=LogCategory.THREAT)
        return True

    def perform_seasonal_ritual(self) -> int:
        """
        Once-per-season ritual.

        Returns:
            Tokens actually removed (0 when rejected)
        """
        threat = self._session.threat
        if threat.ritual_used_this_season:
            self._log.log(
                "You have already performed the ritual this season.",
                category=LogCategory.THREAT,
            )
            return 0
        if threat.reduction_remaining <= 0 or threat.tokens <= 0:
            self._log.log(
                "The land is already as calm as a ritual can make it this turn.",
                category=LogCategory.THREAT,
            )
            return 0

        amount = SEASON_DATA[self._session.season]["ritual_reduction"]
        threat.ritual_used_this_season = True
        before = self.tokens
        self.remove_threat_tokens(amount, reason="seasonal ritual")
        removed = before - self.tokens
        self._log.log(
            f"The {season_name(self._session.season)} ritual calms the land ({removed} threat removed).",
            category=LogCategory.THREAT,
        )
        return removed

    def make_offering(self, resource_id: str) -> bool:
        """Offer a resource to lift effects that demand an offering."""
        demanding = [e for e in self._session.active_effects if e.requires_offering]
        if not demanding:
            return False
        if not self._inventory.remove_resource(resource_id):
            return False
        for effect in demanding:
            self._session.remove_effect(effect.id)
        self._log.log(
            f"Your offering of {resource_id} is accepted.",
            category=LogCategory.THREAT,
        )
        return True

    # ─── Triggers from other systems ─────────────────────────────

    def on_season_change(self, new_season: Season) -> int:
        """
        Reset the ritual and tax an unprepared arrival.

        Returns:
            Threat tokens added
        """
        self._session.threat.ritual_used_this_season = False

        preparation = SEASON_DATA[new_season]["preparation"]
        if any(self._session.has_resource(r) for r in preparation):
            self._log.log(
                f"Your preparations have eased the transition to {season_name(new_season)}.",
                category=LogCategory.THREAT,
            )
            return 0

        before = self.tokens
        self.add_threat_tokens(self._config["unprepared_season_threat"], reason="unprepared")
        self._log.log(
            f"You were unprepared for the transition to {season_name(new_season)}.",
            highlight=True,
            category=LogCategory.THREAT,
        )
        return self.tokens - before

    def add_crafting_threat(self, complexity: Complexity) -> int:
        amount = CRAFTING_THREAT.get(complexity, 0)
        if amount:
            self.add_threat_tokens(amount, reason=f"{complexity.value} crafting")
        return amount

    def disrespect_sacred_site(self) -> int:
        before = self.tokens
        self.add_threat_tokens(self._dice.roll_range(1, 3), reason="disrespect")
        return self.tokens - before
