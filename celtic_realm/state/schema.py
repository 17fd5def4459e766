"""
Pydantic models for Celtic Realm game state.

Catalog cards are read-only records loaded from data/catalog.json.
SessionState is the single mutable aggregate for one playthrough;
every system receives it at construction and mutates it in place.
"""

from enum import Enum
from pydantic import BaseModel, Field
from uuid import uuid4


# -----------------------------------------------------------------------------
# Enums
# -----------------------------------------------------------------------------

class Season(str, Enum):
    SAMHAIN = "samhain"              # Winter beginning, the veil is thin
    WINTERS_DEPTH = "winters_depth"  # Deep cold, endurance tested
    IMBOLC = "imbolc"                # First stirrings of spring
    BELTANE = "beltane"              # Fire festival, life force strong
    LUGHNASADH = "lughnasadh"        # First harvest, community


SEASON_ORDER: list[Season] = [
    Season.SAMHAIN,
    Season.WINTERS_DEPTH,
    Season.IMBOLC,
    Season.BELTANE,
    Season.LUGHNASADH,
]


def next_season(season: Season) -> Season:
    """Season that follows the given one (the wheel wraps around)."""
    index = SEASON_ORDER.index(season)
    return SEASON_ORDER[(index + 1) % len(SEASON_ORDER)]


class ChallengeCategory(str, Enum):
    PHYSICAL = "physical"
    MENTAL = "mental"
    SPIRITUAL = "spiritual"
    SOCIAL = "social"
    AGILITY = "agility"  # Resolved with the physical strategy


class OutcomeTier(str, Enum):
    SUCCESS = "success"
    PARTIAL_SUCCESS = "partial_success"
    FAILURE = "failure"


class CompanionPhase(str, Enum):
    LOYAL = "loyal"
    WARY = "wary"
    LEAVING = "leaving"  # Terminal, removed in the same upkeep pass


class TurnPhase(str, Enum):
    """The fixed phases of a turn, plus setup and the terminal state."""
    SETUP = "setup"
    CHARACTER_SELECTION = "character_selection"
    SEASONAL_ASSESSMENT = "seasonal_assessment"
    THREAT_LEVEL_CHECK = "threat_level_check"
    LANDSCAPE_CHALLENGE = "landscape_challenge"
    CHALLENGE_RESOLUTION = "challenge_resolution"
    RESOURCE_MANAGEMENT = "resource_management"
    ANIMAL_COMPANION = "animal_companion"
    CRAFTING = "crafting"
    JOURNEY_PROGRESSION = "journey_progression"
    EXPLORATION = "exploration"
    GAME_OVER = "game_over"


class ManifestationKind(str, Enum):
    RESOURCE_LOSS = "resource_loss"
    HEALTH_LOSS = "health_loss"
    CHALLENGE_DIFFICULTY = "challenge_difficulty"
    COMPANION_EFFECT = "companion_effect"
    LANDSCAPE_EFFECT = "landscape_effect"
    SEASONAL_SHIFT = "seasonal_shift"


class Severity(str, Enum):
    MINOR = "minor"
    MODERATE = "moderate"
    MAJOR = "major"


class EffectKind(str, Enum):
    """Ongoing effects tracked on the session."""
    CHALLENGE_DIFFICULTY = "challenge_difficulty"
    COMPANION_EFFECT = "companion_effect"
    LANDSCAPE_EFFECT = "landscape_effect"
    SEASONAL_SHIFT = "seasonal_shift"
    PREVENTION = "prevention"  # Skips threat events and manifestations
    WARD = "ward"              # Absorbs part of the next threat gain


class Complexity(str, Enum):
    SIMPLE = "simple"
    COMPLEX = "complex"
    ADVANCED = "advanced"
    LEGENDARY = "legendary"


class GameResult(str, Enum):
    NONE = "none"
    VICTORY = "victory"
    DEFEAT = "defeat"


def generate_id() -> str:
    return str(uuid4())[:8]


# -----------------------------------------------------------------------------
# Catalog cards
# -----------------------------------------------------------------------------

class ResourceCard(BaseModel):
    id: str
    name: str
    type: str  # protective, crafting_base, spiritual, mystic, binding, elemental
    effect: str = ""


class CharacterCard(BaseModel):
    id: str
    name: str
    description: str = ""
    health: int
    resource_capacity: int
    starting_items: list[str] = Field(default_factory=list)
    stats: dict[str, int] = Field(default_factory=dict)  # Flat bonus per category


class CompanionCard(BaseModel):
    id: str
    name: str
    ability: str = ""
    preferred_resources: list[str] = Field(default_factory=list)
    seasonal_affinity: list[str] = Field(default_factory=list)
    challenge_bonuses: dict[str, int] = Field(default_factory=dict)
    # season id -> category -> bonus
    seasonal_bonuses: dict[str, dict[str, int]] = Field(default_factory=dict)
    find_location: str | None = None


class CraftedItemCard(BaseModel):
    id: str
    name: str
    ability: str = ""
    required_resources: list[str] = Field(default_factory=list)
    complexity: Complexity = Complexity.SIMPLE
    challenge_bonuses: dict[str, int] = Field(default_factory=dict)


class LandscapeCard(BaseModel):
    id: str
    name: str
    challenge: str
    challenge_type: str
    difficulty: int = Field(ge=0)
    description: str = ""
    available_resources: list[str] = Field(default_factory=list)
    companions: list[str] = Field(default_factory=list)
    healing: int = 0


# -----------------------------------------------------------------------------
# Challenges
# -----------------------------------------------------------------------------

class ChallengeSpec(BaseModel):
    """A single obstacle to resolve, usually built from a landscape card."""
    name: str
    category: str  # Raw category; unknown values fall back to physical
    base_difficulty: int = Field(default=0, ge=0)
    reward_hint: str = ""
    resource_reward: bool = True
    reward_resources: list[str] = Field(default_factory=list)
    landscape_id: str | None = None

    @classmethod
    def from_landscape(cls, landscape: LandscapeCard) -> "ChallengeSpec":
        return cls(
            name=landscape.challenge,
            category=landscape.challenge_type,
            base_difficulty=landscape.difficulty,
            reward_hint=", ".join(landscape.available_resources),
            reward_resources=list(landscape.available_resources),
            landscape_id=landscape.id,
        )


# -----------------------------------------------------------------------------
# Session state
# -----------------------------------------------------------------------------

class CompanionBondState(BaseModel):
    """Loyalty record for one bonded companion."""
    companion_id: str
    loyalty: int = Field(default=5, ge=0, le=10)
    phase: CompanionPhase = CompanionPhase.LOYAL
    turns_since_fed: int = Field(default=0, ge=0)
    turns_wary: int = Field(default=0, ge=0)

    @property
    def is_active(self) -> bool:
        """Leaving companions no longer contribute anything."""
        return self.phase != CompanionPhase.LEAVING


class ThreatState(BaseModel):
    tokens: int = Field(default=0, ge=0)
    reduction_used_this_turn: int = 0
    reduction_cap: int = 3
    ritual_used_this_season: bool = False
    level_divisor: int = 3

    @property
    def level(self) -> int:
        """Derived threat level, never stored."""
        return max(0, self.tokens) // self.level_divisor

    @property
    def reduction_remaining(self) -> int:
        return max(0, self.reduction_cap - self.reduction_used_this_turn)


class ActiveEffect(BaseModel):
    """An ongoing effect with a remaining duration in turns."""
    id: str
    kind: EffectKind
    strength: int = 1
    duration: int = 1
    category: str | None = None  # Scopes difficulty effects to one category
    source: str = ""
    description: str = ""
    requires_offering: bool = False   # Lifted by an offering
    pending: bool = False  # Added at a turn boundary; the next tick only arms it


class SessionState(BaseModel):
    """Everything that changes during one playthrough."""
    id: str = Field(default_factory=generate_id)

    # Character
    character_id: str | None = None
    health: int = 0
    max_health: int = 0
    resource_capacity: int = 0
    experience: int = 0
    inventory: list[str] = Field(default_factory=list)
    equipped_items: list[str] = Field(default_factory=list)
    companions: dict[str, CompanionBondState] = Field(default_factory=dict)

    # Challenge engine
    blessing_tokens: int = 0
    threat: ThreatState = Field(default_factory=ThreatState)
    active_effects: list[ActiveEffect] = Field(default_factory=list)

    # World
    season: Season = Season.SAMHAIN
    current_landscape: str | None = None
    visited_landscapes: list[str] = Field(default_factory=list)
    journey_path: list[str] = Field(default_factory=list)
    journey_position: int = -1

    # Turn
    phase: TurnPhase = TurnPhase.SETUP
    turn: int = 1
    has_gathered: bool = False
    has_crafted: bool = False
    has_rested: bool = False

    # Outcome
    result: GameResult = GameResult.NONE
    result_reason: str | None = None

    @property
    def has_character(self) -> bool:
        return self.character_id is not None

    @property
    def is_over(self) -> bool:
        return self.result != GameResult.NONE

    @property
    def inventory_full(self) -> bool:
        return len(self.inventory) >= self.resource_capacity

    def has_resource(self, resource_id: str) -> bool:
        return resource_id in self.inventory

    def resource_count(self, resource_id: str) -> int:
        return self.inventory.count(resource_id)

    def add_visited_landscape(self, landscape_id: str) -> bool:
        """Record a visit. Returns False if already visited."""
        if landscape_id in self.visited_landscapes:
            return False
        self.visited_landscapes.append(landscape_id)
        return True

    # ─── Effects ─────────────────────────────────────────────────

    def get_effect(self, effect_id: str) -> ActiveEffect | None:
        for effect in self.active_effects:
            if effect.id == effect_id:
                return effect
        return None

    def has_effect(self, effect_id: str) -> bool:
        return self.get_effect(effect_id) is not None

    def add_effect(self, effect: ActiveEffect) -> None:
        """Add an effect, replacing any existing effect with the same id."""
        self.remove_effect(effect.id)
        self.active_effects.append(effect)

    def remove_effect(self, effect_id: str) -> ActiveEffect | None:
        effect = self.get_effect(effect_id)
        if effect is not None:
            self.active_effects.remove(effect)
        return effect

    def effects_of_kind(self, kind: EffectKind) -> list[ActiveEffect]:
        return [e for e in self.active_effects if e.kind == kind]

    def tick_effects(self) -> list[ActiveEffect]:
        """Decrement all armed durations. Returns the effects that expired."""
        expired = []
        for effect in list(self.active_effects):
            if effect.pending:
                effect.pending = False
                continue
            effect.duration -= 1
            if effect.duration <= 0:
                self.active_effects.remove(effect)
                expired.append(effect)
        return expired
