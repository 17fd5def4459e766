"""
Outcome classification for challenge rolls.

Four tiers, checked in strict priority order:
    natural 8        → success, exceptional (ignores difficulty)
    total >= d       → success, exceptional if total >= d + 2
    total == d - 1   → partial success
    otherwise        → failure, exceptional if total <= d - 3
"""

from dataclasses import dataclass, field

from ..state.schema import ChallengeCategory, OutcomeTier
from .modifiers import ModifierBreakdown

NATURAL_MAX = 8
EXCEPTIONAL_SUCCESS_MARGIN = 2
EXCEPTIONAL_FAILURE_MARGIN = 3


def classify_outcome(roll: int, total: int, difficulty: int) -> tuple[OutcomeTier, bool]:
    """
    Classify a roll against a difficulty.

    Args:
        roll: The raw d8 value
        total: roll plus all bonuses
        difficulty: Final difficulty after modifiers

    Returns:
        (tier, exceptional)
    """
    if roll == NATURAL_MAX:
        return OutcomeTier.SUCCESS, True
    if total >= difficulty:
        return OutcomeTier.SUCCESS, total >= difficulty + EXCEPTIONAL_SUCCESS_MARGIN
    if total == difficulty - 1:
        return OutcomeTier.PARTIAL_SUCCESS, False
    return OutcomeTier.FAILURE, total <= difficulty - EXCEPTIONAL_FAILURE_MARGIN


@dataclass
class ChallengeOutcome:
    """Result of resolving one challenge, including what it changed."""
    challenge_name: str
    category: ChallengeCategory
    result: OutcomeTier
    exceptional: bool
    roll: int
    bonus_total: int
    total: int
    difficulty: int
    breakdown: ModifierBreakdown | None = None

    # Side effects applied after classification
    blessing_gained: int = 0
    threat_added: int = 0
    threat_removed: int = 0
    experience_gained: int = 0
    health_lost: int = 0
    resources_gained: list[str] = field(default_factory=list)
    resources_lost: list[str] = field(default_factory=list)
    rewards_forfeited: int = 0  # Rewards that did not fit in the inventory

    @property
    def success(self) -> bool:
        return self.result == OutcomeTier.SUCCESS

    @property
    def margin(self) -> int:
        return self.total - self.difficulty

    @property
    def narrative(self) -> str:
        """Short description of the result."""
        if self.result == OutcomeTier.SUCCESS:
            return "exceptional success" if self.exceptional else "success"
        if self.result == OutcomeTier.PARTIAL_SUCCESS:
            return "partial success"
        return "exceptional failure" if self.exceptional else "failure"
