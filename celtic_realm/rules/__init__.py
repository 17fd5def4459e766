"""Pure rule functions: modifiers and outcome classification."""

from .modifiers import (
    SEASONAL_MODIFIERS,
    ChallengeContext,
    ModifierBreakdown,
    compute_breakdown,
    resolve_category,
    seasonal_modifier,
    threat_level,
)
from .outcome import ChallengeOutcome, classify_outcome

__all__ = [
    "SEASONAL_MODIFIERS",
    "ChallengeContext",
    "ModifierBreakdown",
    "compute_breakdown",
    "resolve_category",
    "seasonal_modifier",
    "threat_level",
    "ChallengeOutcome",
    "classify_outcome",
]
