"""
Difficulty and bonus modifiers as pure functions.

A ChallengeContext is an immutable snapshot of everything a resolution
reads. The breakdown is computed from it before any die is rolled, so no
modifier can depend on the roll it modifies.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ..state.schema import (
    ActiveEffect,
    ChallengeCategory,
    ChallengeSpec,
    CharacterCard,
    CompanionCard,
    CraftedItemCard,
    EffectKind,
    Season,
)

if TYPE_CHECKING:
    from ..state.catalog import Catalog
    from ..state.schema import SessionState


# Difficulty shift per season and category. Missing entries are 0.
SEASONAL_MODIFIERS: dict[Season, dict[ChallengeCategory, int]] = {
    Season.SAMHAIN: {ChallengeCategory.SPIRITUAL: 2},       # The veil is thin
    Season.WINTERS_DEPTH: {
        ChallengeCategory.PHYSICAL: 2,                      # Bitter cold
        ChallengeCategory.MENTAL: -1,                       # Clarity in stillness
    },
    Season.IMBOLC: {},
    Season.BELTANE: {},
    Season.LUGHNASADH: {ChallengeCategory.SOCIAL: -1},      # Community support
}


def resolve_category(raw: str | ChallengeCategory) -> ChallengeCategory:
    """
    Map a raw category onto the category used for every lookup.

    Agility is resolved as physical, and so is anything unrecognized.
    """
    value = raw.value if isinstance(raw, ChallengeCategory) else str(raw).strip().lower()
    try:
        category = ChallengeCategory(value)
    except ValueError:
        return ChallengeCategory.PHYSICAL
    if category == ChallengeCategory.AGILITY:
        return ChallengeCategory.PHYSICAL
    return category


def seasonal_modifier(category: ChallengeCategory, season: Season) -> int:
    return SEASONAL_MODIFIERS.get(season, {}).get(category, 0)


def threat_level(tokens: int, divisor: int = 3) -> int:
    """Derived threat level: floor(tokens / divisor), never negative."""
    return max(0, tokens) // max(1, divisor)


def character_bonus(character: CharacterCard | None, category: ChallengeCategory) -> int:
    if character is None:
        return 0
    return character.stats.get(category.value, 0)


def item_bonus(items: list[CraftedItemCard], category: ChallengeCategory) -> int:
    return sum(item.challenge_bonuses.get(category.value, 0) for item in items)


def companion_bonus(
    companion: CompanionCard,
    category: ChallengeCategory,
    season: Season,
    include_seasonal: bool = True,
) -> int:
    """
    Flat plus seasonal bonus a single companion lends to a category.

    Args:
        companion: Catalog card of a bonded, non-leaving companion
        category: Resolved challenge category
        season: Current season
        include_seasonal: False while a seasonal shift is in effect

    Returns:
        Total bonus from this companion
    """
    bonus = companion.challenge_bonuses.get(category.value, 0)
    if include_seasonal:
        bonus += companion.seasonal_bonuses.get(season.value, {}).get(category.value, 0)
    return bonus


def difficulty_effects(effects: list[ActiveEffect], category: ChallengeCategory) -> int:
    """Extra difficulty from ongoing difficulty effects that apply here."""
    total = 0
    for effect in effects:
        if effect.kind != EffectKind.CHALLENGE_DIFFICULTY:
            continue
        if effect.category is None or resolve_category(effect.category) == category:
            total += effect.strength
    return total


def _effect_strength(effects: list[ActiveEffect], kind: EffectKind) -> int:
    return sum(e.strength for e in effects if e.kind == kind)


@dataclass(frozen=True)
class ChallengeContext:
    """Snapshot of the state a single resolution reads."""
    season: Season
    threat_tokens: int
    threat_divisor: int = 3
    character: CharacterCard | None = None
    items: list[CraftedItemCard] = field(default_factory=list)
    companions: list[CompanionCard] = field(default_factory=list)  # Active only
    blessing_tokens: int = 0
    effects: list[ActiveEffect] = field(default_factory=list)

    @classmethod
    def from_session(cls, session: "SessionState", catalog: "Catalog") -> "ChallengeContext":
        """Capture the session. Unknown ids are skipped, leaving companions excluded."""
        character = catalog.get_character(session.character_id) if session.character_id else None
        items = [catalog.get_item(i) for i in session.equipped_items]
        companions = [
            catalog.get_companion(record.companion_id)
            for record in session.companions.values()
            if record.is_active
        ]
        return cls(
            season=session.season,
            threat_tokens=session.threat.tokens,
            threat_divisor=session.threat.level_divisor,
            character=character,
            items=[i for i in items if i is not None],
            companions=[c for c in companions if c is not None],
            blessing_tokens=session.blessing_tokens,
            effects=[e.model_copy() for e in session.active_effects],
        )


@dataclass(frozen=True)
class ModifierBreakdown:
    """Every contribution to one resolution, each counted once."""
    category: ChallengeCategory
    base: int
    seasonal: int
    threat: int
    effects: int
    character: int
    items: int
    companions: int
    blessings: int

    @property
    def difficulty(self) -> int:
        return self.base + self.seasonal + self.threat + self.effects

    @property
    def bonus(self) -> int:
        return self.character + self.items + self.companions + self.blessings


def compute_breakdown(challenge: ChallengeSpec, context: ChallengeContext) -> ModifierBreakdown:
    """
    Compute difficulty and bonus for a challenge.

    Args:
        challenge: The challenge being attempted
        context: Snapshot of season, threat, roster and effects

    Returns:
        ModifierBreakdown with every contribution listed separately
    """
    category = resolve_category(challenge.category)

    # A seasonal shift scrambles companions' seasonal instincts
    shifted = _effect_strength(context.effects, EffectKind.SEASONAL_SHIFT) > 0
    companions = sum(
        companion_bonus(c, category, context.season, include_seasonal=not shifted)
        for c in context.companions
    )
    unrest = _effect_strength(context.effects, EffectKind.COMPANION_EFFECT)
    companions = max(0, companions - unrest)

    return ModifierBreakdown(
        category=category,
        base=challenge.base_difficulty,
        seasonal=seasonal_modifier(category, context.season),
        threat=threat_level(context.threat_tokens, context.threat_divisor),
        effects=difficulty_effects(context.effects, category),
        character=character_bonus(context.character, category),
        items=item_bonus(context.items, category),
        companions=companions,
        blessings=max(0, context.blessing_tokens),
    )
