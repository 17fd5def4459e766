"""
Tests for challenge resolution.

Every roll is scripted; the session has no character card, so the
bonus is zero unless a test adds one.
"""

import pytest
from celtic_realm.rules.modifiers import ChallengeContext
from celtic_realm.state import EventType, get_event_bus
from celtic_realm.state.schema import (
    ActiveEffect,
    ChallengeCategory,
    ChallengeSpec,
    EffectKind,
    OutcomeTier,
    Season,
)
from celtic_realm.systems.challenges import PHYSICAL_STRATEGY, get_strategy


def _challenge(category, base, rewards=None):
    return ChallengeSpec(
        name="Trial",
        category=category,
        base_difficulty=base,
        reward_resources=rewards or [],
    )


def _landscape_challenge(catalog, landscape_id):
    return ChallengeSpec.from_landscape(catalog.get_landscape(landscape_id))


class TestScenarios:
    """End-to-end resolutions with known numbers."""

    def test_one_short_with_seasonal_modifier_is_partial(self, engine, session, rng):
        """Base 6 + Samhain 2 + threat 0 = 8; a 7 with no bonus is partial."""
        rng.push(7)
        outcome = engine.resolve(_challenge("spiritual", 6))
        assert outcome.difficulty == 8
        assert outcome.total == 7
        assert outcome.result == OutcomeTier.PARTIAL_SUCCESS
        assert rng.calls == [("randint", 1, 8)]

    def test_winter_physical_scenario(self, engine, session, rng):
        """The same numbers hold for physical in Winter's Depth."""
        session.season = Season.WINTERS_DEPTH
        rng.push(7)
        outcome = engine.resolve(_challenge("physical", 6))
        assert outcome.difficulty == 8
        assert outcome.result == OutcomeTier.PARTIAL_SUCCESS

    def test_threat_level_raises_difficulty(self, engine, session, rng):
        """Six tokens add two to difficulty."""
        session.threat.tokens = 6
        rng.push(5)
        outcome = engine.resolve(_challenge("mental", 4))
        assert outcome.difficulty == 6
        assert outcome.result == OutcomeTier.PARTIAL_SUCCESS

    def test_explicit_context_is_used(self, engine, session, rng):
        """A supplied snapshot wins over the live session."""
        context = ChallengeContext(season=Season.IMBOLC, threat_tokens=9)
        rng.push(7)
        outcome = engine.resolve(_challenge("spiritual", 6), context)
        assert outcome.difficulty == 9


class TestUniformEffects:
    """Exceptional results affect blessings and threat for every category."""

    def test_natural_eight_grants_blessing(self, engine, session, rng):
        """An exceptional success banks a blessing token."""
        rng.push(8)
        outcome = engine.resolve(_challenge("physical", 20))
        assert outcome.result == OutcomeTier.SUCCESS
        assert outcome.exceptional is True
        assert outcome.blessing_gained == 1
        assert session.blessing_tokens == 1

    def test_blessings_add_to_later_bonus(self, engine, session, rng):
        """Banked blessings count toward the next roll."""
        session.blessing_tokens = 2
        rng.push(3)
        outcome = engine.resolve(_challenge("physical", 5))
        assert outcome.bonus_total == 2
        assert outcome.result == OutcomeTier.SUCCESS
        assert session.blessing_tokens == 2

    def test_exceptional_failure_adds_threat(self, engine, session, rng):
        """Missing by three or more adds a threat token."""
        rng.push(1)
        outcome = engine.resolve(_challenge("spiritual", 9))
        assert outcome.result == OutcomeTier.FAILURE
        assert outcome.exceptional is True
        assert outcome.threat_added == 1
        assert session.threat.tokens == 1


class TestPhysical:
    """Physical and agility challenges."""

    def test_success_gathers_two_matching_resources(self, engine, session, catalog, rng):
        """Success yields two resources of the physical reward types."""
        rng.push(4)
        outcome = engine.resolve(_landscape_challenge(catalog, "sacred_oak_grove"))
        assert outcome.result == OutcomeTier.SUCCESS
        assert outcome.resources_gained == ["rowan_wood", "oak_galls"]
        assert session.inventory == ["rowan_wood", "oak_galls"]

    def test_landscape_effect_hides_resources(self, engine, session, catalog, rng):
        """A landscape effect reduces what a success yields."""
        session.add_effect(ActiveEffect(id="fog", kind=EffectKind.LANDSCAPE_EFFECT, strength=1))
        rng.push(4)
        outcome = engine.resolve(_landscape_challenge(catalog, "sacred_oak_grove"))
        assert outcome.resources_gained == ["rowan_wood"]

    def test_full_pack_forfeits_rewards(self, engine, session, catalog, rng):
        """Rewards that do not fit are reported as forfeited."""
        session.inventory = ["bog_iron"] * 6
        rng.push(4)
        outcome = engine.resolve(_landscape_challenge(catalog, "sacred_oak_grove"))
        assert outcome.resources_gained == []
        assert outcome.rewards_forfeited == 2
        assert len(session.inventory) == 6

    def test_failure_costs_health(self, engine, session, rng):
        """A physical failure costs one health."""
        rng.push(3)
        outcome = engine.resolve(_challenge("physical", 5))
        assert outcome.result == OutcomeTier.FAILURE
        assert outcome.exceptional is False
        assert outcome.health_lost == 1
        assert session.health == 4

    def test_agility_uses_physical_strategy(self, engine, session, catalog, rng):
        """Blackthorn Maze is resolved by the physical rules."""
        rng.push(6)
        outcome = engine.resolve(_landscape_challenge(catalog, "blackthorn_maze"))
        assert outcome.category == ChallengeCategory.PHYSICAL
        assert outcome.result == OutcomeTier.SUCCESS
        assert len(outcome.resources_gained) == 2

    def test_unknown_category_uses_physical_strategy(self):
        """Unknown categories fall back to physical."""
        assert get_strategy("culinary") is PHYSICAL_STRATEGY
        assert get_strategy(ChallengeCategory.AGILITY) is PHYSICAL_STRATEGY


class TestMental:
    """Mental challenges."""

    def test_success_grants_experience(self, engine, session, rng):
        """A plain success teaches one experience."""
        rng.push(4)
        outcome = engine.resolve(_challenge("mental", 3))
        assert outcome.exceptional is False
        assert outcome.experience_gained == 1
        assert session.experience == 1

    def test_exceptional_success_grants_extra_experience(self, engine, session, rng):
        """An exceptional success teaches one more."""
        rng.push(6)
        outcome = engine.resolve(_challenge("mental", 3))
        assert outcome.exceptional is True
        assert outcome.experience_gained == 2

    def test_failure_loses_a_resource(self, engine, session, rng):
        """Confusion costs a random resource."""
        session.inventory = ["rowan_wood", "bog_iron"]
        rng.push(3, 1)
        outcome = engine.resolve(_challenge("mental", 5))
        assert outcome.result == OutcomeTier.FAILURE
        assert outcome.resources_lost == ["rowan_wood"]
        assert session.inventory == ["bog_iron"]


class TestSpiritual:
    """Spiritual challenges."""

    def test_success_removes_threat(self, engine, session, rng):
        """A spiritual success cleanses one threat token."""
        session.threat.tokens = 2
        rng.push(5)
        outcome = engine.resolve(_challenge("spiritual", 3))
        assert outcome.result == OutcomeTier.SUCCESS
        assert outcome.threat_removed == 1
        assert session.threat.tokens == 1

    def test_partial_does_nothing_extra(self, engine, session, rng):
        """A partial spiritual success has no side effects."""
        session.threat.tokens = 2
        rng.push(4)
        outcome = engine.resolve(_challenge("spiritual", 3))
        assert outcome.result == OutcomeTier.PARTIAL_SUCCESS
        assert session.threat.tokens == 2


class TestSocial:
    """Social challenges."""

    def test_partial_gains_one_resource(self, engine, session, catalog, rng):
        """A partial social success still yields one resource."""
        rng.push(4)
        outcome = engine.resolve(_landscape_challenge(catalog, "thatched_village"))
        assert outcome.result == OutcomeTier.PARTIAL_SUCCESS
        assert outcome.resources_gained == ["woven_reeds"]


class TestLastOutcome:
    """Test the cached outcome and event."""

    def test_no_outcome_before_first_resolution(self, engine):
        """Nothing resolved yet."""
        assert engine.get_last_outcome() is None

    def test_latest_outcome_kept(self, engine, session, rng):
        """Only the most recent outcome is retained."""
        rng.push(2, 8)
        engine.resolve(_challenge("spiritual", 3))
        second = engine.resolve(_challenge("social", 3))
        assert engine.get_last_outcome() is second

    def test_resolution_emits_event(self, engine, session, rng):
        """Each resolution is announced."""
        rng.push(7)
        engine.resolve(_challenge("spiritual", 6))
        events = get_event_bus().get_history(EventType.CHALLENGE_RESOLVED)
        assert len(events) == 1
        assert events[0].data["result"] == "partial_success"
