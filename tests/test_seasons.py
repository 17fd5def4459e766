"""Tests for the Wheel of the Year."""

import pytest
from celtic_realm.state import EventType, get_event_bus
from celtic_realm.state.schema import SEASON_ORDER, Season, next_season
from celtic_realm.systems.seasons import SEASON_DATA, season_name


class TestWheel:
    """Test season ordering."""

    def test_order_wraps(self):
        """Lughnasadh turns back to Samhain."""
        assert next_season(Season.LUGHNASADH) == Season.SAMHAIN
        assert next_season(Season.SAMHAIN) == Season.WINTERS_DEPTH

    def test_every_season_has_data(self):
        """All five seasons are described."""
        assert set(SEASON_DATA) == set(SEASON_ORDER)
        assert season_name(Season.WINTERS_DEPTH) == "Winter's Depth"

    def test_advance_season(self, engine, session):
        """Advancing moves one step and announces it."""
        session.inventory = ["woven_reeds"]
        assert engine.seasons.advance_season("test") == Season.WINTERS_DEPTH
        assert session.season == Season.WINTERS_DEPTH
        event = get_event_bus().get_history(EventType.SEASON_CHANGED)[-1]
        assert event.data["before"] == "samhain"
        assert event.data["after"] == "winters_depth"

    def test_full_cycle(self, engine, session):
        """Five advances return to the start."""
        for _ in range(5):
            engine.seasons.advance_season()
        assert session.season == Season.SAMHAIN


class TestAbundance:
    """Test seasonal resource availability."""

    def test_abundant_and_scarce(self, engine):
        """Samhain favours barrow dust and starves rowan."""
        assert engine.seasons.is_abundant("barrow_dust")
        assert engine.seasons.is_scarce("rowan_wood")
        assert not engine.seasons.is_scarce("bog_iron")

    def test_preparation_items(self, engine):
        """Each season names what prepares for it."""
        assert engine.seasons.preparation_items(Season.IMBOLC) == ["rowan_wood", "silver_mistletoe"]


class TestPassiveHealing:
    """Test seasonal recovery."""

    def test_heals_on_passed_chance(self, engine, session, rng):
        """Samhain heals on a roll under 25%."""
        rng.push_float(0.2)
        assert engine.seasons.passive_heal() == 1
        assert session.health == 6

    def test_no_heal_on_failed_chance(self, engine, session, rng):
        """A roll over the chance heals nothing."""
        rng.push_float(0.3)
        assert engine.seasons.passive_heal() == 0
        assert session.health == 5

    def test_imbolc_heals_more_often(self, engine, session, rng):
        """Imbolc's chance is 75%."""
        session.season = Season.IMBOLC
        rng.push_float(0.7)
        assert engine.seasons.passive_heal() == 1

    def test_no_heal_at_full_health(self, engine, session, rng):
        """Full health rolls nothing."""
        session.health = session.max_health
        assert engine.seasons.passive_heal() == 0
        assert rng.calls == []

    def test_no_heal_when_fallen(self, engine, session, rng):
        """The fallen do not recover."""
        session.health = 0
        assert engine.seasons.passive_heal() == 0
        assert rng.calls == []
