"""Tests for the inventory and gathering."""

import pytest
from celtic_realm.state.schema import Season


@pytest.fixture
def inventory(engine, session):
    session.current_landscape = "sacred_oak_grove"
    return engine.inventory


class TestCapacity:
    """Test adding within capacity."""

    def test_add_resource(self, inventory, session):
        """Known resources are added."""
        assert inventory.add_resource("bog_iron") is True
        assert session.inventory == ["bog_iron"]
        assert inventory.free_space == 5

    def test_unknown_resource_rejected(self, inventory, session):
        """Unknown ids are refused."""
        assert inventory.add_resource("dragon_scale") is False
        assert session.inventory == []

    def test_full_pack_rejects_and_logs(self, inventory, session, engine):
        """Capacity is never exceeded and the refusal is logged."""
        session.inventory = ["bog_iron"] * 6
        assert inventory.add_resource("oak_galls") is False
        assert len(session.inventory) == 6
        assert engine.log.entries[-1].highlight is True

    def test_add_resources_reports_added(self, inventory, session):
        """Only what fits is reported."""
        session.inventory = ["bog_iron"] * 5
        assert inventory.add_resources(["oak_galls", "rowan_wood"]) == ["oak_galls"]


class TestSpending:
    """Test removing and spending resources."""

    def test_spend_oldest(self, inventory, session):
        """Without names the oldest resources are spent."""
        session.inventory = ["bog_iron", "oak_galls", "rowan_wood"]
        assert inventory.spend(2) == ["bog_iron", "oak_galls"]
        assert session.inventory == ["rowan_wood"]

    def test_spend_named(self, inventory, session):
        """Named resources are spent exactly."""
        session.inventory = ["bog_iron", "oak_galls", "rowan_wood"]
        assert inventory.spend(2, ["rowan_wood", "bog_iron"]) == ["rowan_wood", "bog_iron"]
        assert session.inventory == ["oak_galls"]

    def test_spend_insufficient_spends_nothing(self, inventory, session):
        """Short of the count, nothing is taken."""
        session.inventory = ["bog_iron"]
        assert inventory.spend(2) is None
        assert inventory.spend(1, ["oak_galls"]) is None
        assert session.inventory == ["bog_iron"]

    def test_remove_random(self, inventory, session, rng):
        """Random loss uses the dice."""
        session.inventory = ["bog_iron", "oak_galls", "rowan_wood"]
        rng.push(2, 1)
        assert inventory.remove_random(2) == ["oak_galls", "bog_iron"]
        assert session.inventory == ["rowan_wood"]

    def test_remove_random_from_empty(self, inventory):
        """Nothing to lose yields nothing."""
        assert inventory.remove_random(3) == []


class TestGathering:
    """Test gathering at the current landscape."""

    def test_gather(self, inventory, session):
        """A resource found here is gathered once."""
        result = inventory.gather("oak_galls")
        assert result.success is True
        assert result.gained == ["oak_galls"]
        assert session.has_gathered is True

    def test_once_per_turn(self, inventory, session):
        """A second gather in the same turn fails."""
        inventory.gather("oak_galls")
        result = inventory.gather("silver_mistletoe")
        assert result.success is False
        assert session.inventory == ["oak_galls"]

    def test_not_available_here(self, inventory):
        """Resources absent from the landscape cannot be gathered."""
        assert inventory.gather("bog_iron").success is False

    def test_scarce_in_season(self, inventory):
        """Rowan is scarce in Samhain."""
        result = inventory.gather("rowan_wood")
        assert result.success is False
        assert "scarce" in result.reason

    def test_abundant_yields_two(self, inventory, session):
        """Oak galls are abundant at Beltane."""
        session.season = Season.BELTANE
        assert inventory.gather("oak_galls").gained == ["oak_galls", "oak_galls"]

    def test_nowhere_to_gather(self, inventory, session):
        """No landscape, no gathering."""
        session.current_landscape = None
        assert inventory.gather("oak_galls").success is False

    def test_full_pack(self, inventory, session):
        """A full pack cannot gather."""
        session.inventory = ["bog_iron"] * 6
        assert inventory.gather("oak_galls").success is False
        assert session.has_gathered is False
