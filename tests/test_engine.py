"""Tests for the engine facade and the command-line autoplay."""

import random

import pytest
from celtic_realm import GameEngine
from celtic_realm.cli import EventFeed, main
from celtic_realm.config import get_config_path, load_config
from celtic_realm.state import EventType, get_event_bus
from celtic_realm.state.event_bus import EventBus
from celtic_realm.state.schema import ChallengeSpec, GameResult, Season, TurnPhase
from celtic_realm.systems.threat import OTHERWORLDLY_MANIFESTATIONS


class TestWiring:
    """Test that the systems are connected to each other."""

    def test_boundary_collapse_turns_the_wheel(self, engine):
        """A major seasonal shift advances the season through the season system."""
        boundary_collapse = OTHERWORLDLY_MANIFESTATIONS[5]
        result = engine.threat.apply_manifestation(boundary_collapse)

        assert result.season_advanced is True
        assert engine.session.season == Season.WINTERS_DEPTH
        # Arrived without woven reeds or forge cinders
        assert engine.session.threat.tokens == 2
        assert engine.session.has_effect("threat_seasonal_shift")

    def test_season_change_resets_ritual(self, engine):
        """A new season allows a new ritual."""
        engine.session.threat.tokens = 5
        assert engine.perform_seasonal_ritual() == 2
        assert engine.perform_seasonal_ritual() == 0
        engine.seasons.advance_season()
        assert engine.session.threat.ritual_used_this_season is False

    def test_private_bus(self, catalog, rng):
        """An engine can publish to its own bus."""
        bus = EventBus()
        engine = GameEngine(catalog=catalog, rng=rng, bus=bus)
        engine.add_threat_tokens(1)
        assert len(bus.get_history(EventType.THREAT_CHANGED)) == 1
        assert get_event_bus().get_history() == []

    def test_journey_path_override(self, catalog, rng):
        """A custom path is walked instead of the catalog's."""
        engine = GameEngine(catalog=catalog, rng=rng, journey_path=["moonlit_loch", "faerie_knoll"])
        engine.advance_phase()
        engine.select_character("hedge_witch")
        engine.advance_phase()
        assert engine.session.current_landscape == "moonlit_loch"


class TestFacade:
    """Test the facade methods."""

    def test_resolve_direct(self, engine, rng):
        """Challenges can be resolved outside the turn loop."""
        rng.push(8)
        outcome = engine.resolve(ChallengeSpec(name="Test of Nerve", category="mental", base_difficulty=4))
        assert outcome.success is True
        assert engine.get_last_outcome() is outcome

    def test_sacred_site_at_current_landscape(self, engine, rng):
        """The loch cleanses threat."""
        engine.session.current_landscape = "moonlit_loch"
        engine.session.threat.tokens = 5
        rng.push(3)
        assert engine.visit_sacred_site() == 3
        assert engine.session.threat.tokens == 2

    def test_sacred_site_without_landscape(self, engine):
        """Before the journey starts there is nowhere to visit."""
        assert engine.visit_sacred_site() == 0

    def test_protective_resources(self, session, engine):
        """Sacred water cleanses; rowan wards."""
        session.threat.tokens = 2
        session.inventory = ["sacred_water", "rowan_wood"]
        assert engine.use_protective_resource("sacred_water") is True
        assert session.threat.tokens == 1
        assert engine.use_protective_resource("rowan_wood") is True
        engine.add_threat_tokens(2)
        assert session.threat.tokens == 2

    def test_evaluate_does_not_change_phase(self, started):
        """Evaluation is read-only."""
        verdict = started.evaluate()
        assert verdict.result == GameResult.NONE
        assert started.get_current_phase() == TurnPhase.SEASONAL_ASSESSMENT

    def test_is_over(self, started):
        """is_over follows the phase."""
        assert started.is_over is False
        started.set_phase(TurnPhase.GAME_OVER)
        assert started.is_over is True


class TestAutoplay:
    """Test a whole game driven by the command-line policy."""

    def test_seeded_games_end(self, catalog):
        """Every game reaches GAME_OVER within the turn limit."""
        from celtic_realm.cli import play_phase

        for seed in range(3):
            engine = GameEngine(catalog=catalog, rng=random.Random(seed))
            engine.advance_phase()
            for _ in range(400):
                if engine.is_over:
                    break
                play_phase(engine, "hedge_witch")
                engine.advance_phase()
            assert engine.is_over
            assert engine.session.result in (GameResult.VICTORY, GameResult.DEFEAT)
            assert engine.session.turn <= 30

    def test_main_runs(self, tmp_path, monkeypatch):
        """The CLI plays a few turns and exits cleanly."""
        monkeypatch.chdir(tmp_path)
        assert main(["--seed", "1", "--turns", "3"]) == 0

    def test_main_unknown_character(self, tmp_path, monkeypatch):
        """An unknown character is a usage error."""
        monkeypatch.chdir(tmp_path)
        assert main(["--character", "sea_king"]) == 2

    def test_save_config(self, tmp_path, monkeypatch):
        """--save-config writes the effective constants and stops."""
        monkeypatch.chdir(tmp_path)
        assert main(["--save-config"]) == 0
        assert get_config_path(tmp_path).exists()
        assert load_config(tmp_path)["max_turns"] == 30


class TestEventFeed:
    """Test the CLI's live event feed."""

    def test_season_and_manifestation_shown(self, engine):
        """Turning points published by the systems reach the feed."""
        feed = EventFeed()
        feed.attach(engine.bus)
        engine.threat.apply_manifestation(OTHERWORLDLY_MANIFESTATIONS[5])

        assert any("Winter" in line for line in feed.lines)
        assert any("Boundary Collapse manifests" in line for line in feed.lines)

    def test_countered_manifestation(self, engine, session):
        """A warded-off event is reported as such."""
        feed = EventFeed()
        feed.attach(engine.bus)
        session.inventory = ["amber_shards"]
        engine.threat.apply_manifestation(OTHERWORLDLY_MANIFESTATIONS[0])
        assert feed.lines == ["[wheat1]  Mist Wraith is warded off.[/wheat1]"]

    def test_departure_shown(self, engine, session):
        """Companions that leave are announced."""
        feed = EventFeed()
        feed.attach(engine.bus)
        engine.bus.emit(EventType.COMPANION_LEFT, companion="wolf", voluntary=False)
        assert feed.lines == ["[dark_goldenrod]  The wolf is gone.[/dark_goldenrod]"]

    def test_other_events_ignored(self, engine):
        """Only the feed's own event types are subscribed."""
        EventFeed().attach(engine.bus)
        assert engine.bus.listener_count(EventType.THREAT_CHANGED) == 0
        assert engine.bus.listener_count(EventType.SEASON_CHANGED) == 1
