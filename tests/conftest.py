"""
Pytest fixtures for Celtic Realm tests.

Provides a scripted random source so every roll is deterministic, and an
engine wired around a fresh session.
"""

import pytest
from pathlib import Path

# Add project root to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from celtic_realm.engine import GameEngine
from celtic_realm.state import Catalog, reset_event_bus
from celtic_realm.state.game_log import GameLog
from celtic_realm.tools.dice import Dice


class ScriptedRandom:
    """
    Deterministic stand-in for the random module.

    randint() pops queued values (clamped into range), then returns the
    low bound. random() pops queued floats, then returns 0.99 so chance
    checks fail unless a test asks otherwise.
    """

    def __init__(self, ints=None, floats=None):
        self.ints = list(ints or [])
        self.floats = list(floats or [])
        self.calls = []

    def push(self, *values):
        self.ints.extend(values)

    def push_float(self, *values):
        self.floats.extend(values)

    def randint(self, a, b):
        self.calls.append(("randint", a, b))
        value = self.ints.pop(0) if self.ints else a
        return max(a, min(b, value))

    def random(self):
        self.calls.append(("random",))
        return self.floats.pop(0) if self.floats else 0.99


@pytest.fixture(autouse=True)
def fresh_event_bus():
    """Every test gets its own shared event bus."""
    reset_event_bus()
    yield
    reset_event_bus()


@pytest.fixture(scope="session")
def catalog():
    """The bundled card catalog."""
    return Catalog()


@pytest.fixture
def rng():
    """Scripted random source."""
    return ScriptedRandom()


@pytest.fixture
def dice(rng):
    return Dice(rng)


@pytest.fixture
def log():
    return GameLog()


@pytest.fixture
def engine(catalog, rng):
    """Engine with the bundled catalog and a scripted random source."""
    return GameEngine(catalog=catalog, rng=rng)


@pytest.fixture
def session(engine):
    """The engine's session with a body and a pack, but no character card."""
    s = engine.session
    s.health = 5
    s.max_health = 7
    s.resource_capacity = 6
    return s


@pytest.fixture
def started(engine):
    """Engine past character selection, in the first seasonal assessment."""
    engine.advance_phase()
    engine.select_character("giant_beastfriend")
    engine.advance_phase()
    return engine
