"""Celtic Realm: rules engine for a seasonal solitaire adventure."""

from .engine import GameEngine
from .state import Catalog, SessionState, TurnPhase, get_event_bus
from .tools import Dice

__version__ = "0.1.0"

__all__ = [
    "GameEngine",
    "Catalog",
    "SessionState",
    "TurnPhase",
    "get_event_bus",
    "Dice",
    "__version__",
]
