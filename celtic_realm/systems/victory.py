"""
Victory and defeat evaluation.

The turn controller asks an evaluator for a verdict at each turn
boundary. Any object with an evaluate(session) method will do; the
standard rules are provided by StandardVictoryEvaluator.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from ..config import EngineConfig, resolve_config
from ..state.schema import GameResult, SessionState


@dataclass
class Verdict:
    result: GameResult = GameResult.NONE
    reason: str | None = None
    conditions: dict[str, bool] = field(default_factory=dict)

    @property
    def is_over(self) -> bool:
        return self.result != GameResult.NONE


@runtime_checkable
class VictoryEvaluator(Protocol):
    """Decides whether a session has ended."""

    def evaluate(self, session: SessionState) -> Verdict:
        """Return a verdict; GameResult.NONE means play continues."""
        ...


class StandardVictoryEvaluator:
    """
    Standard end conditions.

    Defeat: health gone, threat at the defeat threshold, or out of turns.
    Victory: the whole path walked with balance kept, enough items
    crafted, and at least one companion still at your side.
    """

    def __init__(self, config: EngineConfig | None = None):
        self._config = resolve_config(config)

    def check_defeat(self, session: SessionState) -> str | None:
        if session.health <= 0:
            return "Your journey has ended as your health has fallen to zero."
        if session.threat.tokens >= self._config["defeat_threat"]:
            return (
                "The otherworldly forces have overwhelmed you as threat tokens "
                f"reached {self._config['defeat_threat']}."
            )
        if session.turn >= self._config["max_turns"]:
            return "Your journey has taken too long, and winter has claimed you."
        return None

    def check_victory(self, session: SessionState) -> dict[str, bool]:
        path = session.journey_path
        visited = set(session.visited_landscapes)
        return {
            "journey_completed": bool(path) and all(lid in visited for lid in path),
            "balance_maintained": session.threat.tokens < self._config["balance_threat"],
            "knowledge_acquired": len(session.equipped_items) >= self._config["required_crafted_items"],
            "bonds_formed": len(session.companions) >= self._config["required_companions"],
        }

    def evaluate(self, session: SessionState) -> Verdict:
        reason = self.check_defeat(session)
        if reason:
            return Verdict(GameResult.DEFEAT, reason)

        conditions = self.check_victory(session)
        if all(conditions.values()):
            return Verdict(
                GameResult.VICTORY,
                "You have completed the journey and restored balance to the realm.",
                conditions,
            )
        return Verdict(conditions=conditions)
