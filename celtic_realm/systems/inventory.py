"""
Inventory system: resource cards held by the player.

Capacity comes from the chosen character. Adding past capacity is
refused and reported, never silently dropped.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ..state.catalog import Catalog
from ..state.game_log import GameLog, LogCategory
from ..state.schema import SessionState
from ..tools.dice import Dice
from .seasons import SeasonSystem

logger = logging.getLogger(__name__)


@dataclass
class GatherResult:
    """Outcome of gathering at the current landscape."""
    success: bool
    gained: list[str] = field(default_factory=list)
    reason: str = ""


class InventorySystem:
    """Adds, removes and gathers resources within capacity."""

    def __init__(
        self,
        session: SessionState,
        catalog: Catalog,
        log: GameLog,
        dice: Dice,
        seasons: SeasonSystem,
    ):
        self._session = session
        self._catalog = catalog
        self._log = log
        self._dice = dice
        self._seasons = seasons

    @property
    def free_space(self) -> int:
        return max(0, self._session.resource_capacity - len(self._session.inventory))

    def add_resource(self, resource_id: str) -> bool:
        """Add one resource card. False if unknown or the inventory is full."""
        resource = self._catalog.get_resource(resource_id)
        if resource is None:
            logger.warning("Unknown resource: %s", resource_id)
            return False
        if self._session.inventory_full:
            self._log.log(
                f"Your pack is full; you must leave the {resource.name} behind.",
                highlight=True,
                category=LogCategory.RESOURCE,
                details={"resource": resource_id, "capacity": self._session.resource_capacity},
            )
            return False
        self._session.inventory.append(resource_id)
        return True

    def add_resources(self, resource_ids: list[str]) -> list[str]:
        """Add several resources. Returns the ones that were added."""
        return [rid for rid in resource_ids if self.add_resource(rid)]

    def remove_resource(self, resource_id: str) -> bool:
        if resource_id not in self._session.inventory:
            return False
        self._session.inventory.remove(resource_id)
        return True

    def remove_random(self, count: int) -> list[str]:
        """Lose up to ``count`` random resources."""
        lost = []
        for _ in range(max(0, count)):
            resource_id = self._dice.pick(self._session.inventory)
            if resource_id is None:
                break
            self._session.inventory.remove(resource_id)
            lost.append(resource_id)
        return lost

    def spend(self, count: int, resource_ids: list[str] | None = None) -> list[str] | None:
        """
        Spend ``count`` resources, either the named ones or the oldest held.

        Returns:
            The spent resources, or None (nothing spent) if not enough are held
        """
        held = list(self._session.inventory)
        if resource_ids is None:
            chosen = held[:count]
        else:
            chosen = []
            for rid in resource_ids[:count]:
                if rid not in held:
                    return None
                held.remove(rid)
                chosen.append(rid)
        if len(chosen) < count:
            return None
        for rid in chosen:
            self._session.inventory.remove(rid)
        return chosen

    def gather(self, resource_id: str) -> GatherResult:
        """
        Gather a resource from the current landscape, once per turn.

        Resources scarce this season cannot be found; abundant ones yield two.
        """
        session = self._session
        if session.has_gathered:
            return GatherResult(False, reason="You have already gathered this turn.")

        landscape = (
            self._catalog.get_landscape(session.current_landscape)
            if session.current_landscape else None
        )
        if landscape is None:
            return GatherResult(False, reason="There is nowhere to gather.")
        if resource_id not in landscape.available_resources:
            return GatherResult(False, reason=f"{resource_id} cannot be found at {landscape.name}.")
        if self._seasons.is_scarce(resource_id):
            return GatherResult(False, reason=f"{resource_id} is scarce this season.")
        if session.inventory_full:
            return GatherResult(False, reason="Your pack is full.")

        amount = 2 if self._seasons.is_abundant(resource_id) else 1
        gained = self.add_resources([resource_id] * amount)
        session.has_gathered = True
        self._log.log(
            f"Gathered {len(gained)} {resource_id} at {landscape.name}.",
            category=LogCategory.RESOURCE,
            details={"gained": gained},
        )
        return GatherResult(True, gained=gained)
