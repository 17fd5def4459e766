"""
Crafting system: turn resources into equipped items.

can_craft() reports exactly which resources are missing. craft()
consumes them, equips the item, and adds threat for complex work.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field

from ..state.catalog import Catalog
from ..state.event_bus import EventBus, EventType, get_event_bus
from ..state.game_log import GameLog, LogCategory
from ..state.schema import SessionState
from .inventory import InventorySystem
from .threat import ThreatSystem

logger = logging.getLogger(__name__)


@dataclass
class CraftCheck:
    can_craft: bool
    missing_resources: list[str] = field(default_factory=list)
    reason: str = ""


@dataclass
class CraftResult:
    success: bool
    item_id: str
    consumed: list[str] = field(default_factory=list)
    threat_added: int = 0
    check: CraftCheck | None = None


class CraftingSystem:
    """Checks and performs crafting, once per turn."""

    def __init__(
        self,
        session: SessionState,
        catalog: Catalog,
        log: GameLog,
        inventory: InventorySystem,
        threat: ThreatSystem,
        bus: EventBus | None = None,
    ):
        self._session = session
        self._catalog = catalog
        self._log = log
        self._inventory = inventory
        self._threat = threat
        self._bus = bus or get_event_bus()

    def can_craft(self, item_id: str) -> CraftCheck:
        item = self._catalog.get_item(item_id)
        if item is None:
            return CraftCheck(False, reason=f"Unknown item: {item_id}")
        if item_id in self._session.equipped_items:
            return CraftCheck(False, reason=f"You already carry the {item.name}.")

        needed = Counter(item.required_resources)
        held = Counter(self._session.inventory)
        missing = []
        for resource_id, count in needed.items():
            missing.extend([resource_id] * max(0, count - held[resource_id]))
        if missing:
            return CraftCheck(False, missing_resources=missing, reason="Missing resources")
        return CraftCheck(True)

    def craft(self, item_id: str) -> CraftResult:
        if self._session.has_crafted:
            self._log.log("You have already crafted this turn.", category=LogCategory.CRAFTING)
            return CraftResult(False, item_id, check=CraftCheck(False, reason="Already crafted this turn"))

        check = self.can_craft(item_id)
        if not check.can_craft:
            self._log.log(
                f"Cannot craft {item_id}: {check.reason}"
                + (f" ({', '.join(check.missing_resources)})" if check.missing_resources else ""),
                category=LogCategory.CRAFTING,
            )
            return CraftResult(False, item_id, check=check)

        item = self._catalog.get_item(item_id)
        for resource_id in item.required_resources:
            self._inventory.remove_resource(resource_id)
        self._session.equipped_items.append(item_id)
        self._session.has_crafted = True

        self._log.log(
            f"You craft the {item.name}.",
            highlight=True,
            category=LogCategory.CRAFTING,
            details={"consumed": list(item.required_resources)},
        )
        before = self._threat.tokens
        self._threat.add_crafting_threat(item.complexity)
        threat_added = self._threat.tokens - before
        self._bus.emit(
            EventType.ITEM_CRAFTED,
            session_id=self._session.id,
            turn=self._session.turn,
            item=item_id,
            complexity=item.complexity.value,
        )
        return CraftResult(
            True,
            item_id,
            consumed=list(item.required_resources),
            threat_added=threat_added,
            check=check,
        )
