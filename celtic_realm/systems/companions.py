"""
Companion loyalty automaton.

Each bonded animal has a loyalty record that moves through three
phases during upkeep:

    LOYAL ──(unfed 3 turns)──▶ WARY ──(2 more unfed turns)──▶ LEAVING
      ▲                          │
      └──────────(fed)───────────┘

LEAVING is terminal; the companion is removed in the same upkeep pass.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ..config import EngineConfig, resolve_config
from ..state.catalog import Catalog
from ..state.event_bus import EventBus, EventType, get_event_bus
from ..state.game_log import GameLog, LogCategory
from ..state.schema import CompanionBondState, CompanionCard, CompanionPhase, SessionState
from .inventory import InventorySystem

logger = logging.getLogger(__name__)


@dataclass
class UpkeepReport:
    """Transitions that happened during one upkeep pass."""
    became_wary: list[str] = field(default_factory=list)
    departed: list[str] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.became_wary or self.departed)


class CompanionSystem:
    """Bonding, feeding and neglect upkeep for the companion roster."""

    def __init__(
        self,
        session: SessionState,
        catalog: Catalog,
        log: GameLog,
        inventory: InventorySystem,
        config: EngineConfig | None = None,
        bus: EventBus | None = None,
    ):
        self._session = session
        self._catalog = catalog
        self._log = log
        self._inventory = inventory
        self._config = resolve_config(config)
        self._bus = bus or get_event_bus()

    def _emit(self, event_type: EventType, **data) -> None:
        self._bus.emit(
            event_type,
            session_id=self._session.id,
            turn=self._session.turn,
            **data,
        )

    def _name(self, companion_id: str) -> str:
        card = self._catalog.get_companion(companion_id)
        return card.name if card else companion_id

    # ─── Queries ─────────────────────────────────────────────────

    def get(self, companion_id: str) -> CompanionBondState | None:
        return self._session.companions.get(companion_id)

    def active_companions(self) -> list[CompanionBondState]:
        return [r for r in self._session.companions.values() if r.is_active]

    def is_suitable(self, companion: CompanionCard, resource_id: str) -> bool:
        """
        Check whether a resource is an acceptable offering.

        Matches a preferred entry by exact id, by the resource's catalog
        type, or by id prefix (entry "amber" accepts "amber_shards").
        """
        resource = self._catalog.get_resource(resource_id)
        resource_type = resource.type if resource else None
        for preferred in companion.preferred_resources:
            if resource_id == preferred:
                return True
            if resource_type is not None and resource_type == preferred:
                return True
            if resource_id.startswith(f"{preferred}_"):
                return True
        return False

    # ─── Player actions ──────────────────────────────────────────

    def bond(self, companion_id: str, resource_id: str) -> bool:
        """
        Bond with a companion by offering a suitable, held resource.

        Returns:
            True if a new bond was formed
        """
        if companion_id in self._session.companions:
            self._log.log(
                f"You are already bonded with the {self._name(companion_id)}.",
                category=LogCategory.COMPANION,
            )
            return False

        companion = self._catalog.get_companion(companion_id)
        if companion is None:
            logger.warning("Unknown companion: %s", companion_id)
            return False

        if not self.is_suitable(companion, resource_id):
            self._log.log(
                f"The {companion.name} shows no interest in {resource_id}.",
                category=LogCategory.COMPANION,
            )
            return False

        if not self._inventory.remove_resource(resource_id):
            self._log.log(
                f"You have no {resource_id} to offer.",
                category=LogCategory.COMPANION,
            )
            return False

        self._session.companions[companion_id] = CompanionBondState(
            companion_id=companion_id,
            loyalty=self._config["starting_loyalty"],
        )
        self._log.log(
            f"You have bonded with the {companion.name}!",
            highlight=True,
            category=LogCategory.COMPANION,
            details={"offering": resource_id},
        )
        self._emit(EventType.COMPANION_BONDED, companion=companion_id, offering=resource_id)
        return True

    def feed(self, companion_id: str, resource_id: str) -> bool:
        """
        Feed a companion, restoring a wary one to loyalty.

        Returns:
            False if the companion is not bonded or the resource is not held
        """
        record = self._session.companions.get(companion_id)
        if record is None:
            return False
        if not self._inventory.remove_resource(resource_id):
            return False

        record.turns_since_fed = 0
        record.loyalty = min(self._config["max_loyalty"], record.loyalty + 1)

        if record.phase == CompanionPhase.WARY:
            record.phase = CompanionPhase.LOYAL
            record.turns_wary = 0
            self._log.log(
                f"The {self._name(companion_id)} is loyal once more.",
                category=LogCategory.COMPANION,
            )
            self._emit(
                EventType.COMPANION_STATE_CHANGED,
                companion=companion_id,
                before=CompanionPhase.WARY.value,
                after=CompanionPhase.LOYAL.value,
            )

        self._log.log(
            f"You feed {resource_id} to the {self._name(companion_id)}.",
            category=LogCategory.COMPANION,
            details={"loyalty": record.loyalty},
        )
        self._emit(EventType.COMPANION_FED, companion=companion_id, resource=resource_id)
        return True

    def release(self, companion_id: str) -> bool:
        """Voluntarily part ways with a companion."""
        if self._session.companions.pop(companion_id, None) is None:
            return False
        self._log.log(
            f"You release the {self._name(companion_id)} back to the wild.",
            category=LogCategory.COMPANION,
        )
        self._emit(EventType.COMPANION_LEFT, companion=companion_id, voluntary=True)
        return True

    # ─── Upkeep ──────────────────────────────────────────────────

    def upkeep(self) -> UpkeepReport:
        """Advance every bonded companion by one unfed turn."""
        report = UpkeepReport()
        wary_after = self._config["wary_after_unfed"]
        leave_after = self._config["leave_after_wary"]

        for companion_id in list(self._session.companions):
            record = self._session.companions[companion_id]
            record.turns_since_fed += 1

            if record.phase == CompanionPhase.LOYAL:
                if record.turns_since_fed >= wary_after:
                    record.phase = CompanionPhase.WARY
                    record.turns_wary = 0
                    report.became_wary.append(companion_id)
                    self._log.log(
                        f"The {self._name(companion_id)} grows wary from neglect.",
                        highlight=True,
                        category=LogCategory.COMPANION,
                    )
                    self._emit(
                        EventType.COMPANION_STATE_CHANGED,
                        companion=companion_id,
                        before=CompanionPhase.LOYAL.value,
                        after=CompanionPhase.WARY.value,
                    )
            elif record.phase == CompanionPhase.WARY:
                record.turns_wary += 1
                if record.turns_wary >= leave_after:
                    record.phase = CompanionPhase.LEAVING

            if record.phase == CompanionPhase.LEAVING:
                del self._session.companions[companion_id]
                report.departed.append(companion_id)
                self._log.log(
                    f"The {self._name(companion_id)} has left you.",
                    highlight=True,
                    category=LogCategory.COMPANION,
                )
                self._emit(EventType.COMPANION_LEFT, companion=companion_id, voluntary=False)

        return report
