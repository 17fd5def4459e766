"""
Static card catalog.

Loads characters, companions, resources, crafted items and landscapes
from data/catalog.json. Lookups return None for unknown ids so callers
can treat a bad reference as a soft failure.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from .schema import (
    CharacterCard,
    CompanionCard,
    CraftedItemCard,
    LandscapeCard,
    ResourceCard,
)

logger = logging.getLogger(__name__)


# Default catalog data path
CATALOG_DATA_PATH = Path(__file__).parent.parent / "data" / "catalog.json"


class CatalogError(Exception):
    """Catalog file missing, unreadable, or malformed."""
    pass


class Catalog:
    """
    Read-only lookup over the game's cards.

    Data is loaded lazily on first access and cached. Pass ``data`` to
    build a catalog from an in-memory dict (tests, tools).
    """

    def __init__(self, path: Path | None = None, data: dict | None = None):
        self._path = path or CATALOG_DATA_PATH
        self._raw = data
        self._loaded = False
        self._characters: dict[str, CharacterCard] = {}
        self._companions: dict[str, CompanionCard] = {}
        self._resources: dict[str, ResourceCard] = {}
        self._items: dict[str, CraftedItemCard] = {}
        self._landscapes: dict[str, LandscapeCard] = {}
        self._journey_path: list[str] = []

    def _read(self) -> dict:
        if self._raw is not None:
            return self._raw
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            raise CatalogError(f"Cannot read catalog at {self._path}: {e}") from e

    def _load(self) -> None:
        """Parse and validate all cards (cached)."""
        if self._loaded:
            return
        raw = self._read()
        try:
            self._characters = {
                c["id"]: CharacterCard.model_validate(c) for c in raw.get("characters", [])
            }
            self._companions = {
                c["id"]: CompanionCard.model_validate(c) for c in raw.get("companions", [])
            }
            self._resources = {
                r["id"]: ResourceCard.model_validate(r) for r in raw.get("resources", [])
            }
            self._items = {
                i["id"]: CraftedItemCard.model_validate(i) for i in raw.get("crafted_items", [])
            }
            self._landscapes = {
                l["id"]: LandscapeCard.model_validate(l) for l in raw.get("landscapes", [])
            }
        except (KeyError, ValidationError) as e:
            raise CatalogError(f"Invalid catalog data: {e}") from e

        self._journey_path = [
            lid for lid in raw.get("journey_path", []) if lid in self._landscapes
        ]
        self._loaded = True
        logger.debug(
            "Catalog loaded: %d characters, %d companions, %d landscapes",
            len(self._characters), len(self._companions), len(self._landscapes),
        )

    # ─── Lookups ─────────────────────────────────────────────────

    def get_character(self, character_id: str) -> CharacterCard | None:
        self._load()
        return self._characters.get(character_id)

    def get_companion(self, companion_id: str) -> CompanionCard | None:
        self._load()
        return self._companions.get(companion_id)

    def get_resource(self, resource_id: str) -> ResourceCard | None:
        self._load()
        return self._resources.get(resource_id)

    def get_item(self, item_id: str) -> CraftedItemCard | None:
        self._load()
        return self._items.get(item_id)

    def get_landscape(self, landscape_id: str) -> LandscapeCard | None:
        self._load()
        return self._landscapes.get(landscape_id)

    # ─── Listings ────────────────────────────────────────────────

    @property
    def characters(self) -> list[CharacterCard]:
        self._load()
        return list(self._characters.values())

    @property
    def companions(self) -> list[CompanionCard]:
        self._load()
        return list(self._companions.values())

    @property
    def resources(self) -> list[ResourceCard]:
        self._load()
        return list(self._resources.values())

    @property
    def items(self) -> list[CraftedItemCard]:
        self._load()
        return list(self._items.values())

    @property
    def landscapes(self) -> list[LandscapeCard]:
        self._load()
        return list(self._landscapes.values())

    @property
    def journey_path(self) -> list[str]:
        """Default ordered path of landscape ids."""
        self._load()
        return list(self._journey_path)
