"""
Command-line autoplay for Celtic Realm.

Plays a whole journey with a simple greedy policy and prints the state
at the end of every turn. Useful for eyeballing balance changes.

Usage:
    python -m celtic_realm --character hedge_witch --seed 7
"""

import argparse
import logging
import random

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .config import load_config, save_config
from .engine import GameEngine
from .state.event_bus import EventBus, EventType, GameEvent
from .state.schema import GameResult, Season, TurnPhase
from .systems.seasons import season_name

console = Console()

THEME = {
    "primary": "dark_sea_green",   # oak leaves
    "secondary": "wheat1",         # barley at Lughnasadh
    "warning": "dark_goldenrod",   # threat gathering
    "danger": "dark_red",          # the veil torn
    "dim": "dim",
}


# -----------------------------------------------------------------------------
# Autoplay policy
# -----------------------------------------------------------------------------

def _bond_or_feed(engine: GameEngine) -> None:
    session = engine.session
    landscape = engine.journey.current_landscape
    if landscape:
        for companion_id in landscape.companions:
            if companion_id in session.companions:
                continue
            card = engine.catalog.get_companion(companion_id)
            offer = next(
                (r for r in session.inventory if card and engine.companions.is_suitable(card, r)),
                None,
            )
            if offer and engine.bond_companion(companion_id, offer):
                break

    for record in list(session.companions.values()):
        if record.turns_since_fed < 2 or not session.inventory:
            continue
        card = engine.catalog.get_companion(record.companion_id)
        food = next(
            (r for r in session.inventory if card and engine.companions.is_suitable(card, r)),
            session.inventory[0],
        )
        engine.feed_companion(record.companion_id, food)


def _try_craft(engine: GameEngine) -> None:
    for item in engine.catalog.items:
        if engine.can_craft(item.id).can_craft:
            engine.craft(item.id)
            return


def _gather(engine: GameEngine) -> None:
    landscape = engine.journey.current_landscape
    if not landscape:
        return
    for resource_id in landscape.available_resources:
        if engine.gather(resource_id).success:
            return


def _mitigate(engine: GameEngine) -> None:
    engine.rest()
    engine.visit_sacred_site()
    if engine.threat.tokens >= 3:
        engine.perform_seasonal_ritual()
    if engine.threat.tokens >= 6 and engine.session.has_resource("sacred_water"):
        engine.use_protective_resource("sacred_water")


def play_phase(engine: GameEngine, character_id: str) -> None:
    """Take the policy's actions for the current phase."""
    phase = engine.get_current_phase()
    if phase == TurnPhase.CHARACTER_SELECTION:
        engine.select_character(character_id)
    elif phase == TurnPhase.RESOURCE_MANAGEMENT:
        _gather(engine)
    elif phase == TurnPhase.ANIMAL_COMPANION:
        _bond_or_feed(engine)
    elif phase == TurnPhase.CRAFTING:
        _try_craft(engine)
    elif phase == TurnPhase.JOURNEY_PROGRESSION:
        _mitigate(engine)


# -----------------------------------------------------------------------------
# Rendering
# -----------------------------------------------------------------------------

def show_turn(engine: GameEngine) -> None:
    session = engine.session
    landscape = engine.journey.current_landscape
    table = Table(
        title=f"[bold {THEME['primary']}]Turn {session.turn}[/bold {THEME['primary']}]",
        show_header=False,
        box=None,
    )
    table.add_column("Key", style=THEME["dim"])
    table.add_column("Value", style=THEME["secondary"])

    table.add_row("Season", season_name(session.season))
    table.add_row("Landscape", landscape.name if landscape else "-")
    table.add_row("Health", f"{session.health}/{session.max_health}")
    threat_style = THEME["danger"] if session.threat.level >= 3 else THEME["warning"]
    table.add_row(
        "Threat",
        f"[{threat_style}]{session.threat.tokens} (level {session.threat.level})[/{threat_style}]",
    )
    table.add_row("Blessings", str(session.blessing_tokens))
    table.add_row("Inventory", ", ".join(session.inventory) or "-")
    table.add_row("Items", ", ".join(session.equipped_items) or "-")
    table.add_row(
        "Companions",
        ", ".join(f"{cid} ({r.phase.value})" for cid, r in session.companions.items()) or "-",
    )
    outcome = engine.get_last_outcome()
    if outcome:
        table.add_row("Last challenge", f"{outcome.challenge_name}: {outcome.narrative}")
    console.print(table)
    console.print()


class EventFeed:
    """
    Prints the turning points of a journey as they are announced.

    Lines are kept so a caller can inspect what was shown.
    """

    def __init__(self):
        self.lines: list[str] = []
        self._formatters = {
            EventType.MANIFESTATION: self._manifestation,
            EventType.SEASON_CHANGED: self._season,
            EventType.COMPANION_LEFT: self._companion_left,
            EventType.ITEM_CRAFTED: self._crafted,
        }

    def attach(self, bus: EventBus) -> None:
        for event_type in self._formatters:
            bus.on(event_type, self.handle)

    def handle(self, event: GameEvent) -> None:
        line = self._formatters[event.type](event.data)
        if line:
            self.lines.append(line)
            console.print(line)

    def _manifestation(self, data: dict) -> str | None:
        if not data.get("name"):
            return None
        if data.get("countered"):
            return f"[{THEME['secondary']}]  {data['name']} is warded off.[/{THEME['secondary']}]"
        return f"[{THEME['danger']}]  {data['name']} manifests![/{THEME['danger']}]"

    def _season(self, data: dict) -> str:
        return (
            f"[{THEME['primary']}]  The wheel turns to "
            f"{season_name(Season(data['after']))}.[/{THEME['primary']}]"
        )

    def _companion_left(self, data: dict) -> str:
        return f"[{THEME['warning']}]  The {data['companion']} is gone.[/{THEME['warning']}]"

    def _crafted(self, data: dict) -> str:
        return f"[{THEME['secondary']}]  Crafted {data['item']}.[/{THEME['secondary']}]"


def show_result(engine: GameEngine) -> None:
    session = engine.session
    style = THEME["primary"] if session.result == GameResult.VICTORY else THEME["danger"]
    console.print(Panel(
        session.result_reason or "The journey goes on.",
        title=f"[bold {style}]{session.result.value.upper()}[/bold {style}]",
        border_style=style,
    ))


# -----------------------------------------------------------------------------
# Main
# -----------------------------------------------------------------------------

def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Celtic Realm - automated playthrough")
    parser.add_argument(
        "--character", "-c",
        default="giant_beastfriend",
        help="Character id to play"
    )
    parser.add_argument(
        "--turns", "-t",
        type=int,
        default=None,
        help="Stop after this many turns (default: play until the game ends)"
    )
    parser.add_argument(
        "--seed", "-s",
        type=int,
        default=None,
        help="Seed for the random source"
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Developer log level"
    )
    parser.add_argument(
        "--save-config",
        action="store_true",
        help="Write the effective rule constants to .celtic_realm_config.json and exit"
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format='%(asctime)s [%(levelname)s] %(message)s',
    )

    config = load_config()
    if args.save_config:
        if not save_config(config):
            console.print(f"[{THEME['danger']}]Could not write config.[/{THEME['danger']}]")
            return 1
        console.print(f"[{THEME['dim']}]Config saved.[/{THEME['dim']}]")
        return 0

    engine = GameEngine(rng=random.Random(args.seed), config=config)
    if engine.catalog.get_character(args.character) is None:
        console.print(f"[{THEME['danger']}]Unknown character:[/{THEME['danger']}] {args.character}")
        return 2

    EventFeed().attach(engine.bus)
    engine.advance_phase()
    while not engine.is_over:
        play_phase(engine, args.character)
        if engine.get_current_phase() == TurnPhase.EXPLORATION:
            show_turn(engine)
            if args.turns is not None and engine.session.turn >= args.turns:
                break
        engine.advance_phase()

    if engine.is_over:
        show_result(engine)
    return 0
