"""
Engine configuration persistence.

Tunable rule constants live here so systems read them from one place.
Saved overrides are stored in a JSON file and merged over the defaults.
"""

import json
from pathlib import Path
from typing import TypedDict


class EngineConfig(TypedDict, total=False):
    """Rule constants for a game session."""
    # Threat
    threat_reduction_cap: int  # Max tokens removed per turn
    threat_level_divisor: int  # tokens // divisor = threat level
    manifestation_chance_per_level: float
    otherworldly_threshold: int  # Tokens needed for the otherworldly table
    unprepared_season_threat: int  # Added when a season arrives unprepared
    # Victory / defeat
    defeat_threat: int
    balance_threat: int  # Victory needs fewer tokens than this
    max_turns: int
    required_crafted_items: int
    required_companions: int
    # Journey / seasons
    season_change_every: int  # Visited landscapes per season
    start_season: str
    # Companions
    starting_loyalty: int
    max_loyalty: int
    wary_after_unfed: int
    leave_after_wary: int
    # Challenges
    avoid_challenge_cost: int
    # Log
    log_limit: int


DEFAULT_CONFIG: EngineConfig = {
    "threat_reduction_cap": 3,
    "threat_level_divisor": 3,
    "manifestation_chance_per_level": 0.15,
    "otherworldly_threshold": 10,
    "unprepared_season_threat": 2,
    "defeat_threat": 15,
    "balance_threat": 6,
    "max_turns": 30,
    "required_crafted_items": 2,
    "required_companions": 1,
    "season_change_every": 3,
    "start_season": "samhain",
    "starting_loyalty": 5,
    "max_loyalty": 10,
    "wary_after_unfed": 3,
    "leave_after_wary": 2,
    "avoid_challenge_cost": 2,
    "log_limit": 100,
}


def resolve_config(overrides: EngineConfig | None = None) -> EngineConfig:
    """Return the defaults with any overrides applied."""
    config = DEFAULT_CONFIG.copy()
    if overrides:
        config.update(overrides)
    return config


def get_config_path(base_dir: Path | str = ".") -> Path:
    """Get path to config file."""
    return Path(base_dir) / ".celtic_realm_config.json"


def load_config(base_dir: Path | str = ".") -> EngineConfig:
    """Load config from file, or return defaults if not found."""
    path = get_config_path(base_dir)

    if not path.exists():
        return DEFAULT_CONFIG.copy()

    try:
        with open(path, "r", encoding="utf-8") as f:
            saved = json.load(f)
        # Merge with defaults to handle missing keys
        return resolve_config(saved)
    except (json.JSONDecodeError, IOError):
        return DEFAULT_CONFIG.copy()


def save_config(config: EngineConfig, base_dir: Path | str = ".") -> bool:
    """Save config to file. Returns True on success."""
    path = get_config_path(base_dir)

    path.parent.mkdir(parents=True, exist_ok=True)

    try:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(config, f, indent=2)
        return True
    except IOError:
        return False
