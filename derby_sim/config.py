import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

REPO_ROOT = Path(__file__).resolve().parents[1]
CONFIG_FILE_PATH = os.getenv('DERBY_CONFIG_PATH', str(REPO_ROOT / 'configs' / 'game_balance.json'))

DEFAULT_CONFIG = {
    'game': {
        'min_horses_for_race': 10,
        'max_horses_per_race': 10,
        'default_horses_generated': 20,
        'race_distances': [1200, 1400, 1600, 1800, 2000, 2200],
        'min_race_duration_ms': 2000,
        'race_delay_ms': 5000,
    },
    'race_constants': {
        'max_race_time_seconds': 5,
        'base_condition_factor': 120,
        'random_factor_min': 0.8,
        'random_factor_max': 1.2,
        'distance_conversion_factor': 1000,
    },
    'validation': {
        'min_horse_count': 1,
        'max_horse_count': 50,
        'min_race_distance': 100,
        'max_race_distance': 5000,
        'min_horse_condition': 1,
        'max_horse_condition': 100,
    },
}

def load_config(path=None):
    """
    Loads the main game balance config file.
    """
    path = path or CONFIG_FILE_PATH
    try:
        with open(path, 'r') as f:
            config = json.load(f)
        return config
    except FileNotFoundError:
        print(f"FATAL ERROR: Could not find config file at {path}. Using built-in defaults.")
        return None
    except Exception as e:
        print(f"FATAL ERROR: Could not parse config file {path}: {e}. Using built-in defaults.")
        return None

# Load the config ONCE when the module is first imported
BALANCE_CONFIG = load_config()

def get_config(key_path, default=None):
    """
    Safely gets a value from the loaded config using a 'dot.path'.
    Falls back to the built-in defaults before giving up.
    Example: get_config('game.race_delay_ms')
    """
    for source in (BALANCE_CONFIG, DEFAULT_CONFIG):
        if not source:
            continue
        try:
            value = source
            for key in key_path.split('.'):
                value = value[key]
            return value
        except (KeyError, TypeError):
            continue
    print(f"Warning: Could not find config key: {key_path}")
    return default


def _env_int(name: str) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    try:
        return int(raw)
    except ValueError:
        print(f"Warning: Ignoring non-integer value for {name}: {raw!r}")
        return None


@dataclass(frozen=True)
class GameConfig:
    min_horses_for_race: int = 10
    max_horses_per_race: int = 10
    default_horses_generated: int = 20
    race_distances: Tuple[int, ...] = (1200, 1400, 1600, 1800, 2000, 2200)
    min_race_duration_ms: int = 2000
    race_delay_ms: int = 5000


@dataclass(frozen=True)
class RaceConstants:
    max_race_time_seconds: float = 5.0
    base_condition_factor: float = 120.0
    random_factor_min: float = 0.8
    random_factor_max: float = 1.2
    distance_conversion_factor: float = 1000.0


@dataclass(frozen=True)
class ValidationConstants:
    min_horse_count: int = 1
    max_horse_count: int = 50
    min_race_distance: float = 100
    max_race_distance: float = 5000
    min_horse_condition: float = 1
    max_horse_condition: float = 100


def load_game_config() -> GameConfig:
    """Builds the game settings from the JSON config, then applies env overrides."""
    settings = {
        'min_horses_for_race': int(get_config('game.min_horses_for_race')),
        'max_horses_per_race': int(get_config('game.max_horses_per_race')),
        'default_horses_generated': int(get_config('game.default_horses_generated')),
        'race_distances': tuple(int(d) for d in get_config('game.race_distances')),
        'min_race_duration_ms': int(get_config('game.min_race_duration_ms')),
        'race_delay_ms': int(get_config('game.race_delay_ms')),
    }
    overrides = {
        'min_race_duration_ms': _env_int('DERBY_MIN_RACE_DURATION_MS'),
        'race_delay_ms': _env_int('DERBY_RACE_DELAY_MS'),
        'default_horses_generated': _env_int('DERBY_DEFAULT_HORSES'),
    }
    settings.update({key: value for key, value in overrides.items() if value is not None})
    return GameConfig(**settings)


def load_race_constants() -> RaceConstants:
    cfg = get_config('race_constants', {})
    return RaceConstants(**{key: float(value) for key, value in cfg.items()})


def load_validation_constants() -> ValidationConstants:
    cfg = get_config('validation', {})
    return ValidationConstants(**cfg)


GAME_CONFIG = load_game_config()
RACE_CONSTANTS = load_race_constants()
VALIDATION_CONSTANTS = load_validation_constants()
