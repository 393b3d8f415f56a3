# horse_name_generator.py
# Draws race-horse display names from the fixed pool in configs/horse_names.json.
# Names are not unique; two horses in one batch may share a name.

from __future__ import annotations
import json
import random
from pathlib import Path
from typing import Any, Dict, List, Optional

NAME_CONFIG_PATH = Path(__file__).resolve().parents[1] / "configs" / "horse_names.json"

DEFAULT_NAMES: List[str] = [
    "Thunder", "Lightning", "Storm", "Blaze", "Shadow",
    "Midnight", "Sunrise", "Sunset", "Phoenix", "Dragon",
    "Eagle", "Falcon", "Comet", "Meteor", "Star",
    "Moon", "River", "Ocean", "Mountain", "Forest",
    "Desert", "Valley", "Canyon", "Meadow", "Spirit",
    "Soul", "Heart", "Courage", "Victory", "Champion",
    "Legend", "Hero", "Fire", "Ice", "Wind",
    "Earth", "Sky", "Cloud", "Rain", "Snow",
]

def _clean_pool(raw: Any) -> List[str]:
    if not isinstance(raw, list):
        return []
    return [str(name).strip() for name in raw if str(name).strip()]

class NameGenerator:
    def __init__(self, config_path: Optional[Path] = None, *, config: Optional[Dict[str, Any]] = None,
                 seed: Optional[int] = None, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random(seed)
        if config is None:
            config = self._load(config_path or NAME_CONFIG_PATH)
        self.cfg = config
        self.names = _clean_pool(self.cfg.get("names")) or list(DEFAULT_NAMES)

    @staticmethod
    def _load(path: Path) -> Dict[str, Any]:
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError:
            print(f"Warning: Could not find name pool at {path}. Using built-in names.")
        except json.JSONDecodeError as e:
            print(f"Warning: Could not parse name pool {path}: {e}. Using built-in names.")
        return {}

    def generate(self) -> str:
        return self.rng.choice(self.names)

if __name__ == "__main__":
    gen = NameGenerator(seed=0)
    for _ in range(20):
        print(gen.generate())
