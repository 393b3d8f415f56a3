from __future__ import annotations

import random
from typing import List, Optional

from derby_sim.horse_name_generator import NameGenerator

from .data_models import Horse, HorseColor

MIN_CONDITION = 1
MAX_CONDITION = 100

HORSE_COLORS = (
    HorseColor("Saddle Brown", "#8B4513"),
    HorseColor("Sienna", "#A0522D"),
    HorseColor("Peru", "#CD853F"),
    HorseColor("Chocolate", "#D2691E"),
    HorseColor("Fire Brick", "#B22222"),
    HorseColor("Crimson", "#DC143C"),
    HorseColor("Tomato", "#FF6347"),
    HorseColor("Orange Red", "#FF4500"),
    HorseColor("Dark Orange", "#FF8C00"),
    HorseColor("Orange", "#FFA500"),
    HorseColor("Gold", "#FFD700"),
    HorseColor("Dark Golden Rod", "#B8860B"),
    HorseColor("Golden Rod", "#DAA520"),
    HorseColor("Purple", "#800080"),
    HorseColor("Indigo", "#4B0082"),
    HorseColor("Blue", "#0000FF"),
    HorseColor("Navy", "#000080"),
    HorseColor("Teal", "#008080"),
    HorseColor("Green", "#008000"),
    HorseColor("Lime", "#00FF00"),
)


def horse_color(index: int) -> HorseColor:
    """Palette entry for a 0-based ordinal position, cycling past the end."""
    return HORSE_COLORS[index % len(HORSE_COLORS)]


def generate_horse(
    horse_id: int,
    rng: Optional[random.Random] = None,
    names: Optional[NameGenerator] = None,
) -> Horse:
    rng = rng or random.Random()
    names = names or NameGenerator(rng=rng)
    return Horse(
        horse_id=horse_id,
        name=names.generate(),
        color=horse_color(horse_id - 1),
        condition=rng.randint(MIN_CONDITION, MAX_CONDITION),
    )


def generate_horses(
    count: int = 20,
    rng: Optional[random.Random] = None,
    names: Optional[NameGenerator] = None,
) -> List[Horse]:
    """
    Generates `count` horses with ids 1..count.

    Bounds on `count` are the caller's concern; zero or negative yields an
    empty list.
    """
    rng = rng or random.Random()
    names = names or NameGenerator(rng=rng)
    return [generate_horse(horse_id, rng=rng, names=names) for horse_id in range(1, count + 1)]
