"""
Deterministic place names and descriptions.

Choices are indexed by a hash of grid coordinates rather than drawn from the
generation PRNG, so re-exporting an unchanged graph yields the same text.
"""

from typing import Dict, List

from ..core.ecosystems import Ecosystem

NAME_MODIFIERS: List[str] = [
    "Northern", "Southern", "Eastern", "Western",
    "Upper", "Lower", "Deep", "High",
    "Remote", "Central", "Outer", "Inner",
]

DESCRIPTIONS: Dict[Ecosystem, List[str]] = {
    Ecosystem.STEPPE: [
        "A vast expanse of grassland stretches to the horizon.",
        "Wind-swept plains dotted with hardy shrubs.",
        "Rolling hills covered in golden grass.",
        "An open prairie under an endless sky.",
        "Dry grassland with scattered wildflowers.",
    ],
    Ecosystem.GRASSLAND: [
        "Lush green meadows sway in the breeze.",
        "Rich farmland with fertile soil.",
        "Temperate plains alive with wildlife.",
        "Rolling hills carpeted in emerald grass.",
        "A pastoral landscape of gentle slopes.",
    ],
    Ecosystem.FOREST: [
        "Towering trees form a verdant canopy overhead.",
        "Ancient woods filled with dappled sunlight.",
        "Dense woodland teeming with life.",
        "A cathedral of mighty oaks and elms.",
        "Misty forest paths wind between massive trunks.",
    ],
    Ecosystem.MOUNTAIN: [
        "Jagged peaks pierce the clouds above.",
        "Rocky crags and steep mountain slopes.",
        "Alpine terrain with treacherous paths.",
        "Windswept heights overlooking the world below.",
        "Barren stone faces and narrow ledges.",
    ],
    Ecosystem.JUNGLE: [
        "Thick vines and lush foliage block the sun.",
        "Humid air hangs heavy in the dense undergrowth.",
        "Exotic birds call from the tangled canopy.",
        "Steam rises from the rich jungle floor.",
        "Massive trees draped in hanging moss.",
    ],
    Ecosystem.MARSH: [
        "Murky waters reflect the cloudy sky.",
        "Cattails and reeds sway in the wetland breeze.",
        "Soggy ground squelches underfoot.",
        "Mist rises from the stagnant pools.",
        "Water lilies float on the dark surface.",
    ],
}

CONVERGENCE_SUFFIX = " Multiple paths converge here."
DEAD_END_SUFFIX = " This appears to be a dead end."


def coordinate_hash(grid_x: int, grid_y: int) -> int:
    """Small non-negative spatial hash of a grid cell."""
    return ((grid_x * 73856093) ^ (grid_y * 19349663)) & 0x7FFFFFFF


def generate_place_name(ecosystem: Ecosystem, grid_x: int, grid_y: int, is_origin: bool = False) -> str:
    if is_origin:
        return f"{ecosystem.display_name} Origin"
    modifier = NAME_MODIFIERS[coordinate_hash(grid_x, grid_y) % len(NAME_MODIFIERS)]
    return f"{modifier} {ecosystem.display_name}"


def generate_place_description(ecosystem: Ecosystem, grid_x: int, grid_y: int, degree: int) -> str:
    options = DESCRIPTIONS[ecosystem]
    # Offset the hash so name and description do not move in lockstep
    text = options[(coordinate_hash(grid_x, grid_y) >> 4) % len(options)]
    if degree > 2:
        text += CONVERGENCE_SUFFIX
    elif degree == 1:
        text += DEAD_END_SUFFIX
    return text
