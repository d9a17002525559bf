"""
Ecosystem taxonomy for the place graph.

This module defines:
- The six ecosystems and their west-to-east progression
- Ecosystem URNs (flux:eco:<biome>:<climate>) used in exported records
- Ecological profiles (temperature/pressure/humidity ranges)
- Per-ecosystem connectivity targets
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple


class Ecosystem(Enum):
    """Ecosystem labels, listed west to east."""

    STEPPE = "steppe"
    GRASSLAND = "grassland"
    FOREST = "forest"
    MOUNTAIN = "mountain"
    JUNGLE = "jungle"
    MARSH = "marsh"

    @property
    def urn(self) -> str:
        return ECOSYSTEM_URNS[self]

    @property
    def display_name(self) -> str:
        return ECOSYSTEM_NAMES[self]

    @classmethod
    def from_urn(cls, urn: str) -> "Ecosystem":
        """Resolve an ecosystem URN; raises ValueError for unknown URNs."""
        for ecosystem, candidate in ECOSYSTEM_URNS.items():
            if candidate == urn:
                return ecosystem
        raise ValueError(f"Unknown ecosystem URN: {urn}")


# Bands are laid out in this order; marsh is assigned after dithering only.
ECOSYSTEM_PROGRESSION: List[Ecosystem] = [
    Ecosystem.STEPPE,
    Ecosystem.GRASSLAND,
    Ecosystem.FOREST,
    Ecosystem.MOUNTAIN,
    Ecosystem.JUNGLE,
]

TERMINAL_ECOSYSTEM = Ecosystem.MARSH

ECOSYSTEM_URNS: Dict[Ecosystem, str] = {
    Ecosystem.STEPPE: "flux:eco:steppe:arid",
    Ecosystem.GRASSLAND: "flux:eco:grassland:temperate",
    Ecosystem.FOREST: "flux:eco:forest:temperate",
    Ecosystem.MOUNTAIN: "flux:eco:mountain:arid",
    Ecosystem.JUNGLE: "flux:eco:jungle:tropical",
    Ecosystem.MARSH: "flux:eco:marsh:tropical",
}

VALID_ECOSYSTEM_URNS = frozenset(ECOSYSTEM_URNS.values())

# Names for display
ECOSYSTEM_NAMES: Dict[Ecosystem, str] = {
    Ecosystem.STEPPE: "Steppe",
    Ecosystem.GRASSLAND: "Grassland",
    Ecosystem.FOREST: "Forest",
    Ecosystem.MOUNTAIN: "Mountain",
    Ecosystem.JUNGLE: "Jungle",
    Ecosystem.MARSH: "Marsh",
}


@dataclass(frozen=True)
class EcologicalProfile:
    """Climate envelope of an ecosystem."""

    ecosystem: Ecosystem
    temperature: Tuple[float, float]  # °C
    pressure: Tuple[float, float]  # hPa
    humidity: Tuple[float, float]  # %

    def to_dict(self) -> Dict:
        return {
            "ecosystem": self.ecosystem.urn,
            "temperature": list(self.temperature),
            "pressure": list(self.pressure),
            "humidity": list(self.humidity),
        }


ECOLOGICAL_PROFILES: Dict[Ecosystem, EcologicalProfile] = {
    Ecosystem.STEPPE: EcologicalProfile(
        Ecosystem.STEPPE,
        temperature=(15.0, 35.0),  # Hot, dry steppe
        pressure=(1000.0, 1020.0),
        humidity=(20.0, 45.0),  # Arid
    ),
    Ecosystem.GRASSLAND: EcologicalProfile(
        Ecosystem.GRASSLAND,
        temperature=(10.0, 25.0),
        pressure=(1005.0, 1020.0),
        humidity=(45.0, 70.0),
    ),
    Ecosystem.FOREST: EcologicalProfile(
        Ecosystem.FOREST,
        temperature=(8.0, 22.0),
        pressure=(1000.0, 1020.0),
        humidity=(65.0, 85.0),
    ),
    Ecosystem.MOUNTAIN: EcologicalProfile(
        Ecosystem.MOUNTAIN,
        temperature=(-5.0, 15.0),  # Cold at altitude
        pressure=(850.0, 950.0),  # Low pressure (high altitude)
        humidity=(25.0, 55.0),
    ),
    Ecosystem.JUNGLE: EcologicalProfile(
        Ecosystem.JUNGLE,
        temperature=(20.0, 35.0),
        pressure=(1005.0, 1020.0),
        humidity=(75.0, 95.0),
    ),
    Ecosystem.MARSH: EcologicalProfile(
        Ecosystem.MARSH,
        temperature=(22.0, 32.0),
        pressure=(1010.0, 1025.0),  # Low elevation
        humidity=(85.0, 100.0),
    ),
}

# Average connections per vertex the connectivity pass tops each ecosystem up to.
# Rugged and remote biomes are traversed more sparsely.
TARGET_CONNECTIONS: Dict[Ecosystem, float] = {
    Ecosystem.STEPPE: 4.0,
    Ecosystem.GRASSLAND: 3.2,
    Ecosystem.FOREST: 2.8,
    Ecosystem.MOUNTAIN: 2.4,
    Ecosystem.JUNGLE: 2.8,
    Ecosystem.MARSH: 2.0,
}


def parse_ecosystem(value: str) -> Optional[Ecosystem]:
    """Accept either a URN or a bare biome label; None when unrecognised."""
    if value in VALID_ECOSYSTEM_URNS:
        return Ecosystem.from_urn(value)
    try:
        return Ecosystem(value)
    except ValueError:
        return None


def adjacent_ecosystems(ecosystem: Ecosystem) -> List[Ecosystem]:
    """
    Ecosystems immediately west and east of ``ecosystem``.

    Marsh sits east of the last band, so jungle and marsh neighbour each other.
    """
    if ecosystem is TERMINAL_ECOSYSTEM:
        return [ECOSYSTEM_PROGRESSION[-1]]
    index = ECOSYSTEM_PROGRESSION.index(ecosystem)
    neighbours = []
    if index > 0:
        neighbours.append(ECOSYSTEM_PROGRESSION[index - 1])
    if index < len(ECOSYSTEM_PROGRESSION) - 1:
        neighbours.append(ECOSYSTEM_PROGRESSION[index + 1])
    else:
        neighbours.append(TERMINAL_ECOSYSTEM)
    return neighbours
