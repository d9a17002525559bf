"""Place addresses: flux:place:<biome>:<x>:<y>, with a reserved origin address."""

from typing import Tuple

from .world_graph import WorldVertex

ORIGIN_PLACE_ADDRESS = "flux:place:origin"
PLACE_PREFIX = "flux:place:"


def format_coordinate(value: float) -> str:
    """Render a world coordinate; whole numbers lose their decimal point."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return f"{value:.2f}".rstrip("0").rstrip(".")


def generate_place_address(vertex: WorldVertex) -> str:
    """Stable address of a vertex from its ecosystem and world coordinates."""
    if vertex.is_origin:
        return ORIGIN_PLACE_ADDRESS
    return f"{PLACE_PREFIX}{vertex.ecosystem.value}:{format_coordinate(vertex.x)}:{format_coordinate(vertex.y)}"


def parse_place_address(address: str) -> Tuple[str, float, float]:
    """Split a non-origin address into (biome, x, y); raises ValueError when malformed."""
    if not address.startswith(PLACE_PREFIX):
        raise ValueError(f"Not a place address: {address}")
    parts = address[len(PLACE_PREFIX):].split(":")
    if len(parts) != 3:
        raise ValueError(f"Malformed place address: {address}")
    biome, x, y = parts
    return biome, float(x), float(y)
