"""Spatial metrics and the west-to-east ecosystem band model."""

import math
from dataclasses import dataclass
from typing import List, NamedTuple, Optional, Sequence, Tuple

import structlog

from ..config.world_config import WorldGenerationConfig
from .ecosystems import ECOSYSTEM_PROGRESSION, Ecosystem

logger = structlog.get_logger()


class SpatialMetrics(NamedTuple):
    """World extent in meters and the place grid laid over it."""

    world_width_meters: float
    world_height_meters: float
    grid_width: int
    grid_height: int
    place_spacing: float
    place_margin: float

    @property
    def cell_count(self) -> int:
        return self.grid_width * self.grid_height

    @property
    def center_row(self) -> int:
        return self.grid_height // 2

    def grid_to_world(self, grid_x: int, grid_y: int) -> Tuple[float, float]:
        """World coordinates (meters) of a grid cell."""
        return (
            self.place_margin + grid_x * self.place_spacing,
            self.place_margin + grid_y * self.place_spacing,
        )

    def world_to_grid(self, x: float, y: float) -> Tuple[int, int]:
        """Nearest grid cell of a world position."""
        return (
            int(round((x - self.place_margin) / self.place_spacing)),
            int(round((y - self.place_margin) / self.place_spacing)),
        )

    def in_bounds(self, grid_x: int, grid_y: int) -> bool:
        return 0 <= grid_x < self.grid_width and 0 <= grid_y < self.grid_height


@dataclass(frozen=True)
class EcosystemBand:
    """A contiguous west-east slice of the world assigned one ecosystem."""

    ecosystem: Ecosystem
    start_x: float  # world meters, inclusive
    end_x: float  # world meters, exclusive
    start_col: int
    end_col: int
    pure_zone_start: float
    pure_zone_end: float

    @property
    def width(self) -> float:
        return self.end_x - self.start_x

    @property
    def center_x(self) -> float:
        return (self.start_x + self.end_x) / 2

    def contains(self, x: float) -> bool:
        return self.start_x <= x < self.end_x

    def in_pure_zone(self, x: float) -> bool:
        return self.pure_zone_start <= x <= self.pure_zone_end

    def to_dict(self) -> dict:
        return {
            "ecosystem": self.ecosystem.value,
            "start_x": self.start_x,
            "end_x": self.end_x,
            "start_col": self.start_col,
            "end_col": self.end_col,
            "pure_zone_start": self.pure_zone_start,
            "pure_zone_end": self.pure_zone_end,
        }


def calculate_spatial_metrics(config: WorldGenerationConfig) -> SpatialMetrics:
    """
    Derive grid dimensions from world size, spacing and margin.

    A world too small to hold a single place yields a zero-sized grid rather
    than an error; growth engines return an empty graph for it.
    """
    width_m = config.world_width_km * 1000
    height_m = config.world_height_km * 1000

    grid_width = max(0, math.floor((width_m - 2 * config.place_margin) / config.place_spacing))
    grid_height = max(0, math.floor((height_m - 2 * config.place_margin) / config.place_spacing))

    return SpatialMetrics(
        world_width_meters=width_m,
        world_height_meters=height_m,
        grid_width=grid_width,
        grid_height=grid_height,
        place_spacing=config.place_spacing,
        place_margin=config.place_margin,
    )


def define_ecosystem_bands(
    metrics: SpatialMetrics,
    pure_ratio: float = 0.382,
    progression: Sequence[Ecosystem] = ECOSYSTEM_PROGRESSION,
) -> List[EcosystemBand]:
    """
    Partition the world width into equal consecutive bands, west to east.

    Each band's pure zone is ``pure_ratio`` of its width, centered; the
    remainder is split evenly into transition zones on both sides.
    """
    count = len(progression)
    band_width = metrics.world_width_meters / count
    bands = []

    for index, ecosystem in enumerate(progression):
        start_x = index * band_width
        end_x = (index + 1) * band_width
        pure_width = band_width * pure_ratio
        transition_width = band_width - pure_width
        pure_start = start_x + transition_width / 2

        bands.append(
            EcosystemBand(
                ecosystem=ecosystem,
                start_x=start_x,
                end_x=end_x,
                start_col=math.floor(index * metrics.grid_width / count),
                end_col=math.floor((index + 1) * metrics.grid_width / count),
                pure_zone_start=pure_start,
                pure_zone_end=pure_start + pure_width,
            )
        )

    logger.info(
        "Defined ecosystem bands",
        bands=len(bands),
        band_width_m=round(band_width, 1),
        pure_ratio=pure_ratio,
    )
    return bands


def find_band_index(x: float, bands: Sequence[EcosystemBand]) -> Optional[int]:
    """Index of the band containing world X; positions past the east edge map to the last band."""
    if not bands:
        return None
    for index, band in enumerate(bands):
        if band.contains(x):
            return index
    if x >= bands[-1].end_x:
        return len(bands) - 1
    if x < bands[0].start_x:
        return 0
    return None


def ecosystem_for_position(x: float, bands: Sequence[EcosystemBand]) -> Ecosystem:
    """Ecosystem of the band a world X coordinate falls into."""
    index = find_band_index(x, bands)
    if index is None:
        return ECOSYSTEM_PROGRESSION[-1]
    return bands[index].ecosystem
