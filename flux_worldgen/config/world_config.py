"""Generation parameters for a single world."""

from dataclasses import asdict, dataclass, fields, replace
from typing import Any, Dict, Optional

from ..errors import ConfigurationError

GROWTH_STRATEGIES = ("flow", "discharge")
DIRECTION_SETS = ("full", "reduced")
WEATHER_MODES = ("simple", "smoothed")


@dataclass
class WorldGenerationConfig:
    """World generation options. Every field has a default."""

    # World dimensions
    world_width_km: float = 14.5
    world_height_km: float = 9.0
    place_spacing: float = 300.0  # meters between adjacent places
    place_margin: float = 200.0  # meters kept clear along every edge

    # Growth
    seed: Optional[int] = None
    growth_strategy: str = "flow"
    branching_factor: float = 1.0  # 0 = single channel, 1 = full 1-3 branching
    direction_set: str = "full"  # full = N,S,E,NE,SE; reduced = NE,E,SE
    min_vertices: int = 300  # discharge engine target
    max_vertices: Optional[int] = None  # defaults to 3 x min_vertices

    # Ecosystems
    dithering_strength: float = 1.0
    pure_ratio: float = 0.382  # share of each band that is never dithered

    # Post-processing
    connectivity_radius: int = 2  # grid steps searched when topping up connections

    # Export
    weather_mode: str = "simple"

    def validate(self) -> "WorldGenerationConfig":
        """Reject out-of-range parameters; returns self for chaining."""
        if self.world_width_km < 0 or self.world_height_km < 0:
            raise ConfigurationError("World dimensions must be non-negative")
        if self.place_spacing <= 0:
            raise ConfigurationError(f"place_spacing must be positive, got {self.place_spacing}")
        if self.place_margin < 0:
            raise ConfigurationError(f"place_margin must be non-negative, got {self.place_margin}")
        if not 0.0 <= self.branching_factor <= 1.0:
            raise ConfigurationError(f"branching_factor must be in [0, 1], got {self.branching_factor}")
        if not 0.0 <= self.dithering_strength <= 1.0:
            raise ConfigurationError(f"dithering_strength must be in [0, 1], got {self.dithering_strength}")
        if not 0.0 <= self.pure_ratio <= 1.0:
            raise ConfigurationError(f"pure_ratio must be in [0, 1], got {self.pure_ratio}")
        if self.growth_strategy not in GROWTH_STRATEGIES:
            raise ConfigurationError(f"Unknown growth strategy: {self.growth_strategy}")
        if self.direction_set not in DIRECTION_SETS:
            raise ConfigurationError(f"Unknown direction set: {self.direction_set}")
        if self.weather_mode not in WEATHER_MODES:
            raise ConfigurationError(f"Unknown weather mode: {self.weather_mode}")
        if self.min_vertices < 0:
            raise ConfigurationError("min_vertices must be non-negative")
        if self.max_vertices is not None and self.max_vertices < self.min_vertices:
            raise ConfigurationError("max_vertices must be >= min_vertices")
        if self.connectivity_radius < 1:
            raise ConfigurationError("connectivity_radius must be at least 1")
        return self

    @property
    def effective_max_vertices(self) -> int:
        return self.max_vertices if self.max_vertices is not None else self.min_vertices * 3

    def with_seed(self, seed: int) -> "WorldGenerationConfig":
        return replace(self, seed=seed)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WorldGenerationConfig":
        """Build a config from a dict, ignoring keys this version does not know."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})
