"""
Weather synthesis for exported places.

Two modes:
- simple: each place takes the midpoint of its ecosystem's ecological
  profile, with precipitation, light and cloud cover derived from it
- smoothed: a north-south / west-east gradient inside each profile, then
  iterative distance-weighted blending across edges, clamped back to the
  ecosystem's bounds so neighbouring places share coherent regional weather
"""

from dataclasses import asdict, dataclass
from typing import Dict, List, Optional

import numpy as np
import structlog
from scipy.sparse import csr_matrix

from .ecosystems import ECOLOGICAL_PROFILES
from .world_graph import WorldGraph, WorldVertex

logger = structlog.get_logger()

BASE_TIMESTAMP = 1699123456789  # ms
TIMESTAMP_STEP = 3600000  # one hour, ms


@dataclass
class WeatherOptions:
    """Smoothing parameters."""

    iterations: int = 3
    blend: float = 0.5  # share of the neighbour average taken per iteration
    temperature_gradient: float = 0.3  # warmer toward the south
    pressure_gradient: float = 0.2  # higher toward the north
    humidity_gradient: float = 0.3  # wetter toward the east


@dataclass
class WeatherSnapshot:
    temperature: float  # °C
    pressure: float  # hPa
    humidity: float  # %
    precipitation: float  # mm/hour
    ppfd: int  # μmol photons m⁻² s⁻¹
    clouds: int  # %
    ts: int

    def to_dict(self) -> Dict:
        return asdict(self)


def weather_timestamp(x: float, y: float) -> int:
    """Deterministic timestamp derived from world position."""
    return int(BASE_TIMESTAMP + (x * 1000 + y) * TIMESTAMP_STEP)


def derive_precipitation(humidity):
    return np.where(humidity > 70, (humidity - 70) * 0.2, 0.0)


def derive_ppfd(temperature):
    return np.where(temperature > 0, 800 + temperature * 10, 200.0)


def derive_clouds(humidity):
    return np.minimum(100.0, np.where(humidity > 50, (humidity - 50) * 1.5, 10.0))


def _snapshots(
    vertices: List[WorldVertex], temperature: np.ndarray, pressure: np.ndarray, humidity: np.ndarray
) -> List[WeatherSnapshot]:
    precipitation = derive_precipitation(humidity)
    ppfd = derive_ppfd(temperature)
    clouds = derive_clouds(humidity)

    return [
        WeatherSnapshot(
            temperature=round(float(temperature[i]), 1),
            pressure=round(float(pressure[i]), 1),
            humidity=round(float(humidity[i]), 1),
            precipitation=round(float(precipitation[i]), 2),
            ppfd=int(round(float(ppfd[i]))),
            clouds=int(round(float(clouds[i]))),
            ts=weather_timestamp(v.x, v.y),
        )
        for i, v in enumerate(vertices)
    ]


class WeatherSynthesizer:
    """Computes weather for every vertex of a finished graph."""

    def __init__(self, graph: WorldGraph, options: Optional[WeatherOptions] = None):
        self.graph = graph
        self.options = options or WeatherOptions()

        n = len(graph)
        self.lower = {k: np.zeros(n) for k in ("temperature", "pressure", "humidity")}
        self.upper = {k: np.zeros(n) for k in ("temperature", "pressure", "humidity")}
        for i, vertex in enumerate(graph.vertices):
            profile = ECOLOGICAL_PROFILES[vertex.ecosystem]
            for key in self.lower:
                low, high = getattr(profile, key)
                self.lower[key][i] = low
                self.upper[key][i] = high

    def midpoints(self) -> Dict[str, np.ndarray]:
        return {key: (self.lower[key] + self.upper[key]) / 2 for key in self.lower}

    def gradients(self) -> Dict[str, np.ndarray]:
        """
        Position the value of each place inside its profile range by location.

        Fractions are 0.5 (the midpoint) at the world's centre and move by
        the configured gradient toward the edges.
        """
        opts = self.options
        grid = np.array([(v.grid_x, v.grid_y) for v in self.graph.vertices], dtype=float)
        span = np.maximum(grid.max(axis=0), 1.0)
        x_norm = grid[:, 0] / span[0] - 0.5
        y_norm = grid[:, 1] / span[1] - 0.5

        fractions = {
            "temperature": 0.5 + opts.temperature_gradient * y_norm,
            "pressure": 0.5 - opts.pressure_gradient * y_norm,
            "humidity": 0.5 + opts.humidity_gradient * x_norm,
        }
        return {
            key: self.lower[key] + (self.upper[key] - self.lower[key]) * np.clip(fractions[key], 0.0, 1.0)
            for key in self.lower
        }

    def neighbour_weights(self) -> csr_matrix:
        """Row-normalised inverse-distance weights over graph edges."""
        n = len(self.graph)
        rows, cols, data = [], [], []
        for edge in self.graph.edges:
            weight = 1.0 / max(edge.distance, 1.0)
            rows += [edge.from_vertex, edge.to_vertex]
            cols += [edge.to_vertex, edge.from_vertex]
            data += [weight, weight]

        matrix = csr_matrix((data, (rows, cols)), shape=(n, n))
        totals = np.asarray(matrix.sum(axis=1)).ravel()
        scale = np.divide(1.0, totals, out=np.zeros_like(totals), where=totals > 0)
        return csr_matrix(matrix.multiply(scale[:, None]))

    def smooth(self, values: Dict[str, np.ndarray]) -> Dict[str, np.ndarray]:
        """Blend each value with its neighbours, re-clamping to ecological bounds every pass."""
        weights = self.neighbour_weights()
        has_neighbours = np.asarray(weights.sum(axis=1)).ravel() > 0
        blend = self.options.blend

        result = {key: array.copy() for key, array in values.items()}
        for _ in range(self.options.iterations):
            for key, array in result.items():
                averaged = weights @ array
                mixed = np.where(has_neighbours, (1 - blend) * array + blend * averaged, array)
                result[key] = np.clip(mixed, self.lower[key], self.upper[key])
        return result

    def calculate(self, mode: str = "simple") -> List[WeatherSnapshot]:
        if len(self.graph) == 0:
            return []

        if mode == "simple":
            values = self.midpoints()
        elif mode == "smoothed":
            values = self.smooth(self.gradients())
        else:
            raise ValueError(f"Unknown weather mode: {mode}")

        logger.debug("Synthesized weather", mode=mode, places=len(self.graph))
        return _snapshots(self.graph.vertices, values["temperature"], values["pressure"], values["humidity"])


def synthesize_weather(
    graph: WorldGraph, mode: str = "simple", options: Optional[WeatherOptions] = None
) -> List[WeatherSnapshot]:
    """Weather for every vertex, indexed by handle."""
    return WeatherSynthesizer(graph, options).calculate(mode)
