"""
Discharge-fractal (Lichtenberg figure) growth.

Growth is modeled as competing source and sink point sets on an integer grid:
- Sinks near the eastern edge exert a strong inverse-distance attraction
- Existing sources exert a weak field that favours cells away from claimed
  territory, which produces branching
- Frontier cells (8-connected neighbours of sources) are sampled with
  probability proportional to their normalized field value raised to a power

The output is pure geometry: vertices with jittered continuous positions and
the connections between them. The returned figure is always a single
connected component.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional, Sequence, Set, Tuple

import numpy as np
import structlog
from scipy.sparse import coo_matrix
from scipy.sparse.csgraph import connected_components

from .alea_prng import AleaPRNG

logger = structlog.get_logger()

Cell = Tuple[int, int]

NEIGHBOR_OFFSETS: Tuple[Cell, ...] = (
    (0, -1), (0, 1), (1, 0), (-1, 0),
    (-1, -1), (1, 1), (-1, 1), (1, -1),
)

SOURCE_FIELD_FLOOR = 0.1
SINK_ATTRACTION = 100.0
DEGENERATE_RANGE = 0.001


@dataclass
class LichtenbergConfig:
    """Parameters for one discharge figure."""

    width: int
    height: int
    start_x: int
    start_y: int
    min_vertices: int = 0
    max_vertices: Optional[int] = None
    sampling_power: float = 3.0  # higher = growth concentrates on high-field cells
    jitter: float = 0.5  # sub-cell displacement amplitude of emitted vertices
    respark_jitter: float = 2.0  # positional spread of a re-spark, in cells
    max_extension_attempts: int = 10
    sinks: Optional[List[Cell]] = None

    @property
    def effective_max_vertices(self) -> int:
        if self.max_vertices is not None:
            return self.max_vertices
        if self.min_vertices:
            return self.min_vertices * 3
        return self.width * self.height


@dataclass
class DischargeNode:
    cell: Cell
    parent: Optional[Cell]
    jitter: Tuple[float, float]
    depth: int = 0
    terminal: bool = True
    spark_origin: Optional[Cell] = None


@dataclass
class FrontierCell:
    value: float
    cell: Cell
    parent: Cell


@dataclass
class LichtenbergVertex:
    id: str
    x: float
    y: float
    cell: Cell
    parent_id: Optional[str] = None


@dataclass
class LichtenbergConnection:
    from_id: str
    to_id: str
    length: float


@dataclass
class LichtenbergFigure:
    vertices: List[LichtenbergVertex] = field(default_factory=list)
    connections: List[LichtenbergConnection] = field(default_factory=list)
    stats: Dict[str, int] = field(default_factory=dict)


def default_sinks(width: int, height: int) -> List[Cell]:
    """Sink points toward the eastern edge; wide fields get two flanking sinks."""
    if width <= 0 or height <= 0:
        return []
    sinks = [(min(width - 1, int(width * 0.9)), height // 2)]
    if width > 20 and height > 4:
        east = min(width - 1, int(width * 0.95))
        sinks.append((east, int(height * 0.3)))
        sinks.append((east, int(height * 0.7)))
    return sinks


class ElectricalField:
    """Source, frontier and sink sets of a growing discharge."""

    def __init__(self, width: int, height: int, prng: AleaPRNG, jitter: float = 0.5):
        self.width = width
        self.height = height
        self.prng = prng
        self.jitter_amplitude = jitter
        self.sources: Dict[Cell, DischargeNode] = {}
        self.frontier: Dict[Cell, FrontierCell] = {}
        self.sinks: Dict[Cell, DischargeNode] = {}
        self.blocked: Set[Cell] = set()
        self.finished = False

    def check_bounds(self, cell: Cell) -> bool:
        return 0 <= cell[0] < self.width and 0 <= cell[1] < self.height

    def _jitter(self) -> Tuple[float, float]:
        return (
            (self.prng.random() - 0.5) * self.jitter_amplitude,
            (self.prng.random() - 0.5) * self.jitter_amplitude,
        )

    def add_sink(self, cell: Cell) -> None:
        self.sinks[cell] = DischargeNode(cell=cell, parent=None, jitter=self._jitter())

    def block(self, cells: Sequence[Cell]) -> None:
        """Mark cells as unavailable for growth (already claimed elsewhere)."""
        self.blocked.update(cells)
        for cell in cells:
            self.frontier.pop(cell, None)

    def add_source(
        self,
        cell: Cell,
        parent: Optional[Cell] = None,
        spark_origin: Optional[Cell] = None,
    ) -> bool:
        """
        Promote a cell to a source.

        Returns False (and logs) for out-of-bounds cells, already claimed cells
        or an unknown parent; the field is left unchanged in that case.
        """
        if not self.check_bounds(cell):
            logger.error("Out-of-bounds cell passed to add_source", cell=cell)
            return False
        if cell in self.sources or cell in self.blocked:
            return False

        node = DischargeNode(cell=cell, parent=None, jitter=self._jitter(), spark_origin=spark_origin)
        if parent is not None:
            parent_node = self.sources.get(parent)
            if parent_node is None:
                logger.error("Parent supplied to add_source is not a source", cell=cell, parent=parent)
                return False
            node.parent = parent
            node.depth = parent_node.depth + 1
            parent_node.terminal = False

        self.sources[cell] = node
        self.frontier.pop(cell, None)

        # The new source raises the field of every pending frontier cell
        for frontier in self.frontier.values():
            dist = math.hypot(cell[0] - frontier.cell[0], cell[1] - frontier.cell[1])
            frontier.value += 1.0 - 0.5 / max(dist, SOURCE_FIELD_FLOOR)

        for dx, dy in NEIGHBOR_OFFSETS:
            self._add_frontier((cell[0] + dx, cell[1] + dy), cell)
        return True

    def _add_frontier(self, cell: Cell, parent: Cell) -> None:
        if not self.check_bounds(cell):
            return
        if cell in self.sinks:
            self.finished = True
            return
        if cell in self.sources or cell in self.frontier or cell in self.blocked:
            return

        self.frontier[cell] = FrontierCell(value=self._field_value(cell), cell=cell, parent=parent)

    def _field_value(self, cell: Cell) -> float:
        value = 0.0
        if self.sources:
            src = np.array(list(self.sources.keys()), dtype=float)
            dist = np.hypot(src[:, 0] - cell[0], src[:, 1] - cell[1])
            value += float(np.sum(1.0 - 0.5 / np.maximum(dist, SOURCE_FIELD_FLOOR)))
        if self.sinks:
            snk = np.array(list(self.sinks.keys()), dtype=float)
            dist = np.hypot(snk[:, 0] - cell[0], snk[:, 1] - cell[1])
            value += float(np.sum(SINK_ATTRACTION / np.maximum(dist, SOURCE_FIELD_FLOOR)))
        return value

    def sample_frontier(self, power: float) -> Optional[FrontierCell]:
        """
        Draw one frontier cell with probability proportional to
        ``normalized_value ** power``; uniform when the value range is degenerate.
        """
        if not self.frontier:
            return None

        candidates = list(self.frontier.values())
        values = np.fromiter((c.value for c in candidates), dtype=float, count=len(candidates))
        min_value = values.min()
        value_range = values.max() - min_value

        if value_range <= DEGENERATE_RANGE:
            return candidates[self.prng.randint(len(candidates))]

        weights = ((values - min_value) / value_range) ** power
        cumulative = np.cumsum(weights)
        roll = self.prng.random() * cumulative[-1]
        index = int(np.searchsorted(cumulative, roll, side="left"))
        return candidates[min(index, len(candidates) - 1)]

    def respark(self, spread: float, attempts: int = 8) -> bool:
        """
        Strike a new root next to a random existing source.

        The new root has no parent; it remembers the source it was struck
        from. Clears ``finished`` so exploration can continue.
        """
        if not self.sources:
            return False

        cells = list(self.sources.keys())
        for _ in range(attempts):
            origin = cells[self.prng.randint(len(cells))]
            offset_x = int(round((self.prng.random() - 0.5) * spread))
            offset_y = int(round((self.prng.random() - 0.5) * spread))
            candidate = (
                max(0, min(self.width - 1, origin[0] + offset_x)),
                max(0, min(self.height - 1, origin[1] + offset_y)),
            )
            if candidate in self.sources or candidate in self.blocked or candidate in self.sinks:
                continue
            if self.add_source(candidate, parent=None, spark_origin=origin):
                self.finished = False
                return True
        return False

    def has_frontier(self) -> bool:
        return bool(self.frontier)

    @property
    def source_count(self) -> int:
        return len(self.sources)

    def _reaches_root(self, cell: Cell) -> bool:
        seen: Set[Cell] = set()
        current: Optional[Cell] = cell
        while current is not None:
            node = self.sources.get(current)
            if node is None or current in seen:
                return False
            seen.add(current)
            if node.parent is None:
                return True
            current = node.parent
        return False

    def get_channels(self) -> List[List[Cell]]:
        """
        Walk every terminal source back toward a root.

        Terminals are processed deepest first. A channel stops at the first
        cell already claimed by an earlier channel and includes that junction,
        so branches stay attached to the trunk. Channels run root-to-terminal.
        """
        terminals = [cell for cell, node in self.sources.items() if node.terminal]
        terminals.sort(key=lambda c: -self.sources[c].depth)

        visited: Set[Cell] = set()
        channels: List[List[Cell]] = []

        for terminal in terminals:
            if not self._reaches_root(terminal):
                continue

            channel: List[Cell] = []
            current: Optional[Cell] = terminal
            while current is not None:
                channel.append(current)
                if current in visited:
                    break
                visited.add(current)
                current = self.sources[current].parent

            channel.reverse()
            channels.append(channel)

        return channels


def _grow(
    config: LichtenbergConfig,
    prng: AleaPRNG,
    roots: Sequence[Cell],
    blocked: FrozenSet[Cell],
    min_vertices: int,
    max_vertices: int,
) -> Tuple[ElectricalField, Dict[str, int]]:
    growth_field = ElectricalField(config.width, config.height, prng, jitter=config.jitter)
    growth_field.block(list(blocked))

    sinks = config.sinks if config.sinks is not None else default_sinks(config.width, config.height)
    for sink in sinks:
        growth_field.add_sink(sink)

    for root in roots:
        growth_field.add_source(root)

    max_iterations = max_vertices * 2
    iterations = 0
    resparks = 0

    while growth_field.source_count < max_vertices and iterations < max_iterations:
        while (
            growth_field.has_frontier()
            and not growth_field.finished
            and growth_field.source_count < max_vertices
            and iterations < max_iterations
        ):
            sample = growth_field.sample_frontier(config.sampling_power)
            if sample is None:
                break
            growth_field.add_source(sample.cell, sample.parent)
            iterations += 1

        if growth_field.source_count < min_vertices and resparks < max_vertices:
            if not growth_field.respark(config.respark_jitter):
                logger.info("Discharge stalled; no room to re-spark", sources=growth_field.source_count)
                break
            resparks += 1
        else:
            break

    stats = {
        "iterations": iterations,
        "resparks": resparks,
        "sources": growth_field.source_count,
        "reached_sink": int(growth_field.finished),
    }
    return growth_field, stats


def _figure_from_field(
    growth_field: ElectricalField,
    config: LichtenbergConfig,
    existing: Optional[Dict[Cell, LichtenbergVertex]] = None,
) -> LichtenbergFigure:
    """Convert channels into vertices and connections; ``existing`` vertices are reused, not re-emitted."""
    existing = existing or {}
    created: Dict[Cell, LichtenbergVertex] = {}
    connections: List[LichtenbergConnection] = []

    def vertex_for(cell: Cell) -> LichtenbergVertex:
        if cell in existing:
            return existing[cell]
        if cell not in created:
            jx, jy = growth_field.sources[cell].jitter
            created[cell] = LichtenbergVertex(
                id=f"c{cell[0]}-{cell[1]}",
                x=max(0.0, min(config.width - 1.0, cell[0] + jx)),
                y=max(0.0, min(config.height - 1.0, cell[1] + jy)),
                cell=cell,
            )
        return created[cell]

    def connect(a: LichtenbergVertex, b: LichtenbergVertex) -> None:
        connections.append(
            LichtenbergConnection(from_id=a.id, to_id=b.id, length=math.hypot(b.x - a.x, b.y - a.y))
        )

    for channel in growth_field.get_channels():
        if len(channel) < 2:
            continue
        for a_cell, b_cell in zip(channel, channel[1:]):
            a, b = vertex_for(a_cell), vertex_for(b_cell)
            if b.parent_id is None and b_cell not in existing:
                b.parent_id = a.id
            connect(a, b)

    for cell, node in growth_field.sources.items():
        if node.parent is None and node.spark_origin in growth_field.sources:
            connect(vertex_for(node.spark_origin), vertex_for(cell))

    return LichtenbergFigure(vertices=list(created.values()), connections=connections)


def filter_to_largest_component(figure: LichtenbergFigure) -> LichtenbergFigure:
    """Keep only the largest connected component (earliest vertex wins ties)."""
    if not figure.vertices:
        return figure

    index = {v.id: i for i, v in enumerate(figure.vertices)}
    pairs = [
        (index[c.from_id], index[c.to_id])
        for c in figure.connections
        if c.from_id in index and c.to_id in index
    ]
    n = len(figure.vertices)
    rows = np.array([p[0] for p in pairs], dtype=np.int32)
    cols = np.array([p[1] for p in pairs], dtype=np.int32)
    matrix = coo_matrix((np.ones(len(pairs), dtype=np.int8), (rows, cols)), shape=(n, n))
    _, labels = connected_components(matrix, directed=False)

    keep_label = int(np.argmax(np.bincount(labels)))
    kept_ids = {v.id for v, label in zip(figure.vertices, labels) if label == keep_label}

    return LichtenbergFigure(
        vertices=[v for v in figure.vertices if v.id in kept_ids],
        connections=[c for c in figure.connections if c.from_id in kept_ids and c.to_id in kept_ids],
        stats=dict(figure.stats, dropped_vertices=n - len(kept_ids)),
    )


def find_terminal_vertices(figure: LichtenbergFigure) -> List[LichtenbergVertex]:
    """Vertices with exactly one connection."""
    degree: Dict[str, int] = {v.id: 0 for v in figure.vertices}
    for c in figure.connections:
        if c.from_id in degree:
            degree[c.from_id] += 1
        if c.to_id in degree:
            degree[c.to_id] += 1
    return [v for v in figure.vertices if degree[v.id] == 1]


def _extend_from_terminals(
    figure: LichtenbergFigure, config: LichtenbergConfig, prng: AleaPRNG
) -> LichtenbergFigure:
    """Grow new discharge from the figure's terminals, blocked by its existing cells."""
    terminals = find_terminal_vertices(figure)
    if not terminals:
        return figure

    existing = {v.cell: v for v in figure.vertices}
    terminal_cells = {v.cell for v in terminals}
    blocked = frozenset(cell for cell in existing if cell not in terminal_cells)

    shortfall = max(0, config.min_vertices - len(figure.vertices))
    growth_field, stats = _grow(
        config,
        prng,
        roots=[v.cell for v in terminals],
        blocked=blocked,
        min_vertices=len(terminals) + shortfall,
        max_vertices=len(terminals) + shortfall,
    )
    growth = _figure_from_field(growth_field, config, existing=existing)

    return LichtenbergFigure(
        vertices=figure.vertices + growth.vertices,
        connections=figure.connections + growth.connections,
        stats=figure.stats,
    )


def generate_lichtenberg_figure(config: LichtenbergConfig, prng: AleaPRNG) -> LichtenbergFigure:
    """
    Generate a connected discharge figure.

    Growth halts on reaching ``max_vertices``, exhausting the frontier or
    touching a sink; below ``min_vertices`` it re-sparks. The figure is then
    reduced to its largest connected component and, while still short of
    ``min_vertices``, extended from its terminals for a bounded number of
    attempts.

    Args:
        config: Field dimensions, start cell and vertex targets
        prng: Random stream; all randomness is drawn from it

    Returns:
        LichtenbergFigure with a single connected component
    """
    if config.width <= 0 or config.height <= 0:
        logger.warning("Discharge field has no cells", width=config.width, height=config.height)
        return LichtenbergFigure(stats={"iterations": 0, "resparks": 0, "sources": 0, "reached_sink": 0})

    start = (
        max(0, min(config.width - 1, config.start_x)),
        max(0, min(config.height - 1, config.start_y)),
    )
    growth_field, stats = _grow(
        config,
        prng,
        roots=[start],
        blocked=frozenset(),
        min_vertices=config.min_vertices,
        max_vertices=config.effective_max_vertices,
    )
    figure = _figure_from_field(growth_field, config)
    figure.stats = stats
    figure = filter_to_largest_component(figure)

    attempts = 0
    while (
        config.min_vertices
        and attempts < config.max_extension_attempts
        and len(figure.vertices) < config.min_vertices
    ):
        extended = filter_to_largest_component(
            _extend_from_terminals(figure, config, prng.fork(("extend", attempts)))
        )
        if len(extended.vertices) <= len(figure.vertices):
            logger.info("Terminal extension made no progress", vertices=len(figure.vertices))
            break
        figure = extended
        attempts += 1

    figure.stats["extension_attempts"] = attempts
    logger.info(
        "Generated discharge figure",
        vertices=len(figure.vertices),
        connections=len(figure.connections),
        **figure.stats,
    )
    return figure
