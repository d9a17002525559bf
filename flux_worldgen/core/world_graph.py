"""Place graph data structure: vertex arena, edges and grid geometry helpers."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

import numpy as np
import structlog
from scipy.sparse import coo_matrix
from scipy.sparse.csgraph import connected_components

from .ecosystems import Ecosystem

logger = structlog.get_logger()

ORIGIN_VERTEX_ID = "origin"


class Direction(Enum):
    """Compass directions used for exits, listed counter-clockwise from east."""

    EAST = "east"
    NORTHEAST = "northeast"
    NORTH = "north"
    NORTHWEST = "northwest"
    WEST = "west"
    SOUTHWEST = "southwest"
    SOUTH = "south"
    SOUTHEAST = "southeast"

    @property
    def opposite(self) -> "Direction":
        return _OPPOSITES[self]

    @property
    def angle(self) -> int:
        return _DIRECTION_ANGLES[self]

    @property
    def vector(self) -> Tuple[int, int]:
        """Unit grid step (dx, dy); dy is negative toward the north."""
        return _DIRECTION_VECTORS[self]


_DIRECTION_ANGLES: Dict[Direction, int] = {d: i * 45 for i, d in enumerate(Direction)}
_DIRECTION_VECTORS: Dict[Direction, Tuple[int, int]] = {
    Direction.EAST: (1, 0),
    Direction.NORTHEAST: (1, -1),
    Direction.NORTH: (0, -1),
    Direction.NORTHWEST: (-1, -1),
    Direction.WEST: (-1, 0),
    Direction.SOUTHWEST: (-1, 1),
    Direction.SOUTH: (0, 1),
    Direction.SOUTHEAST: (1, 1),
}
_ANGLE_DIRECTIONS: Dict[int, Direction] = {a: d for d, a in _DIRECTION_ANGLES.items()}
_OPPOSITES: Dict[Direction, Direction] = {
    d: _ANGLE_DIRECTIONS[(a + 180) % 360] for d, a in _DIRECTION_ANGLES.items()
}


class FlowDirection(Enum):
    """Coarse edge classification derived from the quantized angle."""

    EASTWARD = "eastward"
    WESTWARD = "westward"
    NORTHWARD = "northward"
    SOUTHWARD = "southward"
    DIAGONAL = "diagonal"


def quantized_angle(dx: float, dy: float) -> int:
    """
    Angle of a displacement rounded to the nearest 45 degrees, in [0, 360).

    Grid rows grow southward, so north is a negative dy; angles run
    counter-clockwise from east with north at 90.
    """
    if dx == 0 and dy == 0:
        return 0
    degrees = math.degrees(math.atan2(-dy, dx))
    return int(round(degrees / 45.0) * 45) % 360


def direction_for_angle(angle: int) -> Direction:
    return _ANGLE_DIRECTIONS[angle % 360]


def compass_direction(dx: float, dy: float) -> Direction:
    """Compass direction from one grid cell toward another."""
    return direction_for_angle(quantized_angle(dx, dy))


def flow_direction_for_angle(angle: int) -> FlowDirection:
    angle %= 360
    if angle == 0:
        return FlowDirection.EASTWARD
    if angle == 90:
        return FlowDirection.NORTHWARD
    if angle == 180:
        return FlowDirection.WESTWARD
    if angle == 270:
        return FlowDirection.SOUTHWARD
    return FlowDirection.DIAGONAL


@dataclass(frozen=True)
class WorldVertex:
    """A place on the grid. Instances are immutable; passes replace them."""

    id: str
    x: float
    y: float
    grid_x: int
    grid_y: int
    ecosystem: Ecosystem
    is_origin: bool = False
    address: Optional[str] = None

    @property
    def cell(self) -> Tuple[int, int]:
        return (self.grid_x, self.grid_y)


@dataclass(frozen=True)
class WorldEdge:
    """A traversal link between two vertex handles."""

    id: str
    from_vertex: int
    to_vertex: int
    flow_direction: FlowDirection
    distance: float
    angle: int

    def other(self, handle: int) -> int:
        return self.to_vertex if handle == self.from_vertex else self.from_vertex


@dataclass
class WorldGraph:
    """
    Vertex arena with edges and adjacency stored by integer handle.

    Handles are list indices and stay stable for the lifetime of a graph.
    At most one vertex may occupy a grid cell. Edges are only ever added;
    passes that change vertices build a new graph via ``copy`` or
    ``with_vertices`` rather than mutating a shared one.
    """

    vertices: List[WorldVertex] = field(default_factory=list)
    edges: List[WorldEdge] = field(default_factory=list)
    adjacency: List[List[int]] = field(default_factory=list)
    _cells: Dict[Tuple[int, int], int] = field(default_factory=dict, repr=False)
    _edge_keys: Set[Tuple[int, int]] = field(default_factory=set, repr=False)
    _ids: Dict[str, int] = field(default_factory=dict, repr=False)

    # Construction

    def add_vertex(self, vertex: WorldVertex) -> int:
        """Append a vertex and return its handle."""
        if vertex.cell in self._cells:
            raise ValueError(f"Grid cell {vertex.cell} is already occupied")
        if vertex.id in self._ids:
            raise ValueError(f"Vertex id {vertex.id} is already in use")
        handle = len(self.vertices)
        self.vertices.append(vertex)
        self.adjacency.append([])
        self._cells[vertex.cell] = handle
        self._ids[vertex.id] = handle
        return handle

    def add_edge(self, a: int, b: int) -> Optional[WorldEdge]:
        """
        Link two vertices. Returns None for self-loops and existing links.

        The angle comes from the grid displacement, so it always agrees with
        the relative position of the endpoints.
        """
        if a == b:
            return None
        key = (min(a, b), max(a, b))
        if key in self._edge_keys:
            return None

        va, vb = self.vertices[a], self.vertices[b]
        angle = quantized_angle(vb.grid_x - va.grid_x, vb.grid_y - va.grid_y)
        edge = WorldEdge(
            id=f"{va.id}-{vb.id}",
            from_vertex=a,
            to_vertex=b,
            flow_direction=flow_direction_for_angle(angle),
            distance=math.hypot(vb.x - va.x, vb.y - va.y),
            angle=angle,
        )
        self.edges.append(edge)
        self._edge_keys.add(key)
        self.adjacency[a].append(b)
        self.adjacency[b].append(a)
        return edge

    def copy(self) -> "WorldGraph":
        """Copy the arena; vertex and edge records are immutable and shared."""
        return WorldGraph(
            vertices=list(self.vertices),
            edges=list(self.edges),
            adjacency=[list(n) for n in self.adjacency],
            _cells=dict(self._cells),
            _edge_keys=set(self._edge_keys),
            _ids=dict(self._ids),
        )

    def with_vertices(self, vertices: Sequence[WorldVertex]) -> "WorldGraph":
        """New graph with replacement vertex records at the same handles and cells."""
        if len(vertices) != len(self.vertices):
            raise ValueError("Replacement vertex list must keep every handle")
        for old, new in zip(self.vertices, vertices):
            if old.cell != new.cell or old.id != new.id:
                raise ValueError(f"Vertex {old.id} may not change id or cell")
        graph = self.copy()
        graph.vertices = list(vertices)
        return graph

    @classmethod
    def from_parts(
        cls, vertices: Iterable[WorldVertex], links: Iterable[Tuple[str, str]]
    ) -> Tuple["WorldGraph", int]:
        """
        Build a graph from vertex records and (id, id) links.

        Links naming an unknown vertex are skipped and counted; the graph may
        have been filtered after the links were recorded.
        """
        graph = cls()
        for vertex in vertices:
            graph.add_vertex(vertex)

        skipped = 0
        for from_id, to_id in links:
            a = graph.handle_of(from_id)
            b = graph.handle_of(to_id)
            if a is None or b is None:
                skipped += 1
                logger.warning("Skipping link to missing vertex", from_id=from_id, to_id=to_id)
                continue
            graph.add_edge(a, b)
        return graph, skipped

    # Queries

    def __len__(self) -> int:
        return len(self.vertices)

    def vertex_at(self, grid_x: int, grid_y: int) -> Optional[int]:
        return self._cells.get((grid_x, grid_y))

    def handle_of(self, vertex_id: str) -> Optional[int]:
        return self._ids.get(vertex_id)

    def has_edge(self, a: int, b: int) -> bool:
        return (min(a, b), max(a, b)) in self._edge_keys

    def degree(self, handle: int) -> int:
        return len(self.adjacency[handle])

    def neighbors(self, handle: int) -> Tuple[int, ...]:
        return tuple(self.adjacency[handle])

    def occupied_cells(self) -> Set[Tuple[int, int]]:
        return set(self._cells)

    @property
    def origin(self) -> Optional[int]:
        """Handle of the first origin-flagged vertex, if any."""
        for handle, vertex in enumerate(self.vertices):
            if vertex.is_origin:
                return handle
        return None

    def handles_in(self, ecosystem: Ecosystem) -> List[int]:
        return [h for h, v in enumerate(self.vertices) if v.ecosystem is ecosystem]

    def component_labels(self) -> Tuple[int, np.ndarray]:
        """Connected component count and per-handle labels."""
        n = len(self.vertices)
        if n == 0:
            return 0, np.zeros(0, dtype=np.int32)
        rows = np.array([e.from_vertex for e in self.edges], dtype=np.int32)
        cols = np.array([e.to_vertex for e in self.edges], dtype=np.int32)
        data = np.ones(len(self.edges), dtype=np.int8)
        matrix = coo_matrix((data, (rows, cols)), shape=(n, n))
        return connected_components(matrix, directed=False)

    def count_components(self) -> int:
        return self.component_labels()[0]


def replace_ecosystem(vertex: WorldVertex, ecosystem: Ecosystem) -> WorldVertex:
    if vertex.ecosystem is ecosystem:
        return vertex
    return replace(vertex, ecosystem=ecosystem)
