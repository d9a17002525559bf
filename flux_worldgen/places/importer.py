"""
Re-import of exported JSONL worlds.

Vertices are rebuilt from place records and edges from exit references. Edge
angles, lengths and flow directions are recomputed from coordinates, and the
band model is rebuilt from the embedded configuration.
"""

import json
from typing import Any, Dict, List, Sequence, Tuple

import structlog

from ..config.world_config import WorldGenerationConfig
from ..core.addresses import ORIGIN_PLACE_ADDRESS, parse_place_address
from ..core.dithering import DitheringStats
from ..core.ecosystems import adjacent_ecosystems, parse_ecosystem
from ..core.generator import WorldGenerationResult
from ..core.growth import GrowthStats, vertex_id_for
from ..core.spatial import (
    EcosystemBand,
    SpatialMetrics,
    calculate_spatial_metrics,
    define_ecosystem_bands,
    find_band_index,
)
from ..core.topology import ConnectivityStats, SquareCompletionStats
from ..core.world_graph import ORIGIN_VERTEX_ID, WorldGraph, WorldVertex, compass_direction
from ..errors import (
    ConfigurationError,
    DuplicateAddressError,
    ImportValidationError,
    OriginError,
)

logger = structlog.get_logger()

ADDRESS_TOLERANCE = 0.005


def parse_jsonl(content: str) -> Tuple[Dict[str, Any], List[Dict[str, Any]]]:
    """Split a JSONL stream into its metadata object and place records."""
    lines = [line for line in content.strip().splitlines() if line.strip()]
    if len(lines) < 2:
        raise ImportValidationError("JSONL must contain a metadata line and at least one place")

    parsed = []
    for number, line in enumerate(lines, start=1):
        try:
            parsed.append(json.loads(line))
        except json.JSONDecodeError as e:
            raise ImportValidationError(f"Invalid JSON on line {number}: {e.msg}") from e
        if not isinstance(parsed[-1], dict):
            raise ImportValidationError(f"Line {number} is not a JSON object")

    return parsed[0], parsed[1:]


def _config_from_metadata(metadata: Dict[str, Any]) -> WorldGenerationConfig:
    if not metadata.get("version"):
        raise ImportValidationError("Metadata is missing a version")
    if not isinstance(metadata.get("config"), dict):
        raise ImportValidationError("Metadata is missing the generation config")
    try:
        return WorldGenerationConfig.from_dict(metadata["config"]).validate()
    except (ConfigurationError, TypeError) as e:
        raise ImportValidationError(f"Embedded config is invalid: {e}") from e


def _record_ecosystem(record: Dict[str, Any]):
    ecology = record.get("ecology")
    raw = ecology.get("ecosystem") if isinstance(ecology, dict) else record.get("ecosystem")
    ecosystem = parse_ecosystem(raw) if isinstance(raw, str) else None
    if ecosystem is None:
        raise ImportValidationError(f"Place has an invalid ecosystem: {raw}", [str(record.get("id"))])
    return ecosystem


def vertex_from_record(record: Dict[str, Any], metrics: SpatialMetrics) -> WorldVertex:
    """
    Rebuild one vertex, checking its address against its coordinates.

    Raises:
        ImportValidationError: Missing fields, non-numeric coordinates, unknown
            ecosystem or a mismatched address
    """
    address = record.get("id")
    coordinates = record.get("coordinates")
    if not isinstance(address, str) or not isinstance(coordinates, list) or len(coordinates) != 2:
        raise ImportValidationError("Place record needs an id and [x, y] coordinates", [str(address)])

    ecosystem = _record_ecosystem(record)
    try:
        x, y = float(coordinates[0]), float(coordinates[1])
    except (TypeError, ValueError) as e:
        raise ImportValidationError(f"Coordinates must be numbers: {coordinates}", [address]) from e
    is_origin = address == ORIGIN_PLACE_ADDRESS

    if not is_origin:
        try:
            biome, address_x, address_y = parse_place_address(address)
        except ValueError as e:
            raise ImportValidationError(str(e), [address]) from e
        # Addresses carry at most two decimals
        if abs(address_x - x) > ADDRESS_TOLERANCE or abs(address_y - y) > ADDRESS_TOLERANCE:
            raise ImportValidationError(
                f"Address coordinates ({address_x}, {address_y}) do not match record ({x}, {y})", [address]
            )
        if biome != ecosystem.value:
            raise ImportValidationError(f"Address biome {biome} does not match ecosystem {ecosystem.value}", [address])

    grid_x, grid_y = metrics.world_to_grid(x, y)
    return WorldVertex(
        id=ORIGIN_VERTEX_ID if is_origin else vertex_id_for(grid_x, grid_y),
        x=x,
        y=y,
        grid_x=grid_x,
        grid_y=grid_y,
        ecosystem=ecosystem,
        is_origin=is_origin,
        address=address,
    )


def _check_band(vertex: WorldVertex, bands: Sequence[EcosystemBand]) -> None:
    index = find_band_index(vertex.x, bands)
    if index is None:
        return
    band = bands[index]
    if vertex.ecosystem not in {band.ecosystem, *adjacent_ecosystems(band.ecosystem)}:
        raise ImportValidationError(
            f"Ecosystem {vertex.ecosystem.value} is not next to the {band.ecosystem.value} band", [vertex.address]
        )


def reconstruct_world_from_jsonl(content: str) -> WorldGenerationResult:
    """
    Rebuild a world from an exported JSONL stream.

    Raises:
        ImportValidationError: Malformed lines, bad config, unknown or out-of-band
            ecosystem, unresolvable or misdirected exits, or an empty edge set
        DuplicateAddressError: Two records share an address
        OriginError: No origin record
    """
    metadata, records = parse_jsonl(content)
    config = _config_from_metadata(metadata)
    metrics = calculate_spatial_metrics(config)
    bands = define_ecosystem_bands(metrics, pure_ratio=config.pure_ratio)

    vertices: List[WorldVertex] = []
    by_address: Dict[str, WorldVertex] = {}
    cells: Dict[Tuple[int, int], str] = {}

    for record in records:
        vertex = vertex_from_record(record, metrics)
        _check_band(vertex, bands)
        if vertex.address in by_address:
            raise DuplicateAddressError("Address appears more than once", [vertex.address])
        if vertex.cell in cells:
            raise ImportValidationError(
                f"Two places resolve to grid cell {vertex.cell}", [cells[vertex.cell], vertex.address]
            )
        by_address[vertex.address] = vertex
        cells[vertex.cell] = vertex.address
        vertices.append(vertex)

    if ORIGIN_PLACE_ADDRESS not in by_address:
        raise OriginError(f"No place with address {ORIGIN_PLACE_ADDRESS}")

    links = []
    for record, vertex in zip(records, vertices):
        exits = record.get("exits") or {}
        if not isinstance(exits, dict):
            raise ImportValidationError("Exits must be an object", [vertex.address])
        for key, exit_ in exits.items():
            to = exit_.get("to") if isinstance(exit_, dict) else None
            target = by_address.get(to) if isinstance(to, str) else None
            if target is None:
                raise ImportValidationError(f"Exit {key} leads to an unknown place", [vertex.address])
            direction = compass_direction(target.grid_x - vertex.grid_x, target.grid_y - vertex.grid_y)
            if direction.value != key or exit_.get("direction", key) != key:
                raise ImportValidationError(
                    f"Exit {key} points {direction.value} toward {target.address}", [vertex.address]
                )
            links.append((vertex.id, target.id))

    graph, skipped = WorldGraph.from_parts(vertices, links)
    if len(graph.edges) == 0:
        raise ImportValidationError("World has no edges")

    logger.info("Imported world", places=len(graph), edges=len(graph.edges), version=metadata["version"])

    return WorldGenerationResult(
        graph=graph,
        bands=bands,
        metrics=metrics,
        config=config,
        growth_stats=GrowthStats(
            strategy=config.growth_strategy,
            vertices=len(graph),
            edges=len(graph.edges),
            skipped_links=skipped,
        ),
        square_stats=SquareCompletionStats(),
        dithering_stats=DitheringStats(total_vertices=len(graph)),
        connectivity_stats=ConnectivityStats(components=graph.count_components()),
        version=metadata["version"],
    )
