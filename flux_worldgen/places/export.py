"""
JSONL export of generated worlds.

Line 1 of the stream is a metadata object ``{version, timestamp, config}``;
every following line is one place record. Records are validated as a whole
before anything is emitted: a duplicate address, a missing or repeated
origin, or two exits sharing a direction aborts the export.
"""

from __future__ import annotations

import hashlib
import json
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import structlog

from ..core.addresses import ORIGIN_PLACE_ADDRESS, generate_place_address
from ..core.ecosystems import ECOLOGICAL_PROFILES
from ..core.weather import synthesize_weather
from ..core.world_graph import WorldGraph, compass_direction
from ..errors import DuplicateAddressError, DuplicateExitError, InvariantViolationError, OriginError
from .naming import generate_place_description, generate_place_name

logger = structlog.get_logger()

PLACE_TYPE = "place"


def _number(value: float) -> Union[int, float]:
    value = float(value)
    return int(value) if value.is_integer() else value


def resolve_addresses(graph: WorldGraph) -> List[str]:
    """
    Address of every vertex, checked for collisions and origin rules.

    Raises:
        OriginError: Zero or several origin vertices, or a misaddressed origin
        DuplicateAddressError: Two vertices share an address
        InvariantViolationError: An assigned address no longer matches its vertex
    """
    origins = [v.id for v in graph.vertices if v.is_origin]
    if len(origins) != 1:
        raise OriginError(f"Expected exactly one origin vertex, found {len(origins)}", origins)

    addresses = []
    owners: Dict[str, List[str]] = {}
    for vertex in graph.vertices:
        expected = generate_place_address(vertex)
        address = vertex.address or expected
        if vertex.is_origin and address != ORIGIN_PLACE_ADDRESS:
            raise OriginError(f"Origin vertex carries address {address}", [vertex.id])
        if address != expected:
            raise InvariantViolationError(f"Address {address} does not match its vertex", [vertex.id])
        addresses.append(address)
        owners.setdefault(address, []).append(vertex.id)

    duplicates = {a: ids for a, ids in owners.items() if len(ids) > 1}
    if duplicates:
        offending = [vertex_id for ids in duplicates.values() for vertex_id in ids]
        raise DuplicateAddressError(
            f"{len(duplicates)} address(es) shared by several vertices: {', '.join(sorted(duplicates))}",
            offending,
        )
    return addresses


def build_exits(graph: WorldGraph, handle: int, addresses: List[str]) -> Dict[str, Dict[str, str]]:
    """Direction-keyed exits of one vertex; every edge appears on both of its endpoints."""
    vertex = graph.vertices[handle]
    exits: Dict[str, Dict[str, str]] = {}

    for other in graph.neighbors(handle):
        target = graph.vertices[other]
        direction = compass_direction(target.grid_x - vertex.grid_x, target.grid_y - vertex.grid_y)
        if direction.value in exits:
            raise DuplicateExitError(
                f"Two exits of {addresses[handle]} lead {direction.value}", [vertex.id, target.id]
            )
        exits[direction.value] = {
            "direction": direction.value,
            "label": "To " + generate_place_name(target.ecosystem, target.grid_x, target.grid_y, target.is_origin),
            "to": addresses[other],
        }
    return exits


def build_place_records(world, weather_mode: Optional[str] = None) -> List[Dict[str, Any]]:
    """
    One place record per vertex, in handle order.

    Args:
        world: WorldGenerationResult (or anything exposing ``graph`` and ``config``)
        weather_mode: Overrides ``config.weather_mode`` when given
    """
    graph: WorldGraph = world.graph
    addresses = resolve_addresses(graph)
    weather = synthesize_weather(graph, weather_mode or world.config.weather_mode)

    records = []
    for handle, vertex in enumerate(graph.vertices):
        records.append(
            {
                "type": PLACE_TYPE,
                "id": addresses[handle],
                "name": generate_place_name(vertex.ecosystem, vertex.grid_x, vertex.grid_y, vertex.is_origin),
                "description": generate_place_description(
                    vertex.ecosystem, vertex.grid_x, vertex.grid_y, graph.degree(handle)
                ),
                "exits": build_exits(graph, handle, addresses),
                "entities": {},
                "ecology": ECOLOGICAL_PROFILES[vertex.ecosystem].to_dict(),
                "weather": weather[handle].to_dict(),
                "coordinates": [_number(vertex.x), _number(vertex.y)],
            }
        )
    return records


def build_metadata(world, timestamp: Optional[int] = None) -> Dict[str, Any]:
    return {
        "version": world.version,
        "timestamp": timestamp if timestamp is not None else int(time.time() * 1000),
        "config": world.config.to_dict(),
    }


def export_world_to_jsonl(world, timestamp: Optional[int] = None, weather_mode: Optional[str] = None) -> str:
    """
    Serialize a world as JSONL.

    Output is byte-identical for an unchanged world and a fixed ``timestamp``.
    """
    records = build_place_records(world, weather_mode)
    lines = [json.dumps(build_metadata(world, timestamp))]
    lines.extend(json.dumps(record) for record in records)

    logger.info("Exported world", places=len(records), version=world.version)
    return "\n".join(lines) + "\n"


def content_hash_filename(content: str) -> str:
    """``<sha256>.jsonl`` for the given content."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest() + ".jsonl"


def write_world_jsonl(
    world,
    directory: Union[str, Path],
    timestamp: Optional[int] = None,
    weather_mode: Optional[str] = None,
) -> Path:
    """Export into ``directory`` under a content-hash filename; returns the written path."""
    content = export_world_to_jsonl(world, timestamp, weather_mode)
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)

    path = directory / content_hash_filename(content)
    path.write_text(content, encoding="utf-8")
    logger.info("Wrote world file", path=str(path), bytes=len(content))
    return path
