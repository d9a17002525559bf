#!/usr/bin/env python3
"""Generate a world from the command line and write it as JSONL."""

import json

import structlog

from flux_worldgen.config import WorldGenerationConfig, configure_logging
from flux_worldgen.core.generator import generate_world
from flux_worldgen.places.export import write_world_jsonl

logger = structlog.get_logger()

ECOSYSTEM_COLORS = {
    "steppe": "#d8c27a",
    "grassland": "#8fc45a",
    "forest": "#2f7d32",
    "mountain": "#8a8a8a",
    "jungle": "#1b5e20",
    "marsh": "#4f7c8a",
}


def plot_world(world, output_file):
    """Draw edges and ecosystem-coloured vertices to a PNG."""
    import matplotlib

    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    fig, ax = plt.subplots(figsize=(12, 8))
    vertices = world.graph.vertices

    for edge in world.graph.edges:
        a, b = vertices[edge.from_vertex], vertices[edge.to_vertex]
        ax.plot([a.x, b.x], [a.y, b.y], color="#444444", linewidth=0.5, zorder=1)

    ax.scatter(
        [v.x for v in vertices],
        [v.y for v in vertices],
        c=[ECOSYSTEM_COLORS[v.ecosystem.value] for v in vertices],
        s=12,
        zorder=2,
    )

    origin = world.origin
    if origin is not None:
        ax.scatter([origin.x], [origin.y], c="red", s=60, marker="*", zorder=3)

    for band in world.bands:
        if band.start_x > 0:
            ax.axvline(band.start_x, color="#bbbbbb", linestyle="--", linewidth=0.8)
        ax.text(band.center_x, -100, band.ecosystem.display_name, ha="center", va="bottom", fontsize=8)

    ax.set_xlim(0, world.metrics.world_width_meters)
    ax.set_ylim(world.metrics.world_height_meters, 0)
    ax.set_aspect("equal")
    ax.set_title(f"seed {world.config.seed}: {len(vertices)} places, {len(world.graph.edges)} edges")

    plt.savefig(output_file, dpi=150, bbox_inches="tight")
    plt.close(fig)
    return output_file


def main():
    """Main function."""
    import argparse

    parser = argparse.ArgumentParser(description="Generate a world and export it as JSONL")
    parser.add_argument("--seed", type=int, help="Seed (derived from the clock if omitted)")
    parser.add_argument("--width", type=float, default=14.5, help="World width in km")
    parser.add_argument("--height", type=float, default=9.0, help="World height in km")
    parser.add_argument("--strategy", choices=["flow", "discharge"], default="flow")
    parser.add_argument("--branching", type=float, default=1.0, help="Branching factor [0, 1]")
    parser.add_argument("--dithering", type=float, default=1.0, help="Dithering strength [0, 1]")
    parser.add_argument("--weather", choices=["simple", "smoothed"], default="simple")
    parser.add_argument("--output-dir", default="worlds", help="Directory for the JSONL file")
    parser.add_argument("--plot", action="store_true", help="Also save a PNG of the graph")

    args = parser.parse_args()
    configure_logging()

    config = WorldGenerationConfig(
        seed=args.seed,
        world_width_km=args.width,
        world_height_km=args.height,
        growth_strategy=args.strategy,
        branching_factor=args.branching,
        dithering_strength=args.dithering,
        weather_mode=args.weather,
    )
    world = generate_world(config)
    path = write_world_jsonl(world, args.output_dir)

    print(json.dumps(world.summary(), indent=2))
    print(f"Saved to: {path}")

    if args.plot:
        image = plot_world(world, path.with_suffix(".png"))
        print(f"Plot saved to: {image}")


if __name__ == "__main__":
    main()
