"""Command-line preview of generated terrain."""

import argparse
import logging
import time
from pathlib import Path

import structlog

logger = structlog.get_logger()


def main() -> None:
    """CLI entry point: generate a grid and save a top-down preview image."""
    parser = argparse.ArgumentParser(
        description="Generate a terrain grid and render a colored preview"
    )
    parser.add_argument("--width", type=int, default=None, help="Grid width (default: config)")
    parser.add_argument("--depth", type=int, default=None, help="Grid depth (default: config)")
    parser.add_argument("--seed", type=int, default=None, help="Random seed (optional)")
    parser.add_argument(
        "--config", type=str, default=None, help="TOML terrain config (optional)"
    )
    parser.add_argument(
        "--output",
        "-o",
        type=str,
        default="terrain.png",
        help="Output image path (default: terrain.png)",
    )
    parser.add_argument(
        "--scale", type=int, default=8, help="Pixels per tile (default: 8)"
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Verbose logging"
    )

    args = parser.parse_args()

    # Configure structlog
    level = logging.DEBUG if args.verbose else logging.INFO
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="%H:%M:%S"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
    )

    # Import here to avoid slow startup for --help
    from .config import TerrainConfig, load_config
    from .generator import generate_terrain
    from .validation import validate_terrain

    config = load_config(Path(args.config)) if args.config else TerrainConfig()
    width = args.width if args.width is not None else config.width
    depth = args.depth if args.depth is not None else config.depth

    start_time = time.time()
    result = generate_terrain(width, depth, seed=args.seed, config=config)
    gen_time = time.time() - start_time

    validation = validate_terrain(
        result.grid, result.rules, result.stats, smoothed=result.post.smoothed
    )
    output_path = Path(args.output)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    render_preview(result.grid, args.scale).save(output_path)

    print(f"Generated {width}x{depth} terrain with seed {result.seed}")
    print(f"  time: {gen_time:.2f}s")
    print(f"  fallbacks: {result.stats.fallback_count} ({result.stats.fallback_fraction:.1%})")
    print(f"  features: {result.post.features_added}")
    print(f"  validation: {'passed' if validation.passed else 'failed'}")
    print(f"Saved preview to {output_path}")


def render_preview(grid, scale: int = 1):
    """Render a grid as an RGB image colored by terrain type.

    Features are drawn as a dark dot in the center of their tile.

    Args:
        grid: Complete TerrainGrid.
        scale: Pixels per tile edge.

    Returns:
        PIL Image of size (width * scale, depth * scale).
    """
    from PIL import Image, ImageDraw

    from ..terrain_types import color_for

    image = Image.new("RGB", (grid.width * scale, grid.depth * scale))
    draw = ImageDraw.Draw(image)

    for x, z, tile in grid.tiles():
        r, g, b = color_for(tile.type)
        box = (x * scale, z * scale, (x + 1) * scale - 1, (z + 1) * scale - 1)
        draw.rectangle(box, fill=(int(r * 255), int(g * 255), int(b * 255)))
        if tile.features and scale >= 3:
            cx, cz = x * scale + scale // 2, z * scale + scale // 2
            draw.rectangle((cx - 1, cz - 1, cx + 1, cz + 1), fill=(40, 20, 20))

    logger.debug("preview_rendered", width=image.width, height=image.height)
    return image


if __name__ == "__main__":
    main()
