"""Main terrain generation orchestration."""

from collections import Counter

import numpy as np
import structlog
from numpy.typing import NDArray

from ..exceptions import InvalidDimensionsError
from .climate import make_moisture, make_temperature
from .config import TerrainConfig
from .grid import TerrainGrid
from .noise import normalize_seed
from .postprocess import PostProcessResult, post_process
from .propagation import GrowthPropagator, PropagationStats
from .rules import TerrainRuleSet, build_rule_set

logger = structlog.get_logger()


class GenerationResult:
    """Result of terrain generation with the run's intermediate data."""

    def __init__(
        self,
        grid: TerrainGrid,
        seed: int,
        config: TerrainConfig,
        rules: TerrainRuleSet,
        moisture: NDArray[np.float32],
        temperature: NDArray[np.float32],
        stats: PropagationStats,
        post: PostProcessResult,
    ):
        self.grid = grid
        self.seed = seed
        self.config = config
        self.rules = rules
        self.moisture = moisture
        self.temperature = temperature
        self.stats = stats
        self.post = post


def generate_terrain(
    width: int,
    depth: int,
    seed: int | None = None,
    config: TerrainConfig | None = None,
    rules: TerrainRuleSet | None = None,
) -> GenerationResult:
    """Generate a complete tile grid.

    Runs climate fields, growth, smoothing and feature placement in order.
    Regenerating means calling this again; a returned grid is never touched
    by later runs.

    Args:
        width: Grid width in tiles.
        depth: Grid depth in tiles.
        seed: Random seed. Falls back to ``config.seed``, then to a fresh seed.
            Any integer is accepted; the result reports it as given.
        config: Terrain configuration; defaults are used when omitted.
        rules: Rule set; built from ``config`` when omitted.

    Returns:
        GenerationResult holding the grid and run statistics.

    Raises:
        InvalidDimensionsError: If width or depth is not positive.
        RuleSetGapError: If the rule set built from ``config`` is incomplete.
    """
    if width <= 0 or depth <= 0:
        raise InvalidDimensionsError(width, depth)

    config = config or TerrainConfig()
    if seed is None:
        seed = config.seed
    if seed is None:
        seed = int(np.random.default_rng().integers(2**31))
    rules = rules or build_rule_set(config)
    # Negative and oversized seeds are accepted and reported unchanged
    run_seed = normalize_seed(seed)
    rng = np.random.default_rng(run_seed)

    logger.info("terrain_generation_started", width=width, depth=depth, seed=seed)

    moisture = make_moisture(width, depth, run_seed, config.climate)
    temperature = make_temperature(width, depth, run_seed, config.climate)

    grid = TerrainGrid(width, depth)
    propagator = GrowthPropagator(rules, rng, config, moisture, temperature)
    stats = propagator.run(grid)

    post = post_process(grid, rules, rng, config)

    _log_terrain_stats(grid, stats)

    return GenerationResult(
        grid=grid,
        seed=seed,
        config=config,
        rules=rules,
        moisture=moisture,
        temperature=temperature,
        stats=stats,
        post=post,
    )


def generate_grid(
    width: int,
    depth: int,
    seed: int | None = None,
    config: TerrainConfig | None = None,
) -> TerrainGrid:
    """Generate a tile grid, discarding the run statistics."""
    return generate_terrain(width, depth, seed=seed, config=config).grid


def _log_terrain_stats(grid: TerrainGrid, stats: PropagationStats) -> None:
    """Log terrain type distribution and fallback rate."""
    total = len(grid)
    counts = Counter(tile.type.value for _, _, tile in grid.tiles())
    features = sum(len(tile.features) for _, _, tile in grid.tiles())

    logger.info(
        "terrain_stats",
        tiles=total,
        features=features,
        fallback_fraction=round(stats.fallback_fraction, 4),
        **{name: f"{count / total:.1%}" for name, count in sorted(counts.items())},
    )
