"""Post-processing of a fully grown grid: smoothing, then features."""

import math
from dataclasses import dataclass

import numpy as np
import structlog

from ..exceptions import UnreachableCellsError
from ..terrain_types import FeatureType, TerrainType
from .classification import classify_tile
from .config import TerrainConfig
from .grid import NEIGHBORS_8, TerrainGrid, TerrainTile
from .rules import TerrainRuleSet

logger = structlog.get_logger()

# Mountains with fewer supporting 4-neighbors are lowered to hills
MIN_MOUNTAIN_SUPPORT = 2


@dataclass
class PostProcessResult:
    """Outcome of the post-processing passes."""

    smoothed: set[int]
    features_added: int


def post_process(
    grid: TerrainGrid,
    rules: TerrainRuleSet,
    rng: np.random.Generator,
    config: TerrainConfig,
) -> PostProcessResult:
    """Run the smoothing pass, then the feature pass, in place.

    Raises:
        UnreachableCellsError: If the grid still has undecided cells.
    """
    smoothed = smooth_terrain(grid, rules, config)
    added = place_features(grid, rules, rng, config) if config.features.enabled else 0
    return PostProcessResult(smoothed=smoothed, features_added=added)


def smooth_terrain(
    grid: TerrainGrid,
    rules: TerrainRuleSet,
    config: TerrainConfig,
) -> set[int]:
    """Remove one-cell height spikes and blend climate with neighbors.

    Reads every value from a snapshot taken before any write, so the result
    does not depend on iteration order. A mountain with fewer than
    ``MIN_MOUNTAIN_SUPPORT`` 4-neighbors that mountains may touch is lowered
    to half a unit below the mountain band and becomes hills. Any other cell
    whose height deviates from its 4-neighbor mean by more than the
    threshold moves one step toward the mean (never past it) and is
    reclassified with its own climate. Moisture and temperature are blended
    with their neighbor means.

    Args:
        grid: Complete grid, modified in place.
        rules: Terrain rule set.
        config: Terrain configuration.

    Returns:
        Flat indices of the cells whose height was changed.

    Raises:
        UnreachableCellsError: If the grid still has undecided cells.
    """
    tiles = _decided_tiles(grid)
    smoothing = config.smoothing
    blend = smoothing.climate_blend

    heights = [t.height for t in tiles]
    types = [t.type for t in tiles]
    moisture = [t.moisture for t in tiles]
    temperature = [t.temperature for t in tiles]

    mountain_support = rules.compatible_types(TerrainType.MOUNTAINS)
    demoted_height = rules.height_range(TerrainType.HILLS).clamp(
        config.bands.mountain_min - 0.5
    )

    nudged: set[int] = set()
    demoted = 0
    for index, tile in enumerate(tiles):
        neighbors = list(grid.neighbors(index))
        if not neighbors:
            continue

        mean_height = sum(heights[n] for n in neighbors) / len(neighbors)
        mean_moisture = sum(moisture[n] for n in neighbors) / len(neighbors)
        mean_temperature = sum(temperature[n] for n in neighbors) / len(neighbors)

        deviation = heights[index] - mean_height
        if types[index] == TerrainType.MOUNTAINS and (
            sum(types[n] in mountain_support for n in neighbors) < MIN_MOUNTAIN_SUPPORT
        ):
            tile.height = demoted_height
            tile.type = classify_tile(
                demoted_height,
                moisture[index],
                temperature[index],
                bands=config.bands,
                thresholds=config.classification,
            )
            nudged.add(index)
            demoted += 1
        elif abs(deviation) > smoothing.threshold:
            step = min(smoothing.step, abs(deviation))
            height = rules.global_range.clamp(
                heights[index] - math.copysign(step, deviation)
            )
            tile.height = height
            tile.type = classify_tile(
                height,
                moisture[index],
                temperature[index],
                bands=config.bands,
                thresholds=config.classification,
            )
            nudged.add(index)

        tile.moisture = (1.0 - blend) * moisture[index] + blend * mean_moisture
        tile.temperature = (1.0 - blend) * temperature[index] + blend * mean_temperature

    logger.info("smoothing_complete", nudged=len(nudged), demoted=demoted)
    return nudged


def place_features(
    grid: TerrainGrid,
    rules: TerrainRuleSet,
    rng: np.random.Generator,
    config: TerrainConfig,
) -> int:
    """Spawn decorative features in one row-major sweep.

    Each cell first rolls its terrain's base feature probabilities, then
    checks every contextual rule against the union of its 8-neighbors'
    features. Neighbors are read in their current state, so features placed
    earlier in the sweep can trigger rules on later cells. Features are
    only ever added.

    Args:
        grid: Complete grid, modified in place.
        rules: Terrain rule set.
        rng: The run's random number generator.
        config: Terrain configuration.

    Returns:
        Number of features added.

    Raises:
        UnreachableCellsError: If the grid still has undecided cells.
    """
    tiles = _decided_tiles(grid)

    added = 0
    for index, tile in enumerate(tiles):
        for feature, probability in rules.feature_probabilities(tile.type).items():
            if feature not in tile.features and rng.random() < probability:
                tile.features.add(feature)
                added += 1

        nearby: set[FeatureType] = set()
        for n in grid.neighbors(index, NEIGHBORS_8):
            nearby |= tiles[n].features

        for rule in rules.contextual_rules:
            if rule.feature in tile.features:
                continue
            if rule.applies_to(tile.type, nearby) and rng.random() < rule.probability:
                tile.features.add(rule.feature)
                added += 1

    logger.info("features_placed", added=added)
    return added


def _decided_tiles(grid: TerrainGrid) -> list[TerrainTile]:
    tiles = [grid.at(i) for i in range(len(grid))]
    missing = sum(1 for t in tiles if t is None)
    if missing:
        raise UnreachableCellsError(missing)
    return tiles  # type: ignore[return-value]
