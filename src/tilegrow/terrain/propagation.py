"""Constrained terrain growth.

Seeds a sparse set of cells, then grows outward breadth-first through a
FIFO work queue. Each undecided neighbor of a popped cell gets a height and
terrain type that agree with its decided 4-neighbors: compatible per the
rule set's adjacency table and within ``max_height_delta`` in height.
A bounded number of candidates is tried; when all fail the cell is forced
to the midpoint of its valid range and the event is recorded.
"""

import math
from collections import deque
from dataclasses import dataclass, field

import numpy as np
import structlog
from numpy.typing import NDArray

from ..terrain_types import TerrainType
from .classification import NEUTRAL_CLIMATE, classify_tile
from .config import TerrainConfig
from .grid import TerrainGrid, TerrainTile
from .rules import HeightRange, TerrainRuleSet

logger = structlog.get_logger()

# Types that get an upward height bump for visual relief
_RELIEF_TYPES = frozenset({
    TerrainType.HILLS,
    TerrainType.MOUNTAINS,
    TerrainType.SNOW_PEAKS,
})

# Types whose heights are pinned inside their band
_BANDED_TYPES = frozenset({
    TerrainType.DEEP_WATER,
    TerrainType.SHALLOW_WATER,
    TerrainType.BEACH,
})


@dataclass
class PropagationStats:
    """Counters collected while growing a grid."""

    cells: int = 0
    seeds: int = 0
    attempts: int = 0
    coverage_seeds: int = 0
    fallbacks: set[int] = field(default_factory=set)

    @property
    def fallback_count(self) -> int:
        return len(self.fallbacks)

    @property
    def fallback_fraction(self) -> float:
        """Fraction of cells decided through the fallback path."""
        if self.cells == 0:
            return 0.0
        return len(self.fallbacks) / self.cells


def weighted_random_height(rules: TerrainRuleSet, rng: np.random.Generator) -> float:
    """Sample a height from the global terrain distribution.

    Picks a terrain type by walking the cumulative selection weights, then
    draws a height uniformly inside that type's range.
    """
    terrain = rules.select_type(rng.random())
    height_range = rules.height_range(terrain)
    return height_range.low + rng.random() * height_range.span


def seed_count(width: int, depth: int, floor: int, divisor: float) -> int:
    """Number of random seeds for a grid."""
    return max(floor, int(math.sqrt(width * depth) / divisor))


class GrowthPropagator:
    """Queue-driven growth of a terrain grid.

    One propagator serves one generation run. It owns the work queue and
    draws every random number from the run's generator.
    """

    def __init__(
        self,
        rules: TerrainRuleSet,
        rng: np.random.Generator,
        config: TerrainConfig,
        moisture: NDArray[np.float32] | None = None,
        temperature: NDArray[np.float32] | None = None,
    ):
        """Initialize the propagator.

        Args:
            rules: Terrain rule set.
            rng: The run's random number generator.
            config: Terrain configuration (growth, bands, classification).
            moisture: Optional (depth, width) moisture field.
            temperature: Optional (depth, width) temperature field.
        """
        self.rules = rules
        self.rng = rng
        self.config = config
        self.moisture = moisture
        self.temperature = temperature
        self.stats = PropagationStats()
        self._queue: deque[int] = deque()

    def run(self, grid: TerrainGrid) -> PropagationStats:
        """Seed, grow and fill the whole grid.

        Args:
            grid: Empty grid to fill in place.

        Returns:
            Counters for the run.
        """
        self.seed_random(grid)
        self.propagate(grid)
        self.ensure_coverage(grid)

        logger.info(
            "propagation_complete",
            cells=self.stats.cells,
            seeds=self.stats.seeds,
            attempts=self.stats.attempts,
            fallbacks=self.stats.fallback_count,
            coverage_seeds=self.stats.coverage_seeds,
        )
        return self.stats

    def seed_random(self, grid: TerrainGrid) -> int:
        """Place random seeds on cells with no decided 4-neighbor.

        Seeding stops early when no such cell remains.

        Returns:
            Number of seeds placed.
        """
        growth = self.config.growth
        wanted = seed_count(grid.width, grid.depth, growth.seed_floor, growth.seed_divisor)

        # Built once; a seed removes itself and its 4-neighbors
        candidates = [
            i for i in grid.undecided_indices() if not grid.decided_neighbors(i)
        ]
        positions = {cell: pos for pos, cell in enumerate(candidates)}

        placed = 0
        for _ in range(wanted):
            if not candidates:
                break
            index = candidates[int(self.rng.integers(len(candidates)))]
            x, z = grid.coords(index)
            self.place_seed(grid, x, z, weighted_random_height(self.rules, self.rng))
            placed += 1
            for cell in (index, *grid.neighbors(index)):
                _discard(candidates, positions, cell)

        logger.debug("seeds_placed", wanted=wanted, placed=placed)
        return placed

    def place_seed(self, grid: TerrainGrid, x: int, z: int, height: float) -> TerrainTile:
        """Decide a cell at a given height and queue it for growth.

        The height is clamped to the global range and classified with the
        cell's climate. No neighbor checks are made.

        Raises:
            ValueError: If the cell is already decided.
        """
        index = grid.index(x, z)
        height = self.rules.global_range.clamp(height)
        tile = self._make_tile(index, height, self._classify(index, height))
        self._decide(grid, index, tile)
        self.stats.seeds += 1
        return tile

    def propagate(self, grid: TerrainGrid) -> None:
        """Grow from queued cells until the queue is empty."""
        while self._queue:
            current = self._queue.popleft()
            for neighbor in grid.neighbors(current):
                if not grid.is_decided(neighbor):
                    self.assign(grid, neighbor)

    def ensure_coverage(self, grid: TerrainGrid) -> int:
        """Seed and flood any cell growth did not reach.

        Returns:
            Number of extra seeds needed.
        """
        extra = 0
        for index in grid.undecided_indices():
            if grid.is_decided(index):
                continue
            x, z = grid.coords(index)
            logger.warning("coverage_seed_placed", x=x, z=z)
            self.assign(grid, index)
            self.propagate(grid)
            extra += 1

        self.stats.coverage_seeds += extra
        return extra

    def assign(self, grid: TerrainGrid, index: int) -> TerrainTile:
        """Decide one cell consistently with its decided neighbors.

        Tries ``retry_budget`` candidates: the first from the global weighted
        distribution, the rest uniformly inside the parts of the valid height
        range whose classification under the cell's climate fits every
        decided neighbor (the whole range when no part does). Falls back to
        the range midpoint if none fits.
        """
        growth = self.config.growth
        neighbors = grid.decided_neighbors(index)
        valid_range = self.valid_height_range(neighbors)
        segments = self.feasible_segments(index, valid_range, neighbors) or [valid_range]

        for attempt in range(growth.retry_budget):
            self.stats.attempts += 1
            if attempt == 0:
                height = weighted_random_height(self.rules, self.rng)
            else:
                height = self._sample_segments(segments)

            terrain = self._classify(index, height)
            if self._fits(terrain, height, neighbors):
                height = self._shape_height(index, terrain, height, neighbors)
                tile = self._make_tile(index, height, terrain)
                self._decide(grid, index, tile)
                return tile

        height = valid_range.midpoint
        tile = self._make_tile(index, height, self._classify(index, height))
        self._decide(grid, index, tile)
        self.stats.fallbacks.add(index)

        x, z = grid.coords(index)
        logger.debug("cell_fallback", x=x, z=z, height=height, terrain=tile.type.value)
        return tile

    def valid_height_range(self, neighbors: list[TerrainTile]) -> HeightRange:
        """Height range allowed by the decided neighbors.

        Mean neighbor height plus or minus the max delta, clamped to the
        global range, then narrowed to the heights within the max delta of
        every neighbor when that overlap is not empty. With probability
        ``mountain_damping`` a range reaching into the mountain band is
        capped at the band floor.
        """
        bounds = self.rules.global_range
        if not neighbors:
            return bounds

        delta = self.config.growth.max_height_delta
        mean = sum(n.height for n in neighbors) / len(neighbors)
        low = bounds.clamp(mean - delta)
        high = bounds.clamp(mean + delta)

        overlap_low = max(n.height for n in neighbors) - delta
        overlap_high = min(n.height for n in neighbors) + delta
        if overlap_low <= overlap_high:
            low = max(low, overlap_low)
            high = min(high, overlap_high)

        cap = self.config.bands.mountain_min
        if low < cap < high and self.rng.random() < self.config.growth.mountain_damping:
            high = cap

        return HeightRange(low, high)

    def feasible_segments(
        self,
        index: int,
        valid_range: HeightRange,
        neighbors: list[TerrainTile],
    ) -> list[HeightRange]:
        """Split a valid range at the height bands and keep the parts that fit.

        With the cell's climate fixed, classification only changes at band
        boundaries, so each part is judged by its midpoint.

        Args:
            index: Flat index of the cell being assigned.
            valid_range: Range from ``valid_height_range``.
            neighbors: Decided 4-neighbor tiles.

        Returns:
            Parts whose type is compatible with, and whose midpoint is within
            the max delta of, every neighbor. May be empty.
        """
        b = self.config.bands
        edges = (
            b.deep_water_max,
            b.shallow_water_max,
            b.beach_max,
            b.hill_min,
            b.mountain_min,
            b.peak_min,
        )
        cuts = [valid_range.low]
        cuts += sorted(e for e in edges if valid_range.low < e < valid_range.high)
        cuts.append(valid_range.high)

        segments = []
        for low, high in zip(cuts, cuts[1:]):
            segment = HeightRange(low, high)
            terrain = self._classify(index, segment.midpoint)
            if self._fits(terrain, segment.midpoint, neighbors):
                segments.append(segment)
        return segments

    def _sample_segments(self, segments: list[HeightRange]) -> float:
        """Draw a height uniformly over the union of segments."""
        total = sum(s.span for s in segments)
        if total <= 0:
            return segments[int(self.rng.integers(len(segments)))].low

        target = self.rng.random() * total
        for segment in segments:
            if target < segment.span:
                return segment.low + target
            target -= segment.span
        return segments[-1].high

    def _fits(
        self,
        terrain: TerrainType,
        height: float,
        neighbors: list[TerrainTile],
    ) -> bool:
        delta = self.config.growth.max_height_delta
        for neighbor in neighbors:
            if not self.rules.is_compatible(terrain, neighbor.type):
                return False
            if abs(height - neighbor.height) > delta:
                return False
        return True

    def _shape_height(
        self,
        index: int,
        terrain: TerrainType,
        height: float,
        neighbors: list[TerrainTile],
    ) -> float:
        """Apply per-type height variation to an accepted candidate."""
        height_range = self.rules.height_range(terrain)

        if terrain in _RELIEF_TYPES:
            bump = self.rng.random() * self.config.growth.relief_jitter
            limit = height_range.high
            for neighbor in neighbors:
                limit = min(limit, neighbor.height + self.config.growth.max_height_delta)
            bumped = max(height, min(height + bump, limit))
            # A bump that reaches the next band is dropped
            if self._classify(index, bumped) != terrain:
                return height
            return bumped

        if terrain in _BANDED_TYPES:
            return height_range.clamp(height)

        return height

    def _classify(self, index: int, height: float) -> TerrainType:
        return classify_tile(
            height,
            self._climate(self.moisture, index),
            self._climate(self.temperature, index),
            bands=self.config.bands,
            thresholds=self.config.classification,
        )

    def _make_tile(self, index: int, height: float, terrain: TerrainType) -> TerrainTile:
        moisture = self._climate(self.moisture, index)
        temperature = self._climate(self.temperature, index)
        return TerrainTile(
            height=float(height),
            type=terrain,
            moisture=NEUTRAL_CLIMATE if moisture is None else moisture,
            temperature=NEUTRAL_CLIMATE if temperature is None else temperature,
        )

    def _decide(self, grid: TerrainGrid, index: int, tile: TerrainTile) -> None:
        grid.decide(index, tile)
        self.stats.cells += 1
        self._queue.append(index)

    @staticmethod
    def _climate(field_values: NDArray[np.float32] | None, index: int) -> float | None:
        if field_values is None:
            return None
        return float(field_values.flat[index])


def _discard(candidates: list[int], positions: dict[int, int], cell: int) -> None:
    """Swap-remove a cell from the seed candidates if it is still listed."""
    pos = positions.pop(cell, None)
    if pos is None:
        return
    last = candidates.pop()
    if last != cell:
        candidates[pos] = last
        positions[last] = pos
