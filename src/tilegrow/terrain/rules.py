"""Terrain rule set: height ranges, adjacency, selection weights, features.

The rule set is immutable and built once per configuration, then passed
into every stage of a generation run.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Mapping

from ..exceptions import RuleSetGapError
from ..terrain_types import LAND_TYPES, FeatureType, TerrainType
from .config import HeightBandConfig, TerrainConfig

T = TerrainType
F = FeatureType


@dataclass(frozen=True)
class HeightRange:
    """Closed height interval [low, high]."""

    low: float
    high: float

    def __post_init__(self) -> None:
        if self.low > self.high:
            raise ValueError(f"Empty height range [{self.low}, {self.high}]")

    def contains(self, height: float) -> bool:
        return self.low <= height <= self.high

    def clamp(self, height: float) -> float:
        return min(max(height, self.low), self.high)

    @property
    def midpoint(self) -> float:
        return (self.low + self.high) / 2.0

    @property
    def span(self) -> float:
        return self.high - self.low


@dataclass(frozen=True)
class ContextRule:
    """Probabilistic feature spawn that reacts to a cell's neighborhood.

    Attributes:
        feature: Feature to add.
        terrain_types: Terrain the cell must have, or None for any.
        near: Feature that must be present on an 8-neighbor, or None.
        probability: Chance of spawning when the conditions hold.
    """

    feature: FeatureType
    terrain_types: frozenset[TerrainType] | None
    near: FeatureType | None
    probability: float

    def applies_to(self, terrain: TerrainType, neighbor_features: set[FeatureType]) -> bool:
        """Whether the rule's conditions hold for a cell."""
        if self.terrain_types is not None and terrain not in self.terrain_types:
            return False
        return self.near is None or self.near in neighbor_features


# Climate overrides share height bands with relief types, so swamp meets
# hills and wasteland meets snow peaks along a single climate.
DEFAULT_ADJACENCY: dict[TerrainType, frozenset[TerrainType]] = {
    T.DEEP_WATER: frozenset({T.DEEP_WATER, T.SHALLOW_WATER}),
    T.SHALLOW_WATER: frozenset({
        T.DEEP_WATER, T.SHALLOW_WATER, T.BEACH, T.GRASSLAND, T.FOREST,
        T.DESERT, T.SWAMP,
    }),
    T.BEACH: frozenset({
        T.SHALLOW_WATER, T.BEACH, T.GRASSLAND, T.FOREST, T.DENSE_FOREST,
        T.DESERT, T.SWAMP,
    }),
    T.GRASSLAND: frozenset({
        T.SHALLOW_WATER, T.BEACH, T.GRASSLAND, T.FOREST, T.DENSE_FOREST,
        T.HILLS, T.DESERT, T.SWAMP, T.WASTELAND,
    }),
    T.FOREST: frozenset({
        T.SHALLOW_WATER, T.BEACH, T.GRASSLAND, T.FOREST, T.DENSE_FOREST,
        T.HILLS, T.SWAMP,
    }),
    T.DENSE_FOREST: frozenset({
        T.BEACH, T.GRASSLAND, T.FOREST, T.DENSE_FOREST, T.HILLS, T.SWAMP,
    }),
    T.HILLS: frozenset({
        T.GRASSLAND, T.FOREST, T.DENSE_FOREST, T.HILLS, T.MOUNTAINS,
        T.SNOW_PEAKS, T.DESERT, T.WASTELAND, T.SWAMP,
    }),
    T.MOUNTAINS: frozenset({T.HILLS, T.MOUNTAINS, T.SNOW_PEAKS, T.WASTELAND}),
    T.SNOW_PEAKS: frozenset({T.HILLS, T.MOUNTAINS, T.SNOW_PEAKS, T.WASTELAND}),
    T.DESERT: frozenset({
        T.SHALLOW_WATER, T.BEACH, T.GRASSLAND, T.HILLS, T.DESERT, T.WASTELAND,
    }),
    T.SWAMP: frozenset({
        T.SHALLOW_WATER, T.BEACH, T.GRASSLAND, T.FOREST, T.DENSE_FOREST, T.SWAMP,
    }),
    T.WASTELAND: frozenset({
        T.GRASSLAND, T.HILLS, T.MOUNTAINS, T.DESERT, T.WASTELAND,
    }),
}

DEFAULT_WEIGHTS: dict[TerrainType, float] = {
    T.DEEP_WATER: 0.12,
    T.SHALLOW_WATER: 0.08,
    T.BEACH: 0.06,
    T.GRASSLAND: 0.20,
    T.FOREST: 0.14,
    T.DENSE_FOREST: 0.06,
    T.HILLS: 0.14,
    T.MOUNTAINS: 0.05,
    T.SNOW_PEAKS: 0.02,
    T.DESERT: 0.05,
    T.SWAMP: 0.04,
    T.WASTELAND: 0.04,
}

DEFAULT_FEATURE_PROBABILITIES: dict[TerrainType, dict[FeatureType, float]] = {
    T.DEEP_WATER: {},
    T.SHALLOW_WATER: {F.SHIPWRECK: 0.01},
    T.BEACH: {F.SHIPWRECK: 0.02, F.VILLAGE: 0.005},
    T.GRASSLAND: {F.VILLAGE: 0.01, F.RUINS: 0.004, F.STANDING_STONES: 0.004},
    T.FOREST: {F.RUINS: 0.006, F.STANDING_STONES: 0.004},
    T.DENSE_FOREST: {F.RUINS: 0.008, F.STANDING_STONES: 0.003},
    T.HILLS: {
        F.VILLAGE: 0.006,
        F.RUINS: 0.006,
        F.STANDING_STONES: 0.006,
        F.TOWER: 0.003,
    },
    T.MOUNTAINS: {F.RUINS: 0.004},
    T.SNOW_PEAKS: {F.RUINS: 0.002},
    T.DESERT: {F.RUINS: 0.01},
    T.SWAMP: {F.RUINS: 0.006},
    T.WASTELAND: {F.RUINS: 0.01, F.STANDING_STONES: 0.005},
}

DEFAULT_CONTEXT_RULES: tuple[ContextRule, ...] = (
    ContextRule(F.CASTLE, frozenset({T.HILLS, T.MOUNTAINS}), F.VILLAGE, 0.30),
    ContextRule(F.MAGICAL_CRYSTAL, None, F.RUINS, 0.20),
    ContextRule(F.CAVE_ENTRANCE, frozenset({T.MOUNTAINS}), None, 0.05),
    ContextRule(F.TEMPLE, None, F.STANDING_STONES, 0.25),
    ContextRule(F.TOWER, frozenset({T.GRASSLAND, T.HILLS}), F.CASTLE, 0.15),
    ContextRule(F.PORTAL, LAND_TYPES, F.MAGICAL_CRYSTAL, 0.05),
    ContextRule(
        F.DRAGON_LAIR, frozenset({T.MOUNTAINS, T.SNOW_PEAKS}), F.CAVE_ENTRANCE, 0.10
    ),
)


def default_height_ranges(bands: HeightBandConfig) -> dict[TerrainType, HeightRange]:
    """Height range per terrain type derived from the classifier's bands.

    Each range covers every height the classifier can map to that type.
    """
    land_low = bands.shallow_water_max
    return {
        T.DEEP_WATER: HeightRange(bands.min_height, bands.deep_water_max),
        T.SHALLOW_WATER: HeightRange(bands.deep_water_max, bands.shallow_water_max),
        T.BEACH: HeightRange(land_low, bands.beach_max),
        T.GRASSLAND: HeightRange(land_low, bands.hill_min),
        T.FOREST: HeightRange(land_low, bands.hill_min),
        T.DENSE_FOREST: HeightRange(land_low, bands.hill_min),
        T.SWAMP: HeightRange(land_low, bands.hill_min),
        T.DESERT: HeightRange(land_low, bands.hill_min),
        T.HILLS: HeightRange(bands.hill_min, bands.mountain_min),
        T.MOUNTAINS: HeightRange(bands.mountain_min, bands.peak_min),
        T.SNOW_PEAKS: HeightRange(bands.mountain_min, bands.max_height),
        T.WASTELAND: HeightRange(bands.hill_min, bands.peak_min),
    }


class TerrainRuleSet:
    """Read-only lookup tables keyed by terrain type."""

    def __init__(
        self,
        height_ranges: Mapping[TerrainType, HeightRange],
        adjacency: Mapping[TerrainType, Iterable[TerrainType]],
        weights: Mapping[TerrainType, float],
        feature_probabilities: Mapping[TerrainType, Mapping[FeatureType, float]],
        global_range: HeightRange,
        contextual_rules: Iterable[ContextRule] = DEFAULT_CONTEXT_RULES,
    ):
        """Build and validate a rule set.

        Args:
            height_ranges: Height interval per terrain type.
            adjacency: Permitted 4-neighbor types per terrain type. Closed
                under symmetry, so listing B under A also permits A next to B.
            weights: Non-negative selection weight per terrain type.
            feature_probabilities: Base spawn chance per feature, per type.
                Types left out spawn nothing.
            global_range: Bound on every height in the grid.
            contextual_rules: Neighborhood-driven feature rules.

        Raises:
            RuleSetGapError: If a required table misses a terrain type or
                holds values outside their domain.
        """
        _require_total("height range", height_ranges)
        _require_total("adjacency", adjacency)
        _require_total("weight", weights)

        for terrain, weight in weights.items():
            if weight < 0:
                raise RuleSetGapError(f"Negative weight {weight} for {terrain.value}")
        if not any(weight > 0 for weight in weights.values()):
            raise RuleSetGapError("At least one terrain weight must be positive")

        probabilities: dict[TerrainType, Mapping[FeatureType, float]] = {}
        for terrain in TerrainType:
            table = dict(feature_probabilities.get(terrain, {}))
            if FeatureType.NONE in table:
                raise RuleSetGapError(f"{terrain.value} lists the NONE feature")
            for feature, p in table.items():
                if not 0.0 <= p <= 1.0:
                    raise RuleSetGapError(
                        f"Probability {p} for {feature.value} on {terrain.value}"
                    )
            probabilities[terrain] = MappingProxyType(table)

        symmetric: dict[TerrainType, set[TerrainType]] = {t: set() for t in TerrainType}
        for terrain, neighbors in adjacency.items():
            for neighbor in neighbors:
                symmetric[terrain].add(neighbor)
                symmetric[neighbor].add(terrain)

        self._height_ranges = MappingProxyType(dict(height_ranges))
        self._adjacency = MappingProxyType(
            {t: frozenset(n) for t, n in symmetric.items()}
        )
        self._weights = MappingProxyType({t: float(weights[t]) for t in TerrainType})
        self._feature_probabilities = MappingProxyType(probabilities)
        self._contextual_rules = tuple(contextual_rules)
        self._global_range = global_range

        # Cumulative distribution for weighted selection, in enum order
        total = 0.0
        cumulative = []
        for terrain in TerrainType:
            total += self._weights[terrain]
            cumulative.append((total, terrain))
        self._cumulative = tuple(cumulative)
        self._total_weight = total

    @property
    def global_range(self) -> HeightRange:
        return self._global_range

    @property
    def contextual_rules(self) -> tuple[ContextRule, ...]:
        return self._contextual_rules

    def height_range(self, terrain: TerrainType) -> HeightRange:
        return self._height_ranges[terrain]

    def is_compatible(self, a: TerrainType, b: TerrainType) -> bool:
        """Whether a and b may be 4-connected neighbors (symmetric)."""
        return b in self._adjacency[a]

    def compatible_types(self, terrain: TerrainType) -> frozenset[TerrainType]:
        return self._adjacency[terrain]

    def weight(self, terrain: TerrainType) -> float:
        return self._weights[terrain]

    def feature_probabilities(self, terrain: TerrainType) -> Mapping[FeatureType, float]:
        return self._feature_probabilities[terrain]

    def select_type(self, u: float) -> TerrainType:
        """Walk the cumulative weights with a uniform draw u in [0, 1)."""
        target = u * self._total_weight
        for bound, terrain in self._cumulative:
            if target < bound:
                return terrain
        # u rounding up to the total lands on the last positive weight
        for _, terrain in reversed(self._cumulative):
            if self._weights[terrain] > 0:
                return terrain
        raise RuleSetGapError("No terrain type has a positive weight")


def _require_total(table_name: str, table: Mapping[TerrainType, object]) -> None:
    missing = [t.value for t in TerrainType if t not in table]
    if missing:
        raise RuleSetGapError(f"Missing {table_name} for: {', '.join(missing)}")


def build_rule_set(config: TerrainConfig | None = None) -> TerrainRuleSet:
    """Build the default rule set for a configuration.

    Height ranges follow the configured bands and weight overrides from
    ``config.weights`` replace the defaults type by type.
    """
    config = config or TerrainConfig()
    bands = config.bands

    weights = dict(DEFAULT_WEIGHTS)
    weights.update(config.weights)

    scale = config.features.probability_scale
    probabilities = {
        terrain: {f: min(1.0, p * scale) for f, p in table.items()}
        for terrain, table in DEFAULT_FEATURE_PROBABILITIES.items()
    }

    return TerrainRuleSet(
        height_ranges=default_height_ranges(bands),
        adjacency=DEFAULT_ADJACENCY,
        weights=weights,
        feature_probabilities=probabilities,
        global_range=HeightRange(bands.min_height, bands.max_height),
    )
