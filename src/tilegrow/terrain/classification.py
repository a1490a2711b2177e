"""Tile classification: (height, moisture, temperature) -> terrain type.

Checks run in a fixed priority order and the first match wins:

1. deep water band
2. shallow water band
3. snow peak band
4. hot and dry -> desert (wasteland above the hill band)
5. wet and below the hill band -> swamp
6. cold and above the mountain band floor -> snow peaks
7. mountain band
8. hill band
9. beach band
10. very moist -> dense forest
11. moist -> forest
12. grassland

Water and peak bands are absolute height gates. The climate overrides come
before the vegetation bands so extreme climates can claim mid-height cells.

Hot and dry cells at or above ``hill_min`` are wasteland, not desert.
Desert is a lowland type whose range ends at the hill band, so high arid
land takes the one arid type whose range covers hills and mountains.
Every returned type has a height range containing the input height (see
``rules.default_height_ranges``).
"""

from ..terrain_types import TerrainType
from .config import ClassificationConfig, HeightBandConfig

NEUTRAL_CLIMATE = 0.5

_DEFAULT_BANDS = HeightBandConfig()
_DEFAULT_THRESHOLDS = ClassificationConfig()


def classify_tile(
    height: float,
    moisture: float | None = None,
    temperature: float | None = None,
    bands: HeightBandConfig | None = None,
    thresholds: ClassificationConfig | None = None,
) -> TerrainType:
    """Classify a cell into a terrain type.

    Args:
        height: Cell height on the global scale.
        moisture: Moisture in [0, 1], or None for neutral.
        temperature: Temperature in [0, 1], or None for neutral.
        bands: Height band boundaries.
        thresholds: Climate thresholds.

    Returns:
        The terrain type. Never fails for any finite input.
    """
    b = bands or _DEFAULT_BANDS
    c = thresholds or _DEFAULT_THRESHOLDS
    m = NEUTRAL_CLIMATE if moisture is None else moisture
    t = NEUTRAL_CLIMATE if temperature is None else temperature

    if height < b.deep_water_max:
        return TerrainType.DEEP_WATER
    if height < b.shallow_water_max:
        return TerrainType.SHALLOW_WATER
    if height >= b.peak_min:
        return TerrainType.SNOW_PEAKS

    if t > c.hot_threshold and m < c.dry_threshold:
        if height < b.hill_min:
            return TerrainType.DESERT
        return TerrainType.WASTELAND
    if m > c.wet_threshold and height < b.hill_min:
        return TerrainType.SWAMP
    if t < c.cold_threshold and height > b.mountain_min:
        return TerrainType.SNOW_PEAKS

    if height >= b.mountain_min:
        return TerrainType.MOUNTAINS
    if height >= b.hill_min:
        return TerrainType.HILLS
    if height < b.beach_max:
        return TerrainType.BEACH

    if m > c.dense_vegetation_threshold:
        return TerrainType.DENSE_FOREST
    if m > c.vegetation_threshold:
        return TerrainType.FOREST
    return TerrainType.GRASSLAND


def classify_height(
    height: float,
    bands: HeightBandConfig | None = None,
) -> TerrainType:
    """Classify from height alone, assuming a neutral climate."""
    return classify_tile(height, bands=bands)
