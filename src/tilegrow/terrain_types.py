"""Terrain and feature types and their render properties."""

from enum import Enum


class TerrainType(str, Enum):
    """Terrain classification of a single tile."""

    DEEP_WATER = "deep_water"
    SHALLOW_WATER = "shallow_water"
    BEACH = "beach"
    GRASSLAND = "grassland"
    FOREST = "forest"
    DENSE_FOREST = "dense_forest"
    HILLS = "hills"
    MOUNTAINS = "mountains"
    SNOW_PEAKS = "snow_peaks"
    DESERT = "desert"
    SWAMP = "swamp"
    WASTELAND = "wasteland"

    @property
    def is_water(self) -> bool:
        """Whether this terrain is open water."""
        return self in _WATER_TYPES

    @property
    def code(self) -> int:
        """Compact uint8 code used when exporting grids as arrays."""
        return _TERRAIN_CODES[self]


class FeatureType(str, Enum):
    """Decorative markers placed on tiles during post-processing.

    NONE is a sentinel for renderers and is never stored on a tile.
    """

    VILLAGE = "village"
    CASTLE = "castle"
    TOWER = "tower"
    RUINS = "ruins"
    TEMPLE = "temple"
    STANDING_STONES = "standing_stones"
    MAGICAL_CRYSTAL = "magical_crystal"
    PORTAL = "portal"
    DRAGON_LAIR = "dragon_lair"
    SHIPWRECK = "shipwreck"
    CAVE_ENTRANCE = "cave_entrance"
    NONE = "none"


# Define sets for O(1) lookup
_WATER_TYPES = frozenset({
    TerrainType.DEEP_WATER,
    TerrainType.SHALLOW_WATER,
})

_TERRAIN_CODES: dict[TerrainType, int] = {
    terrain: index for index, terrain in enumerate(TerrainType)
}

LAND_TYPES = frozenset(t for t in TerrainType if t not in _WATER_TYPES)


# RGB in [0, 1], stable across runs
TERRAIN_COLORS: dict[TerrainType, tuple[float, float, float]] = {
    TerrainType.DEEP_WATER: (0.1, 0.2, 0.8),
    TerrainType.SHALLOW_WATER: (0.2, 0.4, 0.8),
    TerrainType.BEACH: (0.9, 0.9, 0.6),
    TerrainType.GRASSLAND: (0.4, 0.8, 0.4),
    TerrainType.FOREST: (0.2, 0.6, 0.2),
    TerrainType.DENSE_FOREST: (0.1, 0.4, 0.1),
    TerrainType.HILLS: (0.5, 0.7, 0.3),
    TerrainType.MOUNTAINS: (0.6, 0.6, 0.6),
    TerrainType.SNOW_PEAKS: (0.95, 0.95, 0.95),
    TerrainType.DESERT: (0.9, 0.8, 0.5),
    TerrainType.SWAMP: (0.3, 0.4, 0.25),
    TerrainType.WASTELAND: (0.55, 0.45, 0.35),
}


def color_for(terrain: TerrainType) -> tuple[float, float, float]:
    """Render color of a terrain type as an (r, g, b) triple in [0, 1]."""
    return TERRAIN_COLORS[terrain]


def terrain_from_code(code: int) -> TerrainType:
    """Convert an exported uint8 code back to its TerrainType.

    Raises:
        ValueError: If the code does not name a terrain type.
    """
    members = list(TerrainType)
    if not 0 <= code < len(members):
        raise ValueError(f"Unknown terrain code: {code}")
    return members[code]
