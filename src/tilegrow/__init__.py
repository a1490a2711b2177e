"""Constrained terrain growth for procedural tile worlds."""

from .exceptions import (
    InvalidDimensionsError,
    RuleSetGapError,
    TerrainError,
    UnreachableCellsError,
)
from .terrain import GenerationResult, TerrainGrid, TerrainTile, generate_terrain
from .terrain_types import FeatureType, TerrainType, color_for

__all__ = [
    # Types
    "TerrainType",
    "FeatureType",
    "color_for",
    # Generation
    "generate_terrain",
    "GenerationResult",
    "TerrainGrid",
    "TerrainTile",
    # Exceptions
    "TerrainError",
    "InvalidDimensionsError",
    "RuleSetGapError",
    "UnreachableCellsError",
]
