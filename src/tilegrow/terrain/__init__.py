"""Procedural terrain growth package.

Grows a grid of terrain tiles from sparse seeds under adjacency and height
constraints, then smooths it and places decorative features.
"""

from .classification import classify_height, classify_tile
from .config import TerrainConfig, load_config
from .generator import GenerationResult, generate_grid, generate_terrain
from .grid import TerrainGrid, TerrainTile
from .postprocess import place_features, post_process, smooth_terrain
from .propagation import GrowthPropagator, PropagationStats
from .rules import ContextRule, HeightRange, TerrainRuleSet, build_rule_set
from .validation import ValidationResult, validate_terrain

__all__ = [
    "ContextRule",
    "GenerationResult",
    "GrowthPropagator",
    "HeightRange",
    "PropagationStats",
    "TerrainConfig",
    "TerrainGrid",
    "TerrainRuleSet",
    "TerrainTile",
    "ValidationResult",
    "build_rule_set",
    "classify_height",
    "classify_tile",
    "generate_grid",
    "generate_terrain",
    "load_config",
    "place_features",
    "post_process",
    "smooth_terrain",
    "validate_terrain",
]
