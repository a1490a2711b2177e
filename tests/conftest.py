"""Shared test fixtures for terrain tests."""

import numpy as np
import pytest

from tilegrow.terrain.config import TerrainConfig
from tilegrow.terrain.grid import TerrainGrid
from tilegrow.terrain.propagation import GrowthPropagator
from tilegrow.terrain.rules import TerrainRuleSet, build_rule_set


@pytest.fixture
def config() -> TerrainConfig:
    """Default configuration with a fixed seed."""
    return TerrainConfig(seed=42)


@pytest.fixture
def rules(config: TerrainConfig) -> TerrainRuleSet:
    """Default rule set."""
    return build_rule_set(config)


@pytest.fixture
def rng() -> np.random.Generator:
    """Seeded random number generator."""
    return np.random.default_rng(1234)


@pytest.fixture
def grown_grid(config: TerrainConfig, rules: TerrainRuleSet) -> tuple[TerrainGrid, GrowthPropagator]:
    """30x30 grid grown without climate fields, before post-processing."""
    grid = TerrainGrid(30, 30)
    propagator = GrowthPropagator(rules, np.random.default_rng(7), config)
    propagator.run(grid)
    return grid, propagator
